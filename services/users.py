"""
User Service

Signup, credential checks and the admin user directory. Users are never
deleted; an admin deactivates them instead.
"""

import structlog
from sqlalchemy import func, or_

from constants.validation import (
    ROLE_ADMIN, ROLE_USER, REASON_ACCOUNT_INACTIVE, REASON_INVALID_PASSWORD,
    REASON_USER_EXISTS, REASON_USER_NOT_FOUND,
)
from models import db, MealPack, Order, User
from utils.errors import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from utils.cache import admin_cache

logger = structlog.get_logger(__name__)


def find_by_email(email):
    return User.query.filter(func.lower(User.email) == email.lower()).first()


def create_user(payload, role=ROLE_USER):
    """Create an account from a validated SignupRequest."""
    if find_by_email(payload.email) is not None:
        raise ValidationError('User with this email already exists', code=REASON_USER_EXISTS)
    user = User(email=payload.email, name=payload.name, role=role, is_active=True)
    user.set_password(payload.password)
    db.session.add(user)
    db.session.commit()
    admin_cache.clear()
    logger.info('User created', user_id=user.id, user_role=role)
    return user


def authenticate(email, password):
    """
    Return the user for valid credentials.

    Unknown email and wrong password give the same message; the error code
    tells the audit trail which one it was.
    """
    user = find_by_email(email)
    if user is None:
        raise AuthenticationError('Invalid email or password', code=REASON_USER_NOT_FOUND)
    if not user.check_password(password):
        raise AuthenticationError('Invalid email or password', code=REASON_INVALID_PASSWORD,
                                  details={'user_id': user.id})
    if not user.is_active:
        raise AuthorizationError('Account is deactivated', code=REASON_ACCOUNT_INACTIVE,
                                 details={'user_id': user.id})
    return user


# ============================================
# ADMIN DIRECTORY
# ============================================

def list_users(search=None, role=None, active=None):
    query = User.query
    if search:
        pattern = f'%{search.strip()}%'
        query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
    if role:
        query = query.filter(User.role == role)
    if active is not None:
        query = query.filter(User.is_active.is_(active))
    return query.order_by(User.created_at.desc()).all()


def get_user(user_id):
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError('User not found')
    return user


def user_stats(user_id):
    order_count, meals_ordered = db.session.query(
        func.count(Order.id), func.coalesce(func.sum(Order.total_meals), 0)
    ).filter(Order.user_id == user_id).one()
    pack_count, meals_purchased = db.session.query(
        func.count(MealPack.id), func.coalesce(func.sum(MealPack.pack_size), 0)
    ).filter(MealPack.user_id == user_id).one()
    balance = db.session.query(func.coalesce(func.sum(MealPack.remaining_balance), 0)).filter(
        MealPack.user_id == user_id,
        MealPack.is_active.is_(True),
        MealPack.remaining_balance > 0,
    ).scalar()
    return {
        'order_count': int(order_count or 0),
        'total_meals_ordered': int(meals_ordered or 0),
        'pack_count': int(pack_count or 0),
        'meals_purchased': int(meals_purchased or 0),
        'meal_balance': int(balance or 0),
    }


def get_user_detail(user_id):
    user = get_user(user_id)
    data = user.to_dict()
    data['stats'] = user_stats(user.id)
    return data


def update_role(user_id, role):
    """Returns (user, old_role)."""
    user = get_user(user_id)
    old_role = user.role
    user.role = role
    db.session.commit()
    admin_cache.clear()
    if role == ROLE_ADMIN and old_role != ROLE_ADMIN:
        logger.warning('User promoted to admin', user_id=user.id)
    return user, old_role


def update_status(user_id, is_active):
    """Returns (user, old_is_active)."""
    user = get_user(user_id)
    was_active = user.is_active
    user.is_active = is_active
    db.session.commit()
    admin_cache.clear()
    return user, was_active
