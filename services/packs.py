"""
Meal Pack Service

Pack purchases, balance accounting and the admin pack catalog.

A user's balance is the sum of remaining_balance over their active packs.
Orders draw it down oldest pack first; a pack is never taken below zero.
"""

from datetime import datetime, time, timedelta

import structlog
from sqlalchemy import func, or_

from models import db, MealPack, PackTemplate, User
from models.base import utcnow
from utils.errors import NotFoundError
from utils.cache import admin_cache

logger = structlog.get_logger(__name__)


def day_start(value):
    return datetime.combine(value, time.min)


def day_after(value):
    return datetime.combine(value + timedelta(days=1), time.min)


# ============================================
# CUSTOMER PACKS
# ============================================

def purchase_pack(user_id, pack_size, validity_days=None, now=None):
    """Record a purchased pack holding pack_size meals. No payment is taken here."""
    now = now or utcnow()
    pack = MealPack(
        user_id=user_id,
        pack_size=pack_size,
        remaining_balance=pack_size,
        purchase_date=now,
        expiry_date=now + timedelta(days=validity_days) if validity_days else None,
        is_active=True,
    )
    db.session.add(pack)
    db.session.commit()
    admin_cache.clear()
    logger.info('Meal pack purchased', user_id=user_id, pack_id=pack.id, pack_size=pack_size)
    return pack


def _active_packs(user_id):
    return MealPack.query.filter(
        MealPack.user_id == user_id,
        MealPack.is_active.is_(True),
        MealPack.remaining_balance > 0,
    )


def available_balance(user_id):
    """SUM(remaining_balance) over active packs with meals left."""
    total = _active_packs(user_id).with_entities(
        func.coalesce(func.sum(MealPack.remaining_balance), 0)).scalar()
    return int(total or 0)


def spendable_packs(user_id, now=None):
    """Packs an order may draw from, oldest purchase first; expired packs are left out."""
    now = now or utcnow()
    return _active_packs(user_id).filter(
        or_(MealPack.expiry_date.is_(None), MealPack.expiry_date >= now)
    ).order_by(MealPack.purchase_date.asc(), MealPack.id.asc()).all()


def deduct_meals(packs, meals):
    """
    Take meals from packs in the order given.

    Returns [(pack_id, deducted)]. The caller has already checked the packs
    hold enough; the session is not committed here.
    """
    remaining = meals
    deductions = []
    for pack in packs:
        if remaining <= 0:
            break
        amount = min(remaining, pack.remaining_balance)
        pack.remaining_balance -= amount
        remaining -= amount
        deductions.append((pack.id, amount))
        logger.debug(
            'Meals deducted from pack', pack_id=pack.id, deducted=amount, new_balance=pack.remaining_balance,
        )
    return deductions


def user_packs(user_id):
    return MealPack.query.filter_by(user_id=user_id).order_by(MealPack.purchase_date.desc()).all()


# ============================================
# PACK TEMPLATES
# ============================================

def list_templates(active=None):
    query = PackTemplate.query
    if active is not None:
        query = query.filter(PackTemplate.is_active.is_(active))
    return query.order_by(PackTemplate.size.asc(), PackTemplate.name.asc()).all()


def get_template(template_id):
    template = db.session.get(PackTemplate, template_id)
    if template is None:
        raise NotFoundError('Pack template not found')
    return template


def create_template(payload):
    template = PackTemplate(
        name=payload.name,
        size=payload.size,
        price=payload.price,
        description=payload.description or '',
        is_active=payload.is_active,
    )
    db.session.add(template)
    db.session.commit()
    return template


def update_template(template_id, payload):
    template = get_template(template_id)
    for field, value in payload.provided().items():
        if value is not None:
            setattr(template, field, value)
    db.session.commit()
    return template


def delete_template(template_id):
    template = get_template(template_id)
    db.session.delete(template)
    db.session.commit()
    return template_id


# ============================================
# PACK SALES
# ============================================

def list_pack_sales(user_id=None, pack_size=None, start_date=None, end_date=None, active=None):
    """Purchased packs with their buyer, newest first."""
    query = MealPack.query.join(User, MealPack.user_id == User.id).add_columns(User.name, User.email)
    if user_id:
        query = query.filter(MealPack.user_id == user_id)
    if pack_size is not None:
        query = query.filter(MealPack.pack_size == pack_size)
    if start_date is not None:
        query = query.filter(MealPack.purchase_date >= day_start(start_date))
    if end_date is not None:
        query = query.filter(MealPack.purchase_date < day_after(end_date))
    if active is not None:
        query = query.filter(MealPack.is_active.is_(active))

    sales = []
    for pack, user_name, user_email in query.order_by(MealPack.purchase_date.desc()).all():
        sale = pack.to_dict()
        sale['user_name'] = user_name
        sale['user_email'] = user_email
        sale['meals_used'] = pack.pack_size - pack.remaining_balance
        sales.append(sale)
    return sales


def pack_sales_stats():
    total_sales, meals_sold, meals_remaining, customers = db.session.query(
        func.count(MealPack.id),
        func.coalesce(func.sum(MealPack.pack_size), 0),
        func.coalesce(func.sum(MealPack.remaining_balance), 0),
        func.count(func.distinct(MealPack.user_id)),
    ).one()
    return {
        'total_sales': int(total_sales or 0),
        'total_meals_sold': int(meals_sold or 0),
        'meals_remaining': int(meals_remaining or 0),
        'unique_customers': int(customers or 0),
    }
