"""
Shared fixtures: a fresh in-memory database per test, users with and
without admin rights, and factories for menus, packs and orders.
"""

import os
import sys
from datetime import date, timedelta

# Must be set before app is imported; app reads its config at import time
os.environ['FLASK_ENV'] = 'testing'
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from app import app as flask_app
from models import db, AuditLog, MealPack, Menu, MenuItem, Order, OrderItem, User
from models.base import utcnow
from utils.cache import admin_cache
from utils.monitoring import clear_sinks


@pytest.fixture
def app():
    flask_app.config.update(
        ENFORCE_ORDER_TRANSITIONS=False,
        PACK_VALIDITY_DAYS=None,
        STATS_CACHE_TTL=0,
    )
    with flask_app.app_context():
        db.drop_all()
        db.create_all()
        admin_cache.clear()
        yield flask_app
        db.session.remove()
        db.drop_all()
    clear_sinks()


@pytest.fixture
def client(app):
    return app.test_client()


def create_user(email='user@example.com', name='Test User', role='user', password='secret123', is_active=True):
    user = User(email=email, name=name, role=role, is_active=is_active)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


def login(client, user):
    with client.session_transaction() as sess:
        sess['user_id'] = user.id


@pytest.fixture
def user(app):
    return create_user()


@pytest.fixture
def admin(app):
    return create_user(email='admin@example.com', name='Admin User', role='admin')


@pytest.fixture
def user_client(client, user):
    login(client, user)
    return client


@pytest.fixture
def admin_client(client, admin):
    login(client, admin)
    return client


@pytest.fixture
def make_menu(app):
    def _make_menu(start=None, days=6, published=False, items=()):
        start = start or date.today()
        menu = Menu(week_start_date=start, week_end_date=start + timedelta(days=days), is_published=published)
        db.session.add(menu)
        for name, price in items:
            db.session.add(MenuItem(menu=menu, name=name, price=price))
        db.session.commit()
        return menu
    return _make_menu


@pytest.fixture
def make_pack(app):
    def _make_pack(user, size=10, remaining=None, purchased=None, expiry=None, is_active=True):
        pack = MealPack(
            user_id=user.id,
            pack_size=size,
            remaining_balance=size if remaining is None else remaining,
            purchase_date=purchased or utcnow(),
            expiry_date=expiry,
            is_active=is_active,
        )
        db.session.add(pack)
        db.session.commit()
        return pack
    return _make_pack


@pytest.fixture
def make_order(app):
    def _make_order(user, status='pending', total_meals=2, total_price=20.0, menu=None, order_date=None):
        order = Order(
            user_id=user.id,
            menu_id=menu.id if menu else None,
            status=status,
            total_meals=total_meals,
            total_price=total_price,
            order_date=order_date or utcnow(),
        )
        db.session.add(order)
        if menu is not None and menu.items:
            order.items.append(OrderItem(menu_item_id=menu.items[0].id, quantity=total_meals,
                                         price=menu.items[0].price))
        db.session.commit()
        return order
    return _make_order


def audit_entries(action=None, success=None):
    query = AuditLog.query
    if action is not None:
        query = query.filter_by(action=action)
    if success is not None:
        query = query.filter_by(success=success)
    return query.order_by(AuditLog.id).all()


@pytest.fixture
def audits(app):
    return audit_entries


@pytest.fixture
def make_user(app):
    return create_user


@pytest.fixture
def login_as():
    return login
