"""
Stats Service

Admin dashboard aggregates (cached in-process) and the health probe with
connection pool figures.
"""

import time
from datetime import date

import structlog
from sqlalchemy import case, func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import QueuePool

from constants.validation import ROLE_ADMIN, ORDER_PENDING, ORDER_CONFIRMED, ORDER_DELIVERED
from models import db, MealPack, Menu, Order, User
from models.base import utcnow, isoformat
from utils.cache import admin_cache

logger = structlog.get_logger(__name__)

DASHBOARD_CACHE_KEY = 'dashboard_stats'


def _sum_when(condition):
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


def _user_stats():
    total, admins, active = db.session.query(
        func.count(User.id),
        _sum_when(User.role == ROLE_ADMIN),
        _sum_when(User.is_active.is_(True)),
    ).one()
    return {'total_users': int(total or 0), 'admin_count': int(admins or 0), 'active_users': int(active or 0)}


def _order_stats():
    total, revenue, pending, confirmed, delivered = db.session.query(
        func.count(Order.id),
        func.coalesce(func.sum(Order.total_price), 0),
        _sum_when(Order.status == ORDER_PENDING),
        _sum_when(Order.status == ORDER_CONFIRMED),
        _sum_when(Order.status == ORDER_DELIVERED),
    ).one()
    return {
        'total_orders': int(total or 0),
        'total_revenue': float(revenue or 0),
        'pending_orders': int(pending or 0),
        'confirmed_orders': int(confirmed or 0),
        'delivered_orders': int(delivered or 0),
    }


def _menu_stats(today):
    published = Menu.is_published.is_(True)
    total, published_count, active = db.session.query(
        func.count(Menu.id),
        _sum_when(published),
        _sum_when(published & (Menu.week_start_date <= today) & (Menu.week_end_date >= today)),
    ).one()
    return {'total_menus': int(total or 0), 'published_menus': int(published_count or 0), 'active_menus': int(active or 0)}


def _pack_stats():
    sales, meals_sold = db.session.query(
        func.count(MealPack.id), func.coalesce(func.sum(MealPack.pack_size), 0)
    ).one()
    return {'total_pack_sales': int(sales or 0), 'meals_sold': int(meals_sold or 0)}


def dashboard_stats(ttl, today=None):
    """users/orders/menus/packs aggregates, served from cache for ttl seconds."""
    cached = admin_cache.get(DASHBOARD_CACHE_KEY, ttl)
    if cached is not None:
        logger.debug('Returning cached dashboard stats')
        return cached

    logger.info('Fetching dashboard statistics')
    stats = {
        'users': _user_stats(),
        'orders': _order_stats(),
        'menus': _menu_stats(today or date.today()),
        'packs': _pack_stats(),
    }
    admin_cache.set(DASHBOARD_CACHE_KEY, stats, ttl)
    return stats


# ============================================
# HEALTH
# ============================================

def pool_stats(engine=None):
    """
    {total, idle, waiting} for the engine's pool.

    waiting is the overflow beyond pool_size, the nearest figure SQLAlchemy
    exposes to callers queued for a connection. Pools other than QueuePool
    report zeros.
    """
    pool = (engine or db.engine).pool
    if not isinstance(pool, QueuePool):
        return {'total': 0, 'idle': 0, 'waiting': 0, 'pool_class': type(pool).__name__}
    idle = pool.checkedin()
    return {
        'total': idle + pool.checkedout(),
        'idle': idle,
        'waiting': max(0, pool.overflow()),
        'pool_class': type(pool).__name__,
    }


def health_check(version):
    """Database reachability and pool figures; 'status' is healthy or unhealthy."""
    started = time.perf_counter()
    database = {'connected': True}
    try:
        db.session.execute(text('SELECT 1'))
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error('Health check database probe failed', exc_info=True)
        database = {'connected': False, 'error': type(e).__name__}
    database['response_time_ms'] = round((time.perf_counter() - started) * 1000, 2)

    return {
        'status': 'healthy' if database['connected'] else 'unhealthy',
        'timestamp': isoformat(utcnow()),
        'version': version,
        'database': database,
        'pool': pool_stats(),
    }
