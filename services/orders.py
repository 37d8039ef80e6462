"""
Order Service

Customer order creation and the admin side of orders: listing, status
changes, stats and the recent orders feed.
"""

import structlog
from sqlalchemy import case, func
from sqlalchemy.orm import joinedload

from constants.validation import (
    ORDER_CONFIRMED, ORDER_PENDING, ORDER_DELIVERED, ORDER_CANCELLED, ORDER_STATUS_TRANSITIONS
)
from models import db, MenuItem, Order, OrderItem
from models.base import utcnow
from utils.errors import BusinessError, InsufficientBalanceError, NotFoundError, PackExpiredError, ValidationError
from utils.cache import admin_cache

from . import packs as pack_service
from .menus import current_menu

logger = structlog.get_logger(__name__)


def list_orders(status=None, user_id=None, start_date=None, end_date=None):
    query = Order.query.options(joinedload(Order.user))
    if status:
        query = query.filter(Order.status == status)
    if user_id:
        query = query.filter(Order.user_id == user_id)
    if start_date is not None:
        query = query.filter(Order.order_date >= pack_service.day_start(start_date))
    if end_date is not None:
        query = query.filter(Order.order_date < pack_service.day_after(end_date))
    return query.order_by(Order.order_date.desc()).all()


def user_orders(user_id):
    return Order.query.filter_by(user_id=user_id).order_by(Order.order_date.desc()).all()


def get_order(order_id):
    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFoundError('Order not found')
    return order


def recent_orders(limit):
    return Order.query.options(joinedload(Order.user)) \
        .order_by(Order.order_date.desc()).limit(limit).all()


# ============================================
# STATUS CHANGES
# ============================================

def is_allowed_transition(old_status, new_status):
    return old_status == new_status or new_status in ORDER_STATUS_TRANSITIONS.get(old_status, ())


def _check_transition(order, new_status, enforce):
    if is_allowed_transition(order.status, new_status):
        return
    if enforce:
        raise BusinessError(f'Cannot change order status from {order.status} to {new_status}')
    logger.warning(
        'Order status skips the normal lifecycle', order_id=order.id, old_status=order.status, new_status=new_status,
    )


def update_order_status(order_id, status, enforce=False):
    """
    Set one order's status.

    Any member status is accepted unless enforce is set, in which case
    jumps outside ORDER_STATUS_TRANSITIONS are rejected. Returns
    (order, old_status).
    """
    order = get_order(order_id)
    old_status = order.status
    _check_transition(order, status, enforce)
    order.status = status
    db.session.commit()
    admin_cache.clear()
    return order, old_status


def bulk_update_status(order_ids, status, enforce=False):
    """Set status on every listed order that exists; returns the updated orders."""
    orders = Order.query.filter(Order.id.in_(order_ids)).all()
    for order in orders:
        _check_transition(order, status, enforce)
    for order in orders:
        order.status = status
    db.session.commit()
    admin_cache.clear()
    missing = set(order_ids) - {order.id for order in orders}
    if missing:
        logger.info('Bulk update skipped unknown orders', missing_count=len(missing))
    return orders


def order_stats():
    """
    Counts per status and revenue over all orders.

    average_order_value is only present when there is at least one order.
    """
    def count_status(status):
        return func.coalesce(func.sum(case((Order.status == status, 1), else_=0)), 0)

    row = db.session.query(
        func.count(Order.id),
        func.coalesce(func.sum(Order.total_price), 0),
        count_status(ORDER_PENDING),
        count_status(ORDER_CONFIRMED),
        count_status(ORDER_DELIVERED),
        count_status(ORDER_CANCELLED),
    ).one()
    stats = {
        'total_orders': int(row[0] or 0),
        'total_revenue': float(row[1] or 0),
        'pending_orders': int(row[2] or 0),
        'confirmed_orders': int(row[3] or 0),
        'delivered_orders': int(row[4] or 0),
        'cancelled_orders': int(row[5] or 0),
    }
    if stats['total_orders']:
        stats['average_order_value'] = round(stats['total_revenue'] / stats['total_orders'], 2)
    return stats


# ============================================
# ORDER CREATION
# ============================================

def _selected_items(menu, selected_meals):
    ids = list(selected_meals)
    items = {item.id: item for item in MenuItem.query.filter(
        MenuItem.menu_id == menu.id, MenuItem.id.in_(ids)).all()}
    for item_id in ids:
        item = items.get(item_id)
        if item is None:
            raise ValidationError('Selected meal is not on the current menu')
        if not item.is_available:
            raise ValidationError(f'{item.name} is no longer available')
    return items


def create_order(user_id, payload, now=None):
    """
    Place an order against the published menu and pay for it in meals.

    Packs are drawn down oldest first in the same transaction that inserts
    the order and its items. Returns (order, meals_remaining), where
    meals_remaining counts only meals in packs that have not expired.
    """
    now = now or utcnow()
    menu = current_menu()
    items = _selected_items(menu, payload.selected_meals)
    requested = payload.requested_meals

    available = pack_service.available_balance(user_id)
    if requested > available:
        raise InsufficientBalanceError(available, requested)
    packs = pack_service.spendable_packs(user_id, now)
    spendable = sum(pack.remaining_balance for pack in packs)
    if requested > spendable:
        raise PackExpiredError(
            f'Some of your meal packs have expired. You have {spendable} meals available.',
            details={'available': available, 'spendable': spendable, 'requested': requested},
        )

    try:
        deductions = pack_service.deduct_meals(packs, requested)
        order = Order(
            user_id=user_id,
            menu_id=menu.id,
            order_date=now,
            total_meals=requested,
            status=ORDER_CONFIRMED,
        )
        total_price = 0
        for item_id, quantity in payload.selected_meals.items():
            price = items[item_id].price or 0
            order.items.append(OrderItem(menu_item_id=item_id, quantity=quantity, price=price))
            total_price += price * quantity
        order.total_price = round(total_price, 2)
        db.session.add(order)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    admin_cache.clear()
    logger.info(
        'Order created', user_id=user_id, order_id=order.id, total_meals=requested, packs_used=len(deductions),
    )
    return order, spendable - requested
