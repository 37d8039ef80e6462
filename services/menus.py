"""
Menu Service

Weekly menu CRUD, menu items, and the publication state machine. At most
one menu is published at any time; publish() keeps that true inside a
single transaction.
"""

from datetime import date

import structlog

from constants.validation import MENU_ACTIVE, MENU_EXPIRED
from models import db, Menu, MenuItem, Order, OrderItem
from models.base import utcnow
from utils.errors import BusinessError, NotFoundError, ValidationError
from utils.cache import admin_cache

logger = structlog.get_logger(__name__)


def list_menus(published=None, start_date=None, end_date=None):
    """Menus newest week first, optionally filtered by publish flag and week range."""
    query = Menu.query
    if published is not None:
        query = query.filter(Menu.is_published.is_(published))
    if start_date is not None:
        query = query.filter(Menu.week_start_date >= start_date)
    if end_date is not None:
        query = query.filter(Menu.week_end_date <= end_date)
    return query.order_by(Menu.week_start_date.desc(), Menu.created_at.desc()).all()


def get_menu(menu_id):
    menu = db.session.get(Menu, menu_id)
    if menu is None:
        raise NotFoundError('Menu not found')
    return menu


def _new_item(menu, item):
    return MenuItem(
        menu=menu,
        name=item.name,
        description=item.description or '',
        price=item.price,
        category=item.category or 'Main',
        is_available=item.is_available,
    )


def create_menu(payload, created_by=None):
    """Insert a draft menu, with any items from the payload, in one commit."""
    menu = Menu(
        week_start_date=payload.week_start_date,
        week_end_date=payload.week_end_date,
        is_published=False,
        created_by=created_by,
    )
    db.session.add(menu)
    for item in payload.items:
        db.session.add(_new_item(menu, item))
    db.session.commit()
    admin_cache.clear()
    logger.info('Menu created', menu_id=menu.id, item_count=len(payload.items))
    return menu


def update_menu(menu_id, payload):
    menu = get_menu(menu_id)
    changes = payload.provided()
    start = changes.get('week_start_date') or menu.week_start_date
    end = changes.get('week_end_date') or menu.week_end_date
    if end < start:
        raise ValidationError('Week end date cannot be before week start date')
    menu.week_start_date = start
    menu.week_end_date = end
    db.session.commit()
    admin_cache.clear()
    return menu


def delete_menu(menu_id):
    """Delete a menu and its items; refused while orders reference it."""
    menu = get_menu(menu_id)
    if Order.query.filter_by(menu_id=menu.id).count():
        raise BusinessError('Cannot delete a menu with existing orders')
    was_published = menu.is_published
    db.session.delete(menu)
    db.session.commit()
    admin_cache.clear()
    return {'id': menu_id, 'was_published': was_published}


# ============================================
# PUBLICATION
# ============================================

def publish_menu(menu_id):
    """
    Make menu_id the only published menu.

    Returns (menu, unpublished_ids). Runs as one transaction: a missing
    target rolls back with nothing changed. Every other published menu is
    unpublished, also when the target was already published.
    """
    try:
        menu = db.session.get(Menu, menu_id)
        if menu is None:
            raise NotFoundError('Menu not found')
        others = Menu.query.filter(Menu.is_published.is_(True), Menu.id != menu_id)
        unpublished_ids = [row.id for row in others.with_entities(Menu.id)]
        if unpublished_ids:
            others.update({Menu.is_published: False, Menu.updated_at: utcnow()},
                          synchronize_session='fetch')
        menu.is_published = True
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    admin_cache.clear()
    logger.info('Menu published', menu_id=menu_id, unpublished_ids=unpublished_ids)
    return menu, unpublished_ids


def unpublish_menu(menu_id):
    """Clear the publish flag on exactly menu_id."""
    menu = get_menu(menu_id)
    menu.is_published = False
    db.session.commit()
    admin_cache.clear()
    return menu


def current_menu():
    """The published menu, or NotFoundError when none is published."""
    menu = Menu.query.filter(Menu.is_published.is_(True)).first()
    if menu is None:
        raise NotFoundError('No menu is currently published')
    return menu


def menu_status_summary(today=None):
    """Counts of menus by publish flag and derived display status."""
    today = today or date.today()
    summary = {'total': 0, 'published': 0, 'draft': 0, 'active': 0, 'expired': 0}
    for menu in Menu.query.all():
        summary['total'] += 1
        if not menu.is_published:
            summary['draft'] += 1
            continue
        summary['published'] += 1
        status = menu.display_status(today)
        if status == MENU_ACTIVE:
            summary['active'] += 1
        elif status == MENU_EXPIRED:
            summary['expired'] += 1
    return summary


# ============================================
# MENU ITEMS
# ============================================

def get_menu_item(menu_id, item_id):
    item = MenuItem.query.filter_by(id=item_id, menu_id=menu_id).first()
    if item is None:
        raise NotFoundError('Menu item not found')
    return item


def add_menu_item(menu_id, payload):
    menu = get_menu(menu_id)
    item = _new_item(menu, payload)
    db.session.add(item)
    db.session.commit()
    return item


def update_menu_item(menu_id, item_id, payload):
    item = get_menu_item(menu_id, item_id)
    for field, value in payload.provided().items():
        if value is not None:
            setattr(item, field, value)
    db.session.commit()
    return item


def delete_menu_item(menu_id, item_id):
    item = get_menu_item(menu_id, item_id)
    if OrderItem.query.filter_by(menu_item_id=item.id).count():
        raise BusinessError('Cannot delete a menu item that has been ordered')
    db.session.delete(item)
    db.session.commit()
    return item_id
