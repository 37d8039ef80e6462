"""
Menu Models

Contains the Menu (one week of orderable dishes) and MenuItem models.
"""

from datetime import date

from constants.validation import MENU_ACTIVE, MENU_DRAFT, MENU_EXPIRED, MENU_SCHEDULED

from .base import db, new_id, utcnow, isoformat


class Menu(db.Model):
    """
    Weekly menu with publish flag.

    At most one menu is published at a time; services/menus.py keeps that
    true when publishing. The display status is derived from the dates.
    """
    __tablename__ = 'menus'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    week_start_date = db.Column(db.Date, nullable=False, index=True)
    week_end_date = db.Column(db.Date, nullable=False)
    is_published = db.Column(db.Boolean, nullable=False, default=False, index=True)
    created_by = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    items = db.relationship('MenuItem', backref='menu', lazy=True,
                            cascade='all, delete-orphan', order_by='MenuItem.name')

    def display_status(self, today=None):
        """Draft, Expired, Active or Scheduled."""
        if not self.is_published:
            return MENU_DRAFT
        today = today or date.today()
        if self.week_end_date < today:
            return MENU_EXPIRED
        if self.week_start_date > today:
            return MENU_SCHEDULED
        return MENU_ACTIVE

    def to_dict(self, include_items=False, today=None):
        data = {
            'id': self.id,
            'week_start_date': isoformat(self.week_start_date),
            'week_end_date': isoformat(self.week_end_date),
            'is_published': self.is_published,
            'status': self.display_status(today),
            'created_by': self.created_by,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }
        if include_items:
            data['items'] = [item.to_dict() for item in self.items]
        return data


class MenuItem(db.Model):
    """Dish on a menu."""
    __tablename__ = 'menu_items'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    menu_id = db.Column(db.String(36), db.ForeignKey('menus.id', ondelete='CASCADE'), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False, default='')
    price = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    category = db.Column(db.String(50), nullable=False, default='Main')
    is_available = db.Column(db.Boolean, nullable=False, default=True)

    def to_dict(self):
        return {
            'id': self.id,
            'menu_id': self.menu_id,
            'name': self.name,
            'description': self.description,
            'price': self.price,
            'category': self.category,
            'is_available': self.is_available,
        }
