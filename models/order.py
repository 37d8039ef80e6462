"""
Order Models

Contains the Order and OrderItem models for customer meal orders.
"""

from .base import db, new_id, utcnow, isoformat


class Order(db.Model):
    """Customer order against one menu; status is one of VALID_ORDER_STATUSES."""
    __tablename__ = 'orders'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False, index=True)
    menu_id = db.Column(db.String(36), db.ForeignKey('menus.id'), nullable=True, index=True)
    order_date = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    total_meals = db.Column(db.Integer, nullable=False, default=0)
    total_price = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    status = db.Column(db.String(20), nullable=False, default='pending', index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    items = db.relationship('OrderItem', backref='order', lazy=True, cascade='all, delete-orphan')
    menu = db.relationship('Menu')

    def to_dict(self, include_items=False):
        data = {
            'id': self.id,
            'user_id': self.user_id,
            'menu_id': self.menu_id,
            'order_date': isoformat(self.order_date),
            'total_meals': self.total_meals,
            'total_price': self.total_price,
            'status': self.status,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }
        if self.user is not None:
            data['user_name'] = self.user.name
            data['user_email'] = self.user.email
        if include_items:
            data['items'] = [item.to_dict() for item in self.items]
        else:
            data['item_count'] = len(self.items)
        return data


class OrderItem(db.Model):
    """Quantity of one menu item within an order, priced at order time."""
    __tablename__ = 'order_items'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    order_id = db.Column(db.String(36), db.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True)
    menu_item_id = db.Column(db.String(36), db.ForeignKey('menu_items.id'), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=False, default=0)

    menu_item = db.relationship('MenuItem')

    def to_dict(self):
        return {
            'id': self.id,
            'order_id': self.order_id,
            'menu_item_id': self.menu_item_id,
            'menu_item_name': self.menu_item.name if self.menu_item else None,
            'quantity': self.quantity,
            'price': self.price,
        }
