"""
Meal Pack Models

Contains MealPack (a customer's purchased bundle of meal credits) and
PackTemplate (the admin-managed catalog entry a pack is sold from).
"""

from .base import db, new_id, utcnow, isoformat


class MealPack(db.Model):
    """
    Prepaid bundle of meal credits owned by one user.

    remaining_balance starts at pack_size and is drawn down by orders,
    never below zero.
    """
    __tablename__ = 'meal_packs'
    __table_args__ = (
        db.CheckConstraint('remaining_balance >= 0', name='ck_meal_packs_balance_non_negative'),
        db.CheckConstraint('remaining_balance <= pack_size', name='ck_meal_packs_balance_within_size'),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False, index=True)
    pack_size = db.Column(db.Integer, nullable=False)
    remaining_balance = db.Column(db.Integer, nullable=False)
    purchase_date = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    expiry_date = db.Column(db.DateTime, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    def is_expired(self, now=None):
        if self.expiry_date is None:
            return False
        return self.expiry_date < (now or utcnow())

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'pack_size': self.pack_size,
            'remaining_balance': self.remaining_balance,
            'purchase_date': isoformat(self.purchase_date),
            'expiry_date': isoformat(self.expiry_date),
            'is_active': self.is_active,
        }


class PackTemplate(db.Model):
    """Catalog entry describing a pack on sale; not tied to a purchase."""
    __tablename__ = 'pack_templates'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(100), nullable=False)
    size = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=False)
    description = db.Column(db.Text, nullable=False, default='')
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'size': self.size,
            'price': self.price,
            'description': self.description,
            'is_active': self.is_active,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }
