"""
Models Package

Exports all database models and the db instance for use throughout the application.
"""

from .base import db

from .user import User
from .pack import MealPack, PackTemplate
from .menu import Menu, MenuItem
from .order import Order, OrderItem
from .audit import AuditLog

__all__ = [
    'db',
    'User',
    'MealPack',
    'PackTemplate',
    'Menu',
    'MenuItem',
    'Order',
    'OrderItem',
    'AuditLog',
]
