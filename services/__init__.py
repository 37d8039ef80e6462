"""
Services Package

Business logic modules for the meal service. Routes import the modules
(menu_service, order_service, ...) rather than individual functions.
"""

from . import menus as menu_service
from . import orders as order_service
from . import packs as pack_service
from . import stats as stats_service
from . import users as user_service

__all__ = [
    'menu_service',
    'order_service',
    'pack_service',
    'stats_service',
    'user_service',
]
