"""
Validation Constants

Contains whitelist values for validating user input and the fixed
vocabularies (roles, statuses, audit reasons) shared by routes and services.
"""

# Valid user roles
ROLE_USER = 'user'
ROLE_ADMIN = 'admin'
VALID_ROLES = (ROLE_USER, ROLE_ADMIN)

# Order statuses, in lifecycle order
ORDER_PENDING = 'pending'
ORDER_CONFIRMED = 'confirmed'
ORDER_DELIVERED = 'delivered'
ORDER_CANCELLED = 'cancelled'
VALID_ORDER_STATUSES = (ORDER_PENDING, ORDER_CONFIRMED, ORDER_DELIVERED, ORDER_CANCELLED)

# Legal forward moves; delivered and cancelled are terminal
ORDER_STATUS_TRANSITIONS = {
    ORDER_PENDING: {ORDER_CONFIRMED, ORDER_CANCELLED},
    ORDER_CONFIRMED: {ORDER_DELIVERED, ORDER_CANCELLED},
    ORDER_DELIVERED: set(),
    ORDER_CANCELLED: set(),
}

# Derived (never stored) menu display states
MENU_DRAFT = 'Draft'
MENU_ACTIVE = 'Active'
MENU_EXPIRED = 'Expired'
MENU_SCHEDULED = 'Scheduled'

# Meal pack sizes offered when no config override is present
DEFAULT_PACK_SIZES = (10, 20, 40, 80)

MIN_PASSWORD_LENGTH = 6

# Reason codes recorded on failed audit entries
REASON_UNAUTHORIZED = 'UNAUTHORIZED'
REASON_FORBIDDEN = 'FORBIDDEN'
REASON_USER_MISMATCH = 'USER_MISMATCH'
REASON_USER_EXISTS = 'USER_EXISTS'
REASON_USER_NOT_FOUND = 'USER_NOT_FOUND'
REASON_INVALID_PASSWORD = 'INVALID_PASSWORD'
REASON_ACCOUNT_INACTIVE = 'ACCOUNT_INACTIVE'
REASON_CANNOT_DEACTIVATE_SELF = 'CANNOT_DEACTIVATE_SELF'
REASON_CANNOT_CHANGE_OWN_ROLE = 'CANNOT_CHANGE_OWN_ROLE'
REASON_INSUFFICIENT_BALANCE = 'INSUFFICIENT_BALANCE'
REASON_PACK_EXPIRED = 'PACK_EXPIRED'

# Maximum field lengths for security
MAX_LENGTHS = {
    'user_name': 100,
    'email': 255,
    'menu_item_name': 200,
    'description': 2000,
    'category': 50,
    'template_name': 100,
}

# Bounds for the recent orders feed
RECENT_ORDERS_MIN = 1
RECENT_ORDERS_MAX = 100
RECENT_ORDERS_DEFAULT = 10
