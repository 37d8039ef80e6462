# Shared constant vocabularies
from .validation import (
    VALID_ROLES, VALID_ORDER_STATUSES, ORDER_STATUS_TRANSITIONS,
    DEFAULT_PACK_SIZES, MIN_PASSWORD_LENGTH, MAX_LENGTHS
)
