# Utility modules for the meal service
from .errors import (
    AppError, AuthenticationError, AuthorizationError, ValidationError,
    NotFoundError, BusinessError, InsufficientBalanceError, PackExpiredError,
    InternalError, DatabaseError
)
from .sanitizer import sanitize_text, sanitize_name, sanitize_email
