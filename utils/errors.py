"""
Application Errors

Typed exceptions raised by guards, schemas and services. Each carries the
HTTP status the API answers with, so routes never map errors by hand.
"""


class AppError(Exception):
    """
    Base class for every expected failure.

    Attributes:
        message: User-safe message returned in the JSON body
        code: Machine-readable code (also used as audit reason)
        status_code: HTTP status returned to the client
        details: Optional context for logs; never sent to the client
    """
    code = 'APP_ERROR'
    status_code = 500

    def __init__(self, message, code=None, status_code=None, details=None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}


# --------------------------------------------
# Request errors (4xx)
# --------------------------------------------

class AuthenticationError(AppError):
    """No session, or the session user no longer exists or is inactive."""
    code = 'UNAUTHORIZED'
    status_code = 401

    def __init__(self, message='Unauthorized', code=None, details=None):
        super().__init__(message, code=code, details=details)


class AuthorizationError(AppError):
    """Authenticated, but the role does not allow the action."""
    code = 'FORBIDDEN'
    status_code = 403

    def __init__(self, message='Forbidden', code=None, details=None):
        super().__init__(message, code=code, details=details)


class ValidationError(AppError):
    """Missing or invalid request field."""
    code = 'VALIDATION_ERROR'
    status_code = 400


class NotFoundError(AppError):
    """Requested resource does not exist."""
    code = 'NOT_FOUND'
    status_code = 404


class BusinessError(AppError):
    """Request is well-formed but breaks a business rule."""
    code = 'BUSINESS_RULE'
    status_code = 400


class InsufficientBalanceError(BusinessError):
    """Order asks for more meals than the user's packs hold."""
    code = 'INSUFFICIENT_BALANCE'

    def __init__(self, available, requested):
        super().__init__(
            f'You only have {available} meals available. Please reduce your order.',
            details={'available': available, 'requested': requested},
        )
        self.available = available
        self.requested = requested


class PackExpiredError(BusinessError):
    """Only expired packs could have covered the order."""
    code = 'PACK_EXPIRED'

    def __init__(self, message='Meal pack has expired', details=None):
        super().__init__(message, details=details)


# --------------------------------------------
# Server errors (5xx)
# --------------------------------------------

class InternalError(AppError):
    """Unexpected failure; the message is replaced by the route's safe message."""
    code = 'INTERNAL_ERROR'
    status_code = 500


class DatabaseError(InternalError):
    code = 'DATABASE_ERROR'
