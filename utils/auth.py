"""
Authentication and Authorization

The signed Flask session holds only the user id. On each request it is
resolved to an immutable Principal, and handlers receive that Principal as
an explicit argument through login_required / admin_required.
"""

from dataclasses import dataclass
from functools import wraps

import structlog
from flask import session

from constants.validation import ROLE_ADMIN, REASON_UNAUTHORIZED, REASON_FORBIDDEN
from models import db, User

from . import audit
from .errors import AuthenticationError, AuthorizationError

logger = structlog.get_logger(__name__)

SESSION_USER_KEY = 'user_id'


@dataclass(frozen=True)
class Principal:
    """The authenticated caller of the current request."""
    id: str
    email: str
    name: str
    role: str

    @property
    def is_admin(self):
        return self.role == ROLE_ADMIN

    @classmethod
    def from_user(cls, user):
        return cls(id=user.id, email=user.email, name=user.name, role=user.role)

    def to_dict(self):
        return {'id': self.id, 'email': self.email, 'name': self.name, 'role': self.role}


def login_user(user):
    """Start a session for user."""
    session.clear()
    session[SESSION_USER_KEY] = user.id
    session.permanent = True


def logout_user():
    session.clear()


def current_principal():
    """
    Resolve the session to a Principal.

    Returns None when there is no session, or when the user behind it was
    removed or deactivated since login. Role comes from the database, so a
    role change applies on the next request.
    """
    user_id = session.get(SESSION_USER_KEY)
    if not user_id:
        return None
    user = db.session.get(User, user_id)
    if user is None or not user.is_active:
        return None
    return Principal.from_user(user)


def require_login(principal, action, resource, details=None):
    """Step 1 of the guard: a session must exist, else 401."""
    if principal is None:
        logger.warning('Unauthorized access attempt', action=action, params=details or {})
        audit.log_failed_action(None, action, resource, REASON_UNAUTHORIZED, details)
        raise AuthenticationError()
    return principal


def require_admin(principal, action, resource, details=None):
    """Steps 1 and 2 of the guard: session (401) then admin role (403)."""
    require_login(principal, action, resource, details)
    if not principal.is_admin:
        logger.warning(
            'Forbidden access attempt', action=action, user_id=principal.id, user_role=principal.role,
            params=details or {},
        )
        audit.log_failed_action(principal.id, action, resource, REASON_FORBIDDEN,
                                {'userRole': principal.role, **(details or {})})
        raise AuthorizationError()
    return principal


def _guard_details(kwargs):
    # Route params (menu_id, order_id, ...) become audit context
    return {key: value for key, value in kwargs.items() if value is not None}


def login_required(action, resource):
    """Decorator: resolve the principal, require a session, pass it as first argument."""
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            principal = require_login(current_principal(), action, resource, _guard_details(kwargs))
            return view(principal, *args, **kwargs)
        return wrapped
    return decorator


def admin_required(action, resource):
    """Decorator: like login_required, and the principal must be an admin."""
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            principal = require_admin(current_principal(), action, resource, _guard_details(kwargs))
            return view(principal, *args, **kwargs)
        return wrapped
    return decorator
