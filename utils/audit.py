"""
Audit Logger

Records privileged actions and rejected attempts. Each entry goes to the
'audit' logger and is appended to the audit_log table. Entries are written
in their own commit so a rejected request still leaves its trace.
"""

import structlog
from sqlalchemy.exc import SQLAlchemyError

from models import db, AuditLog

logger = structlog.get_logger('audit')


def _write(user_id, action, resource, success, reason=None, details=None):
    entry = AuditLog(
        user_id=user_id,
        action=action,
        resource=resource,
        success=success,
        reason=reason,
        details=details or None,
    )
    logger.info(
        'Audit Log', user_id=user_id, action=action, resource=resource,
        success=success, reason=reason, details=details,
    )
    try:
        db.session.add(entry)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception('Failed to persist audit entry', action=action)
    return entry


def log_action(user_id, action, resource, details=None):
    """Record a successful privileged action."""
    return _write(user_id, action, resource, True, details=details)


def log_failed_action(user_id, action, resource, reason, details=None):
    """Record a rejected or failed action with its reason code."""
    return _write(user_id, action, resource, False, reason=reason, details=details)
