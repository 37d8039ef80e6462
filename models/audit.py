"""
Audit Log Model

Append-only record of privileged actions, kept apart from the application log.
"""

from .base import db, utcnow, isoformat


class AuditLog(db.Model):
    """One audited action. Rows are only ever inserted."""
    __tablename__ = 'audit_log'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(36), nullable=True, index=True)  # None for anonymous callers
    action = db.Column(db.String(64), nullable=False, index=True)
    resource = db.Column(db.String(64), nullable=False)
    success = db.Column(db.Boolean, nullable=False)
    reason = db.Column(db.String(64), nullable=True)
    details = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'action': self.action,
            'resource': self.resource,
            'success': self.success,
            'reason': self.reason,
            'details': self.details,
            'created_at': isoformat(self.created_at),
        }
