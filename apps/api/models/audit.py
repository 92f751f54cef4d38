"""Admin audit log model.

Tracks admin actions on entities (document requests, admin accounts) for the
request detail history.
"""
from apps.api.utils.time import utc_now
from apps.api import db
from sqlalchemy import Index


class AuditLog(db.Model):
    __tablename__ = 'audit_logs'

    id = db.Column(db.Integer, primary_key=True)
    admin_id = db.Column(db.Integer, db.ForeignKey('admin_users.id'), nullable=True)

    # e.g., 'document_request', 'admin_user'
    entity_type = db.Column(db.String(50), nullable=False)
    entity_id = db.Column(db.Integer, nullable=True)

    action = db.Column(db.String(50), nullable=False)  # e.g., 'approve', 'reject', 'create'
    actor_role = db.Column(db.String(20), nullable=True)  # 'admin' | 'applicant' | 'system'

    old_values = db.Column(db.JSON, nullable=True)
    new_values = db.Column(db.JSON, nullable=True)

    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=utc_now)

    admin = db.relationship('AdminUser', backref=db.backref('audit_logs', lazy='dynamic'))

    __table_args__ = (
        Index('idx_audit_entity', 'entity_type', 'entity_id'),
        Index('idx_audit_created_at', 'created_at'),
        Index('idx_audit_admin', 'admin_id'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'admin_id': self.admin_id,
            'admin_name': self.admin.full_name if self.admin else None,
            'entity_type': self.entity_type,
            'entity_id': self.entity_id,
            'action': self.action,
            'actor_role': self.actor_role,
            'old_values': self.old_values,
            'new_values': self.new_values,
            'notes': self.notes,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
