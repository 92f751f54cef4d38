"""Audit trail helpers.

Entries are added to the current session; callers commit them together with
the change they describe.
"""
import logging

from apps.api import db
from apps.api.models.audit import AuditLog

logger = logging.getLogger(__name__)


def log_action(
    entity_type: str,
    entity_id,
    action: str,
    admin_id=None,
    actor_role: str = 'admin',
    old_values: dict = None,
    new_values: dict = None,
    notes: str = None,
) -> AuditLog:
    entry = AuditLog(
        admin_id=int(admin_id) if admin_id is not None else None,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        actor_role=actor_role,
        old_values=old_values,
        new_values=new_values,
        notes=notes,
    )
    db.session.add(entry)
    logger.info("Audit %s %s:%s by %s", action, entity_type, entity_id, admin_id or actor_role)
    return entry


def get_history(entity_type: str, entity_id) -> list:
    """Audit entries for one entity, oldest first."""
    entries = (
        AuditLog.query
        .filter_by(entity_type=entity_type, entity_id=entity_id)
        .order_by(AuditLog.created_at.asc(), AuditLog.id.asc())
        .all()
    )
    return [e.to_dict() for e in entries]
