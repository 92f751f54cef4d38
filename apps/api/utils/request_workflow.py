"""Status workflow for document requests.

pending -> approved
pending -> rejected (reason required)

Processed requests are final. Re-applying the current status is accepted
and changes nothing.
"""
from __future__ import annotations

import logging

from apps.api import db
from apps.api.models.admin_user import AdminUser
from apps.api.models.document import DocumentRequest, REQUEST_STATUSES
from apps.api.utils.audit import log_action
from apps.api.utils.request_store import update_request
from apps.api.utils.time import utc_now

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    'pending': {'approved', 'rejected'},
    'approved': set(),
    'rejected': set(),
}


class TransitionError(Exception):
    """Raised when a requested status change is not allowed."""
    pass


def transition_status(
    req: DocumentRequest,
    new_status: str,
    admin: AdminUser | None = None,
    rejection_reason: str | None = None,
) -> bool:
    """
    Move ``req`` to ``new_status`` and record who did it.

    Returns:
        True if the status changed, False for an idempotent repeat

    Raises:
        TransitionError: Unknown status, missing reason, or a processed request
    """
    new_status = str(new_status or '').strip().lower()
    if new_status not in REQUEST_STATUSES:
        raise TransitionError(f"Invalid status. Must be one of: {', '.join(REQUEST_STATUSES)}")

    current = req.status
    if new_status == current:
        return False

    if new_status not in ALLOWED_TRANSITIONS.get(current, set()):
        raise TransitionError(f"Cannot change a {current} request to {new_status}")

    patch = {
        'status': new_status,
        'processed_by': admin.id if admin else None,
        'processed_at': utc_now(),
    }
    if new_status == 'rejected':
        reason = str(rejection_reason or '').strip()
        if not reason:
            raise TransitionError('A rejection reason is required')
        patch['rejection_reason'] = reason
    else:
        patch['rejection_reason'] = None

    update_request(req.id, patch, commit=False)
    log_action(
        'document_request',
        req.id,
        'approve' if new_status == 'approved' else 'reject',
        admin_id=admin.id if admin else None,
        old_values={'status': current},
        new_values={'status': new_status, 'rejection_reason': patch['rejection_reason']},
        notes=patch['rejection_reason'],
    )
    db.session.commit()

    logger.info(
        "Request %s %s -> %s by admin %s",
        req.reference_number, current, new_status, admin.id if admin else None,
    )
    return True
