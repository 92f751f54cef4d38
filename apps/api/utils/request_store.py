"""Persistence helpers for document requests and zones.

Every route goes through these functions instead of querying the models
directly, so ordering, reference-number assignment and ``updated_at``
stamping stay consistent.
"""
from __future__ import annotations

import logging
from datetime import datetime

from flask import current_app
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError

from apps.api import db
from apps.api.models.document import DocumentRequest
from apps.api.models.zone import Zone
from apps.api.utils.reference_numbers import generate_reference_number
from apps.api.utils.time import utc_now

logger = logging.getLogger(__name__)

# Fields an update patch may touch; identity and reference stay fixed.
UPDATABLE_FIELDS = {
    'first_name', 'middle_name', 'last_name', 'age', 'birth_date', 'address',
    'zone_id', 'contact', 'email', 'marital_status', 'purpose',
    'has_zone_clearance', 'zone_clearance_reference',
    'zone_clearance_file_id', 'valid_id_file_id',
    'status', 'rejection_reason', 'processed_by', 'processed_at',
}

_REFERENCE_ATTEMPTS = 5


def _newest_first(query):
    return query.order_by(DocumentRequest.request_date.desc(), DocumentRequest.id.desc())


def _unique_reference_number(document_type: str, now: datetime | None = None) -> str:
    offset = current_app.config.get('REFERENCE_UTC_OFFSET_HOURS', 8)
    for _ in range(_REFERENCE_ATTEMPTS):
        candidate = generate_reference_number(document_type, now=now, utc_offset_hours=offset)
        exists = db.session.query(DocumentRequest.id).filter_by(reference_number=candidate).first()
        if not exists:
            return candidate
        logger.warning("Reference number collision on %s; retrying", candidate)
    raise RuntimeError("Unable to generate unique reference number")


def create_request(data: dict, now: datetime | None = None) -> DocumentRequest:
    """Insert a new pending request and commit it.

    ``data`` holds validated applicant fields; id, reference number, status
    and request date are always assigned here.
    """
    fields = {k: v for k, v in (data or {}).items() if k in UPDATABLE_FIELDS | {'document_type'}}
    fields.pop('status', None)
    fields.pop('rejection_reason', None)
    fields.pop('processed_by', None)
    fields.pop('processed_at', None)

    stamp = now or utc_now()
    req = DocumentRequest(
        **fields,
        status='pending',
        request_date=stamp,
        reference_number=_unique_reference_number(fields.get('document_type'), now=stamp),
    )
    db.session.add(req)
    try:
        db.session.commit()
    except IntegrityError:
        # Another writer took the same reference number between check and insert
        db.session.rollback()
        req.reference_number = _unique_reference_number(req.document_type, now=stamp)
        db.session.add(req)
        db.session.commit()

    logger.info("Created %s request %s", req.document_type, req.reference_number)
    return req


def get_requests() -> list[DocumentRequest]:
    return _newest_first(DocumentRequest.query).all()


def get_request(request_id) -> DocumentRequest | None:
    try:
        return db.session.get(DocumentRequest, int(request_id))
    except (TypeError, ValueError):
        return None


def find_by_reference(reference_number: str) -> list[DocumentRequest]:
    """Case-insensitive exact match on reference number, newest first."""
    ref = str(reference_number or '').strip().lower()
    if not ref:
        return []
    query = DocumentRequest.query.filter(func.lower(DocumentRequest.reference_number) == ref)
    return _newest_first(query).all()


def find_by_contact(email: str | None = None, contact: str | None = None) -> list[DocumentRequest]:
    """Exact match on email, or on contact number when no email is given."""
    email = str(email or '').strip()
    contact = str(contact or '').strip()
    if email:
        query = DocumentRequest.query.filter(DocumentRequest.email == email)
    elif contact:
        query = DocumentRequest.query.filter(DocumentRequest.contact == contact)
    else:
        return []
    return _newest_first(query).all()


def find_approved_zone_clearance(
    reference_number: str | None = None,
    email: str | None = None,
    contact: str | None = None,
) -> DocumentRequest | None:
    """Most recent approved zone clearance matching reference, email or phone.

    Reference numbers match case-insensitively; email and phone match exactly.
    The first identifier given wins, in that order.
    """
    query = DocumentRequest.query.filter(
        DocumentRequest.document_type == 'zone_clearance',
        DocumentRequest.status == 'approved',
    )

    reference_number = str(reference_number or '').strip()
    email = str(email or '').strip()
    contact = str(contact or '').strip()
    if reference_number:
        query = query.filter(func.lower(DocumentRequest.reference_number) == reference_number.lower())
    elif email:
        query = query.filter(DocumentRequest.email == email)
    elif contact:
        query = query.filter(DocumentRequest.contact == contact)
    else:
        return None

    return _newest_first(query).first()


def update_request(request_id, patch: dict, commit: bool = True) -> DocumentRequest | None:
    """Merge ``patch`` into the request and stamp ``updated_at``.

    Unknown ids are a no-op and return None.
    """
    req = get_request(request_id)
    if not req:
        return None

    for key, value in (patch or {}).items():
        if key in UPDATABLE_FIELDS:
            setattr(req, key, value)
    req.updated_at = utc_now()

    if commit:
        db.session.commit()
    return req


def search_requests(status: str | None = None, search: str | None = None, document_type: str | None = None):
    """Dashboard query: optional status/type filters and free-text search."""
    query = DocumentRequest.query
    if status and status != 'all':
        query = query.filter(DocumentRequest.status == status)
    if document_type and document_type != 'all':
        query = query.filter(DocumentRequest.document_type == document_type)
    term = str(search or '').strip().lower()
    if term:
        like = f"%{term}%"
        query = query.filter(or_(
            func.lower(DocumentRequest.first_name).like(like),
            func.lower(DocumentRequest.last_name).like(like),
            func.lower(DocumentRequest.email).like(like),
            func.lower(DocumentRequest.reference_number).like(like),
        ))
    return _newest_first(query)


def status_counts() -> dict:
    rows = (
        db.session.query(DocumentRequest.status, func.count(DocumentRequest.id))
        .group_by(DocumentRequest.status)
        .all()
    )
    counts = {'total': 0, 'pending': 0, 'approved': 0, 'rejected': 0}
    for status, count in rows:
        counts[status] = count
        counts['total'] += count
    return counts


def list_zones() -> list[Zone]:
    return Zone.query.order_by(Zone.zone_number.asc()).all()


def get_zone(zone_id) -> Zone | None:
    try:
        return db.session.get(Zone, int(zone_id))
    except (TypeError, ValueError):
        return None
