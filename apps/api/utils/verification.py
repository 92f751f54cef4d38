"""Zone clearance verification for dependent document types."""
from __future__ import annotations

import logging

from apps.api.models.document import DocumentRequest
from apps.api.utils.reference_numbers import is_reference_number
from apps.api.utils.request_store import find_approved_zone_clearance
from apps.api.utils.validators import ValidationError

logger = logging.getLogger(__name__)

# Applicant fields copied from a verified zone clearance into a new form
PREFILL_FIELDS = (
    'first_name', 'middle_name', 'last_name', 'age', 'address',
    'zone_id', 'contact', 'email', 'marital_status',
)


def verify_zone_clearance(
    reference_number: str | None = None,
    email: str | None = None,
    contact: str | None = None,
) -> DocumentRequest | None:
    if not any(str(value or '').strip() for value in (reference_number, email, contact)):
        raise ValidationError(
            'reference_number',
            'Enter your Zone Clearance reference number, email or contact number'
        )

    match = find_approved_zone_clearance(
        reference_number=reference_number,
        email=email,
        contact=contact,
    )
    if match:
        logger.info("Zone clearance %s verified", match.reference_number)
    else:
        logger.info("Zone clearance verification found no approved record")
    return match


def require_zone_clearance(reference_number: str | None) -> DocumentRequest:
    """Resolve the cited reference or reject the submission."""
    if not str(reference_number or '').strip():
        raise ValidationError(
            'zone_clearance_reference',
            'A verified Zone Clearance reference number is required for this document'
        )
    if not is_reference_number(reference_number):
        raise ValidationError(
            'zone_clearance_reference',
            'Zone Clearance reference numbers look like ZC-20240115-0042'
        )
    match = find_approved_zone_clearance(reference_number=reference_number)
    if not match:
        raise ValidationError(
            'zone_clearance_reference',
            'No approved Zone Clearance found with this reference number. '
            'Please check the number or wait for approval.'
        )
    return match


def zone_clearance_prefill(req: DocumentRequest) -> dict:
    data = {field: getattr(req, field) for field in PREFILL_FIELDS}
    data['birth_date'] = req.birth_date.isoformat() if req.birth_date else None
    return data
