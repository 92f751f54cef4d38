"""
Document request forms.

A single configuration table drives the submission flow for every document
type. Indigency certificates and barangay clearances both depend on an
approved zone clearance; the zone clearance form instead lets an applicant
attach proof of a clearance they already hold.
"""
from __future__ import annotations

import logging
from typing import Optional

from apps.api import db
from apps.api.models.document import DocumentRequest, DOCUMENT_TYPES, MARITAL_STATUSES
from apps.api.utils.audit import log_action
from apps.api.utils.request_store import create_request, get_zone
from apps.api.utils.storage_handler import discard_file, get_stored_file, inspect_upload, save_file
from apps.api.utils.validators import (
    ValidationError,
    parse_bool,
    sanitize_string,
    validate_age,
    validate_choice,
    validate_date_of_birth,
    validate_email,
    validate_name,
    validate_phone,
    validate_required_fields,
)
from apps.api.utils.verification import require_zone_clearance

logger = logging.getLogger(__name__)


DOCUMENT_FORMS = {
    'zone_clearance': {
        'label': 'Zone Clearance',
        'slug': 'zone-clearance',
        'prefix': 'ZC',
        'requires_zone_clearance': False,
        'accepts_existing_clearance': True,
    },
    'indigency': {
        'label': 'Barangay Indigency',
        'slug': 'indigency',
        'prefix': 'BI',
        'requires_zone_clearance': True,
        'accepts_existing_clearance': False,
    },
    'clearance': {
        'label': 'Barangay Clearance',
        'slug': 'clearance',
        'prefix': 'BC',
        'requires_zone_clearance': True,
        'accepts_existing_clearance': False,
    },
}

REQUIRED_FIELDS = (
    'first_name', 'last_name', 'age', 'birth_date', 'address',
    'zone_id', 'contact', 'marital_status', 'purpose',
)

# Multipart field name -> request column
FILE_FIELDS = {
    'zone_clearance_file': 'zone_clearance_file_id',
    'valid_id_file': 'valid_id_file_id',
}


def form_for_slug(slug: str) -> Optional[tuple]:
    """Return ``(document_type, config)`` for a URL slug, or None."""
    slug = (slug or '').strip().lower()
    for document_type, config in DOCUMENT_FORMS.items():
        if config['slug'] == slug:
            return document_type, config
    return None


def document_label(document_type: str) -> str:
    config = DOCUMENT_FORMS.get(document_type)
    return config['label'] if config else document_type


def list_forms() -> list:
    return [
        {'document_type': document_type, **config}
        for document_type, config in DOCUMENT_FORMS.items()
    ]


def _file_id(value, field: str) -> Optional[int]:
    if value in (None, ''):
        return None
    stored = get_stored_file(value)
    if not stored:
        raise ValidationError(field, 'Referenced file does not exist')
    return stored.id


def validate_submission(document_type: str, data: dict, pending_files=()) -> dict:
    """
    Validate applicant input for ``document_type`` and return clean fields.

    File ids in ``data`` must already exist; columns named in
    ``pending_files`` will be filled from uploads once validation passes.
    Raises ValidationError on the first bad field.
    """
    document_type = validate_choice(document_type, DOCUMENT_TYPES, 'document_type')
    config = DOCUMENT_FORMS[document_type]

    validate_required_fields(data, REQUIRED_FIELDS)

    zone = get_zone(data.get('zone_id'))
    if not zone:
        raise ValidationError('zone_id', 'Selected zone does not exist')

    cleaned = {
        'document_type': document_type,
        'first_name': validate_name(data.get('first_name'), 'first_name'),
        'middle_name': validate_name(data.get('middle_name'), 'middle_name', required=False),
        'last_name': validate_name(data.get('last_name'), 'last_name'),
        'age': validate_age(data.get('age')),
        'birth_date': validate_date_of_birth(data.get('birth_date')),
        'address': sanitize_string(data.get('address')),
        'zone_id': zone.id,
        'contact': validate_phone(data.get('contact')),
        'email': validate_email(data['email']) if sanitize_string(data.get('email')) else None,
        'marital_status': validate_choice(data.get('marital_status'), MARITAL_STATUSES, 'marital_status'),
        'purpose': sanitize_string(data.get('purpose')),
    }
    for name, column in FILE_FIELDS.items():
        if column not in pending_files:
            cleaned[column] = _file_id(data.get(column), name)

    if config['requires_zone_clearance']:
        clearance = require_zone_clearance(data.get('zone_clearance_reference'))
        cleaned['has_zone_clearance'] = True
        cleaned['zone_clearance_reference'] = clearance.reference_number
    else:
        has_clearance = config['accepts_existing_clearance'] and parse_bool(data.get('has_zone_clearance'))
        has_proof = cleaned.get('zone_clearance_file_id') or 'zone_clearance_file_id' in pending_files
        if has_clearance and not has_proof:
            raise ValidationError(
                'zone_clearance_file',
                'Please upload your existing Zone Clearance'
            )
        cleaned['has_zone_clearance'] = has_clearance
        cleaned['zone_clearance_reference'] = None

    return cleaned


def submit_request(document_type: str, data: dict, uploads: Optional[dict] = None) -> DocumentRequest:
    """
    Run the full submission: validate, store uploads, create the request.

    ``uploads`` maps multipart field names (``zone_clearance_file``,
    ``valid_id_file``) to uploaded files. Every field and every upload is
    checked before any file is stored, and files stored for a submission
    that still fails are deleted again.
    """
    uploads = {name: f for name, f in (uploads or {}).items() if name in FILE_FIELDS and f}
    cleaned = validate_submission(
        document_type,
        data or {},
        pending_files={FILE_FIELDS[name] for name in uploads},
    )
    for name, upload in uploads.items():
        inspect_upload(upload, field=name)

    saved = []
    try:
        for name, upload in uploads.items():
            stored = save_file(upload, field=name)
            saved.append(stored)
            cleaned[FILE_FIELDS[name]] = stored.id

        req = create_request(cleaned)
    except Exception:
        db.session.rollback()
        for stored in saved:
            discard_file(stored)
        raise

    log_action(
        'document_request',
        req.id,
        'create',
        actor_role='applicant',
        new_values={'reference_number': req.reference_number, 'document_type': req.document_type},
    )
    db.session.commit()

    logger.info("Submitted %s request %s", document_label(req.document_type), req.reference_number)
    return req
