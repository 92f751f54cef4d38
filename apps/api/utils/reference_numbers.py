"""Reference numbers issued to document requests.

Format: ``{PREFIX}-{YYYYMMDD}-{NNNN}`` where the prefix depends only on the
document type and the date is the local calendar date of submission.
"""
from __future__ import annotations

import re
import secrets
from datetime import datetime

from apps.api.utils.time import local_today


REFERENCE_PREFIXES = {
    'zone_clearance': 'ZC',
    'indigency': 'BI',
    'clearance': 'BC',
}

REFERENCE_PATTERN = re.compile(r'^(ZC|BI|BC)-\d{8}-\d{4}$')


def reference_prefix(document_type: str) -> str:
    try:
        return REFERENCE_PREFIXES[document_type]
    except KeyError:
        raise ValueError(f"Unknown document type: {document_type}")


def generate_reference_number(document_type: str, now: datetime | None = None, utc_offset_hours: int = 8) -> str:
    """Build a candidate reference number; uniqueness is checked by the store."""
    prefix = reference_prefix(document_type)
    day = local_today(utc_offset_hours, now)
    suffix = f"{secrets.randbelow(10000):04d}"
    return f"{prefix}-{day.strftime('%Y%m%d')}-{suffix}"


def normalize_reference(value: str | None) -> str:
    return str(value or '').strip().upper()


def is_reference_number(value: str | None) -> bool:
    return bool(REFERENCE_PATTERN.match(normalize_reference(value)))
