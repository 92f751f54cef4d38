"""Utility functions for the API.

Only dependency-free helpers are re-exported here; models import
``apps.api.utils.time``, so anything touching the database is imported from
its own module.
"""

from .validators import (
    validate_email,
    validate_phone,
    validate_name,
    validate_age,
    validate_date_of_birth,
    validate_choice,
    validate_file_size,
    validate_file_extension,
    validate_required_fields,
    sanitize_string,
    parse_bool,
    ValidationError,
)

# Security utilities
from .security import (
    validate_file_mime_type,
    sanitize_log_message,
)

__all__ = [
    # Validators
    'validate_email',
    'validate_phone',
    'validate_name',
    'validate_age',
    'validate_date_of_birth',
    'validate_choice',
    'validate_file_size',
    'validate_file_extension',
    'validate_required_fields',
    'sanitize_string',
    'parse_bool',
    'ValidationError',
    # Security utilities
    'validate_file_mime_type',
    'sanitize_log_message',
]
