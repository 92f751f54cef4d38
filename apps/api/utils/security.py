"""Security utilities for the Barangay Bayabas API.

This module provides:
- Content type checks for file uploads
- Log redaction helpers
"""
import re
import logging
from typing import Dict, Set

logger = logging.getLogger(__name__)


# =============================================================================
# Content Type Validation
# =============================================================================

# Mapping of allowed extensions to their expected MIME types
MIME_TYPE_MAP: Dict[str, Set[str]] = {
    'jpg': {'image/jpeg', 'image/pjpeg', 'image/jpg'},
    'jpeg': {'image/jpeg', 'image/pjpeg', 'image/jpg'},
    'png': {'image/png', 'image/x-png'},
    'pdf': {'application/pdf'},
}

# Bytes handed to libmagic for detection
MIME_SNIFF_BYTES = 2048


def validate_file_mime_type(file, extension: str) -> str:
    """
    Validate file content type using magic bytes.

    The type is detected from the file's content with libmagic and must be
    one of the MIME types expected for ``extension``.

    Args:
        file: File-like object with read() and seek() methods
        extension: Expected extension (with or without leading dot)

    Returns:
        Detected MIME type

    Raises:
        ValidationError: If the content does not match the extension
    """
    import magic

    from apps.api.utils.validators import ValidationError

    ext = (extension or '').lower().strip().lstrip('.')
    expected = MIME_TYPE_MAP.get(ext)
    if not expected:
        raise ValidationError('file', f'File type .{ext} is not supported')

    file.seek(0)
    header = file.read(MIME_SNIFF_BYTES)
    file.seek(0)

    detected_mime = magic.from_buffer(header, mime=True)
    if detected_mime not in expected:
        logger.info("Rejected upload: .%s content detected as %s", ext, detected_mime)
        raise ValidationError(
            'file',
            f'File content does not match extension .{ext}. '
            f'Detected: {detected_mime}'
        )

    return detected_mime


# =============================================================================
# Security Helpers
# =============================================================================

def sanitize_log_message(message: str, sensitive_fields: Set[str] = None) -> str:
    """
    Redact values that follow sensitive field names before logging.
    """
    if sensitive_fields is None:
        sensitive_fields = {'password', 'token', 'secret', 'api_key', 'authorization'}

    sanitized = message
    for field in sensitive_fields:
        patterns = [
            rf"({field}['\"]?\s*[:=]\s*['\"]?)([^'\",\s]+)",
        ]
        for pattern in patterns:
            sanitized = re.sub(pattern, r'\1[REDACTED]', sanitized, flags=re.IGNORECASE)

    return sanitized
