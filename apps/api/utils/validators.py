"""Input validation helpers for applicant submissions and uploads."""
import re
from datetime import date, datetime
from typing import Iterable, Optional

from apps.api.utils.time import utc_today


ALLOWED_DOCUMENT_EXTENSIONS = {'pdf', 'jpg', 'jpeg', 'png'}

_EMAIL_RE = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
# PH mobile (09XXXXXXXXX / +639XXXXXXXXX) plus landlines; separators allowed
_PHONE_RE = re.compile(r'^\+?[0-9][0-9\s-]{5,18}[0-9]$')
_NAME_RE = re.compile(r"^[A-Za-zÀ-ÖØ-öø-ÿÑñ .,'-]+$")


class ValidationError(Exception):
    """Raised when a submitted field fails validation."""

    def __init__(self, field: str, message: str = None):
        if message is None:
            field, message = None, field
        super().__init__(message)
        self.field = field
        self.message = message

    def __str__(self):
        return self.message

    def to_dict(self):
        data = {'error': self.message}
        if self.field:
            data['field'] = self.field
        return data


def sanitize_string(value, max_length: int = 255) -> Optional[str]:
    """Trim whitespace and clamp length; empty strings become None."""
    if value is None:
        return None
    value = str(value).strip()
    if not value:
        return None
    return value[:max_length]


def validate_required_fields(data: dict, required: Iterable[str]) -> None:
    if not isinstance(data, dict):
        raise ValidationError('Request body is required')
    for field in required:
        value = data.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(field, f'{field} is required')


def validate_email(email: str) -> str:
    email = str(email or '').strip()
    if not _EMAIL_RE.match(email):
        raise ValidationError('email', 'Invalid email address')
    return email


def validate_phone(phone: str, field: str = 'contact') -> str:
    phone = str(phone or '').strip()
    digits = re.sub(r'\D', '', phone)
    if not _PHONE_RE.match(phone) or not 7 <= len(digits) <= 15:
        raise ValidationError(field, 'Invalid contact number')
    return phone


def validate_name(name: str, field: str = 'name', required: bool = True) -> Optional[str]:
    name = sanitize_string(name, 100)
    if not name:
        if required:
            raise ValidationError(field, f'{field} is required')
        return None
    if not _NAME_RE.match(name):
        raise ValidationError(field, f'{field} contains invalid characters')
    return name


def validate_age(age, field: str = 'age') -> int:
    try:
        value = int(str(age).strip())
    except (TypeError, ValueError):
        raise ValidationError(field, 'Age must be a whole number')
    if value < 1 or value > 150:
        raise ValidationError(field, 'Age must be between 1 and 150')
    return value


def validate_date_of_birth(value, field: str = 'birth_date') -> date:
    if isinstance(value, datetime):
        parsed = value.date()
    elif isinstance(value, date):
        parsed = value
    else:
        try:
            parsed = date.fromisoformat(str(value or '').strip()[:10])
        except ValueError:
            raise ValidationError(field, 'Birth date must be in YYYY-MM-DD format')
    if parsed > utc_today():
        raise ValidationError(field, 'Birth date cannot be in the future')
    return parsed


def validate_choice(value, choices: Iterable[str], field: str) -> str:
    normalized = (str(value or '')).strip().lower()
    choices = tuple(choices)
    if normalized not in choices:
        raise ValidationError(field, f'{field} must be one of: {", ".join(choices)}')
    return normalized


def parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or '').strip().lower() in ('1', 'true', 'yes', 'y', 'on')


def validate_file_extension(filename: str, allowed_extensions: Iterable[str]) -> str:
    if not filename or '.' not in filename:
        raise ValidationError('file', 'File must have an extension')
    ext = filename.rsplit('.', 1)[1].lower()
    allowed = {e.lower().lstrip('.') for e in allowed_extensions}
    if ext not in allowed:
        raise ValidationError(
            'file',
            f'File type .{ext} not allowed. Allowed: {", ".join(sorted(allowed))}'
        )
    return ext


def validate_file_size(file_size: int, max_size_mb: int = 10) -> None:
    if file_size <= 0:
        raise ValidationError('file', 'File is empty')
    if file_size > max_size_mb * 1024 * 1024:
        raise ValidationError('file', f'File size exceeds {max_size_mb}MB limit')
