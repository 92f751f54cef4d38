"""
File store for applicant uploads.

Two backends, picked by ``FILE_STORAGE_BACKEND``:
- ``database``: bytes live in ``stored_files.data`` (default, works everywhere)
- ``supabase``: bytes live in a private Supabase Storage bucket and the row
  keeps the object path

Uploads are never served publicly; admins read them back through
``GET /api/files/<id>``.

Usage:
    from apps.api.utils.storage_handler import save_file, load_file
"""
from __future__ import annotations

import os
import logging
from typing import Optional, Tuple

from flask import current_app
from werkzeug.utils import secure_filename

from apps.api import db
from apps.api.models.stored_file import StoredFile
from apps.api.utils.validators import (
    ValidationError,
    validate_file_extension,
    validate_file_size,
    ALLOWED_DOCUMENT_EXTENSIONS,
)
from apps.api.utils.security import validate_file_mime_type

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the storage backend cannot store or return a file."""
    pass


def _backend() -> str:
    return (current_app.config.get('FILE_STORAGE_BACKEND') or 'database').lower()


def _max_size_mb() -> float:
    max_bytes = current_app.config.get('MAX_CONTENT_LENGTH') or 10 * 1024 * 1024
    return max_bytes / (1024 * 1024)


def inspect_upload(upload, field: str = 'file') -> Tuple[str, str]:
    """
    Validate an upload without storing it.

    Returns:
        ``(safe_filename, content_type)``

    Raises:
        ValidationError: If the upload is missing, too large or the wrong type
    """
    if upload is None:
        raise ValidationError(field, 'No file provided')

    original_filename = getattr(upload, 'filename', None) or ''
    safe_filename = secure_filename(original_filename)
    if not safe_filename:
        raise ValidationError(field, 'No filename provided')

    allowed = current_app.config.get('ALLOWED_EXTENSIONS') or ALLOWED_DOCUMENT_EXTENSIONS
    try:
        ext = validate_file_extension(safe_filename, allowed)

        upload.seek(0, os.SEEK_END)
        size = upload.tell()
        upload.seek(0)
        validate_file_size(size, _max_size_mb())

        content_type = validate_file_mime_type(upload, ext)
    except ValidationError as e:
        raise ValidationError(field, e.message)

    return safe_filename, content_type


def save_file(upload, field: str = 'file') -> StoredFile:
    """
    Validate an uploaded file and persist it.

    Args:
        upload: werkzeug FileStorage (or any file-like object with ``filename``)
        field: Form field name reported in validation errors

    Returns:
        The new StoredFile row

    Raises:
        ValidationError: If the upload is missing, too large or the wrong type
        StorageError: If the storage backend fails
    """
    safe_filename, content_type = inspect_upload(upload, field)

    data = upload.read()
    backend = _backend()
    stored = StoredFile(
        name=safe_filename,
        content_type=content_type,
        size=len(data),
        backend=backend,
    )

    if backend == 'supabase':
        from apps.api.utils.supabase_storage import (
            SupabaseStorageError,
            build_storage_path,
            generate_unique_filename,
            is_supabase_configured,
            upload_bytes_to_path,
        )
        if not is_supabase_configured():
            logger.error("FILE_STORAGE_BACKEND=supabase but Supabase credentials are missing")
            raise StorageError('File storage is not configured')
        storage_path = build_storage_path('uploads', generate_unique_filename(safe_filename))
        try:
            upload_bytes_to_path(data, storage_path, content_type=content_type)
        except SupabaseStorageError as e:
            logger.error("Upload of %s failed: %s", safe_filename, e)
            raise StorageError('File storage is temporarily unavailable')
        stored.storage_path = storage_path
    else:
        stored.data = data

    db.session.add(stored)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        if stored.storage_path:
            _discard_object(stored.storage_path)
        raise

    logger.info("Stored file %s (%s, %d bytes, %s)", stored.id, content_type, stored.size, backend)
    return stored


def _discard_object(storage_path: str) -> None:
    from apps.api.utils.supabase_storage import delete_file
    if not delete_file(storage_path):
        logger.warning("Orphaned storage object left behind: %s", storage_path)


def discard_file(stored: StoredFile) -> None:
    """Delete a committed StoredFile row and its object, if any."""
    file_id, storage_path = stored.id, stored.storage_path
    db.session.delete(stored)
    db.session.commit()
    if storage_path:
        _discard_object(storage_path)
    logger.info("Discarded stored file %s", file_id)


def get_stored_file(file_id) -> Optional[StoredFile]:
    try:
        return db.session.get(StoredFile, int(file_id))
    except (TypeError, ValueError):
        return None


def load_file(file_id) -> Optional[Tuple[bytes, str, str]]:
    """
    Return ``(bytes, content_type, name)`` for a stored file, or None if the
    id is unknown.

    Raises:
        StorageError: If the object store cannot return the content
    """
    stored = get_stored_file(file_id)
    if not stored:
        return None

    if stored.backend == 'supabase' or (stored.data is None and stored.storage_path):
        from apps.api.utils.supabase_storage import SupabaseStorageError, download_file
        try:
            data = download_file(stored.storage_path)
        except SupabaseStorageError as e:
            logger.error("Download of file %s failed: %s", stored.id, e)
            raise StorageError('File storage is temporarily unavailable')
    else:
        data = stored.data or b''

    return data, stored.content_type, stored.name
