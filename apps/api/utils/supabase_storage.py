"""
Supabase Storage client utilities for Barangay Bayabas.

Talks to the Supabase Storage REST API directly (no supabase package needed).
Uploaded applicant files (valid IDs, zone clearance proofs) live in a private
bucket and are only ever read back server-side.

Usage:
    from apps.api.utils.supabase_storage import (
        upload_bytes_to_path,
        download_file,
        delete_file,
    )
"""
from __future__ import annotations

import os
import uuid
import logging
from typing import Optional, Tuple

import requests
from flask import current_app
from werkzeug.utils import secure_filename

from apps.api.utils.security import sanitize_log_message
from apps.api.utils.time import utc_now

logger = logging.getLogger(__name__)

# Storage bucket name - configurable via env
STORAGE_BUCKET = os.getenv('SUPABASE_STORAGE_BUCKET', 'zone-clearances')

REQUEST_TIMEOUT = 15


class SupabaseStorageError(Exception):
    """Custom exception for Supabase Storage operations."""
    pass


def _get_supabase_config() -> Tuple[str, str]:
    """Get Supabase URL and service key."""
    supabase_url = current_app.config.get('SUPABASE_URL') or os.getenv('SUPABASE_URL')
    supabase_key = (
        current_app.config.get('SUPABASE_SERVICE_KEY') or
        os.getenv('SUPABASE_SERVICE_KEY') or
        current_app.config.get('SUPABASE_KEY') or
        os.getenv('SUPABASE_KEY')
    )

    if not supabase_url or not supabase_key:
        raise SupabaseStorageError(
            "Supabase credentials not configured. "
            "Set SUPABASE_URL and SUPABASE_SERVICE_KEY environment variables."
        )

    return supabase_url.rstrip('/'), supabase_key


def is_supabase_configured() -> bool:
    try:
        _get_supabase_config()
        return True
    except SupabaseStorageError:
        return False


def _get_storage_bucket(bucket_override: Optional[str] = None) -> str:
    """Get the storage bucket name (optionally overridden)."""
    if bucket_override:
        return bucket_override
    return current_app.config.get('SUPABASE_STORAGE_BUCKET') or os.getenv('SUPABASE_STORAGE_BUCKET') or STORAGE_BUCKET


def _get_headers(service_key: str, content_type: Optional[str] = None) -> dict:
    """Get headers for Supabase REST API requests."""
    headers = {
        'Authorization': f'Bearer {service_key}',
        'apikey': service_key,
    }
    if content_type:
        headers['Content-Type'] = content_type
    return headers


def generate_unique_filename(original_filename: str, prefix: str = '') -> str:
    """
    Generate a unique filename while preserving extension.

    Args:
        original_filename: Original file name
        prefix: Optional prefix for the filename

    Returns:
        Unique filename string
    """
    _, ext = os.path.splitext(secure_filename(original_filename or ''))
    ext = ext.lower()

    timestamp = utc_now().strftime('%Y%m%d_%H%M%S')
    unique_id = str(uuid.uuid4())[:8]

    if prefix:
        return f"{prefix}_{timestamp}_{unique_id}{ext}"
    return f"{timestamp}_{unique_id}{ext}"


def build_storage_path(category: str, filename: str, subcategory: Optional[str] = None) -> str:
    """
    Build a storage path for an uploaded file.

    Structure: {category}/{YYYY}/{MM}/{subcategory}/{filename}
    """
    now = utc_now()
    parts = [category, now.strftime('%Y'), now.strftime('%m')]
    if subcategory:
        parts.append(subcategory)
    parts.append(filename)
    return '/'.join(parts)


def upload_bytes_to_path(
    data: bytes,
    storage_path: str,
    content_type: str = 'application/octet-stream',
    bucket: Optional[str] = None,
) -> str:
    """
    Upload raw bytes to a specific storage path.

    Returns:
        storage_path

    Raises:
        SupabaseStorageError: If upload fails
    """
    if not storage_path:
        raise SupabaseStorageError("Storage path is required")

    supabase_url, service_key = _get_supabase_config()
    bucket = _get_storage_bucket(bucket)

    upload_url = f"{supabase_url}/storage/v1/object/{bucket}/{storage_path}"
    try:
        response = requests.post(
            upload_url,
            headers=_get_headers(service_key, content_type),
            data=data,
            timeout=REQUEST_TIMEOUT,
        )
    except requests.RequestException as e:
        logger.error(f"Supabase Storage upload failed: {e}")
        raise SupabaseStorageError(f"Upload failed: {e}")

    if response.status_code not in (200, 201):
        raise SupabaseStorageError(sanitize_log_message(f"Upload failed: {response.status_code} - {response.text}"))

    logger.info(f"File uploaded to Supabase Storage: {storage_path}")
    return storage_path


def download_file(storage_path: str, bucket: Optional[str] = None) -> bytes:
    """
    Fetch a private object with the service key.

    Raises:
        SupabaseStorageError: If the object cannot be fetched
    """
    supabase_url, service_key = _get_supabase_config()
    bucket = _get_storage_bucket(bucket)

    url = f"{supabase_url}/storage/v1/object/authenticated/{bucket}/{storage_path}"
    try:
        response = requests.get(url, headers=_get_headers(service_key), timeout=REQUEST_TIMEOUT)
    except requests.RequestException as e:
        logger.error(f"Supabase Storage download failed: {e}")
        raise SupabaseStorageError(f"Download failed: {e}")

    if response.status_code == 404:
        raise SupabaseStorageError(f"Object not found: {storage_path}")
    if response.status_code != 200:
        raise SupabaseStorageError(sanitize_log_message(f"Download failed: {response.status_code} - {response.text}"))
    return response.content


def delete_file(storage_path: str, bucket: Optional[str] = None) -> bool:
    """
    Delete a file from Supabase Storage.

    Returns:
        True if deleted successfully
    """
    supabase_url, service_key = _get_supabase_config()
    bucket = _get_storage_bucket(bucket)

    url = f"{supabase_url}/storage/v1/object/{bucket}/{storage_path}"
    try:
        response = requests.delete(url, headers=_get_headers(service_key), timeout=REQUEST_TIMEOUT)
    except requests.RequestException as e:
        logger.error(f"Failed to delete file: {e}")
        return False

    if response.status_code in (200, 204):
        logger.info(f"File deleted from Supabase Storage: {storage_path}")
        return True
    logger.warning(sanitize_log_message(f"Delete returned {response.status_code}: {response.text}"))
    return False
