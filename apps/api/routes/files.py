"""Uploaded file routes.

Anyone may upload (the id is then cited in a JSON submission); only admins
can read a file back.
"""
from io import BytesIO

from flask import Blueprint, jsonify, request, current_app, send_file
from flask_jwt_extended import jwt_required

from apps.api import db, limiter
from apps.api.utils.auth import get_current_admin
from apps.api.utils.storage_handler import StorageError, load_file, save_file
from apps.api.utils.validators import ValidationError


files_bp = Blueprint('files', __name__, url_prefix='/api/files')


def _limit(limit_string: str):
    """Apply rate limit if limiter is available."""
    def decorator(f):
        if limiter:
            return limiter.limit(limit_string)(f)
        return f
    return decorator


@files_bp.route('', methods=['POST'])
@_limit("20 per hour")
def upload_file():
    """Store a single upload from the ``file`` form field."""
    try:
        upload = request.files.get('file')
        if not upload:
            return jsonify({'error': 'No file provided', 'field': 'file'}), 400

        stored = save_file(upload)
        return jsonify({'message': 'File uploaded', 'file': stored.to_dict()}), 201

    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except StorageError as e:
        return jsonify({'error': str(e)}), 502
    except Exception as e:
        db.session.rollback()
        current_app.logger.error("File upload failed: %s", e)
        return jsonify({'error': 'Failed to upload file', 'details': str(e)}), 500


@files_bp.route('/<int:file_id>', methods=['GET'])
@jwt_required()
def download_file(file_id):
    """Stream a stored file to an admin."""
    admin = get_current_admin()
    if not admin:
        return jsonify({'error': 'Admin access required'}), 403

    try:
        loaded = load_file(file_id)
    except StorageError as e:
        return jsonify({'error': str(e)}), 502

    if not loaded:
        return jsonify({'error': 'File not found'}), 404

    data, content_type, name = loaded
    return send_file(
        BytesIO(data),
        mimetype=content_type,
        as_attachment=request.args.get('download') in ('1', 'true'),
        download_name=name,
    )
