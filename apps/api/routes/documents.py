"""Public document request routes: submission, verification and tracking.

No login is required here; applicants identify themselves by the reference
number issued on submission.
"""
from flask import Blueprint, jsonify, request, current_app

from apps.api import db, limiter
from apps.api.utils.db_retry import with_db_retry
from apps.api.utils.request_forms import (
    FILE_FIELDS,
    document_label,
    form_for_slug,
    list_forms,
    submit_request,
)
from apps.api.utils.request_store import find_by_contact, find_by_reference
from apps.api.utils.storage_handler import StorageError
from apps.api.utils.validators import ValidationError
from apps.api.utils.verification import verify_zone_clearance, zone_clearance_prefill


documents_bp = Blueprint('documents', __name__, url_prefix='/api/documents')


def _limit(limit_string: str):
    """Apply rate limit if limiter is available."""
    def decorator(f):
        if limiter:
            return limiter.limit(limit_string)(f)
        return f
    return decorator


STATUS_MESSAGES = {
    'pending': 'Your request is being processed. Please check back later.',
    'approved': 'Your document is ready for pickup at the Barangay Hall during office hours.',
    'rejected': 'Your request was not approved. See the rejection reason for details.',
}


def _submission_payload():
    """Return ``(data, uploads)`` from a JSON or multipart body."""
    is_multipart = request.content_type and 'multipart/form-data' in request.content_type
    if is_multipart:
        uploads = {name: request.files.get(name) for name in FILE_FIELDS if request.files.get(name)}
        return request.form.to_dict(), uploads
    data = request.get_json(silent=True)
    return (data if isinstance(data, dict) else {}), {}


def _create(document_type):
    try:
        data, uploads = _submission_payload()
        if not data:
            return jsonify({'error': 'Request body is required'}), 400

        req = submit_request(document_type, data, uploads)
        return jsonify({
            'message': f'Your {document_label(req.document_type).lower()} request has been submitted.',
            'reference_number': req.reference_number,
            'request': req.to_dict(),
        }), 201

    except ValidationError as e:
        db.session.rollback()
        return jsonify(e.to_dict()), 400
    except StorageError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 502
    except Exception as e:
        db.session.rollback()
        current_app.logger.error("Document request submission failed: %s", e)
        return jsonify({'error': 'Failed to submit request. Please try again.', 'details': str(e)}), 500


@documents_bp.route('/types', methods=['GET'])
def list_document_types():
    """Form configuration for every document type."""
    types = list_forms()
    return jsonify({'types': types, 'count': len(types)}), 200


@documents_bp.route('/requests', methods=['POST'])
@_limit("10 per hour")
def create_document_request():
    """Submit a request; ``document_type`` comes from the body."""
    is_multipart = request.content_type and 'multipart/form-data' in request.content_type
    body = request.form if is_multipart else request.get_json(silent=True)
    if not is_multipart and not isinstance(body, dict):
        return jsonify({'error': 'Request body must be a JSON object'}), 400
    return _create(body.get('document_type'))


@documents_bp.route('/requests/<string:slug>', methods=['POST'])
@_limit("10 per hour")
def create_document_request_for(slug):
    """Submit a request for the form at ``/requests/<slug>``."""
    form = form_for_slug(slug)
    if not form:
        return jsonify({'error': 'Unknown document type'}), 404
    document_type, _ = form
    return _create(document_type)


@documents_bp.route('/verify-zone-clearance', methods=['POST'])
@_limit("30 per hour")
def verify_zone_clearance_route():
    """Look up an approved zone clearance and return prefill data."""
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'error': 'Request body must be a JSON object'}), 400
        match = verify_zone_clearance(
            reference_number=data.get('reference_number'),
            email=data.get('email'),
            contact=data.get('contact'),
        )
        if not match:
            return jsonify({
                'verified': False,
                'error': 'No approved Zone Clearance found. Please check your details or wait for approval.',
            }), 404

        return jsonify({
            'verified': True,
            'reference_number': match.reference_number,
            'zone_name': match.zone.zone_name if match.zone else None,
            'prefill': zone_clearance_prefill(match),
        }), 200

    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except Exception as e:
        current_app.logger.error("Zone clearance verification failed: %s", e)
        return jsonify({'error': 'Verification failed', 'details': str(e)}), 500


def _tracking_entry(req):
    return {
        'id': req.id,
        'reference_number': req.reference_number,
        'document_type': req.document_type,
        'document_label': document_label(req.document_type),
        'full_name': req.full_name,
        'purpose': req.purpose,
        'status': req.status,
        'status_message': STATUS_MESSAGES.get(req.status),
        'zone_name': req.zone.zone_name if req.zone else None,
        'rejection_reason': req.rejection_reason if req.status == 'rejected' else None,
        'request_date': req.request_date.isoformat() if req.request_date else None,
        'processed_at': req.processed_at.isoformat() if req.processed_at else None,
    }


@documents_bp.route('/track', methods=['GET'])
@_limit("60 per hour")
@with_db_retry(max_retries=2, initial_delay=0.5)
def track_requests():
    """Track requests by reference number (or contact details when enabled)."""
    reference_number = (request.args.get('reference_number') or '').strip()
    email = (request.args.get('email') or '').strip()
    contact = (request.args.get('contact') or '').strip()

    if reference_number:
        results = find_by_reference(reference_number)
    elif (email or contact) and current_app.config.get('TRACKING_ALLOW_CONTACT_LOOKUP'):
        results = find_by_contact(email=email, contact=contact)
    elif email or contact:
        return jsonify({'error': 'Please search using your reference number'}), 400
    else:
        return jsonify({'error': 'Enter your reference number to track your request'}), 400

    return jsonify({
        'requests': [_tracking_entry(r) for r in results],
        'count': len(results),
    }), 200
