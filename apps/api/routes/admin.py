"""
Barangay Bayabas - Admin Routes
Request review dashboard: list, filter, search, detail, approve and reject.
"""
from flask import Blueprint, request, jsonify, current_app, url_for
from flask_jwt_extended import get_jwt, verify_jwt_in_request

from apps.api import db
from apps.api.models.document import REQUEST_STATUSES
from apps.api.utils.audit import get_history
from apps.api.utils.auth import ADMIN_ROLES, get_current_admin
from apps.api.utils.request_forms import DOCUMENT_FORMS, document_label
from apps.api.utils.request_store import (
    find_by_reference,
    get_request,
    search_requests,
    status_counts,
)
from apps.api.utils.request_workflow import TransitionError, transition_status

admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')

MAX_PER_PAGE = 100


@admin_bp.before_request
def enforce_admin_role():
    """Middleware: require JWT and admin role for all /api/admin routes.
    Skips OPTIONS preflight requests to allow CORS to work properly.
    """
    from flask_jwt_extended.exceptions import NoAuthorizationError, InvalidHeaderError, RevokedTokenError
    from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

    if request.method == 'OPTIONS':
        return None

    try:
        verify_jwt_in_request()
        claims = get_jwt() or {}
        role = claims.get('role')
        if role not in ADMIN_ROLES:
            current_app.logger.warning(f"Admin access denied: role={role}")
            return jsonify({'error': 'Forbidden', 'code': 'ROLE_MISMATCH'}), 403
    except NoAuthorizationError:
        return jsonify({'error': 'Authorization required', 'code': 'NO_AUTH'}), 401
    except InvalidHeaderError as e:
        current_app.logger.warning(f"Invalid auth header: {e}")
        return jsonify({'error': 'Invalid authorization header', 'code': 'INVALID_HEADER'}), 401
    except RevokedTokenError:
        return jsonify({'error': 'Token has been revoked', 'code': 'TOKEN_REVOKED'}), 401
    except ExpiredSignatureError:
        return jsonify({'error': 'Token has expired', 'code': 'TOKEN_EXPIRED'}), 401
    except InvalidTokenError as e:
        current_app.logger.warning(f"Invalid token: {e}")
        return jsonify({'error': 'Invalid token', 'code': 'INVALID_TOKEN'}), 401
    except Exception as e:
        # Any other auth failure must still deny access
        current_app.logger.error(f"Unexpected auth error in admin middleware: {type(e).__name__}: {e}")
        return jsonify({'error': 'Authentication failed', 'code': 'AUTH_ERROR'}), 401


def _file_link(file_id):
    if not file_id:
        return None
    return url_for('files.download_file', file_id=file_id)


def _detail(req) -> dict:
    data = req.to_dict(include_zone=True, include_files=True)
    data['document_label'] = document_label(req.document_type)
    data['full_name'] = req.full_name
    data['zone_name'] = req.zone.zone_name if req.zone else None
    data['processor_name'] = req.processor.full_name if req.processor else None
    data['files'] = {
        'zone_clearance': _file_link(req.zone_clearance_file_id),
        'valid_id': _file_link(req.valid_id_file_id),
    }

    cited = None
    if req.zone_clearance_reference:
        matches = find_by_reference(req.zone_clearance_reference)
        if matches:
            cited = {
                'id': matches[0].id,
                'reference_number': matches[0].reference_number,
                'status': matches[0].status,
                'full_name': matches[0].full_name,
            }
    data['cited_zone_clearance'] = cited
    data['history'] = get_history('document_request', req.id)
    return data


@admin_bp.route('/requests', methods=['GET'])
def list_requests():
    """Newest-first request list with filters, search and overall counts."""
    try:
        status = (request.args.get('status') or 'all').strip().lower()
        if status != 'all' and status not in REQUEST_STATUSES:
            return jsonify({'error': f'Invalid status. Must be one of: all, {", ".join(REQUEST_STATUSES)}'}), 400

        document_type = (request.args.get('document_type') or 'all').strip().lower()
        if document_type != 'all' and document_type not in DOCUMENT_FORMS:
            return jsonify({'error': 'Invalid document type'}), 400

        page = max(request.args.get('page', 1, type=int), 1)
        per_page = request.args.get('per_page', 20, type=int)
        per_page = min(max(per_page, 1), MAX_PER_PAGE)

        results = search_requests(
            status=status,
            search=request.args.get('search'),
            document_type=document_type,
        ).paginate(page=page, per_page=per_page, error_out=False)

        requests_data = []
        for req in results.items:
            item = req.to_dict()
            item['document_label'] = document_label(req.document_type)
            item['zone_name'] = req.zone.zone_name if req.zone else None
            requests_data.append(item)

        return jsonify({
            'requests': requests_data,
            'stats': status_counts(),
            'pagination': {
                'page': page,
                'per_page': per_page,
                'total': results.total,
                'pages': results.pages,
            }
        }), 200

    except Exception as e:
        return jsonify({'error': 'Failed to get requests', 'details': str(e)}), 500


@admin_bp.route('/requests/<int:request_id>', methods=['GET'])
def get_request_detail(request_id):
    try:
        req = get_request(request_id)
        if not req:
            return jsonify({'error': 'Request not found'}), 404
        return jsonify({'request': _detail(req)}), 200
    except Exception as e:
        return jsonify({'error': 'Failed to get request', 'details': str(e)}), 500


def _apply_status(request_id, new_status, rejection_reason=None):
    try:
        admin = get_current_admin()
        if not admin:
            return jsonify({'error': 'Admin access required'}), 403

        req = get_request(request_id)
        if not req:
            return jsonify({'error': 'Request not found'}), 404

        changed = transition_status(req, new_status, admin=admin, rejection_reason=rejection_reason)
        message = f'Request {req.status}' if changed else f'Request already {req.status}'
        return jsonify({'message': message, 'changed': changed, 'request': _detail(req)}), 200

    except TransitionError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        db.session.rollback()
        current_app.logger.error("Status update for request %s failed: %s", request_id, e)
        return jsonify({'error': 'Failed to update request status', 'details': str(e)}), 500


@admin_bp.route('/requests/<int:request_id>/status', methods=['PUT'])
def update_request_status(request_id):
    data = request.get_json(silent=True) or {}
    if not data.get('status'):
        return jsonify({'error': 'status is required', 'field': 'status'}), 400
    return _apply_status(request_id, data.get('status'), data.get('rejection_reason'))


@admin_bp.route('/requests/<int:request_id>/approve', methods=['POST'])
def approve_request(request_id):
    return _apply_status(request_id, 'approved')


@admin_bp.route('/requests/<int:request_id>/reject', methods=['POST'])
def reject_request(request_id):
    data = request.get_json(silent=True) or {}
    return _apply_status(request_id, 'rejected', data.get('rejection_reason') or data.get('reason'))
