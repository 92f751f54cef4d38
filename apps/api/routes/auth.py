"""
Barangay Bayabas - Authentication Routes
Admin login, account creation, logout and session lookup.

Security: login and account creation are rate limited to slow down brute
force attempts and credential stuffing.
"""
import hmac
from datetime import datetime, timezone

from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import (
    create_access_token,
    jwt_required,
    get_jwt,
    get_jwt_identity,
    verify_jwt_in_request,
)
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError
from sqlalchemy.exc import IntegrityError

from apps.api import db, limiter
from apps.api.models.admin_user import AdminUser
from apps.api.models.token_blacklist import TokenBlacklist
from apps.api.utils.audit import log_action
from apps.api.utils.auth import get_current_admin
from apps.api.utils.time import utc_now
from apps.api.utils import (
    validate_email,
    validate_name,
    validate_required_fields,
    ValidationError,
)

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')

MIN_PASSWORD_LENGTH = 8


# Rate limiting helper - applies limiter if available
def _limit(limit_string):
    """Apply rate limit if limiter is available."""
    def decorator(f):
        if limiter:
            return limiter.limit(limit_string)(f)
        return f
    return decorator


def _authorized_creator():
    """
    Return ``(allowed, admin)`` for an account-creation request.

    Either the ``X-Admin-Secret`` header matches ADMIN_SECRET_KEY, or the
    caller presents a valid admin token.
    """
    secret = current_app.config.get('ADMIN_SECRET_KEY') or ''
    provided = request.headers.get('X-Admin-Secret') or ''
    if secret and provided and hmac.compare_digest(provided, secret):
        return True, None

    try:
        verify_jwt_in_request(optional=True)
    except (JWTExtendedException, PyJWTError) as e:
        current_app.logger.warning(f"Rejected admin token on account creation: {e}")
        return False, None
    if get_jwt_identity() is None:
        return False, None
    admin = get_current_admin()
    return admin is not None, admin


@auth_bp.route('/admin/login', methods=['POST'])
@_limit("10 per minute")  # Rate limit admin login attempts
def admin_login():
    """Exchange admin email and password for an access token."""
    try:
        data = request.get_json(silent=True)

        if not data or not isinstance(data, dict):
            return jsonify({'error': 'Request body is required'}), 400

        email = str(data.get('email') or '').strip()
        password = data.get('password')

        if not email or not password or not isinstance(password, str):
            return jsonify({'error': 'Email and password are required'}), 400

        admin = AdminUser.find_by_email(email)
        if not admin or not admin.check_password(password):
            current_app.logger.warning("Failed admin login for %s", email.lower())
            return jsonify({'error': 'Invalid credentials'}), 401

        if not admin.is_active:
            return jsonify({'error': 'Account is deactivated'}), 403

        admin.last_login = utc_now()
        db.session.commit()

        access_token = create_access_token(
            identity=str(admin.id),
            additional_claims={"role": "admin"}
        )

        current_app.logger.info("Admin %s logged in", admin.id)
        return jsonify({
            'message': 'Admin login successful',
            'access_token': access_token,
            'admin': admin.to_dict(),
        }), 200

    except Exception as e:
        db.session.rollback()
        return jsonify({'error': 'Login failed', 'details': str(e)}), 500


@auth_bp.route('/admin/register', methods=['POST'])
@_limit("5 per hour")
def admin_register():
    """Create an admin account (admin secret header or admin token required)."""
    try:
        allowed, actor = _authorized_creator()
        if not allowed:
            return jsonify({'error': 'Admin secret or admin access required'}), 403

        data = request.get_json(silent=True) or {}
        validate_required_fields(data, ['email', 'password', 'full_name'])

        email = validate_email(data['email']).lower()
        full_name = validate_name(data['full_name'], 'full_name')
        password = data['password']
        if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError('password', f'Password must be at least {MIN_PASSWORD_LENGTH} characters')

        if AdminUser.find_by_email(email):
            return jsonify({'error': 'Email already registered'}), 409

        admin = AdminUser(email=email, full_name=full_name, is_active=True)
        admin.set_password(password)
        db.session.add(admin)
        db.session.flush()

        log_action(
            'admin_user',
            admin.id,
            'create',
            admin_id=actor.id if actor else None,
            actor_role='admin' if actor else 'system',
            new_values={'email': email, 'full_name': full_name},
        )
        db.session.commit()

        current_app.logger.info("Admin account %s created", admin.id)
        return jsonify({'message': 'Admin account created', 'admin': admin.to_dict()}), 201

    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except IntegrityError:
        db.session.rollback()
        return jsonify({'error': 'Email already registered'}), 409
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': 'Failed to create admin account', 'details': str(e)}), 500


@auth_bp.route('/admin/logout', methods=['POST'])
@jwt_required()
def admin_logout():
    """Logout and blacklist the current token."""
    try:
        jwt_data = get_jwt()
        exp = jwt_data.get('exp')
        expires_at = (
            datetime.fromtimestamp(exp, tz=timezone.utc).replace(tzinfo=None) if exp else None
        )
        try:
            admin_id = int(get_jwt_identity())
        except (TypeError, ValueError):
            admin_id = None

        TokenBlacklist.revoke(jwt_data.get('jti'), admin_id=admin_id, expires_at=expires_at)
        db.session.commit()

        return jsonify({'message': 'Logout successful'}), 200

    except Exception as e:
        db.session.rollback()
        return jsonify({'error': 'Logout failed', 'details': str(e)}), 500


@auth_bp.route('/admin/me', methods=['GET'])
@jwt_required()
def admin_me():
    admin = get_current_admin()
    if not admin:
        return jsonify({'error': 'Admin access required'}), 403
    return jsonify({'admin': admin.to_dict()}), 200
