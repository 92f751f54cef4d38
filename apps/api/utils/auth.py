"""Admin identity helpers for JWT-protected routes."""
from __future__ import annotations

from flask_jwt_extended import get_jwt, get_jwt_identity

from apps.api import db
from apps.api.models.admin_user import AdminUser

ADMIN_ROLES = ('admin',)


def get_current_admin() -> AdminUser | None:
    """Return the active admin behind the current token, or None.

    Must be called after the JWT has been verified.
    """
    claims = get_jwt() or {}
    if claims.get('role') not in ADMIN_ROLES:
        return None
    try:
        admin_id = int(get_jwt_identity())
    except (TypeError, ValueError):
        return None
    admin = db.session.get(AdminUser, admin_id)
    if not admin or not admin.is_active:
        return None
    return admin
