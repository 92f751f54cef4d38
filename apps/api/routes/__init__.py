"""API Routes - Import all blueprints here."""

from .auth import auth_bp
from .documents import documents_bp
from .files import files_bp
from .zones import zones_bp
from .admin import admin_bp

__all__ = [
    'auth_bp',
    'documents_bp',
    'files_bp',
    'zones_bp',
    'admin_bp',
]
