"""
Barangay Bayabas - Database Models
Import all models here for Flask-Migrate to detect them
"""
from apps.api import db

# Base model will be imported by other models
Base = db.Model

# Import all models to register them with SQLAlchemy
from .zone import Zone
from .admin_user import AdminUser
from .stored_file import StoredFile
from .document import DocumentRequest
from .token_blacklist import TokenBlacklist
from .audit import AuditLog

__all__ = [
    'Zone',
    'AdminUser',
    'StoredFile',
    'DocumentRequest',
    'TokenBlacklist',
    'AuditLog',
]
