"""
Barangay Bayabas Document Services API Package

Extensions are created unbound here and attached to the app in
``apps.api.app.create_app``.
"""
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

__version__ = '1.0.0'

db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()

# Storage, default limits and strategy come from the RATELIMIT_* config keys
limiter = Limiter(key_func=get_remote_address)

__all__ = ['db', 'migrate', 'jwt', 'limiter', '__version__']
