"""
Barangay Bayabas - Configuration
Application configuration management
"""
import os
import logging
from datetime import timedelta
from pathlib import Path
from urllib.parse import urlparse, parse_qs, urlencode, urlunparse

# Monorepo layout: <repo>/apps/api/config.py -> BASE_DIR=<repo>
_THIS_DIR = Path(__file__).parent.resolve()
_MONOREPO_ROOT = _THIS_DIR.parent.parent
if (_MONOREPO_ROOT / 'apps' / 'api').exists():
    BASE_DIR = _MONOREPO_ROOT.resolve()
else:
    BASE_DIR = _THIS_DIR


def _require_env(name: str, default: str = None, allow_default_in_dev: bool = True) -> str:
    """
    Get environment variable, failing loudly in production if not set.

    Args:
        name: Environment variable name
        default: Default value (only used in development)
        allow_default_in_dev: Whether to allow default in development mode

    Returns:
        The environment variable value

    Raises:
        RuntimeError: If variable is not set in production
    """
    value = os.getenv(name)
    is_production = os.getenv('FLASK_ENV', 'development') == 'production'

    if value:
        return value

    if is_production:
        if default is None or name in ('SECRET_KEY', 'JWT_SECRET_KEY', 'ADMIN_SECRET_KEY'):
            raise RuntimeError(
                f"SECURITY ERROR: {name} environment variable is required in production. "
                f"Set it in your deployment environment."
            )
        logging.warning(f"Using default value for {name} in production - consider setting explicitly")
        return default

    if default is not None and allow_default_in_dev:
        logging.debug(f"Using default value for {name} in development")
        return default

    raise RuntimeError(f"{name} environment variable is required")


def _env_flag(name: str, default: str = 'False') -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


def get_database_url():
    """
    Get and process the database URL for proper connection handling.
    - Ensures SSL is enabled for PostgreSQL connections (required by Supabase)
    - Handles URL scheme conversion (postgres:// -> postgresql://)
    """
    url = os.getenv('DATABASE_URL')

    if not url:
        # Local development keeps everything in a single SQLite file, the
        # server-side counterpart of the per-browser database.
        fallback = 'sqlite:///bayabas-dev.db'
        logging.warning("DATABASE_URL not set; using fallback %s", fallback)
        return fallback

    # Heroku/Render style postgres:// URLs (SQLAlchemy requires postgresql://)
    if url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)

    if url.startswith('postgresql://'):
        try:
            parsed = urlparse(url)
            query_params = parse_qs(parsed.query)

            if 'sslmode' not in query_params:
                query_params['sslmode'] = ['require']

            new_query = urlencode(query_params, doseq=True)
            url = urlunparse((
                parsed.scheme,
                parsed.netloc,
                parsed.path,
                parsed.params,
                new_query,
                parsed.fragment
            ))
        except ValueError as e:
            # Special characters in the password can break parsing
            logging.warning(f"Could not parse DATABASE_URL (special chars?): {e}")
            if 'sslmode=' not in url:
                separator = '&' if '?' in url else '?'
                url = f"{url}{separator}sslmode=require"

    return url


def get_engine_options():
    """
    Get SQLAlchemy engine options based on the database type.

    Supabase's transaction pooler (port 6543) does not tolerate client-side
    pooling, so it gets NullPool; direct connections keep a tiny pool.
    """
    db_url = get_database_url()

    options = {
        'pool_pre_ping': True,
    }

    if db_url.startswith('postgresql://'):
        is_pooler = ':6543' in db_url or 'pooler.supabase.com' in db_url

        if is_pooler:
            from sqlalchemy.pool import NullPool
            options.update({
                'poolclass': NullPool,
                'connect_args': {
                    'connect_timeout': 30,
                    'keepalives': 1,
                    'keepalives_idle': 30,
                    'keepalives_interval': 10,
                    'keepalives_count': 5,
                    'options': '-c statement_timeout=60000',
                    'application_name': 'bayabas-docs-api',
                }
            })
        else:
            options.update({
                'pool_recycle': 180,
                'pool_timeout': 20,
                'pool_size': 2,
                'max_overflow': 2,
                'connect_args': {
                    'connect_timeout': 20,
                    'keepalives': 1,
                    'keepalives_idle': 20,
                    'keepalives_interval': 5,
                    'keepalives_count': 3,
                    'options': '-c statement_timeout=20000',
                }
            })

    if db_url.startswith('sqlite://'):
        from sqlalchemy.pool import NullPool
        options = {'poolclass': NullPool}

    return options


class Config:
    """Base configuration"""

    # Flask - SECRET_KEY is REQUIRED in production
    SECRET_KEY = _require_env('SECRET_KEY', 'dev-secret-key-for-local-development-only')
    DEBUG = os.getenv('DEBUG', 'False') == 'True'
    FLASK_ENV = os.getenv('FLASK_ENV', 'development')
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

    # Database
    SQLALCHEMY_DATABASE_URI = get_database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = DEBUG
    SQLALCHEMY_ENGINE_OPTIONS = get_engine_options()

    # Supabase Storage (used when FILE_STORAGE_BACKEND=supabase)
    SUPABASE_URL = os.getenv('SUPABASE_URL', '')
    SUPABASE_KEY = os.getenv('SUPABASE_KEY', '')
    SUPABASE_SERVICE_KEY = os.getenv('SUPABASE_SERVICE_KEY', '')
    SUPABASE_STORAGE_BUCKET = os.getenv('SUPABASE_STORAGE_BUCKET', 'zone-clearances')

    # JWT - JWT_SECRET_KEY is REQUIRED in production
    JWT_SECRET_KEY = _require_env('JWT_SECRET_KEY', 'jwt-dev-secret-for-local-development-only')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(
        seconds=int(os.getenv('JWT_ACCESS_TOKEN_EXPIRES', 28800))
    )
    JWT_ALGORITHM = 'HS256'
    JWT_TOKEN_LOCATION = ['headers']

    # Admin signup secret - ADMIN_SECRET_KEY is REQUIRED in production
    ADMIN_SECRET_KEY = _require_env('ADMIN_SECRET_KEY', 'admin-dev-secret-for-local-development-only')

    # Seeded administrator (created by scripts/init_db.py when no admin exists)
    DEFAULT_ADMIN_EMAIL = os.getenv('DEFAULT_ADMIN_EMAIL', 'admin@barangay.gov.ph')
    # No password default in production: seeding skips the admin instead.
    DEFAULT_ADMIN_PASSWORD = os.getenv('DEFAULT_ADMIN_PASSWORD') or (
        '' if FLASK_ENV == 'production' else 'admin123'
    )
    DEFAULT_ADMIN_NAME = os.getenv('DEFAULT_ADMIN_NAME', 'Barangay Administrator')

    # Rate Limiting Configuration
    RATELIMIT_ENABLED = os.getenv('RATELIMIT_ENABLED', 'True') == 'True'
    RATELIMIT_STORAGE_URI = os.getenv('RATELIMIT_STORAGE_URI', 'memory://')
    if FLASK_ENV == 'production' and RATELIMIT_ENABLED and RATELIMIT_STORAGE_URI.strip().lower() == 'memory://':
        raise RuntimeError(
            "RATELIMIT_STORAGE_URI must use a shared backend (e.g., Redis) in production."
        )
    RATELIMIT_DEFAULT = os.getenv('RATELIMIT_DEFAULT', '1000 per day, 200 per hour')
    RATELIMIT_STRATEGY = os.getenv('RATELIMIT_STRATEGY', 'fixed-window')
    RATELIMIT_HEADERS_ENABLED = True

    # File Uploads
    FILE_STORAGE_BACKEND = os.getenv('FILE_STORAGE_BACKEND', 'database').strip().lower()  # database | supabase
    MAX_CONTENT_LENGTH = int(os.getenv('MAX_FILE_SIZE', 10 * 1024 * 1024))  # 10MB
    ALLOWED_EXTENSIONS = set(
        ext.strip().lower()
        for ext in os.getenv('ALLOWED_EXTENSIONS', 'pdf,jpg,jpeg,png').split(',')
        if ext.strip()
    )

    # Reference numbers carry the local calendar date (Philippine time)
    REFERENCE_UTC_OFFSET_HOURS = int(os.getenv('REFERENCE_UTC_OFFSET_HOURS', 8))

    # Tracking by email/phone exposes a requester's history to anyone who
    # knows their contact details; reference-number lookup is the default.
    TRACKING_ALLOW_CONTACT_LOOKUP = _env_flag('TRACKING_ALLOW_CONTACT_LOOKUP')

    # Application
    APP_NAME = os.getenv('APP_NAME', 'Barangay Bayabas Document Services')

    # Frontend URLs (for CORS)
    WEB_URL = os.getenv('WEB_URL', 'http://localhost:5173')
    ADMIN_URL = os.getenv('ADMIN_URL', '')
    CORS_ALLOWED_ORIGINS = os.getenv('CORS_ALLOWED_ORIGINS', '')

    @staticmethod
    def init_app(app):
        """Initialize application configuration"""
        level = getattr(logging, str(app.config.get('LOG_LEVEL') or 'INFO').upper(), logging.INFO)
        app.logger.setLevel(level)

        backend = app.config.get('FILE_STORAGE_BACKEND') or 'database'
        if backend not in ('database', 'supabase'):
            app.logger.warning(
                "Unknown FILE_STORAGE_BACKEND '%s'; falling back to 'database'",
                backend,
            )
            app.config['FILE_STORAGE_BACKEND'] = 'database'


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    SQLALCHEMY_ECHO = False


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    SQLALCHEMY_ECHO = False


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    JWT_SECRET_KEY = 'test-secret'
    RATELIMIT_ENABLED = False
    FILE_STORAGE_BACKEND = 'database'


# Config dictionary
config_by_name = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
