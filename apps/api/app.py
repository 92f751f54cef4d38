"""
Barangay Bayabas Document Services - Flask API Application
Main application entry point
"""
import os
import sys
import json
import time
from pathlib import Path
from dotenv import load_dotenv

# Determine project root (2 levels up from this file)
API_DIR = Path(__file__).parent.resolve()
PROJECT_ROOT = API_DIR.parent.parent.resolve()

# Load environment variables from .env file at project root
env_path = PROJECT_ROOT / '.env'
if env_path.exists():
    load_dotenv(env_path)

# Add project root to path for absolute imports
sys.path.insert(0, str(PROJECT_ROOT))

from flask import Flask, jsonify
from flask_cors import CORS
from flask_limiter.errors import RateLimitExceeded
from sqlalchemy import text

from apps.api.config import Config, config_by_name
from apps.api import db, migrate, jwt, limiter, __version__


def _cors_origins(app):
    """Explicit origin allowlist (credentialed requests cannot use '*')."""
    origins = []
    is_production = (app.config.get('FLASK_ENV') == 'production') and not app.config.get('DEBUG')

    for key in ('WEB_URL', 'ADMIN_URL'):
        value = (app.config.get(key) or '').strip()
        if value:
            origins.append(value)

    extra_origins = (app.config.get('CORS_ALLOWED_ORIGINS') or '').split(',')
    origins.extend([o.strip() for o in extra_origins if o.strip()])

    if not is_production:
        origins.extend([
            "http://localhost:3000",
            "http://localhost:5173",
            "http://localhost:8080",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:5173",
            "http://127.0.0.1:8080",
        ])

    origins = list(dict.fromkeys(o for o in origins if o))

    if is_production and not origins:
        raise RuntimeError(
            "CORS configuration error: set WEB_URL/ADMIN_URL or CORS_ALLOWED_ORIGINS in production."
        )
    return origins


def create_app(config_class=Config):
    """Application factory pattern"""
    app = Flask(__name__)
    app.config.from_object(config_class)

    db_url = app.config.get('SQLALCHEMY_DATABASE_URI', '')
    if 'postgresql' in db_url:
        app.logger.info("Database: PostgreSQL (Supabase)")
    elif 'sqlite' in db_url:
        app.logger.info("Database: SQLite (local)")

    config_class.init_app(app)

    # Initialize extensions with app
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    # Shared limiter; the enabled flag follows the config of this app
    limiter.init_app(app)
    limiter.enabled = bool(app.config.get('RATELIMIT_ENABLED', True))
    if limiter.enabled:
        app.logger.info("Rate limiting enabled")
    else:
        app.logger.warning("Rate limiting is DISABLED - not recommended for production")

    # Security Headers Middleware
    @app.after_request
    def add_security_headers(response):
        """Add security headers to all responses."""
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        response.headers['Permissions-Policy'] = 'geolocation=(), microphone=(), camera=()'

        # HSTS - only outside debug (localhost runs plain HTTP)
        if not app.config.get('DEBUG'):
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'

        # JSON API only; uploaded files are streamed with their own type
        response.headers['Content-Security-Policy'] = "default-src 'none'; frame-ancestors 'none'"

        # Never leak raw exception details in non-debug environments.
        if not app.config.get('DEBUG') and response.status_code >= 400 and response.is_json:
            payload = response.get_json(silent=True)
            if isinstance(payload, dict) and 'details' in payload:
                payload.pop('details', None)
                response.set_data(json.dumps(payload))
                response.headers['Content-Type'] = 'application/json'

        return response

    # Apply CORS globally with Flask-CORS
    CORS(app,
         origins=_cors_origins(app),
         methods=["GET", "POST", "PUT", "OPTIONS"],
         allow_headers=["Content-Type", "Authorization", "X-Requested-With", "X-Admin-Secret"],
         supports_credentials=True,
         expose_headers=["Content-Type", "Authorization", "Content-Disposition"])

    # JWT token blacklist check
    @jwt.token_in_blocklist_loader
    def check_if_token_revoked(jwt_header, jwt_payload):
        from apps.api.models.token_blacklist import TokenBlacklist
        return TokenBlacklist.is_token_revoked(jwt_payload['jti'])

    # Register blueprints
    from apps.api.routes import (
        auth_bp,
        documents_bp,
        files_bp,
        zones_bp,
        admin_bp,
    )

    app.register_blueprint(auth_bp)
    app.register_blueprint(documents_bp)
    app.register_blueprint(files_bp)
    app.register_blueprint(zones_bp)
    app.register_blueprint(admin_bp)

    # Health check endpoint
    @app.route('/health', methods=['GET'])
    def health_check():
        """Health check endpoint for monitoring"""
        return jsonify({
            'status': 'ok',
            'service': app.config.get('APP_NAME'),
            'version': __version__
        }), 200

    # Database health check endpoint
    @app.route('/health/db', methods=['GET'])
    def db_health_check():
        """Health check endpoint that tests database connectivity"""
        start = time.time()
        try:
            db.session.execute(text('SELECT 1')).fetchone()
            db.session.rollback()  # Don't leave transaction open
            elapsed = time.time() - start
            return jsonify({
                'status': 'healthy',
                'database': 'connected',
                'latency_ms': round(elapsed * 1000, 2),
                'service': app.config.get('APP_NAME')
            }), 200
        except Exception as e:
            elapsed = time.time() - start
            app.logger.error(f"Database health check failed: {e}")
            return jsonify({
                'status': 'unhealthy',
                'database': 'disconnected',
                'latency_ms': round(elapsed * 1000, 2),
                'error': str(e)[:200]
            }), 503

    # Root endpoint
    @app.route('/', methods=['GET'])
    def root():
        """API root endpoint"""
        return jsonify({
            'message': app.config.get('APP_NAME'),
            'version': __version__,
            'documents': ['zone-clearance', 'indigency', 'clearance'],
        }), 200

    # Error handlers
    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'error': 'Resource not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(413)
    def payload_too_large(error):
        return jsonify({'error': 'File is too large'}), 413

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return jsonify({'error': 'Internal server error'}), 500

    @app.errorhandler(401)
    def unauthorized(error):
        return jsonify({'error': 'Unauthorized'}), 401

    @app.errorhandler(403)
    def forbidden(error):
        return jsonify({'error': 'Forbidden'}), 403

    # Flask-Limiter rate limit handler (ensure JSON, not HTML)
    @app.errorhandler(RateLimitExceeded)
    def ratelimit_handler(error):  # pragma: no cover
        payload = {'error': 'Rate limit exceeded'}
        desc = getattr(error, 'description', None)
        if desc:
            payload['details'] = str(desc)
        resp = jsonify(payload)
        resp.status_code = 429
        # Preserve limiter-provided headers when available
        for k, v in (error.get_headers() or []):
            if str(k).lower() == 'content-type':
                continue
            resp.headers[k] = v
        return resp

    return app


# Create app instance
app = create_app(config_by_name.get(os.getenv('FLASK_ENV', 'development'), Config))

if __name__ == '__main__':
    app.run(
        host='0.0.0.0',
        port=5000,
        debug=app.config['DEBUG']
    )
