from apps.api import db
from apps.api.app import create_app
from apps.api.config import Config
from apps.api.models.admin_user import AdminUser
from apps.api.models.zone import Zone
from apps.api.utils.seed import create_admin, seed_defaults


class AdminAuthConfig(Config):
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    TESTING = True
    JWT_SECRET_KEY = 'test-secret'
    RATELIMIT_ENABLED = False
    ADMIN_SECRET_KEY = 'test-admin-secret'
    DEFAULT_ADMIN_EMAIL = 'admin@barangay.gov.ph'
    DEFAULT_ADMIN_PASSWORD = 'admin123'


def _setup():
    app = create_app(AdminAuthConfig)
    client = app.test_client()
    with app.app_context():
        db.create_all()
    return app, client


def _login(client, email, password):
    return client.post('/api/auth/admin/login', json={'email': email, 'password': password})


def test_seed_defaults_creates_zones_and_admin_once():
    app, client = _setup()
    with app.app_context():
        first = seed_defaults()
        second = seed_defaults()
        assert first == {'zones_created': 6, 'admin_created': 'admin@barangay.gov.ph'}
        assert second == {'zones_created': 0, 'admin_created': None}
        assert Zone.query.order_by(Zone.zone_number).first().zone_name == 'Zone 1 - Purok Uno'
        assert AdminUser.query.count() == 1
        # Stored hashed, never as the raw password
        assert AdminUser.query.one().password_hash != 'admin123'

    resp = _login(client, 'ADMIN@barangay.gov.ph', 'admin123')
    assert resp.status_code == 200


def test_login_me_and_logout():
    app, client = _setup()
    with app.app_context():
        create_admin('clerk@barangay.gov.ph', 'ClerkPass123', 'Ana Clerk')

    assert _login(client, 'clerk@barangay.gov.ph', 'wrong-password').status_code == 401
    assert _login(client, 'nobody@barangay.gov.ph', 'ClerkPass123').status_code == 401

    resp = _login(client, 'clerk@barangay.gov.ph', 'ClerkPass123')
    assert resp.status_code == 200
    token = resp.get_json()['access_token']
    headers = {'Authorization': f'Bearer {token}'}

    resp = client.get('/api/auth/admin/me', headers=headers)
    assert resp.status_code == 200
    assert resp.get_json()['admin']['full_name'] == 'Ana Clerk'
    assert 'password_hash' not in resp.get_json()['admin']

    assert client.post('/api/auth/admin/logout', headers=headers).status_code == 200
    assert client.get('/api/auth/admin/me', headers=headers).status_code == 401
    assert client.get('/api/admin/requests', headers=headers).status_code == 401


def test_inactive_admin_cannot_login():
    app, client = _setup()
    with app.app_context():
        admin = create_admin('old@barangay.gov.ph', 'OldPass1234', 'Old Admin')
        admin.is_active = False
        db.session.commit()

    assert _login(client, 'old@barangay.gov.ph', 'OldPass1234').status_code == 403


def test_register_requires_secret_or_admin_token():
    app, client = _setup()
    payload = {'email': 'new@barangay.gov.ph', 'password': 'NewPass1234', 'full_name': 'New Admin'}

    assert client.post('/api/auth/admin/register', json=payload).status_code == 403
    assert client.post(
        '/api/auth/admin/register', json=payload, headers={'X-Admin-Secret': 'wrong'}
    ).status_code == 403

    resp = client.post('/api/auth/admin/register', json=payload, headers={'X-Admin-Secret': 'test-admin-secret'})
    assert resp.status_code == 201
    assert resp.get_json()['admin']['email'] == 'new@barangay.gov.ph'

    resp = client.post(
        '/api/auth/admin/register',
        json={**payload, 'email': 'NEW@barangay.gov.ph'},
        headers={'X-Admin-Secret': 'test-admin-secret'},
    )
    assert resp.status_code == 409

    token = _login(client, 'new@barangay.gov.ph', 'NewPass1234').get_json()['access_token']
    resp = client.post(
        '/api/auth/admin/register',
        json={'email': 'third@barangay.gov.ph', 'password': 'ThirdPass123', 'full_name': 'Third Admin'},
        headers={'Authorization': f'Bearer {token}'},
    )
    assert resp.status_code == 201

    resp = client.post(
        '/api/auth/admin/register',
        json={'email': 'short@barangay.gov.ph', 'password': 'short', 'full_name': 'Short Pass'},
        headers={'X-Admin-Secret': 'test-admin-secret'},
    )
    assert resp.status_code == 400
    assert resp.get_json()['field'] == 'password'


def test_non_string_passwords_are_rejected():
    app, client = _setup()
    with app.app_context():
        create_admin('typed@barangay.gov.ph', 'TypedPass123', 'Typed Admin')

    assert _login(client, 'typed@barangay.gov.ph', 12345678).status_code == 400
    assert client.post('/api/auth/admin/login', json=['typed@barangay.gov.ph']).status_code == 400

    resp = client.post(
        '/api/auth/admin/register',
        json={'email': 'int@barangay.gov.ph', 'password': 123456789, 'full_name': 'Int Pass'},
        headers={'X-Admin-Secret': 'test-admin-secret'},
    )
    assert resp.status_code == 400
    assert resp.get_json()['field'] == 'password'


def test_only_bcrypt_hashes_are_accepted():
    admin = AdminUser(email='legacy@barangay.gov.ph', full_name='Legacy Admin')
    admin.password_hash = 'pbkdf2:sha256:600000$salt$deadbeef'
    assert admin.check_password('anything') is False

    admin.set_password('Bcrypted123')
    assert admin.password_hash.startswith('$2')
    assert admin.check_password('Bcrypted123') is True
    assert admin.check_password(None) is False
