from datetime import date

from apps.api import db
from apps.api.app import create_app
from apps.api.config import Config
from apps.api.utils.request_store import create_request, update_request
from apps.api.utils.seed import seed_zones


class TrackingConfig(Config):
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    TESTING = True
    JWT_SECRET_KEY = 'test-secret'
    RATELIMIT_ENABLED = False
    TRACKING_ALLOW_CONTACT_LOOKUP = False


class ContactTrackingConfig(TrackingConfig):
    TRACKING_ALLOW_CONTACT_LOOKUP = True


def _setup(config=TrackingConfig):
    app = create_app(config)
    client = app.test_client()
    with app.app_context():
        db.create_all()
        seed_zones()
        req = create_request({
            'document_type': 'clearance',
            'first_name': 'Liza',
            'last_name': 'Ramos',
            'age': 27,
            'birth_date': date(1997, 2, 20),
            'address': '3 Bonifacio St.',
            'zone_id': 4,
            'contact': '09991234567',
            'email': 'liza@example.com',
            'marital_status': 'single',
            'purpose': 'Business permit',
            'has_zone_clearance': True,
        })
        update_request(req.id, {'status': 'rejected', 'rejection_reason': 'Missing valid ID'})
        reference = req.reference_number
    return client, reference


def test_track_by_reference_is_case_insensitive():
    client, reference = _setup()
    resp = client.get(f'/api/documents/track?reference_number={reference.lower()}')
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['count'] == 1
    entry = body['requests'][0]
    assert entry['reference_number'] == reference
    assert entry['document_label'] == 'Barangay Clearance'
    assert entry['zone_name'] == 'Zone 4 - Purok Kwatro'
    assert entry['status'] == 'rejected'
    assert entry['rejection_reason'] == 'Missing valid ID'
    assert entry['status_message']


def test_empty_query_is_rejected_and_no_match_is_empty():
    client, _ = _setup()
    assert client.get('/api/documents/track').status_code == 400
    assert client.get('/api/documents/track?reference_number=%20').status_code == 400

    resp = client.get('/api/documents/track?reference_number=BC-20000101-0000')
    assert resp.status_code == 200
    assert resp.get_json() == {'requests': [], 'count': 0}


def test_contact_lookup_is_disabled_by_default():
    client, _ = _setup()
    resp = client.get('/api/documents/track?email=liza@example.com')
    assert resp.status_code == 400


def test_contact_lookup_when_enabled():
    client, reference = _setup(ContactTrackingConfig)
    resp = client.get('/api/documents/track?email=liza@example.com')
    assert resp.status_code == 200
    assert [r['reference_number'] for r in resp.get_json()['requests']] == [reference]

    resp = client.get('/api/documents/track?contact=09991234567')
    assert resp.get_json()['count'] == 1
