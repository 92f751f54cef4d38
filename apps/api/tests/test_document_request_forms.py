from io import BytesIO

from apps.api import db
from apps.api.app import create_app
from apps.api.config import Config
from apps.api.models.audit import AuditLog
from apps.api.models.document import DocumentRequest
from apps.api.models.stored_file import StoredFile
from apps.api.utils import request_forms
from apps.api.utils.request_store import update_request
from apps.api.utils.seed import seed_zones


class FormsConfig(Config):
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    TESTING = True
    JWT_SECRET_KEY = 'test-secret'
    RATELIMIT_ENABLED = False
    FILE_STORAGE_BACKEND = 'database'


PDF_BYTES = b'%PDF-1.4\n1 0 obj\n<<>>\nendobj\n%%EOF'


def _payload(**overrides):
    data = {
        'first_name': 'Juan',
        'middle_name': 'Reyes',
        'last_name': 'Dela Cruz',
        'age': 30,
        'birth_date': '1994-05-01',
        'address': '123 Rizal St.',
        'zone_id': 1,
        'contact': '09171234567',
        'email': 'juan@example.com',
        'marital_status': 'single',
        'purpose': 'Employment',
    }
    data.update(overrides)
    return data


def _setup():
    app = create_app(FormsConfig)
    client = app.test_client()
    with app.app_context():
        db.create_all()
        seed_zones()
    return app, client


def _approved_zone_clearance(app, client):
    resp = client.post('/api/documents/requests/zone-clearance', json=_payload())
    assert resp.status_code == 201
    body = resp.get_json()
    with app.app_context():
        update_request(body['request']['id'], {'status': 'approved'})
    return body['reference_number']


def test_document_types_lists_all_three_forms():
    _, client = _setup()
    resp = client.get('/api/documents/types')
    assert resp.status_code == 200
    slugs = {t['slug']: t for t in resp.get_json()['types']}
    assert set(slugs) == {'zone-clearance', 'indigency', 'clearance'}
    assert slugs['indigency']['requires_zone_clearance'] is True
    assert slugs['zone-clearance']['requires_zone_clearance'] is False


def test_zone_clearance_submission_returns_reference():
    app, client = _setup()
    resp = client.post('/api/documents/requests', json=_payload(document_type='zone_clearance'))
    assert resp.status_code == 201
    body = resp.get_json()
    assert body['reference_number'].startswith('ZC-')
    assert body['request']['status'] == 'pending'
    assert body['request']['has_zone_clearance'] is False

    with app.app_context():
        req = DocumentRequest.query.filter_by(reference_number=body['reference_number']).one()
        assert req.zone.zone_name == 'Zone 1 - Purok Uno'
        assert AuditLog.query.filter_by(entity_id=req.id, action='create').count() == 1


def test_validation_errors_name_the_field():
    _, client = _setup()

    resp = client.post('/api/documents/requests/zone-clearance', json=_payload(age=0))
    assert resp.status_code == 400
    assert resp.get_json()['field'] == 'age'

    resp = client.post('/api/documents/requests/zone-clearance', json=_payload(birth_date='2999-01-01'))
    assert resp.get_json()['field'] == 'birth_date'

    resp = client.post('/api/documents/requests/zone-clearance', json=_payload(zone_id=99))
    assert resp.get_json()['field'] == 'zone_id'

    resp = client.post('/api/documents/requests/zone-clearance', json=_payload(email='not-an-email'))
    assert resp.get_json()['field'] == 'email'

    resp = client.post('/api/documents/requests/zone-clearance', json=_payload(marital_status='divorced'))
    assert resp.get_json()['field'] == 'marital_status'

    payload = _payload()
    payload.pop('purpose')
    resp = client.post('/api/documents/requests/zone-clearance', json=payload)
    assert resp.get_json()['field'] == 'purpose'

    resp = client.post('/api/documents/requests/business-permit', json=_payload())
    assert resp.status_code == 404


def test_existing_zone_clearance_requires_proof_file():
    app, client = _setup()
    resp = client.post('/api/documents/requests/zone-clearance', json=_payload(has_zone_clearance=True))
    assert resp.status_code == 400
    assert resp.get_json()['field'] == 'zone_clearance_file'

    resp = client.post(
        '/api/documents/requests/zone-clearance',
        data={
            **{k: str(v) for k, v in _payload().items()},
            'has_zone_clearance': 'yes',
            'zone_clearance_file': (BytesIO(PDF_BYTES), 'old-clearance.pdf'),
        },
        content_type='multipart/form-data',
    )
    assert resp.status_code == 201
    body = resp.get_json()['request']
    assert body['has_zone_clearance'] is True
    assert body['has_zone_clearance_file'] is True

    with app.app_context():
        stored = StoredFile.query.one()
        assert stored.content_type == 'application/pdf'
        assert stored.data == PDF_BYTES


def test_invalid_form_does_not_store_uploads():
    app, client = _setup()
    resp = client.post(
        '/api/documents/requests/zone-clearance',
        data={
            **{k: str(v) for k, v in _payload(age='abc').items()},
            'has_zone_clearance': 'yes',
            'zone_clearance_file': (BytesIO(PDF_BYTES), 'old-clearance.pdf'),
        },
        content_type='multipart/form-data',
    )
    assert resp.status_code == 400
    with app.app_context():
        assert StoredFile.query.count() == 0


def test_bad_second_upload_stores_neither_file():
    app, client = _setup()
    resp = client.post(
        '/api/documents/requests/zone-clearance',
        data={
            **{k: str(v) for k, v in _payload().items()},
            'has_zone_clearance': 'yes',
            'zone_clearance_file': (BytesIO(PDF_BYTES), 'proof.pdf'),
            'valid_id_file': (BytesIO(b'MZ\x90\x00'), 'id.exe'),
        },
        content_type='multipart/form-data',
    )
    assert resp.status_code == 400
    assert resp.get_json()['field'] == 'valid_id_file'
    with app.app_context():
        assert StoredFile.query.count() == 0
        assert DocumentRequest.query.count() == 0


def test_stored_uploads_are_removed_when_request_creation_fails(monkeypatch):
    app, client = _setup()

    def broken_create(data):
        raise RuntimeError('database unavailable')

    monkeypatch.setattr(request_forms, 'create_request', broken_create)
    resp = client.post(
        '/api/documents/requests/zone-clearance',
        data={
            **{k: str(v) for k, v in _payload().items()},
            'has_zone_clearance': 'yes',
            'zone_clearance_file': (BytesIO(PDF_BYTES), 'proof.pdf'),
        },
        content_type='multipart/form-data',
    )
    assert resp.status_code == 500
    with app.app_context():
        assert StoredFile.query.count() == 0


def test_non_object_json_body_is_rejected():
    _, client = _setup()
    assert client.post('/api/documents/requests', json=['x']).status_code == 400
    assert client.post('/api/documents/requests/indigency', json=['x']).status_code == 400
    assert client.post('/api/documents/requests', json='zone_clearance').status_code == 400


def test_json_submission_rejects_unknown_file_ids():
    _, client = _setup()
    resp = client.post(
        '/api/documents/requests/zone-clearance',
        json=_payload(has_zone_clearance=True, zone_clearance_file_id=42),
    )
    assert resp.status_code == 400
    assert resp.get_json()['field'] == 'zone_clearance_file'


def test_indigency_requires_verified_zone_clearance():
    app, client = _setup()

    resp = client.post('/api/documents/requests/indigency', json=_payload())
    assert resp.status_code == 400
    assert resp.get_json()['field'] == 'zone_clearance_reference'

    pending = client.post('/api/documents/requests/zone-clearance', json=_payload()).get_json()
    resp = client.post(
        '/api/documents/requests/indigency',
        json=_payload(zone_clearance_reference=pending['reference_number']),
    )
    assert resp.status_code == 400

    reference = _approved_zone_clearance(app, client)
    resp = client.post(
        '/api/documents/requests/indigency',
        json=_payload(zone_clearance_reference=reference.lower()),
    )
    assert resp.status_code == 201
    body = resp.get_json()
    assert body['reference_number'].startswith('BI-')
    assert body['request']['zone_clearance_reference'] == reference
    assert body['request']['has_zone_clearance'] is True


def test_clearance_uses_same_flow():
    app, client = _setup()
    reference = _approved_zone_clearance(app, client)
    resp = client.post(
        '/api/documents/requests',
        json=_payload(document_type='clearance', zone_clearance_reference=reference),
    )
    assert resp.status_code == 201
    assert resp.get_json()['reference_number'].startswith('BC-')
