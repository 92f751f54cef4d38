from datetime import date, datetime

import pytest

from apps.api import db
from apps.api.app import create_app
from apps.api.config import Config
from apps.api.utils import request_store, reference_numbers
from apps.api.utils.request_store import (
    create_request,
    find_approved_zone_clearance,
    find_by_reference,
    get_requests,
    list_zones,
    status_counts,
    update_request,
)
from apps.api.utils.seed import seed_zones


class StoreConfig(Config):
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    TESTING = True
    JWT_SECRET_KEY = 'test-secret'
    RATELIMIT_ENABLED = False
    FILE_STORAGE_BACKEND = 'database'


def _fields(**overrides):
    data = {
        'document_type': 'zone_clearance',
        'first_name': 'Maria',
        'last_name': 'Santos',
        'age': 34,
        'birth_date': date(1990, 3, 14),
        'address': '45 Mabini St.',
        'zone_id': 1,
        'contact': '09171234567',
        'email': 'maria@example.com',
        'marital_status': 'married',
        'purpose': 'Employment',
    }
    data.update(overrides)
    return data


def _app():
    app = create_app(StoreConfig)
    with app.app_context():
        db.create_all()
        seed_zones()
    return app


def test_create_assigns_reference_and_pending_status():
    app = _app()
    with app.app_context():
        req = create_request(_fields(status='approved'), now=datetime(2024, 12, 10, 1, 0))
        assert req.id is not None
        assert req.status == 'pending'
        assert req.reference_number.startswith('ZC-20241210-')
        assert req.request_date == datetime(2024, 12, 10, 1, 0)

        found = find_by_reference(req.reference_number.lower())
        assert [r.id for r in found] == [req.id]


def test_get_requests_is_newest_first():
    app = _app()
    with app.app_context():
        older = create_request(_fields(first_name='Older'), now=datetime(2024, 1, 1, 0, 0))
        newer = create_request(_fields(first_name='Newer'), now=datetime(2024, 6, 1, 0, 0))
        assert [r.id for r in get_requests()] == [newer.id, older.id]


def test_update_request_stamps_updated_at_and_ignores_unknown_ids():
    app = _app()
    with app.app_context():
        req = create_request(_fields())
        assert req.updated_at is None

        updated = update_request(req.id, {'purpose': 'School requirement', 'reference_number': 'HACKED'})
        assert updated.purpose == 'School requirement'
        assert updated.reference_number != 'HACKED'
        assert updated.updated_at is not None

        assert update_request(9999, {'purpose': 'x'}) is None


def test_find_approved_zone_clearance_only_matches_approved_zone_clearances():
    app = _app()
    with app.app_context():
        pending = create_request(_fields())
        indigency = create_request(_fields(document_type='indigency'))
        update_request(indigency.id, {'status': 'approved'})

        assert find_approved_zone_clearance(reference_number=pending.reference_number) is None
        assert find_approved_zone_clearance(reference_number=indigency.reference_number) is None
        assert find_approved_zone_clearance(email='maria@example.com') is None

        update_request(pending.id, {'status': 'approved'})
        assert find_approved_zone_clearance(reference_number=pending.reference_number.lower()).id == pending.id
        assert find_approved_zone_clearance(email=' maria@example.com ').id == pending.id
        assert find_approved_zone_clearance(contact='09171234567').id == pending.id
        assert find_approved_zone_clearance(email='MARIA@example.com') is None
        assert find_approved_zone_clearance() is None


def test_status_counts_and_zone_order():
    app = _app()
    with app.app_context():
        a = create_request(_fields())
        create_request(_fields())
        update_request(a.id, {'status': 'rejected', 'rejection_reason': 'Blurry ID'})

        assert status_counts() == {'total': 2, 'pending': 1, 'approved': 0, 'rejected': 1}
        assert [z.zone_number for z in list_zones()] == [1, 2, 3, 4, 5, 6]


def _pin_suffixes(monkeypatch, *suffixes):
    values = iter(suffixes)
    monkeypatch.setattr(reference_numbers.secrets, 'randbelow', lambda upper: next(values))


def test_reference_collision_is_retried(monkeypatch):
    app = _app()
    now = datetime(2024, 12, 10, 1, 0)
    with app.app_context():
        _pin_suffixes(monkeypatch, 42, 42, 43)
        first = create_request(_fields(), now=now)
        second = create_request(_fields(first_name='Pedro'), now=now)
        assert first.reference_number == 'ZC-20241210-0042'
        assert second.reference_number == 'ZC-20241210-0043'


def test_reference_generation_gives_up_after_five_collisions(monkeypatch):
    app = _app()
    now = datetime(2024, 12, 10, 1, 0)
    with app.app_context():
        _pin_suffixes(monkeypatch, 7)
        create_request(_fields(), now=now)

        _pin_suffixes(monkeypatch, *([7] * 5))
        with pytest.raises(RuntimeError):
            create_request(_fields(first_name='Pedro'), now=now)
        db.session.rollback()
        assert len(get_requests()) == 1


def test_insert_race_on_reference_number_retries_once(monkeypatch):
    app = _app()
    now = datetime(2024, 12, 10, 1, 0)
    with app.app_context():
        _pin_suffixes(monkeypatch, 42)
        create_request(_fields(), now=now)

        # Simulate another writer taking the number between check and insert
        candidates = iter(['ZC-20241210-0042', 'ZC-20241210-0099'])
        monkeypatch.setattr(
            request_store,
            '_unique_reference_number',
            lambda document_type, now=None: next(candidates),
        )
        req = create_request(_fields(first_name='Pedro'), now=now)
        assert req.reference_number == 'ZC-20241210-0099'
        assert [r.first_name for r in find_by_reference('ZC-20241210-0099')] == ['Pedro']
        assert len(get_requests()) == 2
