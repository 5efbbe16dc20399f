"""Tests for the sync service API endpoints."""

import pytest
from fastapi.testclient import TestClient

from replicator.config import SyncConfig
from replicator.reconciliation import SyncJobState
from service import config as service_config
from service.main import app, build_engine
from service.service_locator import set_engine


@pytest.fixture
def engine():
    """Install a fresh engine with a long poll interval."""
    engine = build_engine(SyncConfig(
        page_size=5,
        poll_interval_seconds=60.0,
        initial_seed=False,
        retry_base_delay=0.0
    ))
    set_engine(engine)
    yield engine
    set_engine(None)


@pytest.fixture
def client(engine):
    """Create FastAPI test client."""
    return TestClient(app)


def put_companies(client, count):
    """Write Acme plus count-1 numbered companies to the source."""
    keys = ['Acme'] + [f'Company {i:03d}' for i in range(1, count)]
    for i, key in enumerate(keys):
        response = client.put(f'/source/records/{key}', json={
            'payload': {'owner': 'Ana', 'amount': 100 + i}
        })
        assert response.status_code == 200
    return keys


def test_build_engine_defaults_to_env_config(monkeypatch):
    """Test build_engine reads the config from the environment when none is given."""
    monkeypatch.setenv('RECORDSYNC_PAGE_SIZE', '9')

    engine = build_engine(None)

    assert engine.config.page_size == 9
    assert engine.source.clock is engine.target.clock


def test_health_endpoint(client):
    """Test health check endpoint."""
    response = client.get('/health')
    assert response.status_code == 200
    assert response.json() == {'status': 'healthy', 'service': 'recordsync'}


def test_request_id_header(client):
    """Test every response carries a request id."""
    response = client.get('/health')
    assert response.headers['X-Request-ID']


def test_status_endpoint(client):
    """Test engine status reports the idle loop and zero counters."""
    response = client.get('/sync/status')
    assert response.status_code == 200
    data = response.json()
    assert data['loop']['state'] == 'idle'
    assert data['loop']['running'] is False
    assert data['counters'] == {'records_seeded': 0, 'events_sent': 0}
    assert data['config']['page_size'] == 5


def test_status_without_engine():
    """Test routes return 503 before an engine is installed."""
    set_engine(None)
    response = TestClient(app).get('/sync/status')
    assert response.status_code == 503


def test_write_and_read_source_record(client):
    """Test writing a source record and reading it back."""
    response = client.put('/source/records/Acme', json={'payload': {'owner': 'Ana'}})
    assert response.status_code == 200
    written = response.json()
    assert written['key'] == 'Acme'
    assert written['updated_at'] is not None

    response = client.get('/source/records/Acme')
    assert response.status_code == 200
    assert response.json()['payload'] == {'owner': 'Ana'}


def test_read_missing_record(client):
    """Test reading an unknown key returns 404."""
    response = client.get('/target/records/Acme')
    assert response.status_code == 404
    assert response.json()['code'] == 'RECORD_NOT_FOUND'


def test_unknown_store_name(client):
    """Test only source and target are valid store names."""
    response = client.get('/elsewhere/records/Acme')
    assert response.status_code == 422


def test_patch_source_record(client):
    """Test patching payload fields bumps updated_at."""
    before = client.put('/source/records/Acme', json={'payload': {'owner': 'Ana', 'amount': 5}}).json()

    response = client.patch('/source/records/Acme', json={'fields': {'owner': 'Juan'}})
    assert response.status_code == 200
    assert response.json() == {'matched': 1, 'modified': 1}

    after = client.get('/source/records/Acme').json()
    assert after['payload'] == {'owner': 'Juan', 'amount': 5}
    assert after['updated_at'] > before['updated_at']


def test_patch_missing_record(client):
    """Test patching an unknown key returns 404."""
    response = client.patch('/source/records/ghost', json={'fields': {'owner': 'Juan'}})
    assert response.status_code == 404
    assert response.json()['code'] == 'RECORD_NOT_FOUND'


def test_patch_cannot_change_key(client):
    """Test the key is not a patchable field."""
    client.put('/source/records/Acme', json={'payload': {}})

    response = client.patch('/source/records/Acme', json={'fields': {'key': 'Other'}})
    assert response.status_code == 400


def test_list_records(client):
    """Test paging through a store."""
    keys = put_companies(client, 8)

    response = client.get('/source/records?limit=3&skip=2')
    assert response.status_code == 200
    data = response.json()
    assert data['total'] == 8
    assert [r['key'] for r in data['records']] == keys[2:5]


def test_list_records_rejects_bad_limit(client):
    """Test limit bounds are validated."""
    response = client.get('/source/records?limit=0')
    assert response.status_code == 422


def test_full_sync_endpoint(client):
    """Test full sync copies the source and reports counters."""
    put_companies(client, 10)

    response = client.post('/sync/full')
    assert response.status_code == 200
    data = response.json()
    assert data['processed'] == 10
    assert data['counters'] == {'records_seeded': 10, 'events_sent': 10}

    assert client.get('/target/records?limit=100').json()['total'] == 10


def test_full_sync_aborted(client, engine):
    """Test an exhausted store failure surfaces as SYNC_ABORTED."""
    put_companies(client, 3)
    engine.target.fail_next(10)

    response = client.post('/sync/full')
    assert response.status_code == 503
    data = response.json()
    assert data['code'] == 'SYNC_ABORTED'
    assert data['applied'] == 0


def test_paginated_sync_endpoint(client):
    """Test paginated sync with the configured page size."""
    put_companies(client, 12)

    response = client.post('/sync/paginated', json={})
    assert response.status_code == 200
    assert response.json() == {
        'page_size': 5,
        'pages_completed': 3,
        'total_expected': 3,
        'records_applied': 12,
        'done': True,
    }


def test_paginated_sync_resume(client):
    """Test pausing after one page and resuming the same run."""
    put_companies(client, 12)

    first = client.post('/sync/paginated', json={'page_size': 4, 'max_pages': 1}).json()
    assert first['pages_completed'] == 1
    assert first['done'] is False

    second = client.post('/sync/paginated', json={'page_size': 4, 'resume': True}).json()
    assert second['pages_completed'] == 3
    assert second['records_applied'] == 12
    assert second['done'] is True

    assert client.get('/target/records').json()['total'] == 12


def test_paginated_sync_rejects_bad_page_size(client):
    """Test page_size must be positive."""
    response = client.post('/sync/paginated', json={'page_size': 0})
    assert response.status_code == 422


def test_delta_sync_endpoint(client):
    """Test replicating explicit keys."""
    put_companies(client, 4)

    response = client.post('/sync/delta', json={'keys': ['Acme', 'ghost']})
    assert response.status_code == 200
    assert response.json() == {
        'applied_keys': ['Acme'],
        'failed_keys': {},
        'skipped_keys': ['ghost'],
    }
    assert client.get('/target/records/Acme').status_code == 200


def test_tick_endpoint_detects_changes(client):
    """Test a tick replicates missing records, then a patched one."""
    keys = put_companies(client, 3)

    first = client.post('/sync/tick').json()
    assert first['changed_keys'] == sorted(keys)
    assert first['error'] is None

    client.patch('/source/records/Acme', json={'fields': {'owner': 'Juan'}})
    second = client.post('/sync/tick').json()
    assert second['changed_keys'] == ['Acme']
    assert client.get('/target/records/Acme').json()['payload']['owner'] == 'Juan'

    third = client.post('/sync/tick').json()
    assert third['changed_keys'] == []
    assert third['delta'] is None


def test_tick_endpoint_conflict(client, engine):
    """Test a tick request while a tick is active returns 409."""
    engine.loop.state = SyncJobState.APPLYING
    try:
        response = client.post('/sync/tick')
    finally:
        engine.loop.state = SyncJobState.IDLE

    assert response.status_code == 409
    assert engine.loop.dropped_ticks == 1


def test_loop_start_and_stop(engine, monkeypatch):
    """Test starting and stopping the loop over the API."""
    monkeypatch.setattr(service_config, 'SERVICE_AUTOSTART', False)

    with TestClient(app) as client:
        response = client.post('/sync/loop/start')
        assert response.status_code == 200
        assert response.json()['running'] is True

        response = client.post('/sync/loop/stop')
        assert response.status_code == 200
        assert response.json()['running'] is False
        assert response.json()['state'] == 'idle'


def test_autostart_runs_loop_until_shutdown(engine, monkeypatch):
    """Test startup starts the engine and shutdown stops it."""
    monkeypatch.setattr(service_config, 'SERVICE_AUTOSTART', True)

    with TestClient(app) as client:
        assert client.get('/sync/status').json()['loop']['running'] is True

    assert engine.loop.running is False
