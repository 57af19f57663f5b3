"""
Pytest fixtures for keybridge tests
"""
import threading

import pytest

from keybridge import create_app
from keybridge.config import Config
from keybridge.db import get_db, init_db
from keybridge.errors import RemoteRejected
from keybridge.repositories import AppConfigRepository, KeyRecordRepository, MemberRepository
from keybridge.services import CreatedKey, compile_permissions


class IsolatedConfig(Config):
    TESTING = True
    RATELIMIT_ENABLED = False
    EVENT_TOKEN = 'test-event-token'
    NOTIFY_ASYNC = False
    SMTP_HOST = None
    MAIL_FROM = None
    DISCORD_WEBHOOK_URL = None


class FakeRemoteClient:
    """Stands in for RemoteKeyClient; records every call."""

    def __init__(self):
        self.calls = []
        self.failures = {}
        self._lock = threading.Lock()

    def fail(self, base_url, error=None):
        self.failures[base_url] = error or RemoteRejected('rejected', 500)

    def _record(self, call):
        with self._lock:
            self.calls.append(call)
        error = self.failures.get(call[1])
        if error:
            raise error

    def create(self, base_url, key_id, tier, permissions):
        self._record(('create', base_url, key_id, tier, permissions.to_json()))
        return CreatedKey(key_id=key_id, api_key=f'secret-{key_id[:8]}')

    def update(self, base_url, key_id, tier, permissions):
        self._record(('update', base_url, key_id, tier, permissions.to_json()))

    def calls_for(self, kind):
        return [call for call in self.calls if call[0] == kind]


@pytest.fixture
def db(tmp_path, monkeypatch):
    """Fresh sqlite database; returns the connection factory."""
    monkeypatch.setenv('DATABASE_PATH', str(tmp_path / 'keybridge-test.db'))
    init_db()
    return get_db


@pytest.fixture
def key_repo(db):
    return KeyRecordRepository(db)


@pytest.fixture
def config_repo(db):
    return AppConfigRepository(db)


@pytest.fixture
def member_repo(db):
    return MemberRepository(db)


@pytest.fixture
def remote_client():
    return FakeRemoteClient()


@pytest.fixture
def blog_app(config_repo):
    """App 'blog' bound to tiers 5 and 9."""
    config_repo.upsert_app('blog', 'https://blog.example.com')
    config_repo.set_tier('blog', 5, compile_permissions({
        'limits': {'posts': {'hour': 10, 'day': 50}},
        'flags': {'beta': True},
    }), tier_name='Silver')
    config_repo.set_tier('blog', 9, compile_permissions({
        'limits': {'posts': {'hour': 100, 'day': 500}},
        'flags': {'beta': True, 'export': True},
    }), tier_name='Gold')
    return config_repo.get('blog')


@pytest.fixture
def make_app(remote_client):
    """Build an application around the given connection factory"""
    def factory(db_factory):
        return create_app(IsolatedConfig, db_factory=db_factory, remote_client=remote_client)
    return factory


@pytest.fixture
def app(db, make_app):
    """Create application for testing"""
    yield make_app(db)


@pytest.fixture
def client(app):
    """Create a test client"""
    return app.test_client()


@pytest.fixture
def event_headers():
    return {'X-Event-Token': IsolatedConfig.EVENT_TOKEN}
