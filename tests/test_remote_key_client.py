"""Tests for the remote key service HTTP contract."""

import json

import pytest
import requests

from keybridge.errors import RemoteRejected, RemoteUnavailable
from keybridge.services import RemoteKeyClient, compile_permissions

PERMISSIONS = compile_permissions({'limits': {'posts': {'hour': 10, 'day': 50}}, 'flags': {'beta': True}})


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=None):
        self.status_code = status_code
        self._body = body
        self._text = text

    def json(self):
        if self._text is not None:
            return json.loads(self._text)
        return self._body


def capture(monkeypatch, method, response=None, error=None):
    sent = {}

    def fake(url, json=None, timeout=None):
        sent['url'] = url
        sent['json'] = json
        sent['timeout'] = timeout
        if error:
            raise error
        return response

    monkeypatch.setattr(f'keybridge.services.remote_key_client.requests.{method}', fake)
    return sent


def test_create_posts_key_payload(monkeypatch):
    sent = capture(monkeypatch, 'post', FakeResponse(200, {'api_key': 'abc'}))
    client = RemoteKeyClient(timeout=3)

    created = client.create('https://blog.example.com/', 'key-1', 'Silver', PERMISSIONS)

    assert created.key_id == 'key-1'
    assert created.api_key == 'abc'
    assert sent['url'] == 'https://blog.example.com/keys/create'
    assert sent['timeout'] == 3
    assert sent['json']['key_id'] == 'key-1'
    assert sent['json']['tier'] == 'Silver'
    assert json.loads(sent['json']['permissions']) == {
        'limits': {'posts': {'hour': 10, 'day': 50}},
        'flags': {'beta': True},
    }


def test_create_accepts_any_2xx(monkeypatch):
    capture(monkeypatch, 'post', FakeResponse(201, {'api_key': 'abc', 'extra': 1}))
    assert RemoteKeyClient().create('https://x', 'k', 't', PERMISSIONS).api_key == 'abc'


@pytest.mark.parametrize('response', [
    FakeResponse(500, {'detail': 'boom'}),
    FakeResponse(409, {'api_key': 'abc'}),
    FakeResponse(200, {'detail': 'no key here'}),
    FakeResponse(200, ['abc']),
    FakeResponse(200, {'api_key': ''}),
    FakeResponse(200, text='<html>not json</html>'),
])
def test_create_rejected_responses(monkeypatch, response):
    capture(monkeypatch, 'post', response)
    with pytest.raises(RemoteRejected):
        RemoteKeyClient().create('https://x', 'k', 't', PERMISSIONS)


def test_create_transport_error_is_unavailable(monkeypatch):
    capture(monkeypatch, 'post', error=requests.ConnectionError('refused'))
    with pytest.raises(RemoteUnavailable):
        RemoteKeyClient().create('https://x', 'k', 't', PERMISSIONS)


def test_update_puts_existing_key(monkeypatch):
    sent = capture(monkeypatch, 'put', FakeResponse(204))
    RemoteKeyClient().update('https://blog.example.com', 'key-1', 'Gold', PERMISSIONS)

    assert sent['url'] == 'https://blog.example.com/keys/update'
    assert sent['json']['key_id'] == 'key-1'
    assert sent['json']['tier'] == 'Gold'
    assert sent['json']['permissions'] == PERMISSIONS.to_json()


def test_update_failures(monkeypatch):
    capture(monkeypatch, 'put', FakeResponse(404))
    with pytest.raises(RemoteRejected) as excinfo:
        RemoteKeyClient().update('https://x', 'k', 't', PERMISSIONS)
    assert excinfo.value.status_code == 404

    capture(monkeypatch, 'put', error=requests.Timeout('slow'))
    with pytest.raises(RemoteUnavailable):
        RemoteKeyClient().update('https://x', 'k', 't', PERMISSIONS)
