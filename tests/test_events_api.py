"""Tests for the membership-change hook"""
import json


class TestEventAuth:
    """Token checks on /hooks/membership-change"""

    def test_missing_token_rejected(self, client, blog_app):
        response = client.post('/hooks/membership-change', json={'level_id': 5, 'user_id': 42})
        assert response.status_code == 401

    def test_wrong_token_rejected(self, client, blog_app, remote_client):
        response = client.post(
            '/hooks/membership-change',
            json={'level_id': 5, 'user_id': 42},
            headers={'X-Event-Token': 'nope'},
        )
        assert response.status_code == 401
        assert remote_client.calls == []


class TestEventPayload:
    """Payload validation"""

    def test_non_numeric_level_rejected(self, client, event_headers):
        response = client.post(
            '/hooks/membership-change',
            json={'level_id': 'gold', 'user_id': 42},
            headers=event_headers,
        )
        assert response.status_code == 400

    def test_missing_user_rejected(self, client, event_headers):
        response = client.post('/hooks/membership-change', json={'level_id': 5}, headers=event_headers)
        assert response.status_code == 400
        assert json.loads(response.data)['error'] == 'Missing required field: user_id'

    def test_bad_email_rejected(self, client, event_headers):
        response = client.post(
            '/hooks/membership-change',
            json={'level_id': 5, 'user_id': 42, 'user_email': 'not-an-address'},
            headers=event_headers,
        )
        assert response.status_code == 400

    def test_non_object_body_rejected(self, client, event_headers):
        response = client.post('/hooks/membership-change', json=[5, 42], headers=event_headers)
        assert response.status_code == 400


class TestEventReconciliation:
    """End-to-end reconciliation through the hook"""

    def test_grant_then_upgrade(self, client, event_headers, blog_app, remote_client, member_repo):
        response = client.post(
            '/hooks/membership-change',
            json={'level_id': 5, 'user_id': 42, 'user_email': 'member@example.com'},
            headers=event_headers,
        )
        data = json.loads(response.data)
        assert response.status_code == 200
        assert data['level_id'] == 5
        assert data['results'][0]['status'] == 'created'
        key_id = data['results'][0]['key_id']
        assert member_repo.get_email(42) == 'member@example.com'

        response = client.post(
            '/hooks/membership-change',
            json={'level_id': '9', 'user_id': '42'},
            headers=event_headers,
        )
        data = json.loads(response.data)
        assert data['results'][0]['status'] == 'updated'
        assert data['results'][0]['key_id'] == key_id
        assert len(remote_client.calls_for('create')) == 1

    def test_remote_failure_still_returns_200(self, client, event_headers, blog_app, remote_client):
        remote_client.fail('https://blog.example.com')
        response = client.post(
            '/hooks/membership-change',
            json={'level_id': 5, 'user_id': 42},
            headers=event_headers,
        )
        data = json.loads(response.data)
        assert response.status_code == 200
        assert data['results'][0]['status'] == 'failed'
        assert data['results'][0]['error_type'] == 'RemoteRejected'

    def test_cancellation_returns_no_results(self, client, event_headers, blog_app, remote_client):
        response = client.post(
            '/hooks/membership-change',
            json={'level_id': 0, 'user_id': 42},
            headers=event_headers,
        )
        assert response.status_code == 200
        assert json.loads(response.data)['results'] == []
        assert remote_client.calls == []
