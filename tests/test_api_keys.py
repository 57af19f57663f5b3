"""Tests for key listing endpoints"""
import json


def grant(client, event_headers, level_id, user_id):
    return client.post(
        '/hooks/membership-change',
        json={'level_id': level_id, 'user_id': user_id},
        headers=event_headers,
    )


class TestKeyListings:

    def test_user_listing_shows_active_keys(self, client, event_headers, blog_app):
        grant(client, event_headers, 5, 42)

        response = client.get('/api/users/42/keys')
        keys = json.loads(response.data)
        assert response.status_code == 200
        assert len(keys) == 1
        assert keys[0]['app_id'] == 'blog'
        assert keys[0]['tier'] == 'Silver'
        assert 'api_key' not in keys[0]

    def test_user_without_keys(self, client):
        response = client.get('/api/users/7/keys')
        assert response.status_code == 200
        assert json.loads(response.data) == []

    def test_admin_overview(self, client, event_headers, blog_app):
        grant(client, event_headers, 5, 42)
        grant(client, event_headers, 9, 43)

        data = json.loads(client.get('/api/keys').data)
        assert [k['user_id'] for k in data['keys']] == [42, 43]
        assert data['keys'][1]['tier'] == 'Gold'
        assert [a['app_id'] for a in data['apps']] == ['blog']

    def test_lookup_by_key_id(self, client, event_headers, blog_app):
        key_id = json.loads(grant(client, event_headers, 5, 42).data)['results'][0]['key_id']

        response = client.get(f'/api/keys/{key_id}')
        data = json.loads(response.data)
        assert response.status_code == 200
        assert data['user_id'] == 42
        assert data['app_id'] == 'blog'
        assert data['tier'] == 'Silver'
        assert client.get('/api/keys/unknown-key').status_code == 404
