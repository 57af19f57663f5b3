from __future__ import annotations

import logging
from dataclasses import dataclass

import requests

from keybridge.errors import RemoteRejected, RemoteUnavailable
from keybridge.models import PermissionSpec

logger = logging.getLogger(__name__)


@dataclass
class CreatedKey:
    key_id: str
    api_key: str


class RemoteKeyClient:
    """HTTP client for an app's key-issuing endpoints.

    Calls are never retried here: ``create`` carries no idempotency token, so
    a blind retry could mint a second remote key.
    """

    def __init__(self, timeout: float = 10):
        self._timeout = timeout

    @staticmethod
    def _payload(key_id: str, tier: str, permissions: PermissionSpec) -> dict:
        return {'key_id': key_id, 'tier': tier, 'permissions': permissions.to_json()}

    @staticmethod
    def _url(base_url: str, path: str) -> str:
        return f"{base_url.rstrip('/')}{path}"

    def create(self, base_url: str, key_id: str, tier: str, permissions: PermissionSpec) -> CreatedKey:
        url = self._url(base_url, '/keys/create')
        try:
            response = requests.post(
                url,
                json=self._payload(key_id, tier, permissions),
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise RemoteUnavailable(f'POST {url} failed: {e}') from e

        if not 200 <= response.status_code < 300:
            raise RemoteRejected(f'POST {url} returned {response.status_code}', response.status_code)

        try:
            body = response.json()
        except ValueError as e:
            raise RemoteRejected(f'POST {url} returned a non-JSON body', response.status_code) from e

        api_key = body.get('api_key') if isinstance(body, dict) else None
        if not isinstance(api_key, str) or not api_key:
            raise RemoteRejected(f'POST {url} response is missing api_key', response.status_code)

        logger.info(f"Remote key {key_id} created at {base_url} (tier {tier})")
        return CreatedKey(key_id=key_id, api_key=api_key)

    def update(self, base_url: str, key_id: str, tier: str, permissions: PermissionSpec) -> None:
        url = self._url(base_url, '/keys/update')
        try:
            response = requests.put(
                url,
                json=self._payload(key_id, tier, permissions),
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise RemoteUnavailable(f'PUT {url} failed: {e}') from e

        if not 200 <= response.status_code < 300:
            raise RemoteRejected(f'PUT {url} returned {response.status_code}', response.status_code)

        logger.info(f"Remote key {key_id} updated at {base_url} (tier {tier})")
