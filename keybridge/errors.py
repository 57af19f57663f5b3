"""Error taxonomy for key reconciliation."""
from __future__ import annotations

from typing import Optional


class KeyBridgeError(Exception):
    """Base error for keybridge failures."""


class ConfigIncomplete(KeyBridgeError):
    """App or tier binding is missing its URL or permission spec."""


class RemoteError(KeyBridgeError):
    """Remote key service call failed."""


class RemoteUnavailable(RemoteError):
    """Transport-level failure talking to the remote key service."""


class RemoteRejected(RemoteError):
    """Remote key service answered with a non-2xx status or an unusable body."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class KeyStoreError(KeyBridgeError):
    """Local key table integrity violation."""


class DuplicateKeyId(KeyStoreError):
    pass


class DuplicateUserApp(KeyStoreError):
    pass


class NotFound(KeyStoreError):
    pass
