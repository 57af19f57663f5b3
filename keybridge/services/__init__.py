"""services package."""
from .notification_service import NotificationService
from .permissions import compile_permissions, find_negative_limits
from .reconciliation_service import ReconciliationService
from .remote_key_client import CreatedKey, RemoteKeyClient

__all__ = [
    'CreatedKey',
    'NotificationService',
    'ReconciliationService',
    'RemoteKeyClient',
    'compile_permissions',
    'find_negative_limits',
]
