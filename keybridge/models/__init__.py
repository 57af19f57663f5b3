from .app_config import AppConfig
from .key_record import KeyRecord
from .outcome import CREATED, FAILED, SKIPPED, UPDATED, BranchOutcome
from .permission import EndpointLimit, PermissionSpec

__all__ = [
    'AppConfig',
    'BranchOutcome',
    'CREATED',
    'EndpointLimit',
    'FAILED',
    'KeyRecord',
    'PermissionSpec',
    'SKIPPED',
    'UPDATED',
]
