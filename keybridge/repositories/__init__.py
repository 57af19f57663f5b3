"""repositories package."""
from .app_configs import AppConfigRepository
from .key_records import KeyRecordRepository
from .members import MemberRepository

__all__ = [
    'AppConfigRepository',
    'KeyRecordRepository',
    'MemberRepository',
]
