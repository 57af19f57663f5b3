from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from keybridge.models.permission import PermissionSpec


@dataclass
class KeyRecord:
    user_id: int
    app_id: str
    key_id: str
    tier_name: str
    permissions: PermissionSpec
    active: bool = True
    id: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            'user_id': self.user_id,
            'app_id': self.app_id,
            'key_id': self.key_id,
            'tier': self.tier_name,
            'permissions': self.permissions.to_dict(),
            'active': self.active,
        }
