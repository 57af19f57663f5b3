from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from keybridge.models.permission import PermissionSpec


@dataclass
class AppConfig:
    app_id: str
    base_url: str
    tiers: Dict[int, PermissionSpec] = field(default_factory=dict)
    tier_names: Dict[int, str] = field(default_factory=dict)

    def tier_name(self, tier_id: int) -> str:
        return self.tier_names.get(tier_id) or str(tier_id)

    def to_dict(self) -> dict:
        return {
            'app_id': self.app_id,
            'url': self.base_url,
            'tiers': {
                str(tier_id): {
                    'tier_name': self.tier_name(tier_id),
                    'permissions': spec.to_dict(),
                }
                for tier_id, spec in sorted(self.tiers.items())
            },
        }
