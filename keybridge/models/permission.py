from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class EndpointLimit:
    hour: int = 0
    day: int = 0


@dataclass
class PermissionSpec:
    """Compiled limits and flags sent to a remote app and cached locally."""
    limits: Dict[str, EndpointLimit] = field(default_factory=dict)
    flags: Dict[str, bool] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'limits': {
                endpoint: {'hour': limit.hour, 'day': limit.day}
                for endpoint, limit in self.limits.items()
            },
            'flags': dict(self.flags),
        }

    def to_json(self) -> str:
        """Canonical serialized form (sorted keys, compact separators)."""
        return json.dumps(self.to_dict(), sort_keys=True, separators=(',', ':'))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PermissionSpec':
        """Load an already-compiled document; raises ValueError when malformed."""
        if not isinstance(data, dict):
            raise ValueError('Permission document must be an object')
        limits = data.get('limits') or {}
        flags = data.get('flags') or {}
        if not isinstance(limits, dict) or not isinstance(flags, dict):
            raise ValueError('Permission limits and flags must be objects')
        try:
            return cls(
                limits={
                    str(endpoint): EndpointLimit(hour=int(values['hour']), day=int(values['day']))
                    for endpoint, values in limits.items()
                },
                flags={str(name): bool(value) for name, value in flags.items()},
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f'Malformed permission limits: {exc}') from exc

    @classmethod
    def from_json(cls, text: str) -> 'PermissionSpec':
        try:
            data = json.loads(text)
        except (TypeError, ValueError) as exc:
            raise ValueError(f'Invalid permission JSON: {exc}') from exc
        return cls.from_dict(data)
