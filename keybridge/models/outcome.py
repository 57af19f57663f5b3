from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Optional

CREATED = 'created'
UPDATED = 'updated'
SKIPPED = 'skipped'
FAILED = 'failed'


@dataclass
class BranchOutcome:
    """Result of reconciling one (user, app) pair for a tier-change event."""
    app_id: str
    user_id: int
    tier_id: int
    status: str
    key_id: Optional[str] = None
    error_type: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status in (CREATED, UPDATED)

    def to_dict(self) -> dict:
        return asdict(self)
