from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

import sqlite3

from keybridge.models import AppConfig, PermissionSpec

logger = logging.getLogger(__name__)


class AppConfigRepository:
    """Repository for configured apps and their tier bindings."""
    def __init__(self, db_factory: Callable[[], sqlite3.Connection]):
        self._db_factory = db_factory

    def upsert_app(self, app_id: str, base_url: str) -> None:
        conn = self._db_factory()
        try:
            cursor = conn.cursor()
            cursor.execute(
                '''
                INSERT INTO apps (app_id, base_url) VALUES (?, ?)
                ON CONFLICT(app_id) DO UPDATE SET base_url = excluded.base_url, updated_at = CURRENT_TIMESTAMP
                ''',
                (app_id, base_url),
            )
            conn.commit()
        finally:
            conn.close()

    def delete_app(self, app_id: str) -> bool:
        conn = self._db_factory()
        try:
            cursor = conn.cursor()
            cursor.execute('DELETE FROM app_tiers WHERE app_id = ?', (app_id,))
            cursor.execute('DELETE FROM apps WHERE app_id = ?', (app_id,))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted
        finally:
            conn.close()

    def set_tier(
        self,
        app_id: str,
        tier_id: int,
        permissions: PermissionSpec,
        tier_name: Optional[str] = None,
    ) -> None:
        conn = self._db_factory()
        try:
            cursor = conn.cursor()
            cursor.execute(
                '''
                INSERT INTO app_tiers (app_id, tier_id, tier_name, permissions) VALUES (?, ?, ?, ?)
                ON CONFLICT(app_id, tier_id) DO UPDATE SET
                    tier_name = excluded.tier_name, permissions = excluded.permissions
                ''',
                (app_id, tier_id, tier_name, permissions.to_json()),
            )
            conn.commit()
        finally:
            conn.close()

    def remove_tier(self, app_id: str, tier_id: int) -> bool:
        conn = self._db_factory()
        try:
            cursor = conn.cursor()
            cursor.execute('DELETE FROM app_tiers WHERE app_id = ? AND tier_id = ?', (app_id, tier_id))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted
        finally:
            conn.close()

    def get(self, app_id: str) -> Optional[AppConfig]:
        configs = self._load('WHERE a.app_id = ?', (app_id,))
        return configs[0] if configs else None

    def list_all(self) -> List[AppConfig]:
        return self._load('', ())

    def list_for_tier(self, tier_id: int) -> List[AppConfig]:
        """Apps with a binding for ``tier_id``, each carrying its full tier map."""
        return [config for config in self._load('', ()) if tier_id in config.tiers]

    def _load(self, where: str, params: tuple) -> List[AppConfig]:
        conn = self._db_factory()
        try:
            cursor = conn.cursor()
            cursor.execute(
                f'''
                SELECT a.app_id, a.base_url, t.tier_id, t.tier_name, t.permissions
                FROM apps a
                LEFT JOIN app_tiers t ON t.app_id = a.app_id
                {where}
                ORDER BY a.app_id, t.tier_id
                ''',
                params,
            )
            rows = cursor.fetchall()
        finally:
            conn.close()

        configs: Dict[str, AppConfig] = {}
        for app_id, base_url, tier_id, tier_name, permissions in rows:
            config = configs.setdefault(app_id, AppConfig(app_id=app_id, base_url=base_url or ''))
            if tier_id is None:
                continue
            try:
                config.tiers[tier_id] = PermissionSpec.from_json(permissions)
            except ValueError as e:
                logger.warning(f"Ignoring tier {tier_id} of app {app_id}: {e}")
                continue
            if tier_name:
                config.tier_names[tier_id] = tier_name
        return list(configs.values())
