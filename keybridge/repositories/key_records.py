from __future__ import annotations

import logging
from typing import Callable, List, Optional

import sqlite3

from keybridge.errors import DuplicateKeyId, DuplicateUserApp, NotFound
from keybridge.models import KeyRecord, PermissionSpec

logger = logging.getLogger(__name__)

_COLUMNS = 'id, user_id, app_id, key_id, tier, permissions, active'
_MUTABLE_FIELDS = {'tier_name': 'tier', 'permissions': 'permissions', 'active': 'active'}


def _row_to_record(row) -> KeyRecord:
    record_id, user_id, app_id, key_id, tier, permissions, active = row
    return KeyRecord(
        id=record_id,
        user_id=user_id,
        app_id=app_id,
        key_id=key_id,
        tier_name=tier,
        permissions=PermissionSpec.from_json(permissions),
        active=bool(active),
    )


class KeyRecordRepository:
    """Repository for the local mirror of remotely issued API keys."""
    def __init__(self, db_factory: Callable[[], sqlite3.Connection]):
        self._db_factory = db_factory

    def find(self, user_id: int, app_id: str) -> Optional[KeyRecord]:
        conn = self._db_factory()
        try:
            cursor = conn.cursor()
            cursor.execute(
                f'SELECT {_COLUMNS} FROM api_keys WHERE user_id = ? AND app_id = ?',
                (user_id, app_id),
            )
            row = cursor.fetchone()
            return _row_to_record(row) if row else None
        finally:
            conn.close()

    def get_by_key_id(self, key_id: str) -> Optional[KeyRecord]:
        conn = self._db_factory()
        try:
            cursor = conn.cursor()
            cursor.execute(f'SELECT {_COLUMNS} FROM api_keys WHERE key_id = ?', (key_id,))
            row = cursor.fetchone()
            return _row_to_record(row) if row else None
        finally:
            conn.close()

    def insert(self, record: KeyRecord) -> int:
        conn = self._db_factory()
        try:
            cursor = conn.cursor()
            cursor.execute('BEGIN IMMEDIATE')
            cursor.execute('SELECT 1 FROM api_keys WHERE key_id = ?', (record.key_id,))
            if cursor.fetchone():
                conn.rollback()
                raise DuplicateKeyId(f'Key id {record.key_id} already exists')
            cursor.execute(
                'SELECT key_id FROM api_keys WHERE user_id = ? AND app_id = ?',
                (record.user_id, record.app_id),
            )
            existing = cursor.fetchone()
            if existing:
                conn.rollback()
                raise DuplicateUserApp(
                    f'User {record.user_id} already has key {existing[0]} for app {record.app_id}'
                )
            try:
                cursor.execute(
                    '''
                    INSERT INTO api_keys (user_id, app_id, key_id, tier, permissions, active)
                    VALUES (?, ?, ?, ?, ?, ?)
                    ''',
                    (
                        record.user_id,
                        record.app_id,
                        record.key_id,
                        record.tier_name,
                        record.permissions.to_json(),
                        1 if record.active else 0,
                    ),
                )
            except sqlite3.IntegrityError as exc:
                conn.rollback()
                if 'api_keys.key_id' in str(exc):
                    raise DuplicateKeyId(f'Key id {record.key_id} already exists') from exc
                raise DuplicateUserApp(
                    f'User {record.user_id} already has a key for app {record.app_id}'
                ) from exc
            record_id = cursor.lastrowid
            conn.commit()
            record.id = record_id
            return record_id
        finally:
            conn.close()

    def update(self, key_id: str, /, **fields) -> None:
        """Partially update a record; identity columns cannot change."""
        unknown = set(fields) - set(_MUTABLE_FIELDS)
        if unknown:
            raise ValueError(f"Immutable or unknown key record fields: {', '.join(sorted(unknown))}")
        if not fields:
            return

        assignments = []
        params = []
        for name, value in fields.items():
            if name == 'permissions':
                value = value.to_json()
            elif name == 'active':
                value = 1 if value else 0
            assignments.append(f'{_MUTABLE_FIELDS[name]} = ?')
            params.append(value)
        assignments.append('updated_at = CURRENT_TIMESTAMP')

        conn = self._db_factory()
        try:
            cursor = conn.cursor()
            cursor.execute(
                f"UPDATE api_keys SET {', '.join(assignments)} WHERE key_id = ?",
                (*params, key_id),
            )
            if cursor.rowcount == 0:
                conn.rollback()
                raise NotFound(f'No key record with key id {key_id}')
            conn.commit()
        finally:
            conn.close()

    def list_active_for_user(self, user_id: int) -> List[KeyRecord]:
        conn = self._db_factory()
        try:
            cursor = conn.cursor()
            cursor.execute(
                f'SELECT {_COLUMNS} FROM api_keys WHERE user_id = ? AND active = 1 ORDER BY id',
                (user_id,),
            )
            return [_row_to_record(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def list_active(self) -> List[KeyRecord]:
        conn = self._db_factory()
        try:
            cursor = conn.cursor()
            cursor.execute(f'SELECT {_COLUMNS} FROM api_keys WHERE active = 1 ORDER BY id')
            return [_row_to_record(row) for row in cursor.fetchall()]
        finally:
            conn.close()
