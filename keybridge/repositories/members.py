from __future__ import annotations

from typing import Callable, Optional

import sqlite3


class MemberRepository:
    """Repository for member e-mail addresses used for key delivery."""
    def __init__(self, db_factory: Callable[[], sqlite3.Connection]):
        self._db_factory = db_factory

    def get_email(self, user_id: int) -> Optional[str]:
        conn = self._db_factory()
        try:
            cursor = conn.cursor()
            cursor.execute('SELECT email FROM members WHERE user_id = ?', (user_id,))
            result = cursor.fetchone()
            return result[0] if result else None
        finally:
            conn.close()

    def upsert(self, user_id: int, email: str) -> None:
        conn = self._db_factory()
        try:
            cursor = conn.cursor()
            cursor.execute(
                'INSERT OR REPLACE INTO members (user_id, email, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)',
                (user_id, email),
            )
            conn.commit()
        finally:
            conn.close()
