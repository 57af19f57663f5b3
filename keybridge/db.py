from __future__ import annotations

import logging
import os
import sqlite3

from keybridge.config import Config

logger = logging.getLogger(__name__)

DATABASE_PATH = Config.DATABASE_PATH


def _get_database_path() -> str:
    """Resolve database path at runtime (supports tests overriding env)."""
    return os.getenv('DATABASE_PATH', DATABASE_PATH)


def get_db() -> sqlite3.Connection:
    """Get database connection."""
    conn = sqlite3.connect(_get_database_path())
    conn.execute('PRAGMA foreign_keys = ON')
    return conn


def init_db() -> None:
    """Initialize SQLite database."""
    conn = get_db()
    cursor = conn.cursor()

    # Local mirror of remotely issued keys
    cursor.execute('''
        CREATE TABLE IF NOT EXISTS api_keys (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL,
            app_id TEXT NOT NULL,
            key_id TEXT NOT NULL UNIQUE,
            tier TEXT NOT NULL,
            permissions TEXT NOT NULL,
            active INTEGER DEFAULT 1,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            UNIQUE(user_id, app_id)
        )
    ''')

    # Configured remote apps
    cursor.execute('''
        CREATE TABLE IF NOT EXISTS apps (
            app_id TEXT PRIMARY KEY,
            base_url TEXT NOT NULL DEFAULT '',
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    # Tier bindings per app
    cursor.execute('''
        CREATE TABLE IF NOT EXISTS app_tiers (
            app_id TEXT NOT NULL,
            tier_id INTEGER NOT NULL,
            tier_name TEXT,
            permissions TEXT NOT NULL,
            PRIMARY KEY (app_id, tier_id),
            FOREIGN KEY (app_id) REFERENCES apps(app_id) ON DELETE CASCADE
        )
    ''')

    # Member addresses for key delivery
    cursor.execute('''
        CREATE TABLE IF NOT EXISTS members (
            user_id INTEGER PRIMARY KEY,
            email TEXT NOT NULL,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    cursor.execute('CREATE INDEX IF NOT EXISTS idx_api_keys_user_active ON api_keys(user_id, active)')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_app_tiers_tier_id ON app_tiers(tier_id)')

    conn.commit()
    conn.close()
    logger.info('Database initialized')


def ensure_data_dir() -> None:
    data_dir = os.path.dirname(_get_database_path()) or '.'
    os.makedirs(data_dir, exist_ok=True)
