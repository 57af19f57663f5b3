#!/usr/bin/env python3
"""Import key records exported from the legacy membership plugin.

Reads a CSV export of the plugin's key table (columns ``user_id``, ``app_id``,
``key_id``, ``tier``, ``permissions``, ``active``), backs up the SQLite DB,
ensures the schema exists and inserts every row that is not already mirrored.
Legacy permission documents are recompiled into canonical form.
"""
from __future__ import annotations

import argparse
import csv
import datetime as dt
import logging
import os
import shutil
import sys
from typing import Iterable, Tuple

from keybridge.config import Config
from keybridge.db import get_db, init_db
from keybridge.errors import KeyStoreError
from keybridge.models import KeyRecord
from keybridge.repositories import KeyRecordRepository
from keybridge.services.permissions import coerce_bool, coerce_int, compile_permissions

logger = logging.getLogger('import_legacy_keys')

REQUIRED_COLUMNS = ('user_id', 'app_id', 'key_id', 'tier', 'permissions')


def resolve_db_path(cli_path: str | None) -> str:
    if cli_path:
        return cli_path
    return os.getenv("DATABASE_PATH", Config.DATABASE_PATH)


def backup_db(db_path: str, backup_dir: str | None) -> str | None:
    if not os.path.exists(db_path):
        return None
    timestamp = dt.datetime.now(dt.timezone.utc).strftime("%Y%m%d%H%M%S")
    backup_dir = backup_dir or os.path.join(os.path.dirname(db_path), "backups")
    os.makedirs(backup_dir, exist_ok=True)
    backup_path = os.path.join(backup_dir, f"keybridge.db.{timestamp}.bak")
    shutil.copy2(db_path, backup_path)
    return backup_path


def row_to_record(row: dict) -> KeyRecord:
    missing = [column for column in REQUIRED_COLUMNS if not row.get(column)]
    if missing:
        raise ValueError(f"missing {', '.join(missing)}")
    user_id = coerce_int(row['user_id'])
    if user_id < 1:
        raise ValueError(f"invalid user_id {row['user_id']!r}")
    return KeyRecord(
        user_id=user_id,
        app_id=row['app_id'].strip(),
        key_id=row['key_id'].strip(),
        tier_name=row['tier'].strip(),
        permissions=compile_permissions(row['permissions']),
        active=coerce_bool(row.get('active', '1')),
    )


def import_rows(repo: KeyRecordRepository, rows: Iterable[dict]) -> Tuple[int, int, int]:
    """Insert rows; returns (imported, duplicates, invalid) counts."""
    imported = duplicates = invalid = 0
    for line_no, row in enumerate(rows, start=2):
        try:
            record = row_to_record(row)
        except ValueError as e:
            logger.warning(f"Line {line_no}: skipped, {e}")
            invalid += 1
            continue
        try:
            repo.insert(record)
            imported += 1
        except KeyStoreError as e:
            logger.info(f"Line {line_no}: already mirrored ({e})")
            duplicates += 1
    return imported, duplicates, invalid


def main() -> int:
    parser = argparse.ArgumentParser(description="Import legacy plugin key records")
    parser.add_argument("csv_path", help="CSV export of the legacy key table")
    parser.add_argument(
        "--db",
        dest="db_path",
        default=None,
        help="Path to SQLite DB (defaults to DATABASE_PATH or config)",
    )
    parser.add_argument(
        "--backup-dir",
        dest="backup_dir",
        default=None,
        help="Directory to store DB backups (default: <db dir>/backups)",
    )
    parser.add_argument(
        "--no-backup",
        action="store_true",
        help="Skip DB backup",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    db_path = resolve_db_path(args.db_path)
    parent = os.path.dirname(db_path)
    if parent:
        os.makedirs(parent, exist_ok=True)

    if not args.no_backup:
        backup_path = backup_db(db_path, args.backup_dir)
        if backup_path:
            print(f"Backup created: {backup_path}")
        else:
            print("No existing DB found; skipping backup.")

    os.environ["DATABASE_PATH"] = db_path
    init_db()

    try:
        with open(args.csv_path, newline='', encoding='utf-8') as handle:
            imported, duplicates, invalid = import_rows(KeyRecordRepository(get_db), csv.DictReader(handle))
    except OSError as e:
        print(f"Cannot read {args.csv_path}: {e}", file=sys.stderr)
        return 1

    print(f"Imported {imported} key(s); {duplicates} already present; {invalid} invalid.")
    return 0 if invalid == 0 else 2


if __name__ == "__main__":
    raise SystemExit(main())
