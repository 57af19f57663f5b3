"""Keep remote API keys and the local key table in step with membership tiers.

Every tier-change event fans out to each app bound to the new tier. For one
(user, app) pair the lifecycle is::

    NoKey --create ok--> Active --update ok--> Active

A failed remote call leaves the pair where it was: no record when creating,
the previous (still valid) record when updating. Each app branch is isolated,
so one failing app never stops the others, and the outcome of every branch is
returned to the caller.
"""
from __future__ import annotations

import logging
import threading
import uuid
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from keybridge.errors import ConfigIncomplete, KeyStoreError, RemoteError
from keybridge.models import (
    CREATED,
    FAILED,
    SKIPPED,
    UPDATED,
    AppConfig,
    BranchOutcome,
    KeyRecord,
    PermissionSpec,
)
from keybridge.repositories import AppConfigRepository, KeyRecordRepository
from keybridge.services.notification_service import NotificationService
from keybridge.services.remote_key_client import RemoteKeyClient

logger = logging.getLogger(__name__)

CANCELLED_LEVEL_ID = 0


class ReconciliationService:
    """Reconciles remote keys for every app bound to a member's new tier."""

    def __init__(
        self,
        config_repo: AppConfigRepository,
        key_repo: KeyRecordRepository,
        remote_client: RemoteKeyClient,
        notification_service: Optional[NotificationService] = None,
        key_id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        self._config_repo = config_repo
        self._key_repo = key_repo
        self._remote_client = remote_client
        self._notification_service = notification_service
        self._key_id_factory = key_id_factory
        # (user_id, app_id) -> [lock, holders and waiters]
        self._pair_locks: Dict[Tuple[int, str], list] = {}
        self._pair_locks_guard = threading.Lock()

    @contextmanager
    def _pair_lock(self, user_id: int, app_id: str) -> Iterator[None]:
        """Serialize work on one (user, app) pair; idle pairs leave the table."""
        pair = (user_id, app_id)
        with self._pair_locks_guard:
            entry = self._pair_locks.setdefault(pair, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._pair_locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._pair_locks[pair]

    def handle_level_change(self, level_id: int, user_id: int) -> List[BranchOutcome]:
        if level_id == CANCELLED_LEVEL_ID or not user_id:
            # Ending a membership leaves remote keys and local records as they are.
            logger.info(f"Level change to {level_id} for user {user_id}: nothing to reconcile")
            return []

        try:
            apps = self._config_repo.list_for_tier(level_id)
        except Exception as e:
            logger.error(f"Failed to load app configuration for tier {level_id}: {e}")
            return []

        if not apps:
            logger.info(f"Tier {level_id} is not bound to any app")
            return []

        outcomes = []
        for app in apps:
            outcome = self._reconcile_app(app, level_id, user_id)
            if outcome.status == FAILED and self._notification_service:
                self._notification_service.send_failure_alert(outcome)
            outcomes.append(outcome)
        return outcomes

    def _reconcile_app(self, app: AppConfig, tier_id: int, user_id: int) -> BranchOutcome:
        try:
            return self._reconcile(app, tier_id, user_id)
        except ConfigIncomplete as e:
            logger.info(f"Skipping app {app.app_id} for tier {tier_id}: {e}")
            return self._outcome(app, tier_id, user_id, SKIPPED, error=e)
        except Exception as e:
            logger.exception(f"Unexpected error syncing key for user {user_id} on {app.app_id}: {e}")
            return self._outcome(app, tier_id, user_id, FAILED, error=e)

    def _reconcile(self, app: AppConfig, tier_id: int, user_id: int) -> BranchOutcome:
        if not app.base_url:
            raise ConfigIncomplete(f'app {app.app_id} has no URL')
        permissions = app.tiers.get(tier_id)
        if permissions is None:
            raise ConfigIncomplete(f'app {app.app_id} has no permissions for tier {tier_id}')
        tier_name = app.tier_name(tier_id)

        with self._pair_lock(user_id, app.app_id):
            existing = self._key_repo.find(user_id, app.app_id)

            if existing is None:
                return self._create(app, tier_id, tier_name, permissions, user_id)
            return self._update(app, tier_id, tier_name, permissions, user_id, existing)

    def _create(
        self,
        app: AppConfig,
        tier_id: int,
        tier_name: str,
        permissions: PermissionSpec,
        user_id: int,
    ) -> BranchOutcome:
        key_id = self._key_id_factory()
        try:
            created = self._remote_client.create(app.base_url, key_id, tier_name, permissions)
        except RemoteError as e:
            logger.error(f"Remote key creation failed for user {user_id} on {app.app_id}: {e}")
            return self._outcome(app, tier_id, user_id, FAILED, key_id=key_id, error=e)

        try:
            self._key_repo.insert(KeyRecord(
                user_id=user_id,
                app_id=app.app_id,
                key_id=key_id,
                tier_name=tier_name,
                permissions=permissions,
                active=True,
            ))
        except KeyStoreError as e:
            # The remote key exists but has no local record.
            logger.error(f"Key {key_id} issued by {app.app_id} for user {user_id} could not be stored: {e}")
            return self._outcome(app, tier_id, user_id, FAILED, key_id=key_id, error=e)

        logger.info(f"Issued key {key_id} for user {user_id} on {app.app_id} (tier {tier_name})")
        if self._notification_service:
            self._notification_service.notify_key_issued(user_id, app.app_id, created.api_key)
        return self._outcome(app, tier_id, user_id, CREATED, key_id=key_id)

    def _update(
        self,
        app: AppConfig,
        tier_id: int,
        tier_name: str,
        permissions: PermissionSpec,
        user_id: int,
        existing: KeyRecord,
    ) -> BranchOutcome:
        try:
            self._remote_client.update(app.base_url, existing.key_id, tier_name, permissions)
        except RemoteError as e:
            logger.error(f"Remote key update failed for user {user_id} on {app.app_id}: {e}")
            return self._outcome(app, tier_id, user_id, FAILED, key_id=existing.key_id, error=e)

        try:
            self._key_repo.update(existing.key_id, tier_name=tier_name, permissions=permissions, active=True)
        except KeyStoreError as e:
            logger.error(f"Key {existing.key_id} updated remotely but not locally: {e}")
            return self._outcome(app, tier_id, user_id, FAILED, key_id=existing.key_id, error=e)

        logger.info(f"Updated key {existing.key_id} for user {user_id} on {app.app_id} (tier {tier_name})")
        return self._outcome(app, tier_id, user_id, UPDATED, key_id=existing.key_id)

    @staticmethod
    def _outcome(
        app: AppConfig,
        tier_id: int,
        user_id: int,
        status: str,
        key_id: Optional[str] = None,
        error: Optional[Exception] = None,
    ) -> BranchOutcome:
        return BranchOutcome(
            app_id=app.app_id,
            user_id=user_id,
            tier_id=tier_id,
            status=status,
            key_id=key_id,
            error_type=type(error).__name__ if error else None,
            error=str(error) if error else None,
        )
