from __future__ import annotations

import logging
import smtplib
import ssl
import threading
from datetime import datetime, timezone
from email.message import EmailMessage

import requests

from keybridge.models import BranchOutcome
from keybridge.repositories import MemberRepository

logger = logging.getLogger(__name__)


class NotificationService:
    """Key delivery mail and operator alerts."""

    def __init__(
        self,
        member_repo: MemberRepository,
        *,
        smtp_host: str | None = None,
        smtp_port: int = 587,
        smtp_user: str | None = None,
        smtp_password: str | None = None,
        smtp_use_tls: bool = True,
        mail_from: str | None = None,
        discord_webhook_url: str | None = None,
        async_dispatch: bool = True,
    ):
        self._member_repo = member_repo
        self._smtp_host = smtp_host
        self._smtp_port = smtp_port
        self._smtp_user = smtp_user
        self._smtp_password = smtp_password
        self._smtp_use_tls = smtp_use_tls
        self._mail_from = mail_from
        self._discord_webhook_url = discord_webhook_url
        self._async_dispatch = async_dispatch

    @classmethod
    def from_config(cls, member_repo: MemberRepository, config) -> 'NotificationService':
        return cls(
            member_repo,
            smtp_host=config.SMTP_HOST,
            smtp_port=config.SMTP_PORT,
            smtp_user=config.SMTP_USER,
            smtp_password=config.SMTP_PASSWORD,
            smtp_use_tls=config.SMTP_USE_TLS,
            mail_from=config.MAIL_FROM,
            discord_webhook_url=config.DISCORD_WEBHOOK_URL,
            async_dispatch=config.NOTIFY_ASYNC,
        )

    def mail_configured(self) -> bool:
        return bool(self._smtp_host and self._mail_from)

    def _dispatch(self, target, *args) -> None:
        if self._async_dispatch:
            thread = threading.Thread(target=target, args=args, daemon=True)
            thread.start()
        else:
            target(*args)

    def notify_key_issued(self, user_id: int, app_id: str, api_key: str) -> None:
        """Mail a freshly issued key to its member, off the request thread."""
        self._dispatch(self._deliver_key, user_id, app_id, api_key)

    def _deliver_key(self, user_id: int, app_id: str, api_key: str) -> None:
        if not self.mail_configured():
            logger.warning(f"SMTP not configured; key for user {user_id} on {app_id} was not mailed")
            return

        try:
            email = self._member_repo.get_email(user_id)
        except Exception as e:
            logger.error(f"Failed to look up e-mail for user {user_id}: {e}")
            return
        if not email:
            logger.warning(f"No e-mail on file for user {user_id}; key for {app_id} was not mailed")
            return

        message = EmailMessage()
        message['Subject'] = f'Your {app_id} API Key'
        message['From'] = self._mail_from
        message['To'] = email
        message.set_content(f'Key: {api_key}')

        try:
            with smtplib.SMTP(self._smtp_host, self._smtp_port, timeout=10) as server:
                if self._smtp_use_tls:
                    server.starttls(context=ssl.create_default_context())
                if self._smtp_user and self._smtp_password:
                    server.login(self._smtp_user, self._smtp_password)
                server.send_message(message)
            logger.info(f"Mailed {app_id} key to user {user_id}")
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to mail {app_id} key to user {user_id}: {e}")

    def send_failure_alert(self, outcome: BranchOutcome) -> None:
        """Post a failed reconciliation branch to the operator Discord webhook."""
        if not self._discord_webhook_url:
            return
        self._dispatch(self._post_failure_alert, outcome)

    def _post_failure_alert(self, outcome: BranchOutcome) -> None:
        embed = {
            'title': f'❌ Key sync failed: {outcome.app_id}',
            'description': outcome.error or 'Unknown error',
            'color': 0xFF0000,
            'fields': [
                {'name': 'User', 'value': str(outcome.user_id), 'inline': True},
                {'name': 'Tier', 'value': str(outcome.tier_id), 'inline': True},
                {'name': 'Error', 'value': outcome.error_type or 'Error', 'inline': True},
            ],
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'footer': {'text': 'keybridge'},
        }
        if outcome.key_id:
            embed['fields'].append({'name': 'Key ID', 'value': outcome.key_id, 'inline': True})

        try:
            response = requests.post(self._discord_webhook_url, json={'embeds': [embed]}, timeout=10)
            if response.status_code not in [200, 204]:
                logger.warning(f"Discord alert returned {response.status_code}")
        except requests.RequestException as e:
            logger.warning(f"Failed to send Discord alert: {e}")
