"""Application package for keybridge."""

from __future__ import annotations

import logging
from typing import Callable, Optional

import sqlite3
from flask import Flask

from keybridge.config import Config
from keybridge.db import get_db
from keybridge.extensions import limiter
from keybridge.repositories import AppConfigRepository, KeyRecordRepository, MemberRepository
from keybridge.routes import (
    create_api_keys_blueprint,
    create_apps_blueprint,
    create_events_blueprint,
    create_health_blueprint,
)
from keybridge.services import (
    NotificationService,
    ReconciliationService,
    RemoteKeyClient,
    compile_permissions,
    find_negative_limits,
)
from keybridge.utils.validators import (
    sanitize_string,
    validate_app_id,
    validate_email,
    validate_level_id,
    validate_positive_int,
    validate_required_fields,
    validate_url,
)

VERSION = '0.1.0'

logger = logging.getLogger(__name__)


def create_app(
    config_class: type[Config] = Config,
    *,
    db_factory: Callable[[], sqlite3.Connection] = get_db,
    remote_client: Optional[RemoteKeyClient] = None,
    notification_service: Optional[NotificationService] = None,
) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_class)

    limiter.init_app(app)

    key_repo = KeyRecordRepository(db_factory)
    config_repo = AppConfigRepository(db_factory)
    member_repo = MemberRepository(db_factory)

    if remote_client is None:
        remote_client = RemoteKeyClient(timeout=config_class.REMOTE_TIMEOUT_SECONDS)
    if notification_service is None:
        notification_service = NotificationService.from_config(member_repo, config_class)

    reconciliation_service = ReconciliationService(
        config_repo,
        key_repo,
        remote_client,
        notification_service,
    )

    if not config_class.EVENT_TOKEN:
        logger.warning("EVENT_TOKEN not set! Membership-change hook accepts unauthenticated calls.")

    app.register_blueprint(create_events_blueprint(
        reconciliation_service=reconciliation_service,
        member_repo=member_repo,
        limiter=limiter,
        event_token=config_class.EVENT_TOKEN,
        validate_level_id=validate_level_id,
        validate_positive_int=validate_positive_int,
        validate_email=validate_email,
        validate_required_fields=validate_required_fields,
        sanitize_string=sanitize_string,
        logger=logger,
        rate_limit=f'{config_class.RATE_LIMIT_PER_MINUTE} per minute',
    ))
    app.register_blueprint(create_apps_blueprint(
        config_repo=config_repo,
        compile_permissions=compile_permissions,
        find_negative_limits=find_negative_limits,
        validate_app_id=validate_app_id,
        validate_positive_int=validate_positive_int,
        validate_url=validate_url,
        validate_required_fields=validate_required_fields,
        sanitize_string=sanitize_string,
        logger=logger,
    ))
    app.register_blueprint(create_api_keys_blueprint(
        key_repo=key_repo,
        config_repo=config_repo,
        logger=logger,
    ))
    app.register_blueprint(create_health_blueprint(
        db_factory,
        VERSION,
        notification_service.mail_configured,
    ))

    app.extensions['keybridge'] = {
        'key_repo': key_repo,
        'config_repo': config_repo,
        'member_repo': member_repo,
        'reconciliation_service': reconciliation_service,
        'notification_service': notification_service,
    }

    @app.after_request
    def set_security_headers(response):
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'SAMEORIGIN'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        return response

    return app
