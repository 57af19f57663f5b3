"""Centralized configuration for keybridge."""
from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()


class Config:
    """Base configuration loaded from environment variables."""
    DATABASE_PATH = os.getenv('DATABASE_PATH', '/data/keybridge.db')
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
    PORT = int(os.getenv('PORT', '5000'))

    # Inbound membership events
    EVENT_TOKEN = os.getenv('EVENT_TOKEN')
    RATE_LIMIT_PER_MINUTE = int(os.getenv('RATE_LIMIT_PER_MINUTE', '60'))

    # Remote key services
    REMOTE_TIMEOUT_SECONDS = float(os.getenv('REMOTE_TIMEOUT_SECONDS', '10'))

    # Key delivery mail
    SMTP_HOST = os.getenv('SMTP_HOST')
    SMTP_PORT = int(os.getenv('SMTP_PORT', '587'))
    SMTP_USER = os.getenv('SMTP_USER')
    SMTP_PASSWORD = os.getenv('SMTP_PASSWORD')
    SMTP_USE_TLS = os.getenv('SMTP_USE_TLS', 'true').lower() == 'true'
    MAIL_FROM = os.getenv('MAIL_FROM')
    NOTIFY_ASYNC = os.getenv('NOTIFY_ASYNC', 'true').lower() == 'true'

    # Operator alerts
    DISCORD_WEBHOOK_URL = os.getenv('DISCORD_WEBHOOK_URL')


class DevelopmentConfig(Config):
    DEBUG = True


class ProductionConfig(Config):
    DEBUG = False
