"""Tests for key delivery mail and operator alerts."""

import threading

from keybridge.models import BranchOutcome
from keybridge.services.notification_service import NotificationService


class DummySMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.started_tls = False
        self.login_args = None
        self.messages = []
        DummySMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self, context=None):
        self.started_tls = True

    def login(self, user, password):
        self.login_args = (user, password)

    def send_message(self, message):
        self.messages.append(message)


def make_service(member_repo, **overrides):
    options = {
        'smtp_host': 'smtp.test',
        'smtp_port': 2525,
        'smtp_user': 'mailer',
        'smtp_password': 'pw',
        'mail_from': 'keys@example.com',
        'async_dispatch': False,
    }
    options.update(overrides)
    return NotificationService(member_repo, **options)


def test_issued_key_is_mailed_to_member(member_repo, monkeypatch):
    DummySMTP.instances = []
    monkeypatch.setattr('keybridge.services.notification_service.smtplib.SMTP', DummySMTP)
    member_repo.upsert(42, 'member@example.com')

    make_service(member_repo).notify_key_issued(42, 'blog', 'abc')

    smtp = DummySMTP.instances[0]
    assert (smtp.host, smtp.port) == ('smtp.test', 2525)
    assert smtp.started_tls is True
    assert smtp.login_args == ('mailer', 'pw')
    message = smtp.messages[0]
    assert message['To'] == 'member@example.com'
    assert message['Subject'] == 'Your blog API Key'
    assert 'Key: abc' in message.get_content()


def test_mail_skipped_without_smtp_or_address(member_repo, monkeypatch):
    DummySMTP.instances = []
    monkeypatch.setattr('keybridge.services.notification_service.smtplib.SMTP', DummySMTP)

    unconfigured = make_service(member_repo, smtp_host=None)
    assert unconfigured.mail_configured() is False
    unconfigured.notify_key_issued(42, 'blog', 'abc')

    make_service(member_repo).notify_key_issued(42, 'blog', 'abc')

    assert DummySMTP.instances == []


def test_smtp_errors_are_logged_not_raised(member_repo, monkeypatch):
    def refuse(*args, **kwargs):
        raise OSError('connection refused')

    monkeypatch.setattr('keybridge.services.notification_service.smtplib.SMTP', refuse)
    member_repo.upsert(42, 'member@example.com')

    make_service(member_repo).notify_key_issued(42, 'blog', 'abc')


def test_failure_alert_posts_discord_embed(member_repo, monkeypatch):
    sent = {}

    def fake_post(url, json=None, timeout=10):
        sent['url'] = url
        sent['payload'] = json

        class Resp:
            status_code = 204
        return Resp()

    monkeypatch.setattr('keybridge.services.notification_service.requests.post', fake_post)
    service = make_service(member_repo, discord_webhook_url='https://discord.com/api/webhooks/1/abc')
    outcome = BranchOutcome(
        app_id='blog',
        user_id=42,
        tier_id=5,
        status='failed',
        key_id='key-1',
        error_type='RemoteRejected',
        error='POST https://blog/keys/create returned 500',
    )

    service.send_failure_alert(outcome)

    embed = sent['payload']['embeds'][0]
    assert sent['url'].startswith('https://discord.com/api/webhooks/')
    assert 'blog' in embed['title']
    assert embed['description'].endswith('returned 500')
    assert {'name': 'Key ID', 'value': 'key-1', 'inline': True} in embed['fields']


def test_failure_alert_disabled_without_webhook(member_repo, monkeypatch):
    def fail_post(*args, **kwargs):
        raise AssertionError('should not post')

    monkeypatch.setattr('keybridge.services.notification_service.requests.post', fail_post)
    make_service(member_repo).send_failure_alert(
        BranchOutcome(app_id='blog', user_id=1, tier_id=5, status='failed')
    )


def test_failure_alert_does_not_block_when_async(member_repo, monkeypatch):
    release = threading.Event()
    posted = threading.Event()

    def slow_post(url, json=None, timeout=10):
        release.wait(5)
        posted.set()

        class Resp:
            status_code = 204
        return Resp()

    monkeypatch.setattr('keybridge.services.notification_service.requests.post', slow_post)
    service = make_service(
        member_repo,
        discord_webhook_url='https://discord.com/api/webhooks/1/abc',
        async_dispatch=True,
    )

    service.send_failure_alert(BranchOutcome(app_id='blog', user_id=1, tier_id=5, status='failed'))

    assert not posted.is_set()
    release.set()
    assert posted.wait(5)
