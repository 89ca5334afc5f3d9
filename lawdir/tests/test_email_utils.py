import smtplib

import pytest

from lawdir import email_utils
from lawdir.config import get_settings


@pytest.fixture
def smtp_env(monkeypatch):
    def _configure(**values):
        for key, value in values.items():
            monkeypatch.setenv(key, value)
        get_settings.cache_clear()

    yield _configure
    get_settings.cache_clear()


class _FakeSMTP:
    sent = []

    def __init__(self, host, port):
        self.host, self.port = host, port

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, user, password):
        pass

    def send_message(self, msg):
        _FakeSMTP.sent.append(msg)


class TestDeliver:

    def test_unconfigured_smtp_only_logs(self, smtp_env, monkeypatch):
        smtp_env(SMTP_HOST="")

        def _no_network(*args, **kwargs):
            raise AssertionError("SMTP should not be contacted")

        monkeypatch.setattr(email_utils.smtplib, "SMTP", _no_network)
        assert email_utils.deliver("jane@example.com", "Hello", "Body") is True

    def test_smtp_failure_reports_false(self, smtp_env, monkeypatch):
        smtp_env(SMTP_HOST="mail.example.com", SMTP_USER="mailer", SMTP_PASSWORD="secret")

        def _refuse(*args, **kwargs):
            raise smtplib.SMTPConnectError(421, "unavailable")

        monkeypatch.setattr(email_utils.smtplib, "SMTP", _refuse)
        assert email_utils.deliver("jane@example.com", "Hello", "Body") is False


class TestNotificationEmail:

    def test_notification_link_is_made_absolute(self, smtp_env, monkeypatch):
        smtp_env(
            SMTP_HOST="mail.example.com", SMTP_USER="mailer", SMTP_PASSWORD="secret",
            APP_URL="https://lawdir.example/",
        )
        _FakeSMTP.sent = []
        monkeypatch.setattr(email_utils.smtplib, "SMTP", _FakeSMTP)

        assert email_utils.send_notification_email("jane@example.com", "Approved", "Your profile is live", "/lawyers/jane-doe")

        msg = _FakeSMTP.sent[0]
        assert msg["Subject"] == "Approved"
        assert msg["To"] == "jane@example.com"
        assert "https://lawdir.example/lawyers/jane-doe" in msg.get_body(preferencelist=("plain",)).get_content()
