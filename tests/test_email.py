"""
Tests for the SMTP email service
"""

import pytest

from app.services import email as email_module
from app.services.email import EmailService


class FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.started_tls = False
        self.logged_in = None
        self.messages = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def starttls(self):
        self.started_tls = True

    def login(self, username, password):
        self.logged_in = (username, password)

    def send_message(self, message):
        self.messages.append(message)


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(email_module.smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


def test_disabled_without_host(fake_smtp):
    service = EmailService(host=None)

    assert not service.enabled
    service.send_password_reset_email("a@x.com", "abc")
    assert fake_smtp.instances == []


def test_password_reset_email_contains_link(fake_smtp):
    service = EmailService(
        host="smtp.example.com",
        port=2525,
        username="mailer",
        password="hunter2",
        sender="no-reply@example.com",
        frontend_url="https://app.example.com/",
    )

    service.send_password_reset_email("a@x.com", "abc123")

    smtp = fake_smtp.instances[0]
    assert (smtp.host, smtp.port) == ("smtp.example.com", 2525)
    assert smtp.started_tls
    assert smtp.logged_in == ("mailer", "hunter2")
    message = smtp.messages[0]
    assert message["To"] == "a@x.com"
    assert message["From"] == "no-reply@example.com"
    assert "https://app.example.com/reset-password?token=abc123" in message.get_content()


def test_welcome_email_without_tls_or_login(fake_smtp):
    service = EmailService(host="localhost", port=1025, use_tls=False)

    service.send_welcome_email("a@x.com", "Ada")

    smtp = fake_smtp.instances[0]
    assert not smtp.started_tls
    assert smtp.logged_in is None
    assert "Ada" in smtp.messages[0]["Subject"]
