"""Unit tests for the SendGrid email helper and the email channel."""

from __future__ import annotations

import json
import types

import pytest

from moodlog.domain.entities import Recipient
from moodlog.domain.errors import ChannelError
from moodlog.infrastructure import email as email_module
from moodlog.infrastructure.notifications import EmailNotificationChannel
from moodlog.infrastructure.notifications import channels as channels_module


class DummySettings:
    sendgrid_api_key = "SG.fake"
    sendgrid_sender = "sender@example.com"


class RecordingClient:
    sent: list = []

    def __init__(self, api_key: str):
        self.api_key = api_key

    def send(self, message):
        RecordingClient.sent.append(message)
        return types.SimpleNamespace(status_code=202, body=None)


@pytest.fixture()
def configured(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(email_module, "get_settings", lambda: DummySettings())
    RecordingClient.sent = []
    monkeypatch.setattr(email_module, "SendGridAPIClient", RecordingClient)


def test_send_email_without_configuration(monkeypatch: pytest.MonkeyPatch) -> None:
    """When SendGrid settings are missing the helper refuses to send."""

    class Unconfigured:
        sendgrid_api_key = None
        sendgrid_sender = None

    monkeypatch.setattr(email_module, "get_settings", lambda: Unconfigured())

    with pytest.raises(email_module.EmailDeliveryError) as excinfo:
        email_module.send_email("Subject", "<p>Body</p>", "user@example.com")
    assert excinfo.value.transient is False


def test_send_email_success(configured) -> None:
    email_module.send_email("Subject", "<p>Body</p>", "user@example.com")
    assert len(RecordingClient.sent) == 1


def test_send_email_logs_forbidden_error(monkeypatch: pytest.MonkeyPatch, caplog):
    """Forbidden responses from SendGrid surface meaningful details and are permanent."""

    class FakeForbiddenError(Exception):
        status_code = 403
        body = json.dumps(
            {"errors": [{"message": "The provided authorization grant is invalid."}]}
        ).encode()

    class FailingClient(RecordingClient):
        def send(self, message):
            raise FakeForbiddenError()

    monkeypatch.setattr(email_module, "get_settings", lambda: DummySettings())
    monkeypatch.setattr(email_module, "SendGridAPIClient", FailingClient)

    with caplog.at_level("ERROR"):
        with pytest.raises(email_module.EmailDeliveryError) as excinfo:
            email_module.send_email("Subject", "<p>Body</p>", "user@example.com")

    assert excinfo.value.status_code == 403
    assert excinfo.value.transient is False
    assert "status 403" in caplog.text
    assert "authorization grant is invalid" in caplog.text


@pytest.mark.parametrize(("status_code", "transient"), [(None, True), (429, True), (502, True), (400, False)])
def test_delivery_error_transience(status_code, transient):
    assert email_module.EmailDeliveryError("x", status_code=status_code).transient is transient


def test_alert_email_escapes_message():
    subject, html_content = email_module.build_alert_email(
        "Cutie", "<script>alert(1)</script>", critical=True
    )
    assert subject == "URGENT: Cutie needs help"
    assert "<script>" not in html_content


def test_channel_sends_to_every_contact(configured, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(channels_module, "email_configured", lambda: True)
    recipient = Recipient(user_id=1, display_name="Cutie", contacts=("a@example.com", "b@example.com"))

    EmailNotificationChannel().send(recipient, "hello", critical=False)

    assert len(RecordingClient.sent) == 2


def test_channel_without_contacts_is_permanent_failure(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(channels_module, "email_configured", lambda: True)
    recipient = Recipient(user_id=1, display_name="Cutie", contacts=())

    with pytest.raises(ChannelError) as excinfo:
        EmailNotificationChannel().send(recipient, "hello")
    assert excinfo.value.transient is False


def test_channel_reports_transient_failures(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(channels_module, "email_configured", lambda: True)

    def failing_send(subject, html_content, recipient):
        raise email_module.EmailDeliveryError("unavailable", status_code=503)

    monkeypatch.setattr(channels_module, "send_email", failing_send)
    recipient = Recipient(user_id=1, display_name="Cutie", contacts=("a@example.com",))

    with pytest.raises(ChannelError) as excinfo:
        EmailNotificationChannel().send(recipient, "hello", critical=True)
    assert excinfo.value.transient is True
