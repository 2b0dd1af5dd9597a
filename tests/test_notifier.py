"""Envío del correo de reseteo."""
import smtplib
from unittest.mock import MagicMock, patch

import pytest
from conftest import API, get_csrf

from saas_auth.core.config import settings
from saas_auth.infrastructure.email import notifier
from saas_auth.services.auth_service import RESET_REQUEST_MESSAGE


@pytest.fixture
def smtp_settings(monkeypatch):
    monkeypatch.setattr(settings, "smtp_host", "smtp.example.com")
    monkeypatch.setattr(settings, "smtp_user", "mailer@example.com")
    monkeypatch.setattr(settings, "smtp_pass", "pw")


def test_without_smtp_only_logs(caplog):
    with patch.object(smtplib, "SMTP") as smtp:
        with caplog.at_level("INFO", logger="saas_auth.notifier"):
            notifier.send_password_reset("ana@example.com", "http://x/reset-password?token=secret", 5)
    smtp.assert_not_called()
    assert "secret" not in caplog.text


def test_with_smtp_sends_message(smtp_settings):
    server = MagicMock()
    with patch.object(smtplib, "SMTP") as smtp:
        smtp.return_value.__enter__.return_value = server
        notifier.send_password_reset("ana@example.com", "http://x/reset-password?token=t", 5)

    smtp.assert_called_once_with("smtp.example.com", 587)
    server.starttls.assert_called_once()
    server.login.assert_called_once_with("mailer@example.com", "pw")
    msg = server.send_message.call_args[0][0]
    assert msg["To"] == "ana@example.com"


def test_smtp_failure_keeps_generic_response(client, seed_user, smtp_settings):
    user = seed_user()
    with patch.object(smtplib, "SMTP", side_effect=smtplib.SMTPConnectError(421, "down")):
        r = client.post(
            f"{API}/auth/reset-password/request", json={"email": user["email"]}, headers=get_csrf(client)
        )
    assert r.status_code == 200
    assert r.json()["message"] == RESET_REQUEST_MESSAGE
