"""Unit tests for the logging OTP sender."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from authcore.infra.mail.logging_otp_sender import LoggingOTPSender, redact_email

EXPIRES = datetime(2026, 1, 1, tzinfo=UTC)


def test_redact_email():
    assert redact_email("alice@example.com") == "al***@example.com"
    assert redact_email("garbage") == "redacted"


def test_plaintext_is_not_logged_by_default(caplog):
    sender = LoggingOTPSender()
    with caplog.at_level(logging.INFO):
        sender.send(user_id=1, email="alice@example.com", otp_type="EMAIL", otp="918273", expires_at=EXPIRES)

    assert sender.sent == 1
    assert "918273" not in caplog.text
    assert "alice@example.com" not in caplog.text
    assert "otp.dispatched" in caplog.text


def test_echo_writes_plaintext(caplog):
    sender = LoggingOTPSender(echo=True)
    with caplog.at_level(logging.INFO):
        sender.send(user_id=1, email="alice@example.com", otp_type="EMAIL", otp="918273", expires_at=EXPIRES)
    assert "918273" in caplog.text
