"""Development OTP delivery that writes to the application log."""

from __future__ import annotations

import logging
from datetime import datetime

from authcore.services._shared.ports import OTPSender

log = logging.getLogger(__name__)


def redact_email(email: str) -> str:
    """Keep the first two characters of the local part and the domain."""
    if "@" not in email:
        return "redacted"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


class LoggingOTPSender(OTPSender):
    """
    Log that a passcode was dispatched instead of emailing it.

    The plaintext code is only written when ``echo`` is enabled, which the
    factory allows for the development config alone.
    """

    def __init__(self, *, echo: bool = False) -> None:
        self.echo = echo
        self.sent = 0

    def send(
        self,
        *,
        user_id: int,
        email: str,
        otp_type: str,
        otp: str,
        expires_at: datetime,
    ) -> None:
        self.sent += 1
        if self.echo:
            log.warning(
                "otp.dev_echo to=%s type=%s otp=%s expires_at=%s",
                redact_email(email),
                otp_type,
                otp,
                expires_at.isoformat(),
            )
            return
        log.info(
            "otp.dispatched to=%s type=%s expires_at=%s",
            redact_email(email),
            otp_type,
            expires_at.isoformat(),
        )
