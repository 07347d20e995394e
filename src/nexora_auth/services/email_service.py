"""Email service — delivers OTP codes via async SMTP."""

from __future__ import annotations

import logging
from email.message import EmailMessage

import aiosmtplib

from nexora_auth.config import Settings, settings as default_settings
from nexora_auth.errors import OTPDeliveryError

logger = logging.getLogger(__name__)


class EmailService:
    """Sends transactional emails using the configured SMTP server."""

    def __init__(self, app_settings: Settings | None = None) -> None:
        self._settings = app_settings or default_settings

    def build_otp_message(self, to_email: str, code: str) -> EmailMessage:
        """Compose the verification-code email for *to_email*."""
        minutes = max(1, self._settings.otp_ttl_seconds // 60)
        body = (
            "Security Verification\n\n"
            "Your verification code for Nexora Banking is:\n\n"
            f"    {code}\n\n"
            f"This code expires in {minutes} minutes.\n\n"
            "For your security, never share this code with anyone. Nexora Banking "
            "will never ask for this code via phone or email.\n\n"
            "If you didn't request this code, please ignore this email or contact "
            "our support team."
        )

        msg = EmailMessage()
        msg["Subject"] = "Your Nexora Banking Security Code"
        msg["From"] = self._settings.email_from
        msg["To"] = to_email
        msg.set_content(body)
        return msg

    async def send_otp(self, to_email: str, code: str) -> None:
        """Send *code* to *to_email*.

        Raises
        ------
        OTPDeliveryError
            If the SMTP transport fails for any reason.
        """
        msg = self.build_otp_message(to_email, code)
        logger.info("Sending OTP email to %s", to_email)

        try:
            await aiosmtplib.send(
                msg,
                hostname=self._settings.smtp_host,
                port=self._settings.smtp_port,
                username=self._settings.smtp_username or None,
                password=self._settings.smtp_password or None,
                start_tls=True,
            )
        except (aiosmtplib.SMTPException, OSError) as exc:
            raise OTPDeliveryError(f"Failed to send OTP email to {to_email}") from exc

        logger.info("OTP email sent to %s", to_email)
