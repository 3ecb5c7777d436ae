"""Email service for sending admin notification emails over SMTP."""

import logging
import smtplib
from email.mime.text import MIMEText
from typing import Optional

from quillboard.config import Settings, settings

logger = logging.getLogger(__name__)


class EmailError(Exception):
    """Base class for email delivery problems."""


class EmailNotConfiguredError(EmailError):
    """SMTP host or credentials are missing."""


class EmailDeliveryError(EmailError):
    """SMTP server refused or failed to accept the message."""


class EmailService:
    """Service for sending plain-text notification emails."""

    def __init__(self, config: Optional[Settings] = None):
        config = config or settings
        self.smtp_host = config.smtp_host
        self.smtp_port = config.smtp_port
        self.smtp_user = config.smtp_user
        self.smtp_password = config.smtp_password
        self.from_email = config.smtp_from_email or config.smtp_user
        self.timeout = config.smtp_timeout_seconds

    def is_configured(self) -> bool:
        """Check if email service is properly configured."""
        return all([self.smtp_host, self.smtp_user, self.smtp_password])

    def _connect(self) -> smtplib.SMTP:
        if self.smtp_port == 465:
            return smtplib.SMTP_SSL(self.smtp_host, self.smtp_port, timeout=self.timeout)
        server = smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout)
        if self.smtp_port == 587:
            try:
                server.starttls()
            except (smtplib.SMTPException, OSError):
                server.close()
                raise
        return server

    def send_email(self, to_addresses: list[str], subject: str, body: str) -> None:
        """
        Send one message addressed to every recipient.

        Args:
            to_addresses: Recipient email addresses
            subject: Email subject
            body: Plain text body

        Raises:
            EmailNotConfiguredError: SMTP settings are incomplete
            EmailDeliveryError: The SMTP exchange failed
        """
        if not self.is_configured():
            logger.warning("Email service not configured. Skipping email send.")
            raise EmailNotConfiguredError(
                "Email not sent: missing SMTP_HOST, SMTP_USER or SMTP_PASSWORD setting."
            )

        msg = MIMEText(body, "plain")
        msg["Subject"] = subject
        msg["From"] = self.from_email
        msg["To"] = ", ".join(to_addresses)

        try:
            server = self._connect()
            try:
                server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.from_email, to_addresses, msg.as_string())
            finally:
                server.quit()
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email to %s: %s", to_addresses, e)
            raise EmailDeliveryError(str(e)) from e

        logger.info("Email sent to %d recipient(s): %s", len(to_addresses), subject)


__all__ = ["EmailService", "EmailError", "EmailNotConfiguredError", "EmailDeliveryError"]
