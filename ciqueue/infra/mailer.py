"""
Completion email delivery over SMTP.
"""

import logging
import smtplib
from email.message import EmailMessage

from ciqueue.coordinator.errors import NotificationError

logger = logging.getLogger(__name__)

SMTP_TIMEOUT_SECONDS = 30


class Mailer:
    """Sends plain-text notification email to a fixed recipient list."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 25,
        sender: str = "ciqueue@localhost",
        recipients: str = "",
    ):
        self.host = host
        self.port = port
        self.sender = sender
        self.recipients = [r.strip() for r in recipients.split(",") if r.strip()]

    def build_message(self, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.sender
        message["To"] = ", ".join(self.recipients)
        message.set_content(body)
        return message

    def send(self, subject: str, body: str) -> None:
        """
        Send one message.

        Does nothing when no recipients are configured.

        Raises:
            NotificationError: On SMTP or connection failure
        """
        if not self.recipients:
            logger.info(f"No mail recipients configured; skipped: {subject}")
            return

        message = self.build_message(subject, body)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=SMTP_TIMEOUT_SECONDS) as smtp:
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"Email to {message['To']} failed: {e}") from e

        logger.info(f"Email sent to {message['To']}: {subject}")
