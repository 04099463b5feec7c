"""Notification service — verification codes and status-change notices by email.

Both sends report delivery as a bool instead of raising: the auth flow turns a
failed code delivery into a DeliveryException, while a failed status notice is
only logged.
"""

import logging
import smtplib
from email.message import EmailMessage
from typing import Protocol

from app.config import Settings, get_settings

logger = logging.getLogger(__name__)

STATUS_LABELS = {
    "draft": "Draft",
    "under-investigation": "Under investigation",
    "rejected": "Rejected",
    "resolved": "Resolved",
}


class Notifier(Protocol):
    def send_code(self, email: str, code: str, display_name: str) -> bool:
        ...

    def send_status_change(
        self,
        email: str,
        display_name: str,
        report_title: str,
        old_status: str,
        new_status: str,
    ) -> bool:
        ...


def format_code_message(code: str, display_name: str, ttl_minutes: int) -> tuple[str, str]:
    subject = "Your iReporter verification code"
    body = "\n".join([
        f"Hello {display_name},",
        "",
        "Thank you for signing up to iReporter. Use the code below to verify your email address:",
        "",
        f"    {code}",
        "",
        f"This code expires in {ttl_minutes} minutes.",
        "If you did not request this, you can ignore this email.",
    ])
    return subject, body


def format_status_message(display_name: str, report_title: str, old_status: str, new_status: str) -> tuple[str, str]:
    old_label = STATUS_LABELS.get(old_status, old_status)
    new_label = STATUS_LABELS.get(new_status, new_status)
    subject = f"Your report is now {new_label.lower()}"
    body = "\n".join([
        f"Hello {display_name},",
        "",
        f'The status of your report "{report_title}" changed from {old_label} to {new_label}.',
        "",
        "Sign in to iReporter to see the details.",
    ])
    return subject, body


class EmailNotifier:
    """Sends plain text mail over SMTP (STARTTLS)."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    @property
    def configured(self) -> bool:
        return bool(self.settings.SMTP_HOST)

    def _send(self, to: str, subject: str, body: str) -> bool:
        if not self.configured:
            logger.warning("SMTP is not configured; email to %s not sent", to)
            return False

        message = EmailMessage()
        message["From"] = self.settings.SMTP_FROM
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)

        try:
            with smtplib.SMTP(self.settings.SMTP_HOST, self.settings.SMTP_PORT, timeout=10) as server:
                if self.settings.SMTP_USE_TLS:
                    server.starttls()
                if self.settings.SMTP_USER:
                    server.login(self.settings.SMTP_USER, self.settings.SMTP_PASSWORD)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email to %s: %s", to, e)
            return False

        logger.info("Email sent to %s (%s)", to, subject)
        return True

    def send_code(self, email: str, code: str, display_name: str) -> bool:
        subject, body = format_code_message(code, display_name, self.settings.OTP_TTL_MINUTES)
        return self._send(email, subject, body)

    def send_status_change(
        self,
        email: str,
        display_name: str,
        report_title: str,
        old_status: str,
        new_status: str,
    ) -> bool:
        subject, body = format_status_message(display_name, report_title, old_status, new_status)
        return self._send(email, subject, body)


class ConsoleNotifier:
    """Development stand-in: writes the messages to the log instead of sending them."""

    def send_code(self, email: str, code: str, display_name: str) -> bool:
        logger.warning("[dev] verification code for %s (%s): %s", email, display_name, code)
        return True

    def send_status_change(
        self,
        email: str,
        display_name: str,
        report_title: str,
        old_status: str,
        new_status: str,
    ) -> bool:
        logger.info("[dev] status of %r for %s: %s -> %s", report_title, email, old_status, new_status)
        return True


def build_notifier(settings: Settings | None = None) -> Notifier:
    """SMTP when configured; the console notifier only outside production."""
    settings = settings or get_settings()
    if settings.SMTP_HOST or settings.is_production:
        return EmailNotifier(settings)
    return ConsoleNotifier()
