"""
Outbound email for password reset and email verification links.

Sends through SMTP when configured; otherwise logs a warning and skips delivery.
Blocking: schedule with BackgroundTasks rather than calling inside a request.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


def _smtp_configured(settings: "Settings") -> bool:
    return bool(settings.SMTP_SERVER and settings.SMTP_USERNAME and settings.SMTP_PASSWORD)


def send_email(settings: "Settings", to_email: str, subject: str, html_body: str) -> bool:
    """Send one HTML email. Returns True if handed to the SMTP server."""
    if not _smtp_configured(settings):
        logger.warning("SMTP not configured; skipping email %r to %s", subject, to_email)
        return False

    msg = MIMEMultipart()
    msg["From"] = settings.SMTP_FROM_EMAIL
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.attach(MIMEText(html_body, "html"))

    try:
        with smtplib.SMTP(
            settings.SMTP_SERVER, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT_SEC
        ) as server:
            server.starttls()
            server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD.get_secret_value())
            server.sendmail(settings.SMTP_FROM_EMAIL, [to_email], msg.as_string())
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Failed to send email %r to %s: %s", subject, to_email, e)
        return False
    logger.info("Email %r sent to %s", subject, to_email)
    return True


def send_password_reset_email(settings: "Settings", to_email: str, token: str) -> bool:
    link = f"{settings.FRONTEND_URL}/reset-password/{token}"
    body = (
        "<p>You requested a password reset for your Airdrop Journal account.</p>"
        f'<p><a href="{link}">Reset your password</a></p>'
        f"<p>This link expires in {settings.PASSWORD_RESET_EXPIRE_MINUTES} minutes. "
        "If you did not request it, you can ignore this email.</p>"
    )
    return send_email(settings, to_email, "Reset your Airdrop Journal password", body)


def send_verification_email(settings: "Settings", to_email: str, token: str) -> bool:
    link = f"{settings.FRONTEND_URL}/verify-email/{token}"
    body = (
        "<p>Welcome to Airdrop Journal! Please confirm your email address.</p>"
        f'<p><a href="{link}">Verify email</a></p>'
        f"<p>This link expires in {settings.EMAIL_VERIFICATION_EXPIRE_HOURS} hours.</p>"
    )
    return send_email(settings, to_email, "Verify your Airdrop Journal email", body)
