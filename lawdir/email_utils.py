"""
Outgoing mail for notification mirrors.

When SMTP is not configured the message is only logged, so development
and test runs never need a mail server.
"""

import logging
import smtplib
from email.message import EmailMessage
from html import escape
from typing import Optional

from .config import Settings, get_settings

logger = logging.getLogger(__name__)


def _build_message(settings: Settings, recipient: str, subject: str, text: str, html: str) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = settings.smtp_from
    msg["To"] = recipient
    msg.set_content(text)
    msg.add_alternative(html, subtype="html")
    return msg


def deliver(recipient: str, subject: str, text: str, html: Optional[str] = None) -> bool:
    """
    Send one message. Returns False when the SMTP exchange fails.
    """
    settings = get_settings()
    if not settings.smtp_ready():
        logger.info(f"SMTP not configured; would mail {recipient}: {subject}")
        logger.debug(f"Mail body for {recipient}: {text[:200]}")
        return True

    msg = _build_message(settings, recipient, subject, text, html or f"<p>{escape(text)}</p>")
    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port) as smtp:
            if settings.smtp_use_tls:
                smtp.starttls()
            smtp.login(settings.smtp_user, settings.smtp_password)
            smtp.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Mail to {recipient} failed: {e}")
        return False

    logger.info(f"Mailed {recipient}: {subject}")
    return True


def send_notification_email(to_email: str, title: str, message: str, link: Optional[str] = None) -> bool:
    """Mirror an in-app notification; `link` is an app path made absolute with APP_URL"""
    text = message
    html = f"<p>{escape(message)}</p>"
    if link:
        url = get_settings().app_url.rstrip("/") + link
        text = f"{message}\n\n{url}"
        html += f'<p><a href="{escape(url)}">View in the directory</a></p>'
    return deliver(to_email, title, text, html)
