"""SMTP notifications for job recipients."""

from __future__ import annotations

import logging
import smtplib
from collections.abc import Sequence
from email.message import EmailMessage

from transcribe4all.config import EmailSettings

logger = logging.getLogger(__name__)


def build_message(
    sender: str,
    recipients: Sequence[str],
    subject: str,
    body: str,
) -> EmailMessage:
    """Plain-text message; header values containing CR or LF raise ``ValueError``."""

    message = EmailMessage()
    message["From"] = sender
    message["To"] = ", ".join(recipients)
    message["Subject"] = subject
    message.set_content(body)
    return message


def send_email(
    settings: EmailSettings,
    recipients: Sequence[str],
    subject: str,
    body: str,
) -> None:
    """Send ``body`` to ``recipients`` through the configured SMTP server."""

    if not recipients:
        raise ValueError("At least one recipient is required.")

    sender = settings.from_address
    message = build_message(sender, recipients, subject, body)
    with smtplib.SMTP(settings.host, settings.port) as smtp:
        if settings.use_tls:
            smtp.starttls()
        if settings.password:
            smtp.login(settings.username, settings.password)
        smtp.send_message(message, from_addr=sender, to_addrs=list(recipients))
    logger.info("Sent %r to %d recipient(s)", subject, len(recipients))
