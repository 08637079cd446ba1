import asyncio
import logging
from email.message import EmailMessage

import aiosmtplib

from ..core.config import settings

logger = logging.getLogger(__name__)


async def _deliver(msg: EmailMessage) -> None:
    await aiosmtplib.send(
        msg,
        hostname=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        username=settings.SMTP_USERNAME or None,
        password=settings.SMTP_PASSWORD or None,
        start_tls=bool(settings.SMTP_USERNAME),
    )


def build_message(recipient: str, subject: str, body: str) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = settings.SMTP_FROM
    msg["To"] = recipient
    msg["Subject"] = subject
    msg.set_content(body)
    return msg


def send_email(recipient: str, subject: str, body: str) -> None:
    """Deliver one plain-text email over SMTP.

    Raises on delivery failure so the background worker can retry.
    """
    asyncio.run(_deliver(build_message(recipient, subject, body)))
    logger.info("Sent email to %s: %s", recipient, subject)
