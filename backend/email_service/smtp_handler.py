import asyncio
import logging
from email.message import Message
from email.utils import make_msgid
from typing import Optional

import aiosmtplib

from config import settings
from .interceptor import MailInterceptor
from .models import OutboundMessage

logger = logging.getLogger(__name__)

_MANAGED_HEADERS = {"to", "subject"}

# Transfer encodings of the envelopes built by MimeEnvelopeBuilder
_PASSTHROUGH_ENCODINGS = {"base64", "7bit"}


def to_mime_message(message: OutboundMessage, from_addr: Optional[str] = None) -> Message:
    """
    Convert an outbound descriptor into a message the transport can send.

    ASCII bodies declared as base64 or 7bit (the encrypted envelopes) are
    passed through verbatim; any other body is treated as UTF-8 text.
    """
    mime = Message()
    header_names = {name.lower(): name for name in message.headers}

    if from_addr and "from" not in header_names:
        mime["From"] = from_addr
    mime["To"] = message.to
    mime["Subject"] = message.subject

    for name, value in message.headers.items():
        if name.lower() in _MANAGED_HEADERS:
            continue
        mime[name] = value

    if "content-type" not in header_names:
        mime["Content-Type"] = message.content_type

    encoding = message.headers.get(header_names.get("content-transfer-encoding", ""), "").strip().lower()
    if encoding in _PASSTHROUGH_ENCODINGS and message.body.isascii():
        mime.set_payload(message.body.decode("ascii"))
    else:
        if encoding in _PASSTHROUGH_ENCODINGS:
            del mime["Content-Transfer-Encoding"]
        mime.set_payload(message.body.decode("utf-8"), "utf-8")

    return mime


async def send_email(
    message: OutboundMessage,
    interceptor: Optional[MailInterceptor] = None,
) -> str:
    """
    Send a message, encrypting it first when the recipient has a policy.

    Returns:
        The Message-ID of the sent message
    """
    if interceptor is not None:
        message = await asyncio.to_thread(interceptor.process, message)

    mime = to_mime_message(message, settings.mail_from)
    message_id = make_msgid(domain=settings.site_domain)
    mime["Message-ID"] = message_id

    try:
        await aiosmtplib.send(
            mime,
            hostname=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            start_tls=settings.smtp_start_tls,
        )
    except aiosmtplib.SMTPAuthenticationError as e:
        logger.error("SMTP authentication failed: %s", e)
        raise ValueError("Email authentication failed. Check the SMTP credentials.")
    except aiosmtplib.SMTPException as e:
        logger.exception("Failed to send email to %s: %s", message.to, e)
        raise

    logger.info("Email sent: %s, to=%s, content_type=%s", message_id, message.to, message.content_type)
    return message_id
