"""
MIME Envelope Builder

Frames raw ciphertext as a mail body and produces the headers that
tell the receiving client how to decode it.

S/MIME bodies are application/x-pkcs7-mime enveloped-data, base64
encoded and hard-wrapped at 76 characters with CRLF line endings.
PGP bodies are the ASCII-armored message as plain 7bit text.
"""

import base64
from typing import Optional

from mail_policy import EncryptionMethod
from .exceptions import EnvelopeError
from .models import Headers, MimeEnvelope


SUBJECT_PLACEHOLDER = "Encrypted Message"
BASE64_LINE_LENGTH = 76
CRLF = b"\r\n"

SMIME_CONTENT_TYPE = 'application/x-pkcs7-mime; smimetype=enveloped-data; name="smime.p7m"'
SMIME_CONTENT_DISPOSITION = 'attachment; filename="smime.p7m"'
PGP_CONTENT_TYPE = "text/plain; charset=utf-8"

PGP_ARMOR_HEADER = b"-----BEGIN PGP MESSAGE-----"


def prepend_subject(body: bytes, subject: str) -> bytes:
    """
    Move the subject into the body before it is encrypted.

    Used when the subject is obscured, so the original subject only
    travels inside the ciphertext.
    """
    return f"Original Subject: {subject}\r\n\r\n".encode("utf-8") + body


def wrap_base64(data: bytes, line_length: int = BASE64_LINE_LENGTH) -> bytes:
    """Base64 encode and wrap, terminating every line with CRLF."""
    encoded = base64.b64encode(data)
    lines = [encoded[i:i + line_length] for i in range(0, len(encoded), line_length)]
    return b"".join(line + CRLF for line in lines)


class MimeEnvelopeBuilder:
    """
    Builds the outgoing subject, body and headers for encrypted content.

    Args:
        from_address: Optional sender placed first in the header set
    """

    def __init__(self, from_address: Optional[str] = None):
        self._from_address = from_address

    def build(
        self,
        ciphertext: bytes,
        method: EncryptionMethod,
        obscure_subject: bool,
        original_subject: str,
    ) -> MimeEnvelope:
        """
        Frame ciphertext for transport.

        Args:
            ciphertext: Raw output of the encryption engine
            method: Method the ciphertext was produced with
            obscure_subject: Replace the subject with a generic placeholder
            original_subject: Subject of the message being encrypted

        Returns:
            MimeEnvelope with the final subject, body and headers

        Raises:
            EnvelopeError: If the ciphertext cannot be framed for the method
        """
        if not ciphertext:
            raise EnvelopeError("Ciphertext is empty")

        headers: Headers = {}
        if self._from_address:
            headers["From"] = self._from_address
        headers["MIME-Version"] = "1.0"

        if method == EncryptionMethod.SMIME:
            headers["Content-Type"] = SMIME_CONTENT_TYPE
            headers["Content-Disposition"] = SMIME_CONTENT_DISPOSITION
            headers["Content-Transfer-Encoding"] = "base64"
            body = wrap_base64(ciphertext)
        elif method == EncryptionMethod.PGP:
            if not ciphertext.isascii():
                raise EnvelopeError("PGP ciphertext is not ASCII armored")
            if PGP_ARMOR_HEADER not in ciphertext:
                raise EnvelopeError("PGP ciphertext has no armor header")
            headers["Content-Type"] = PGP_CONTENT_TYPE
            headers["Content-Transfer-Encoding"] = "7bit"
            body = ciphertext
        else:
            raise EnvelopeError(f"Unsupported encryption method: {method!r}")

        subject = SUBJECT_PLACEHOLDER if obscure_subject else original_subject

        return MimeEnvelope(subject=subject, body=body, headers=headers)
