"""
Email Service Data Models
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple


Headers = Dict[str, str]


class Outcome(str, Enum):
    """Terminal state of one interceptor run."""
    SKIPPED = "skipped"
    ENCRYPTED = "encrypted"
    FAILED = "failed"


class FailureReason(str, Enum):
    """Why a message left the pipeline without being encrypted."""
    REENTRANT = "Reentrant"
    NO_RECIPIENT = "NoRecipient"
    CONFIG_MISMATCH = "ConfigMismatch"
    CONFIG_UNAVAILABLE = "ConfigUnavailable"
    NO_LICENSE_KEY = "NoLicenseKey"
    LICENSE_INVALID = "LicenseInvalid"
    LICENSE_UNREACHABLE = "LicenseUnreachable"
    INVALID_CERTIFICATE = "InvalidCertificate"
    INVALID_PUBLIC_KEY = "InvalidPublicKey"
    ENCRYPTION_FAILURE = "EncryptionFailure"
    ENVELOPE_FAILURE = "EnvelopeFailure"


@dataclass
class OutboundMessage:
    """The message descriptor exchanged with the mail-send hook."""
    to: str
    subject: str
    body: bytes
    headers: Headers = field(default_factory=dict)
    content_type: str = "text/plain"


@dataclass(frozen=True)
class MimeEnvelope:
    """Subject, body and headers that replace the original message content."""
    subject: str
    body: bytes
    headers: Headers


@dataclass(frozen=True)
class InterceptResult:
    outcome: Outcome
    message: OutboundMessage
    reason: Optional[FailureReason] = None
    detail: Optional[str] = None


def split_header_line(line: str) -> Optional[Tuple[str, str]]:
    """
    Split a raw "Name: value" header line.

    Returns:
        (name, value) trimmed, or None if the line has no ':' or no name
    """
    if ":" not in line:
        return None
    name, value = line.split(":", 1)
    name = name.strip()
    if not name:
        return None
    return name, value.strip()


def parse_header_lines(lines: Iterable[str]) -> Headers:
    """Parse raw header lines into an ordered mapping; later lines win."""
    headers: Headers = {}
    for line in lines:
        parsed = split_header_line(line)
        if parsed is None:
            continue
        name, value = parsed
        for existing in [k for k in headers if k.lower() == name.lower()]:
            del headers[existing]
        headers[name] = value
    return headers
