from .interceptor import MailInterceptor, ProcessingGuard, apply_envelope
from .mime_builder import MimeEnvelopeBuilder, SUBJECT_PLACEHOLDER, prepend_subject
from .models import (
    FailureReason,
    InterceptResult,
    MimeEnvelope,
    OutboundMessage,
    Outcome,
    parse_header_lines,
)
from .exceptions import EncryptionRequiredError, EnvelopeError
from .smtp_handler import send_email, to_mime_message

__all__ = [
    "MailInterceptor",
    "ProcessingGuard",
    "apply_envelope",
    "MimeEnvelopeBuilder",
    "SUBJECT_PLACEHOLDER",
    "prepend_subject",
    "FailureReason",
    "InterceptResult",
    "MimeEnvelope",
    "OutboundMessage",
    "Outcome",
    "parse_header_lines",
    "EncryptionRequiredError",
    "EnvelopeError",
    "send_email",
    "to_mime_message",
]
