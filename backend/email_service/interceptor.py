"""
Outbound Mail Interceptor

Entry point for the mail-send hook. For each outgoing message it:
- looks up the recipient's encryption policy,
- verifies the license for the sending domain,
- encrypts the body with the recipient's certificate or public key,
- replaces subject, body and headers with the MIME envelope.

Any failure leaves the message untouched (fail-open) unless fail_open is
disabled, in which case EncryptionRequiredError is raised to the sender.

A process-wide guard stops the hook from re-entering itself when the
rewritten message travels back through the same send pathway.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from crypto_engine import (
    EncryptionEngine,
    EncryptionError,
    InvalidCertificateError,
    InvalidPublicKeyError,
)
from license_client import LicenseInvalidError, LicenseUnreachableError, LicenseVerifier
from mail_policy import ConfigStore, EncryptionConfig
from .exceptions import EncryptionRequiredError, EnvelopeError
from .mime_builder import MimeEnvelopeBuilder, prepend_subject
from .models import (
    FailureReason,
    InterceptResult,
    MimeEnvelope,
    OutboundMessage,
    Outcome,
)

logger = logging.getLogger(__name__)


class ProcessingGuard:
    """
    Mutex-protected "currently processing" flag.

    The thread holding the guard sees re-entry as a skip; other threads
    wait until the current send has finished.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._owner: Optional[int] = None

    @property
    def held(self) -> bool:
        return self._owner is not None

    @contextmanager
    def enter(self) -> Iterator[bool]:
        """Yield True when the guard was acquired, False on re-entry."""
        me = threading.get_ident()
        if self._owner == me:
            yield False
            return

        with self._lock:
            self._owner = me
            try:
                yield True
            finally:
                self._owner = None


_guard = ProcessingGuard()


def apply_envelope(message: OutboundMessage, envelope: MimeEnvelope) -> OutboundMessage:
    """
    Build the rewritten message from an envelope.

    Envelope headers replace existing headers of the same name
    (case-insensitive). A Content-Type header also sets content_type
    to the media type before the first ';'.
    """
    headers = dict(message.headers)
    content_type = message.content_type

    for raw_name, raw_value in envelope.headers.items():
        name, value = raw_name.strip(), raw_value.strip()
        for existing in [k for k in headers if k.lower() == name.lower()]:
            del headers[existing]
        headers[name] = value

        if name.lower() == "content-type":
            content_type = value.split(";", 1)[0].strip()

    return OutboundMessage(
        to=message.to,
        subject=envelope.subject,
        body=envelope.body,
        headers=headers,
        content_type=content_type,
    )


class MailInterceptor:
    """
    Selective outbound encryption for the mail-send hook.

    Args:
        config_source: Returns the current settings snapshot, called once per send
        verifier: License verification client
        engine: Encryption engine built at startup
        domain: Sending domain passed to the license endpoint
        builder: MIME envelope builder
        fail_open: Send the original message when encryption is not possible
        guard: Re-entrancy guard, process-wide by default
    """

    def __init__(
        self,
        config_source: Callable[[], ConfigStore],
        verifier: LicenseVerifier,
        engine: EncryptionEngine,
        domain: str,
        builder: Optional[MimeEnvelopeBuilder] = None,
        fail_open: bool = True,
        guard: Optional[ProcessingGuard] = None,
    ):
        self._config_source = config_source
        self._verifier = verifier
        self._engine = engine
        self._domain = domain
        self._builder = builder or MimeEnvelopeBuilder()
        self._fail_open = fail_open
        self._guard = guard or _guard

    def process(self, message: OutboundMessage) -> OutboundMessage:
        """Return the message to send: the rewritten one, or the input unchanged."""
        return self.handle(message).message

    __call__ = process

    def handle(self, message: OutboundMessage) -> InterceptResult:
        """
        Run the pipeline for one message.

        Returns:
            InterceptResult with the outcome and the message to send

        Raises:
            EncryptionRequiredError: Only when fail_open is disabled
        """
        with self._guard.enter() as acquired:
            if not acquired:
                logger.debug("Mail hook re-entered for %s, skipping", message.to)
                return InterceptResult(Outcome.SKIPPED, message, FailureReason.REENTRANT)
            return self._run(message)

    def _run(self, message: OutboundMessage) -> InterceptResult:
        if not message.to:
            return InterceptResult(Outcome.SKIPPED, message, FailureReason.NO_RECIPIENT)

        try:
            store = self._config_source()
        except (OSError, ValueError) as e:
            return self._reject(message, None, Outcome.FAILED, FailureReason.CONFIG_UNAVAILABLE, str(e))

        config = store.find_config(message.to)
        if config is None:
            return InterceptResult(Outcome.SKIPPED, message, FailureReason.CONFIG_MISMATCH)

        if not store.api_key:
            return self._reject(message, config, Outcome.SKIPPED, FailureReason.NO_LICENSE_KEY, "No API key configured")

        try:
            self._verifier.verify(store.api_key, self._domain).raise_for_status()
        except LicenseInvalidError as e:
            return self._reject(message, config, Outcome.SKIPPED, FailureReason.LICENSE_INVALID, str(e))
        except LicenseUnreachableError as e:
            return self._reject(message, config, Outcome.SKIPPED, FailureReason.LICENSE_UNREACHABLE, str(e))

        plaintext = message.body
        if config.obscure_subject:
            plaintext = prepend_subject(plaintext, message.subject)

        try:
            ciphertext = self._engine.encrypt(plaintext, config.key_material, config.method)
            envelope = self._builder.build(ciphertext, config.method, config.obscure_subject, message.subject)
        except InvalidCertificateError as e:
            return self._reject(message, config, Outcome.FAILED, FailureReason.INVALID_CERTIFICATE, str(e))
        except InvalidPublicKeyError as e:
            return self._reject(message, config, Outcome.FAILED, FailureReason.INVALID_PUBLIC_KEY, str(e))
        except EncryptionError as e:
            return self._reject(message, config, Outcome.FAILED, FailureReason.ENCRYPTION_FAILURE, str(e))
        except EnvelopeError as e:
            return self._reject(message, config, Outcome.FAILED, FailureReason.ENVELOPE_FAILURE, str(e))
        except Exception as e:
            logger.exception("Unexpected error encrypting mail to %s", message.to)
            return self._reject(message, config, Outcome.FAILED, FailureReason.ENCRYPTION_FAILURE, str(e))

        logger.info(
            "Encrypted mail to %s with %s",
            message.to, config.method.value,
            extra={"recipient": message.to, "method": config.method.value},
        )
        return InterceptResult(Outcome.ENCRYPTED, apply_envelope(message, envelope))

    def _reject(
        self,
        message: OutboundMessage,
        config: Optional[EncryptionConfig],
        outcome: Outcome,
        reason: FailureReason,
        detail: str,
    ) -> InterceptResult:
        logger.error(
            "Not encrypting mail to %s (%s): %s",
            message.to, reason.value, detail,
            extra={
                "recipient": message.to,
                "method": config.method.value if config else None,
                "reason": reason.value,
            },
        )
        if not self._fail_open:
            raise EncryptionRequiredError(message.to, reason.value, detail)
        return InterceptResult(outcome, message, reason, detail)
