import logging
from typing import Dict, Mapping, Optional

from mail_policy import EncryptionMethod
from .base import Encryptor
from .exceptions import (
    EncryptionError,
    EncryptionFailureError,
    InvalidCertificateError,
    InvalidPublicKeyError,
    PgpUnavailableError,
)
from .pgp import PgpEncryptor, PgpUnavailableEncryptor, probe_gpg
from .smime import SmimeEncryptor

logger = logging.getLogger(__name__)


class EncryptionEngine:
    """
    Dispatches encryption to the encryptor registered for each method.

    The set of encryptors is fixed when the engine is built.
    """

    def __init__(self, encryptors: Mapping[EncryptionMethod, Encryptor]):
        missing = set(EncryptionMethod) - set(encryptors)
        if missing:
            raise ValueError(f"No encryptor for: {', '.join(sorted(m.value for m in missing))}")
        self._encryptors: Dict[EncryptionMethod, Encryptor] = dict(encryptors)

    def encryptor_for(self, method: EncryptionMethod) -> Encryptor:
        return self._encryptors[EncryptionMethod(method)]

    def supports(self, method: EncryptionMethod) -> bool:
        return self.encryptor_for(method).available

    def encrypt(self, plaintext: bytes, key_material: str, method: EncryptionMethod) -> bytes:
        """
        Encrypt plaintext for one recipient.

        Args:
            plaintext: Message bytes
            key_material: PEM certificate (S/MIME) or armored public key (PGP)
            method: Encryption method of the recipient's policy

        Returns:
            Raw ciphertext: DER for S/MIME, ASCII armor for PGP

        Raises:
            EncryptionError: Key validation or encryption failed
        """
        return self.encryptor_for(method).encrypt(plaintext, key_material)


def create_engine(gpg_binary: Optional[str] = "gpg") -> EncryptionEngine:
    """
    Build the engine once at startup.

    PGP support depends on a working GnuPG binary; when none is found
    every PGP send fails with PgpUnavailableError.
    """
    pgp: Encryptor
    reason = probe_gpg(gpg_binary) if gpg_binary else "no gpg binary configured"
    if reason is None:
        pgp = PgpEncryptor(gpg_binary)
    else:
        logger.warning("PGP encryption disabled: %s", reason)
        pgp = PgpUnavailableEncryptor(reason)

    return EncryptionEngine({
        EncryptionMethod.SMIME: SmimeEncryptor(),
        EncryptionMethod.PGP: pgp,
    })


__all__ = [
    "EncryptionEngine",
    "create_engine",
    "Encryptor",
    "SmimeEncryptor",
    "PgpEncryptor",
    "PgpUnavailableEncryptor",
    "EncryptionError",
    "EncryptionFailureError",
    "InvalidCertificateError",
    "InvalidPublicKeyError",
    "PgpUnavailableError",
]
