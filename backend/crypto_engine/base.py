"""
Encryptor Interface

Every encryption method implements the same narrow contract:
plaintext and recipient key material in, raw ciphertext out.
MIME framing is left to the email service.
"""

from abc import ABC, abstractmethod

from mail_policy import EncryptionMethod


class Encryptor(ABC):
    """Abstract base class for per-method encryptors."""

    method: EncryptionMethod

    @property
    def available(self) -> bool:
        return True

    @abstractmethod
    def encrypt(self, plaintext: bytes, key_material: str) -> bytes:
        """
        Encrypt plaintext for a single recipient.

        Args:
            plaintext: Message bytes to protect
            key_material: Recipient certificate or public key (text form)

        Returns:
            Raw ciphertext bytes

        Raises:
            EncryptionError: On any key or encryption failure
        """
        pass
