"""
Crypto Engine Exceptions
"""

from typing import Optional


class EncryptionError(Exception):
    """
    Base exception for encryption failures.

    Carries the method that failed and, where available, the
    underlying library error or GnuPG status.
    """

    def __init__(self, method: str, message: str, cause: Optional[str] = None):
        super().__init__(message)
        self.method = method
        self.cause = cause

    def __str__(self) -> str:
        message = super().__str__()
        if self.cause:
            return f"{message}: {self.cause}"
        return message


class InvalidCertificateError(EncryptionError):
    """The S/MIME key material is not a usable X.509 certificate."""
    pass


class InvalidPublicKeyError(EncryptionError):
    """The PGP key material did not yield an importable public key."""
    pass


class PgpUnavailableError(InvalidPublicKeyError):
    """No working GnuPG installation was found at startup."""
    pass


class EncryptionFailureError(EncryptionError):
    """The key was accepted but the encryption step itself failed."""
    pass
