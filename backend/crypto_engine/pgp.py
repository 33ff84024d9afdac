"""
PGP Public-Key Encryption

Drives GnuPG through python-gnupg. Each call imports the recipient key
into a throwaway keyring that is deleted afterwards, so repeated sends
never accumulate keyring state.

Whether GnuPG is usable at all is decided once at startup
(see probe_gpg); without it PgpUnavailableEncryptor is installed.
"""

import logging
import os
import tempfile
from typing import Optional

import gnupg

from mail_policy import EncryptionMethod
from .base import Encryptor
from .exceptions import EncryptionFailureError, InvalidPublicKeyError, PgpUnavailableError

logger = logging.getLogger(__name__)

SAFE_LOCALE = "C"


def _gpg_env() -> dict:
    return dict(os.environ, LC_ALL=SAFE_LOCALE)


def probe_gpg(gpg_binary: str) -> Optional[str]:
    """
    Check that a GnuPG binary can be run.

    Returns:
        None if GnuPG works, otherwise the reason it does not
    """
    with tempfile.TemporaryDirectory(prefix="gpg-probe-") as home:
        try:
            gpg = gnupg.GPG(gpgbinary=gpg_binary, gnupghome=home, env=_gpg_env())
        except (OSError, ValueError, RuntimeError) as e:
            return str(e)

    logger.info("Using GnuPG %s (%s)", ".".join(str(p) for p in gpg.version or ()), gpg_binary)
    return None


class PgpEncryptor(Encryptor):
    """OpenPGP encryptor for a single recipient key, without signing."""

    method = EncryptionMethod.PGP

    def __init__(self, gpg_binary: str = "gpg"):
        self._gpg_binary = gpg_binary

    def encrypt(self, plaintext: bytes, key_material: str) -> bytes:
        with tempfile.TemporaryDirectory(prefix="gpg-recipient-", ignore_cleanup_errors=True) as home:
            gpg = gnupg.GPG(gpgbinary=self._gpg_binary, gnupghome=home, env=_gpg_env())

            imported = gpg.import_keys(key_material)
            fingerprints = [fp for fp in imported.fingerprints if fp]
            if not fingerprints:
                raise InvalidPublicKeyError(
                    "pgp",
                    "Failed to import PGP public key",
                    imported.stderr.strip().splitlines()[-1] if imported.stderr.strip() else None,
                )
            fingerprint = fingerprints[0]

            # the key is only known to this keyring, trust it for this one call
            status = gpg.encrypt(plaintext, [fingerprint], always_trust=True, armor=True)
            if not status.ok:
                raise EncryptionFailureError("pgp", "PGP encryption failed", status.status or None)

            logger.debug("PGP encrypted %d bytes for key %s", len(plaintext), fingerprint)
            return status.data


class PgpUnavailableEncryptor(Encryptor):
    """Stand-in used when GnuPG could not be found at startup."""

    method = EncryptionMethod.PGP

    def __init__(self, reason: str):
        self._reason = reason

    @property
    def available(self) -> bool:
        return False

    def encrypt(self, plaintext: bytes, key_material: str) -> bytes:
        raise PgpUnavailableError("pgp", "GnuPG is not available", self._reason)
