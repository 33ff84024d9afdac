"""
S/MIME Enveloped-Data Encryption

Wraps plaintext in a PKCS#7 enveloped-data structure for one recipient
certificate. The content is encrypted with AES-256-CBC and the content
key is wrapped with the certificate's RSA public key.

Binary mode is used: the plaintext is not converted to canonical MIME
line endings, so decrypting yields exactly the bytes that went in.
"""

import logging

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.ciphers import algorithms
from cryptography.hazmat.primitives.serialization import pkcs7

from mail_policy import EncryptionMethod
from .base import Encryptor
from .exceptions import EncryptionFailureError, InvalidCertificateError

logger = logging.getLogger(__name__)

CONTENT_ENCRYPTION_ALGORITHM = algorithms.AES256


def load_certificate(key_material: str) -> x509.Certificate:
    """
    Parse a PEM encoded X.509 certificate.

    Raises:
        InvalidCertificateError: If the text is not a PEM certificate
    """
    try:
        return x509.load_pem_x509_certificate(key_material.strip().encode("ascii"))
    except (ValueError, UnicodeEncodeError) as e:
        raise InvalidCertificateError("smime", "Invalid certificate", str(e)) from e


class SmimeEncryptor(Encryptor):
    """PKCS#7 enveloped-data encryptor."""

    method = EncryptionMethod.SMIME

    def encrypt(self, plaintext: bytes, key_material: str) -> bytes:
        certificate = load_certificate(key_material)

        try:
            builder = (
                pkcs7.PKCS7EnvelopeBuilder()
                .set_data(plaintext)
                .set_content_encryption_algorithm(CONTENT_ENCRYPTION_ALGORITHM)
                .add_recipient(certificate)
            )
        except TypeError as e:
            # only RSA recipient keys are supported for key transport
            raise InvalidCertificateError("smime", "Certificate cannot be used for encryption", str(e)) from e

        try:
            ciphertext = builder.encrypt(serialization.Encoding.DER, [pkcs7.PKCS7Options.Binary])
        except (ValueError, TypeError) as e:
            raise EncryptionFailureError("smime", "S/MIME encryption failed", str(e)) from e

        logger.debug(
            "S/MIME encrypted %d bytes for certificate serial %x",
            len(plaintext), certificate.serial_number,
        )
        return ciphertext
