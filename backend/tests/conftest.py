import os
import shutil
import subprocess
import sys
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

backend_path = Path(__file__).parent.parent
sys.path.insert(0, str(backend_path))

os.environ.setdefault("SITE_URL", "https://shop.example.org")

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.x509.oid import NameOID

GPG_BINARY = shutil.which("gpg")

requires_gpg = pytest.mark.skipif(GPG_BINARY is None, reason="gpg binary not installed")


def _self_signed(key, common_name: str) -> x509.Certificate:
    subject = issuer = x509.Name([
        x509.NameAttribute(NameOID.COMMON_NAME, common_name),
        x509.NameAttribute(NameOID.EMAIL_ADDRESS, common_name),
    ])
    return x509.CertificateBuilder().subject_name(
        subject
    ).issuer_name(
        issuer
    ).public_key(
        key.public_key()
    ).serial_number(
        x509.random_serial_number()
    ).not_valid_before(
        datetime.now(timezone.utc)
    ).not_valid_after(
        datetime.now(timezone.utc) + timedelta(days=30)
    ).sign(key, hashes.SHA256())


@pytest.fixture(scope="session")
def smime_keypair():
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    cert = _self_signed(key, "a@example.com")
    return key, cert


@pytest.fixture(scope="session")
def smime_cert_pem(smime_keypair):
    _, cert = smime_keypair
    return cert.public_bytes(serialization.Encoding.PEM).decode("ascii")


@pytest.fixture(scope="session")
def ec_cert_pem():
    key = ec.generate_private_key(ec.SECP256R1())
    cert = _self_signed(key, "ec@example.com")
    return cert.public_bytes(serialization.Encoding.PEM).decode("ascii")


@pytest.fixture(scope="session")
def pgp_home():
    """Keyring holding the recipient's secret key, used to decrypt in tests."""
    if GPG_BINARY is None:
        pytest.skip("gpg binary not installed")
    home = tempfile.mkdtemp(prefix="gpg-test-")
    yield home
    if shutil.which("gpgconf"):
        subprocess.run(["gpgconf", "--homedir", home, "--kill", "all"], capture_output=True)
    shutil.rmtree(home, ignore_errors=True)


@pytest.fixture(scope="session")
def pgp_gpg(pgp_home):
    import gnupg
    return gnupg.GPG(gpgbinary=GPG_BINARY, gnupghome=pgp_home)


@pytest.fixture(scope="session")
def pgp_public_key(pgp_gpg):
    key_input = pgp_gpg.gen_key_input(
        key_type="RSA",
        key_length=2048,
        name_real="Test Recipient",
        name_email="b@example.com",
        no_protection=True,
    )
    key = pgp_gpg.gen_key(key_input)
    assert key.fingerprint, key.stderr
    return pgp_gpg.export_keys(key.fingerprint)


@pytest.fixture
def sample_plaintext():
    return b"Hello, this is a confidential message.\r\nSecond line.\r\n"


@pytest.fixture
def settings_snapshot(smime_cert_pem):
    return {
        "api_key": "  test-api-key  ",
        "configs": [
            {"email": "a@example.com", "type": "smime", "key": smime_cert_pem, "obscure_subject": False},
            {"email": "b@example.com", "type": "pgp", "key": "-----BEGIN PGP PUBLIC KEY BLOCK-----", "obscure_subject": "on"},
        ],
    }
