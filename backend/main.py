"""
Mail Encryption Gateway - Application Wiring

Assembles the process-wide mail interceptor from settings. The host's
mail-send hook calls `get_interceptor().process(message)` for every
outgoing message.

Running this module performs a startup check: it loads the encryption
settings, reports PGP availability and verifies the license key.
"""

import logging
import sys
from functools import lru_cache
from typing import Optional

from config import Settings, settings
from crypto_engine import EncryptionEngine, create_engine
from email_service import MailInterceptor, MimeEnvelopeBuilder
from license_client import LicenseVerifier
from mail_policy import EncryptionMethod, load_config_store

logger = logging.getLogger(__name__)


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=getattr(logging, level or settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def build_interceptor(
    app_settings: Settings = settings,
    engine: Optional[EncryptionEngine] = None,
) -> MailInterceptor:
    """
    Build a mail interceptor from settings.

    The settings file is re-read on every send, so edits made by the
    settings collaborator apply to the next message.
    """
    settings_file = app_settings.settings_file

    return MailInterceptor(
        config_source=lambda: load_config_store(settings_file),
        verifier=LicenseVerifier(app_settings.license_endpoint, timeout=app_settings.license_timeout),
        engine=engine or create_engine(app_settings.gpg_binary),
        domain=app_settings.site_domain,
        builder=MimeEnvelopeBuilder(from_address=app_settings.mail_from),
        fail_open=app_settings.fail_open,
    )


@lru_cache
def get_interceptor() -> MailInterceptor:
    """Process-wide interceptor, built on first use."""
    return build_interceptor()


def startup_check(app_settings: Settings = settings) -> bool:
    logger.info("Starting %s v%s", app_settings.app_name, app_settings.app_version)

    store = load_config_store(app_settings.settings_file)
    logger.info("Loaded %d encryption config(s) from %s", len(store), app_settings.settings_file)

    engine = create_engine(app_settings.gpg_binary)
    if any(c.method is EncryptionMethod.PGP for c in store.configs) and not engine.supports(EncryptionMethod.PGP):
        logger.warning("PGP recipients are configured but GnuPG is unavailable")

    if not store.api_key:
        logger.warning("No API key configured; mail will be sent unencrypted")
        return False

    state = LicenseVerifier(app_settings.license_endpoint, timeout=app_settings.license_timeout).verify(
        store.api_key, app_settings.site_domain,
    )
    log = logger.info if state.valid else logger.error
    log("License check for %s: %s", app_settings.site_domain, state.status_message)
    return state.valid


if __name__ == "__main__":
    configure_logging()
    sys.exit(0 if startup_check() else 1)
