"""
Mail Policy Package

Holds the per-recipient encryption policy and the license key.
Settings are sanitized on load and then treated as an immutable snapshot.
"""

from .models import EncryptionConfig, EncryptionMethod
from .store import ConfigStore
from .loader import sanitize_settings, load_config_store

__all__ = [
    "EncryptionConfig",
    "EncryptionMethod",
    "ConfigStore",
    "sanitize_settings",
    "load_config_store",
]
