"""
Encryption Policy Store

Read-only view over the recipient policies and license key
supplied by the settings collaborator.
"""

from typing import Iterable, Optional, Tuple

from .models import EncryptionConfig


class ConfigStore:
    """
    Immutable snapshot of the encryption settings.

    Recipients are matched by exact, case-sensitive equality.
    Duplicate entries are kept; the first one wins.
    """

    def __init__(self, api_key: str = "", configs: Iterable[EncryptionConfig] = ()):
        self._api_key = api_key
        self._configs: Tuple[EncryptionConfig, ...] = tuple(configs)

    @property
    def api_key(self) -> str:
        return self._api_key

    @property
    def configs(self) -> Tuple[EncryptionConfig, ...]:
        return self._configs

    def find_config(self, recipient: str) -> Optional[EncryptionConfig]:
        """
        Find the encryption policy for a recipient.

        Args:
            recipient: Recipient address exactly as it appears on the message

        Returns:
            The first matching EncryptionConfig, or None
        """
        for config in self._configs:
            if config.recipient_email == recipient:
                return config
        return None

    def __len__(self) -> int:
        return len(self._configs)

    def __repr__(self) -> str:
        return f"ConfigStore(api_key={'set' if self._api_key else 'unset'}, configs={len(self._configs)})"
