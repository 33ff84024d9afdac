"""
Settings Loader

Sanitizes the raw settings snapshot written by the settings collaborator
and turns it into a ConfigStore.

Snapshot format:
    {
        "api_key": "...",
        "configs": [
            {"email": "...", "type": "smime|pgp", "key": "...", "obscure_subject": true}
        ]
    }
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from pydantic import BaseModel, ConfigDict, EmailStr, ValidationError, field_validator

from .models import EncryptionConfig, EncryptionMethod
from .store import ConfigStore

logger = logging.getLogger(__name__)


class RawEncryptionEntry(BaseModel):
    """One recipient entry as submitted through the settings form."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    email: EmailStr
    type: EncryptionMethod = EncryptionMethod.SMIME
    key: str
    obscure_subject: bool = False

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("type", mode="before")
    @classmethod
    def default_unknown_type(cls, v: Any) -> Any:
        """Unknown encryption types fall back to S/MIME."""
        if isinstance(v, str) and v.strip().lower() in {m.value for m in EncryptionMethod}:
            return v.strip().lower()
        return EncryptionMethod.SMIME

    @field_validator("obscure_subject", mode="before")
    @classmethod
    def coerce_flag(cls, v: Any) -> bool:
        if isinstance(v, str):
            return v.strip().lower() not in ("", "0", "false", "no", "off")
        return bool(v)


def sanitize_settings(raw: Dict[str, Any]) -> ConfigStore:
    """
    Sanitize a raw settings snapshot.

    Entries without an email or key are dropped silently, entries with an
    invalid address are dropped with a warning.

    Args:
        raw: Decoded settings snapshot

    Returns:
        ConfigStore with the sanitized policies
    """
    api_key = str(raw.get("api_key") or "").strip()
    entries = raw.get("configs") or []
    if not isinstance(entries, list):
        logger.warning("Ignoring malformed encryption configs: expected a list, got %s", type(entries).__name__)
        entries = []

    configs: List[EncryptionConfig] = []
    seen = set()

    for index, entry in enumerate(entries):
        if not isinstance(entry, dict) or not entry.get("email") or not entry.get("key"):
            continue

        try:
            parsed = RawEncryptionEntry.model_validate(entry)
        except ValidationError as e:
            logger.warning("Dropping encryption config #%d: %s", index, e.errors()[0].get("msg"))
            continue

        if parsed.email in seen:
            logger.warning(
                "Duplicate encryption config for %s at #%d; the first entry is used",
                parsed.email, index,
            )
        seen.add(parsed.email)

        configs.append(EncryptionConfig(
            recipient_email=parsed.email,
            method=parsed.type,
            key_material=parsed.key,
            obscure_subject=parsed.obscure_subject,
        ))

    return ConfigStore(api_key=api_key, configs=configs)


def load_config_store(path: Union[str, Path]) -> ConfigStore:
    """
    Load and sanitize the settings snapshot from a JSON file.

    A missing file means nothing is configured yet.

    Raises:
        ValueError: If the file exists but is not a JSON object
    """
    path = Path(path)
    if not path.exists():
        logger.debug("No encryption settings at %s", path)
        return ConfigStore()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Encryption settings at {path} are not valid JSON: {e}") from e

    if not isinstance(raw, dict):
        raise ValueError(f"Encryption settings at {path} must be a JSON object")

    return sanitize_settings(raw)
