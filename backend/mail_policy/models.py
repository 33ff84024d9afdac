"""
Mail Policy Data Models
"""

from dataclasses import dataclass
from enum import Enum


class EncryptionMethod(str, Enum):
    """Encryption schemes a recipient can be configured with."""
    SMIME = "smime"
    PGP = "pgp"


@dataclass(frozen=True)
class EncryptionConfig:
    """Encryption policy for a single protected recipient."""
    recipient_email: str
    method: EncryptionMethod
    key_material: str
    obscure_subject: bool = False
