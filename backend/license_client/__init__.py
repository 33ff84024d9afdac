"""
License Client Package

Client for the remote license verification endpoint.
Every encrypted send is gated on an active license for the sending domain.
"""

from .client import LicenseVerifier
from .models import LicenseState, LicenseStatus
from .exceptions import (
    LicenseError,
    LicenseInvalidError,
    LicenseUnreachableError,
)

__all__ = [
    "LicenseVerifier",
    "LicenseState",
    "LicenseStatus",
    "LicenseError",
    "LicenseInvalidError",
    "LicenseUnreachableError",
]
