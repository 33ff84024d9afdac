"""
License Client Data Models
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .exceptions import LicenseInvalidError, LicenseUnreachableError


class LicenseStatus(str, Enum):
    """Outcome of a verification call."""
    VALID = "valid"
    INVALID = "invalid"
    UNREACHABLE = "unreachable"
    MALFORMED = "malformed"


STATUS_COLORS = {
    LicenseStatus.VALID: "green",
    LicenseStatus.INVALID: "red",
    LicenseStatus.UNREACHABLE: "orange",
    LicenseStatus.MALFORMED: "orange",
}


@dataclass(frozen=True)
class LicenseState:
    """Result of verifying a license key for a domain."""
    key: str
    status: LicenseStatus
    plan: Optional[str] = None
    error: Optional[str] = None

    @property
    def valid(self) -> bool:
        return self.status is LicenseStatus.VALID

    @property
    def status_message(self) -> str:
        """Short message for the settings page "test API key" action."""
        if self.valid:
            if self.plan:
                return f"API key is valid ({self.plan} plan)"
            return "API key is valid"
        return self.error or "Invalid API key"

    @property
    def status_color(self) -> str:
        return STATUS_COLORS[self.status]

    def raise_for_status(self) -> None:
        """
        Raise if the license does not allow encryption.

        Raises:
            LicenseInvalidError: The endpoint rejected the key
            LicenseUnreachableError: No usable answer from the endpoint
        """
        if self.status is LicenseStatus.INVALID:
            raise LicenseInvalidError(self.status_message)
        if self.status in (LicenseStatus.UNREACHABLE, LicenseStatus.MALFORMED):
            raise LicenseUnreachableError(self.status_message)
