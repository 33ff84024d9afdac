"""
License Client Exceptions
"""


class LicenseError(Exception):
    """Base exception for license verification failures."""
    pass


class LicenseInvalidError(LicenseError):
    """The endpoint reported the license as inactive for this domain."""
    pass


class LicenseUnreachableError(LicenseError):
    """The endpoint could not be reached or returned an unusable answer."""
    pass
