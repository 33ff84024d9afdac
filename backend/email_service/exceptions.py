"""
Email Service Exceptions
"""


class EnvelopeError(Exception):
    """The ciphertext could not be framed as a MIME body."""
    pass


class EncryptionRequiredError(Exception):
    """
    Raised to the sender when fail-open is disabled and a message
    for a protected recipient could not be encrypted.
    """

    def __init__(self, recipient: str, reason: str, detail: str = ""):
        super().__init__(f"Refusing to send unencrypted mail to {recipient}: {reason}" + (f" ({detail})" if detail else ""))
        self.recipient = recipient
        self.reason = reason
