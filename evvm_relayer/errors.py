"""
Error types for the EVVM relayer.

Validation and codec errors are raised to the immediate caller.
Sponsorship, configuration and submission errors raised inside the relay
loop are absorbed into the affected payment's failed state.
"""

from enum import Enum


class RelayerError(Exception):
    """Base class for relayer errors."""


class ValidationCode(str, Enum):
    """Reason a payment field was rejected."""

    REQUIRED = "required"
    INVALID_FORMAT = "invalid_format"
    INVALID_CHECKSUM = "invalid_checksum"
    NOT_AN_INTEGER = "not_an_integer"
    NON_POSITIVE = "non_positive"
    UNSUPPORTED_TOKEN = "unsupported_token"
    SAME_ADDRESS = "same_address"


class ValidationError(RelayerError):
    """User input is malformed. Never retried."""

    def __init__(self, code: ValidationCode, message: str):
        self.code = code
        self.message = message
        super().__init__(message)


class MalformedPayloadError(RelayerError):
    """A QR payload could not be parsed as a payment URI."""


class PaymentNotFoundError(RelayerError):
    """No payment is registered under the given id."""

    def __init__(self, payment_id: str):
        self.payment_id = payment_id
        super().__init__(f"Payment {payment_id} not found")


class ConfigurationError(RelayerError):
    """A required token address or credential is missing."""


class SponsorshipError(RelayerError):
    """The relaying account cannot cover the gas for a submission."""


class SubmissionError(RelayerError):
    """The transfer was rejected, reverted, or never confirmed."""
