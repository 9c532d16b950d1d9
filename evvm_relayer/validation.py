"""
Stateless validation rules for payment requests.
"""

import re
from typing import Iterable, Optional, Union

from web3 import Web3

from .errors import ValidationCode, ValidationError

SUPPORTED_TOKENS: tuple[str, ...] = ("MATE",)

_ADDRESS_RE = re.compile(r"0x[0-9a-fA-F]{40}")
_DIGITS_RE = re.compile(r"[0-9]+")


def validate_address(value: Optional[str], field_name: str = "address") -> None:
    """
    Validate an EVM address.

    Accepts EIP-55 checksummed addresses, and addresses whose hex body is
    entirely lowercase or entirely uppercase (no checksum check for those).

    Raises:
        ValidationError: REQUIRED, INVALID_FORMAT or INVALID_CHECKSUM
    """
    if not value or not isinstance(value, str):
        raise ValidationError(
            ValidationCode.REQUIRED,
            f"{field_name} is required and must be a string",
        )

    if not _ADDRESS_RE.fullmatch(value):
        raise ValidationError(
            ValidationCode.INVALID_FORMAT,
            f"Invalid {field_name} format. Must be a valid Ethereum address "
            "(0x followed by 40 hex characters)",
        )

    body = value[2:]
    if body != body.lower() and body != body.upper():
        if Web3.to_checksum_address(value) != value:
            raise ValidationError(
                ValidationCode.INVALID_CHECKSUM,
                f"Invalid {field_name} checksum. Address has mixed case "
                "but invalid ERC-55 checksum",
            )


def validate_amount(value: Union[str, int, None], field_name: str = "amount") -> None:
    """
    Validate a transfer amount in the token's smallest unit.

    Must be a positive integer written as plain decimal digits: no sign,
    no decimal point, no exponent. There is no upper bound.
    """
    if value is None or value == "":
        raise ValidationError(ValidationCode.REQUIRED, f"{field_name} is required")

    if isinstance(value, bool):
        raise ValidationError(
            ValidationCode.NOT_AN_INTEGER,
            f"{field_name} must be a positive integer without decimals. Received: {value}",
        )

    amount_str = str(value)
    if not _DIGITS_RE.fullmatch(amount_str):
        raise ValidationError(
            ValidationCode.NOT_AN_INTEGER,
            f"{field_name} must be a positive integer without decimals. Received: {amount_str}",
        )

    if int(amount_str) == 0:
        raise ValidationError(
            ValidationCode.NON_POSITIVE, f"{field_name} must be greater than zero"
        )


def validate_token(
    value: Optional[str],
    field_name: str = "token",
    supported_tokens: Iterable[str] = SUPPORTED_TOKENS,
) -> None:
    """Validate a token symbol against the whitelist (case-insensitive)."""
    if not value or not isinstance(value, str):
        raise ValidationError(
            ValidationCode.REQUIRED,
            f"{field_name} is required and must be a string",
        )

    supported = [token.upper() for token in supported_tokens]
    if value.upper() not in supported:
        raise ValidationError(
            ValidationCode.UNSUPPORTED_TOKEN,
            f"{field_name} not supported. Supported tokens: {', '.join(supported)}. "
            f"Received: {value}",
        )


def validate_payment_request(
    sender: Optional[str],
    recipient: Optional[str],
    amount: Union[str, int, None],
    token: Optional[str],
    supported_tokens: Iterable[str] = SUPPORTED_TOKENS,
) -> None:
    """
    Validate a complete payment request.

    Checks run in order and stop at the first failure; the sender and
    recipient must also differ (case-insensitive).
    """
    validate_address(sender, "from (sender address)")
    validate_address(recipient, "to (recipient address)")
    validate_amount(amount, "amount")
    validate_token(token, "token", supported_tokens)

    # Both addresses passed validation above, so neither is None here.
    if sender.lower() == recipient.lower():  # type: ignore[union-attr]
        raise ValidationError(
            ValidationCode.SAME_ADDRESS,
            "Sender and recipient addresses must be different",
        )
