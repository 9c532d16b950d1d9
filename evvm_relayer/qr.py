"""
QR payload codec for payment requests.

Format: evvm://pay?to=ADDRESS&amount=AMOUNT&token=MATE[&description=...]
"""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qs, urlencode, urlsplit

import structlog

from .errors import MalformedPayloadError
from .payment import Payment

logger = structlog.get_logger()

DEFAULT_BASE_URL = "evvm://pay"

# Sender used to validate payment request payloads, where the payer is not known yet
PLACEHOLDER_SENDER = "0x0000000000000000000000000000000000000000"


@dataclass
class DecodedPaymentRequest:
    """Fields extracted from a QR payload. Values are not validated."""

    to: Optional[str] = None
    amount: Optional[str] = None
    token: Optional[str] = None
    sender: Optional[str] = None
    id: Optional[str] = None
    description: Optional[str] = None

    @property
    def missing_fields(self) -> list[str]:
        """Required fields absent from the payload."""
        return [name for name in ("to", "amount", "token") if not getattr(self, name)]


class QRPaymentCodec:
    """Encodes payment requests to QR payload strings and back."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL):
        self.base_url = base_url

    def encode(
        self,
        recipient: str,
        amount: str,
        token: str,
        description: Optional[str] = None,
    ) -> str:
        """Build a payment request payload for the given recipient."""
        params = {"to": recipient, "amount": amount, "token": token}
        if description:
            params["description"] = description

        return f"{self.base_url}?{urlencode(params)}"

    def encode_payment(self, payment: Payment) -> str:
        """Build a payload that references an already registered payment."""
        params = {
            "id": payment.id,
            "to": payment.recipient,
            "amount": payment.amount,
            "token": payment.token,
            "from": payment.sender,
        }
        return f"{self.base_url}?{urlencode(params)}"

    def decode(self, payload: str) -> DecodedPaymentRequest:
        """
        Parse a QR payload.

        Raises:
            MalformedPayloadError: if the payload is not a URI or carries
                no query parameters
        """
        if not isinstance(payload, str) or not payload:
            raise MalformedPayloadError("QR payload must be a non-empty string")

        try:
            parts = urlsplit(payload.strip())
        except ValueError as e:
            raise MalformedPayloadError(f"QR payload is not a valid URI: {e}") from e

        if not parts.scheme:
            raise MalformedPayloadError("QR payload is not a valid URI: missing scheme")

        params = parse_qs(parts.query, keep_blank_values=True)
        if not params:
            raise MalformedPayloadError("QR payload has no query parameters")

        def first(name: str) -> Optional[str]:
            values = params.get(name)
            return values[0] if values else None

        decoded = DecodedPaymentRequest(
            to=first("to"),
            amount=first("amount"),
            token=first("token"),
            sender=first("from"),
            id=first("id"),
            description=first("description"),
        )
        logger.debug("qr_payload_decoded", to=decoded.to, token=decoded.token)
        return decoded
