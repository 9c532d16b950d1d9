"""
Tests for the QR payment payload codec.
"""

from datetime import datetime, timezone

import pytest

from evvm_relayer.errors import MalformedPayloadError
from evvm_relayer.payment import Payment, PaymentStatus
from evvm_relayer.qr import QRPaymentCodec

from fakes import RECIPIENT, SENDER


@pytest.fixture
def codec():
    return QRPaymentCodec()


class TestEncode:
    """Tests for building payloads."""

    def test_basic_payload(self, codec):
        payload = codec.encode(RECIPIENT, "1000000", "MATE")
        assert payload == f"evvm://pay?to={RECIPIENT}&amount=1000000&token=MATE"

    def test_description_is_url_encoded(self, codec):
        payload = codec.encode(RECIPIENT, "5", "MATE", "Coffee & cake")
        assert payload.endswith("&description=Coffee+%26+cake")

    def test_empty_description_omitted(self, codec):
        assert "description" not in codec.encode(RECIPIENT, "5", "MATE", "")

    def test_custom_base_url(self):
        codec = QRPaymentCodec("https://pay.example.org/evvm")
        assert codec.encode(RECIPIENT, "5", "MATE").startswith("https://pay.example.org/evvm?to=")

    def test_encode_registered_payment(self, codec):
        payment = Payment(
            id="abc123",
            sender=SENDER,
            recipient=RECIPIENT,
            amount="42",
            token="MATE",
            status=PaymentStatus.PENDING,
            created_at=datetime.now(timezone.utc),
        )
        decoded = codec.decode(codec.encode_payment(payment))
        assert decoded.id == "abc123"
        assert decoded.sender == SENDER
        assert decoded.to == RECIPIENT
        assert decoded.amount == "42"


class TestRoundTrip:
    """decode(encode(...)) returns the encoded fields unchanged."""

    @pytest.mark.parametrize(
        "description",
        [
            "Coffee",
            "Coffee & cake",
            "1 + 1 = 2",
            "a=b&c=d",
            "  spaced  out  ",
            "100% Café ☕",
        ],
    )
    def test_with_description(self, codec, description):
        decoded = codec.decode(codec.encode(RECIPIENT, "1000000", "MATE", description))
        assert (decoded.to, decoded.amount, decoded.token) == (RECIPIENT, "1000000", "MATE")
        assert decoded.description == description

    @pytest.mark.parametrize("description", [None, ""])
    def test_without_description(self, codec, description):
        decoded = codec.decode(codec.encode(RECIPIENT, "42", "MATE", description))
        assert (decoded.to, decoded.amount, decoded.token) == (RECIPIENT, "42", "MATE")
        assert decoded.description is None
        assert decoded.sender is None
        assert decoded.id is None


class TestDecode:
    """Tests for parsing payloads."""

    def test_decode_with_description(self, codec):
        decoded = codec.decode(codec.encode(RECIPIENT, "1000000", "MATE", "Lunch at Café"))
        assert decoded.to == RECIPIENT
        assert decoded.amount == "1000000"
        assert decoded.token == "MATE"
        assert decoded.description == "Lunch at Café"
        assert decoded.missing_fields == []

    def test_fields_are_not_validated(self, codec):
        """Decoding only extracts values; validation is the caller's job."""
        decoded = codec.decode("evvm://pay?to=nope&amount=-1&token=DOGE")
        assert decoded.to == "nope"
        assert decoded.amount == "-1"
        assert decoded.token == "DOGE"

    def test_missing_fields_reported(self, codec):
        decoded = codec.decode("evvm://pay?to=0xabc&description=hi")
        assert decoded.missing_fields == ["amount", "token"]

    def test_blank_values_count_as_missing(self, codec):
        decoded = codec.decode("evvm://pay?to=&amount=1&token=MATE")
        assert decoded.missing_fields == ["to"]

    def test_first_value_wins(self, codec):
        decoded = codec.decode("evvm://pay?to=a&to=b&amount=1&token=MATE")
        assert decoded.to == "a"

    def test_other_schemes_accepted(self, codec):
        decoded = codec.decode("https://example.org/pay?to=a&amount=1&token=MATE")
        assert decoded.token == "MATE"

    @pytest.mark.parametrize(
        "payload",
        ["", "not a uri", "evvm://pay", "evvm://pay?", "http://[::1"],
    )
    def test_malformed_payloads(self, codec, payload):
        with pytest.raises(MalformedPayloadError):
            codec.decode(payload)

    def test_non_string_payload(self, codec):
        with pytest.raises(MalformedPayloadError):
            codec.decode(None)
