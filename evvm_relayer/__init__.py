"""
EVVM Relayer

Accepts stablecoin transfer requests, validates them, and submits the
ERC-20 transfers from a funded relaying account so the payer never pays gas.

Usage:
    # Run the API and the relay loop
    evvm-relayer serve

    # Check RPC connectivity and sponsorship capacity
    evvm-relayer check

    # Build / read a QR payment payload
    evvm-relayer qr encode 0x... 1000000 MATE
    evvm-relayer qr decode "evvm://pay?to=0x...&amount=1000000&token=MATE"
"""

__version__ = "0.1.0"

from .config import Settings, get_settings
from .errors import (
    ConfigurationError,
    MalformedPayloadError,
    PaymentNotFoundError,
    RelayerError,
    SponsorshipError,
    SubmissionError,
    ValidationCode,
    ValidationError,
)
from .fisher import Fisher
from .payment import Payment, PaymentEvent, PaymentRequest, PaymentStatus
from .qr import QRPaymentCodec
from .relayer import Relayer
from .sponsorship import GasSponsor
from .evm import EvmClient

__all__ = [
    "__version__",
    "Settings",
    "get_settings",
    "RelayerError",
    "ValidationError",
    "ValidationCode",
    "MalformedPayloadError",
    "PaymentNotFoundError",
    "ConfigurationError",
    "SponsorshipError",
    "SubmissionError",
    "Fisher",
    "Payment",
    "PaymentEvent",
    "PaymentRequest",
    "PaymentStatus",
    "QRPaymentCodec",
    "Relayer",
    "GasSponsor",
    "EvmClient",
]
