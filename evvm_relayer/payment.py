"""
Payment domain types.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class PaymentStatus(str, Enum):
    """Lifecycle status of a payment."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (PaymentStatus.COMPLETED, PaymentStatus.FAILED)


class PaymentEventType(str, Enum):
    """Lifecycle events published by the registry."""

    PAYMENT_RECEIVED = "payment_received"
    PAYMENT_EXECUTED = "payment_executed"
    PAYMENT_FAILED = "payment_failed"


@dataclass(frozen=True)
class PaymentRequest:
    """A transfer request as submitted by a client."""

    sender: str
    recipient: str
    amount: str  # Integer string in the token's smallest unit
    token: str
    metadata: Optional[dict[str, Any]] = None


@dataclass
class Payment:
    """A registered payment and its lifecycle state."""

    id: str
    sender: str
    recipient: str
    amount: str
    token: str
    status: PaymentStatus
    created_at: datetime
    metadata: Optional[dict[str, Any]] = None
    tx_hash: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class PaymentEvent:
    """Event delivered to registry subscribers."""

    type: PaymentEventType
    payment: Payment
    timestamp: datetime


@dataclass
class RegistryStats:
    """Payment counts by status."""

    total: int = 0
    pending: int = 0
    processing: int = 0
    completed: int = 0
    failed: int = 0


@dataclass
class SponsorshipSnapshot:
    """Gas sponsorship capacity of the relaying account."""

    relayer_address: str
    balance_wei: int
    gas_price_wei: int
    estimated_gas_per_tx: int
    cost_per_tx_wei: int
    max_transactions: int = 0
