"""
Payment storage.

The registry only talks to the PaymentStore interface, so a durable
backend can replace the in-memory one without touching the state machine.
"""

from abc import ABC, abstractmethod
from typing import Optional

from .payment import Payment, PaymentStatus


class PaymentStore(ABC):
    """Keyed storage for payments."""

    @abstractmethod
    def put(self, payment: Payment) -> None:
        """Insert or replace a payment."""

    @abstractmethod
    def get(self, payment_id: str) -> Optional[Payment]:
        """Get a payment by id, or None."""

    @abstractmethod
    def list_by_status(self, status: PaymentStatus) -> list[Payment]:
        """All payments currently in the given status."""

    @abstractmethod
    def list_all(self) -> list[Payment]:
        """All payments."""

    def __contains__(self, payment_id: str) -> bool:
        return self.get(payment_id) is not None


class InMemoryPaymentStore(PaymentStore):
    """Volatile store backed by a dict."""

    def __init__(self) -> None:
        self._payments: dict[str, Payment] = {}

    def put(self, payment: Payment) -> None:
        self._payments[payment.id] = payment

    def get(self, payment_id: str) -> Optional[Payment]:
        return self._payments.get(payment_id)

    def list_by_status(self, status: PaymentStatus) -> list[Payment]:
        return [p for p in self._payments.values() if p.status == status]

    def list_all(self) -> list[Payment]:
        return list(self._payments.values())
