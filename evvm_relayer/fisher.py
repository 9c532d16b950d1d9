"""
Payment registry ("Fisher").

Owns every known payment and its lifecycle:

    pending -> processing -> completed
                          -> failed
    pending -> failed

Terminal states never change. Transition calls that do not match the
payment's current state are ignored (logged, return False) rather than
raising.
"""

import copy
import threading
import uuid
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

import structlog

from .errors import PaymentNotFoundError
from .events import PaymentEventBus, Subscriber
from .payment import (
    Payment,
    PaymentEvent,
    PaymentEventType,
    PaymentRequest,
    PaymentStatus,
    RegistryStats,
)
from .store import InMemoryPaymentStore, PaymentStore
from .validation import SUPPORTED_TOKENS, validate_payment_request

logger = structlog.get_logger()


class Fisher:
    """Payment registry and state machine."""

    def __init__(
        self,
        store: Optional[PaymentStore] = None,
        supported_tokens: Iterable[str] = SUPPORTED_TOKENS,
        event_bus: Optional[PaymentEventBus] = None,
    ):
        self.store = store or InMemoryPaymentStore()
        self.supported_tokens = tuple(t.upper() for t in supported_tokens)
        self.events = event_bus or PaymentEventBus()
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Subscribers
    # ------------------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register an event callback. Returns an unsubscribe function."""
        return self.events.subscribe(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        self.events.unsubscribe(callback)

    def _emit(self, event_type: PaymentEventType, payment: Payment) -> None:
        self.events.publish(
            PaymentEvent(
                type=event_type,
                payment=copy.deepcopy(payment),
                timestamp=datetime.now(timezone.utc),
            )
        )

    # ------------------------------------------------------------------
    # Intake and queries
    # ------------------------------------------------------------------

    def intake(self, request: PaymentRequest) -> str:
        """
        Validate and register a payment request.

        Returns:
            The new payment id

        Raises:
            ValidationError: if the request is invalid (nothing is stored)
        """
        validate_payment_request(
            request.sender,
            request.recipient,
            request.amount,
            request.token,
            self.supported_tokens,
        )

        with self._lock:
            payment_id = uuid.uuid4().hex
            while payment_id in self.store:
                payment_id = uuid.uuid4().hex

            payment = Payment(
                id=payment_id,
                sender=request.sender,
                recipient=request.recipient,
                amount=str(request.amount),
                token=request.token.upper(),
                status=PaymentStatus.PENDING,
                created_at=datetime.now(timezone.utc),
                metadata=copy.deepcopy(request.metadata),
            )
            self.store.put(payment)

            logger.info(
                "payment_received",
                payment_id=payment_id,
                sender=payment.sender,
                recipient=payment.recipient,
                amount=payment.amount,
                token=payment.token,
            )
            self._emit(PaymentEventType.PAYMENT_RECEIVED, payment)

        return payment_id

    def get_payment(self, payment_id: str) -> Payment:
        """
        Get a copy of a payment.

        Raises:
            PaymentNotFoundError: if the id is unknown
        """
        with self._lock:
            payment = self.store.get(payment_id)
            if payment is None:
                raise PaymentNotFoundError(payment_id)
            return copy.deepcopy(payment)

    def get_pending_payments(self) -> list[Payment]:
        """Copies of all pending payments, in no particular order."""
        with self._lock:
            return [
                copy.deepcopy(p) for p in self.store.list_by_status(PaymentStatus.PENDING)
            ]

    def get_stats(self) -> RegistryStats:
        """Payment counts by status."""
        with self._lock:
            stats = RegistryStats()
            for payment in self.store.list_all():
                stats.total += 1
                current = getattr(stats, payment.status.value)
                setattr(stats, payment.status.value, current + 1)
            return stats

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _transition(
        self,
        payment_id: str,
        allowed_from: tuple[PaymentStatus, ...],
        new_status: PaymentStatus,
    ) -> Optional[Payment]:
        """Apply a transition under the lock, or return None if it does not apply."""
        payment = self.store.get(payment_id)
        if payment is None:
            logger.warning(
                "payment_transition_ignored",
                payment_id=payment_id,
                target=new_status.value,
                reason="unknown payment",
            )
            return None

        if payment.status not in allowed_from:
            logger.warning(
                "payment_transition_ignored",
                payment_id=payment_id,
                current=payment.status.value,
                terminal=payment.status.is_terminal,
                target=new_status.value,
            )
            return None

        payment.status = new_status
        return payment

    def mark_processing(self, payment_id: str) -> bool:
        """Move a pending payment to processing."""
        with self._lock:
            payment = self._transition(
                payment_id, (PaymentStatus.PENDING,), PaymentStatus.PROCESSING
            )
            if payment is None:
                return False
            self.store.put(payment)
            logger.debug("payment_processing", payment_id=payment_id)
            return True

    def mark_completed(self, payment_id: str, tx_hash: str) -> bool:
        """Move a processing payment to completed and record its tx hash."""
        with self._lock:
            payment = self._transition(
                payment_id, (PaymentStatus.PROCESSING,), PaymentStatus.COMPLETED
            )
            if payment is None:
                return False
            payment.tx_hash = tx_hash
            self.store.put(payment)

            logger.info("payment_completed", payment_id=payment_id, tx_hash=tx_hash)
            self._emit(PaymentEventType.PAYMENT_EXECUTED, payment)
            return True

    def mark_failed(self, payment_id: str, error: str) -> bool:
        """Move a pending or processing payment to failed and record why."""
        with self._lock:
            payment = self._transition(
                payment_id,
                (PaymentStatus.PENDING, PaymentStatus.PROCESSING),
                PaymentStatus.FAILED,
            )
            if payment is None:
                return False
            payment.error = error
            self.store.put(payment)

            logger.info("payment_failed", payment_id=payment_id, error=error)
            self._emit(PaymentEventType.PAYMENT_FAILED, payment)
            return True
