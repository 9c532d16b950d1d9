"""
In-process event bus for payment lifecycle events.
"""

from typing import Callable

import structlog

from .payment import PaymentEvent

logger = structlog.get_logger()

Subscriber = Callable[[PaymentEvent], None]


class PaymentEventBus:
    """
    Delivers events synchronously to subscribers in registration order.

    A subscriber that raises is logged and skipped; delivery to the
    remaining subscribers continues.
    """

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback. Returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            self.unsubscribe(callback)

        return unsubscribe

    def unsubscribe(self, callback: Subscriber) -> None:
        """Remove a callback. Unknown callbacks are ignored."""
        try:
            self._subscribers.remove(callback)
        except ValueError:
            pass

    def publish(self, event: PaymentEvent) -> None:
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception as e:
                logger.error(
                    "event_subscriber_error",
                    event_type=event.type.value,
                    payment_id=event.payment.id,
                    error=str(e),
                )

    def __len__(self) -> int:
        return len(self._subscribers)
