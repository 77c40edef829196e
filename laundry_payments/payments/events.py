"""
In-process publish/subscribe for payment lifecycle events.

Delivery guarantees:
  - Handlers run one at a time, in subscription order, inside publish().
  - At-most-once per publish; there is no event log and no replay. A handler
    subscribed after an event was published never sees it.
  - A failing handler is logged and skipped. It never stops the remaining
    handlers and never reaches the caller whose operation produced the event.

Handlers may be plain callables or coroutine functions.
"""

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Optional, Union

from laundry_payments.payments.types import PaymentEvent

logger = logging.getLogger("laundry_payments.events")

PaymentEventHandler = Callable[[PaymentEvent], Optional[Awaitable[None]]]
Unsubscribe = Callable[[], None]


class PaymentEventBus:
    """Ordered observer list for PaymentEvents."""

    def __init__(self):
        self._handlers: list[PaymentEventHandler] = []

    def subscribe(self, handler: PaymentEventHandler) -> Unsubscribe:
        """Register a handler. Returns a callable that removes it (safe to call twice)."""
        self._handlers.append(handler)
        removed = False

        def unsubscribe() -> None:
            nonlocal removed
            if removed:
                return
            removed = True
            try:
                self._handlers.remove(handler)
            except ValueError:
                pass

        return unsubscribe

    @property
    def handler_count(self) -> int:
        return len(self._handlers)

    def _is_subscribed(self, handler: PaymentEventHandler) -> bool:
        return any(h is handler for h in self._handlers)

    async def publish(self, event: PaymentEvent) -> None:
        for handler in list(self._handlers):
            # Skip handlers unsubscribed by an earlier handler during this publish.
            if not self._is_subscribed(handler):
                continue
            try:
                result: Union[None, Awaitable[None]] = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(
                    "Error in payment event handler %r for %s (%s)",
                    handler,
                    event.type.value,
                    event.payment_id,
                )
