"""
Order event bus — push-model subscriptions to order collections.

Observers register a callback per collection:
    "orders"                 — every order (admin dashboard)
    "clients/<id>/orders"    — one client's orders

After each committed mutation the API layer publishes the full current
snapshot of every affected collection that has subscribers. Delivery is
synchronous with the publishing request; callbacks may be plain functions or
coroutines.
"""
import inspect
import logging
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger(__name__)

Snapshot = list[dict[str, Any]]
Callback = Callable[[Snapshot], Any]


class OrderEventBus:
    """Registry of order-collection observers."""

    def __init__(self):
        # {collection: [callback, ...]}
        self._subscribers: dict[str, list[Callback]] = defaultdict(list)

    def subscribe(self, collection: str, callback: Callback) -> Callable[[], None]:
        """Register ``callback``; returns a function that unsubscribes it."""
        self._subscribers[collection].append(callback)
        logger.debug(f"Subscriber added to {collection} ({len(self._subscribers[collection])} total)")

        def _unsubscribe() -> None:
            self.unsubscribe(collection, callback)

        return _unsubscribe

    def unsubscribe(self, collection: str, callback: Callback) -> None:
        callbacks = self._subscribers.get(collection)
        if not callbacks:
            return
        try:
            callbacks.remove(callback)
        except ValueError:
            return
        if not callbacks:
            del self._subscribers[collection]

    def has_subscribers(self, collection: str) -> bool:
        return bool(self._subscribers.get(collection))

    def subscriber_count(self, collection: str | None = None) -> int:
        if collection is not None:
            return len(self._subscribers.get(collection, []))
        return sum(len(cbs) for cbs in self._subscribers.values())

    async def publish(self, collection: str, snapshot: Snapshot) -> int:
        """
        Deliver ``snapshot`` to every subscriber of ``collection``.

        A failing subscriber is logged and skipped; the others still receive
        the snapshot. Returns the number of successful deliveries.
        """
        delivered = 0
        for callback in list(self._subscribers.get(collection, [])):
            try:
                result = callback(snapshot)
                if inspect.isawaitable(result):
                    await result
                delivered += 1
            except Exception as e:
                logger.error(f"Order subscriber on {collection} failed: {e}", exc_info=True)
        return delivered
