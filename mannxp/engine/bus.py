"""
mannxp.engine.bus — In-Process Change-Notification Bus
=======================================================

Lets any display ask to be told when a user's XP changes, independently
of the backend's realtime subscription.

Delivery model: synchronous, fire-and-forget, currently-registered
observers only.  ``publish`` calls every handler before it returns; a
handler that subscribes afterwards never sees earlier events.  Events for
one user reach each handler in the order they were published.

Usage::

    bus = get_default_bus()
    unsubscribe = bus.subscribe(on_xp)   # at mount
    ...
    unsubscribe()                        # at teardown
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from threading import Lock

from mannxp.engine.events import XpUpdated

logger = logging.getLogger(__name__)

__all__ = ["ChangeBus", "Handler", "get_default_bus"]

Handler = Callable[[XpUpdated], None]


class ChangeBus:
    """Explicit observer registry for :class:`XpUpdated` events."""

    def __init__(self) -> None:
        self._lock = Lock()
        # token → handler, insertion-ordered
        self._handlers: dict[int, Handler] = {}
        self._next_token = 0

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._handlers)

    def subscribe(self, handler: Handler) -> Callable[[], None]:
        """Register *handler*; returns an idempotent unsubscribe callable."""
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._handlers[token] = handler

        def unsubscribe() -> None:
            with self._lock:
                self._handlers.pop(token, None)

        return unsubscribe

    def publish(self, user_id: str, delta: int) -> XpUpdated:
        """Notify all current subscribers.  Handlers filter on ``user_id``."""
        event = XpUpdated(user_id=user_id, delta=delta)
        with self._lock:
            handlers = list(self._handlers.values())

        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "xp_updated handler %r failed for user %s", handler, user_id
                )
        return event


_default_bus = ChangeBus()


def get_default_bus() -> ChangeBus:
    """Return the process-wide bus."""
    return _default_bus
