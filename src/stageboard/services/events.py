"""Publish/subscribe bus for board change notifications."""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

ITEMS_CHANGED = "items_changed"
STAGES_CHANGED = "stages_changed"
BOARD_REFRESHED = "board_refreshed"

Handler = Callable[..., None]


class EventBus:
    """Explicit subscription registry shared by the controller and views.

    Handlers are called synchronously on the publishing thread, in
    subscription order, with the payload as keyword arguments.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def subscribe(self, topic: str, handler: Handler) -> Callable[[], None]:
        """Register a handler. Returns a callable that unsubscribes it."""
        with self._lock:
            self._handlers[topic].append(handler)

        def unsubscribe() -> None:
            with self._lock:
                handlers = self._handlers.get(topic, [])
                if handler in handlers:
                    handlers.remove(handler)

        return unsubscribe

    def publish(self, topic: str, **payload: Any) -> None:
        """Deliver an event to every handler of `topic`."""
        with self._lock:
            handlers = list(self._handlers.get(topic, []))

        logger.debug("Event %s -> %d handler(s): %s", topic, len(handlers), payload)
        for handler in handlers:
            try:
                handler(**payload)
            except Exception:
                logger.exception("Handler for %s failed", topic)

    def subscriber_count(self, topic: str) -> int:
        """Number of handlers subscribed to `topic`."""
        with self._lock:
            return len(self._handlers.get(topic, []))
