"""Event bus connecting the resolution core to its observers."""

import logging
from collections.abc import Callable

from vfs_host.events.schemas import VfsEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[VfsEvent], None]


class EventBus:
    """Simple event bus for publishing and subscribing to engine events.

    Subscribers are called synchronously. Errors in handlers are isolated
    and logged to prevent one failing handler from breaking others.
    """

    def __init__(self) -> None:
        self._subscribers: list[EventHandler] = []

    def subscribe(self, handler: EventHandler) -> None:
        """Subscribe a handler to receive all events.

        Args:
            handler: Callable that takes a VfsEvent
        """
        self._subscribers.append(handler)

    def publish(self, event: VfsEvent) -> None:
        """Publish an event to all subscribers.

        Errors in handlers are caught and logged to prevent cascading failures.

        Args:
            event: VfsEvent to publish
        """
        for handler in self._subscribers:
            try:
                handler(event)
            except Exception:
                logger.exception(f"Error in event handler {getattr(handler, '__name__', handler)!r}")
