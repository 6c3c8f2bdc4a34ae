"""In-process listener registry shared by the event channels."""

import logging
from collections.abc import Callable
from typing import Generic, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")


class Broadcaster(Generic[T]):
    """Synchronous fan-out of events to registered listeners.

    Listeners are called in registration order on the caller's thread of
    execution. A listener that raises is logged and skipped; remaining
    listeners still receive the event.
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._listeners: list[Callable[[T], None]] = []

    def add_listener(self, listener: Callable[[T], None]) -> Callable[[], None]:
        """Register a listener and return a callable that unregisters it."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def publish(self, event: T) -> None:
        """Deliver an event to every listener registered at call time."""
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Listener failed", extra={"channel": self._name})

    @property
    def listener_count(self) -> int:
        """Number of registered listeners."""
        return len(self._listeners)
