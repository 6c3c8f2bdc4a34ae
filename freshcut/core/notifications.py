"""User-facing notifications (toasts).

Separate from the write error channel: this is what the end user sees when a
save works or does not, not what a developer needs to diagnose it.
"""

from collections import deque
from collections.abc import Callable
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from freshcut.core.broadcast import Broadcaster
from freshcut.core.config import Constants


class ToastVariant(StrEnum):
    """Visual variant of a toast."""

    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


class Toast(BaseModel):
    """A short message for the end user."""

    title: str
    description: str
    variant: ToastVariant = ToastVariant.DEFAULT
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ToastChannel:
    """Delivers toasts to listeners and keeps a short history for late readers."""

    def __init__(self, maxlen: int = Constants.TOAST_HISTORY_MAXLEN) -> None:
        self._broadcaster: Broadcaster[Toast] = Broadcaster("toasts")
        self._history: deque[Toast] = deque(maxlen=maxlen)

    def notify(self, title: str, description: str, variant: ToastVariant = ToastVariant.DEFAULT) -> Toast:
        toast = Toast(title=title, description=description, variant=variant)
        self._history.append(toast)
        self._broadcaster.publish(toast)
        return toast

    def success(self, description: str) -> Toast:
        return self.notify("Success", description)

    def error(self, description: str) -> Toast:
        return self.notify("Error", description, ToastVariant.DESTRUCTIVE)

    def subscribe(self, listener: Callable[[Toast], None]) -> Callable[[], None]:
        """Register a listener; returns a callable that unregisters it."""
        return self._broadcaster.add_listener(listener)

    def history(self) -> list[Toast]:
        """Recent toasts, newest last."""
        return list(self._history)
