"""Identity provider contract and an in-process implementation."""

import logging
from collections.abc import Callable
from typing import Protocol

from pydantic import BaseModel, Field

from freshcut.core.broadcast import Broadcaster


logger = logging.getLogger(__name__)


class AppUser(BaseModel):
    """Signed-in user as reported by the identity provider."""

    uid: str = Field(..., min_length=1, description="Stable user identifier")
    display_name: str | None = Field(default=None, description="Name shown to other users")
    email: str | None = Field(default=None, description="Account email")


class IdentityProvider(Protocol):
    """Source of the current user and of sign-in/sign-out notifications."""

    def current_user(self) -> AppUser | None:
        """Return the signed-in user, or None."""
        ...

    def on_change(self, listener: Callable[[AppUser | None], None]) -> Callable[[], None]:
        """Register a listener for user changes; returns an unsubscribe callable."""
        ...


class LocalIdentityProvider:
    """Identity provider holding a single session in memory.

    Authentication itself happens elsewhere; this only records who is signed
    in and tells listeners when that changes.
    """

    def __init__(self, user: AppUser | None = None) -> None:
        self._user = user
        self._changes: Broadcaster[AppUser | None] = Broadcaster("identity")

    def current_user(self) -> AppUser | None:
        return self._user

    def on_change(self, listener: Callable[[AppUser | None], None]) -> Callable[[], None]:
        return self._changes.add_listener(listener)

    def sign_in(self, user: AppUser) -> None:
        logger.info("User signed in", extra={"user_id": user.uid})
        self._user = user
        self._changes.publish(user)

    def sign_out(self) -> None:
        if self._user is None:
            return
        logger.info("User signed out", extra={"user_id": self._user.uid})
        self._user = None
        self._changes.publish(None)

    def update_display_name(self, display_name: str) -> AppUser:
        """Change the signed-in user's display name.

        Raises:
            LookupError: If nobody is signed in
        """
        if self._user is None:
            msg = "No signed-in user to update"
            raise LookupError(msg)
        self._user = self._user.model_copy(update={"display_name": display_name})
        self._changes.publish(self._user)
        return self._user
