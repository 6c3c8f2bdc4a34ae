"""Process-wide service container shared by the HTTP routes."""

import logging

from fastapi import Request

from freshcut.core.config import settings
from freshcut.core.identity import LocalIdentityProvider
from freshcut.core.notifications import ToastChannel
from freshcut.core.remote_store import RemoteCollectionStore
from freshcut.core.write_errors import DiagnosticsLog, WriteErrorChannel
from freshcut.services.inventory_store import InventoryStore
from freshcut.services.needs_store import NeedsStore
from freshcut.services.view_filters import ViewFilters


logger = logging.getLogger(__name__)


class AppServices:
    """Stores and channels wired together once at start-up.

    The write error channel is created here and handed to both stores, so
    the diagnostics log sees failures from either collection.
    """

    def __init__(self, store: RemoteCollectionStore, identity: LocalIdentityProvider | None = None) -> None:
        self.store = store
        self.identity = identity or LocalIdentityProvider()
        self.error_channel = WriteErrorChannel()
        self.toasts = ToastChannel()
        self.diagnostics = DiagnosticsLog(maxlen=settings.diagnostics_history)
        self.inventory = InventoryStore(
            store=store, identity=self.identity, error_channel=self.error_channel, toasts=self.toasts
        )
        self.needs = NeedsStore(store=store, identity=self.identity, error_channel=self.error_channel, toasts=self.toasts)
        self.views = ViewFilters(self.inventory)

    def start(self) -> None:
        self.diagnostics.attach(self.error_channel)
        self.inventory.start()
        self.needs.start()
        logger.info("Services started")

    async def close(self) -> None:
        """Let pending writes settle, then drop the subscriptions."""
        await self.inventory.drain()
        await self.needs.drain()
        self.inventory.close()
        self.needs.close()
        self.diagnostics.detach()
        logger.info("Services stopped")


def get_services(request: Request) -> AppServices:
    """FastAPI dependency returning the container built in the app lifespan."""
    return request.app.state.services
