from __future__ import annotations

from typing import Optional

import httpx

import db.database
from db.token_store import TokenStore
from gateway.client import GatewayClient
from stores.cart import CartStore
from stores.session import SessionStore
from utils.config import Settings
from utils.notices import Notifier


class AppState:
    """
    Application-wide context handed to every screen as app.state.

    Owns exactly one gateway client, session store and cart store; start()
    runs the startup token check and close() releases the http client.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        notify: Optional[Notifier] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or Settings.from_env()
        db.database.configure(self.settings.db_path)

        self.gateway = GatewayClient(
            self.settings.api_url,
            token_store=TokenStore(),
            transport=transport,
            timeout=self.settings.timeout,
        )
        self.session = SessionStore(self.gateway, notify)
        self.cart = CartStore(self.gateway, self.session, notify)

    async def start(self) -> bool:
        """Resolve the persisted token; True when a session was restored."""
        return await self.session.check()

    async def close(self) -> None:
        await self.gateway.close()
