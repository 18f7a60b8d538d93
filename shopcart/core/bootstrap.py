"""Wiring of client, storage, auth and cart services from configuration."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from shopcart.core.config import Settings
from shopcart.core.logging_config import setup_logging
from shopcart.integrations.http_client import ApiClient
from shopcart.integrations.sentry_integration import init_sentry
from shopcart.integrations.session_store import (
    MemorySessionStore,
    RedisSessionStore,
    SessionStore,
)
from shopcart.services.auth_state import AuthState
from shopcart.services.cart_service import CartSessionManager
from shopcart.services.guest_gate import GuestGate

logger = logging.getLogger(__name__)


@dataclass
class CartRuntime:
    client: ApiClient
    store: SessionStore
    auth: AuthState
    cart: CartSessionManager
    gate: GuestGate

    async def close(self) -> None:
        await self.client.close()
        if isinstance(self.store, RedisSessionStore):
            await self.store.close()


async def build_runtime(
    settings: Settings,
    *,
    store: SessionStore | None = None,
    namespace: str = "default",
) -> CartRuntime:
    """Create cart runtime components and resolve the cart once."""
    setup_logging()
    if settings.enable_error_reporting:
        init_sentry(settings.sentry_dsn, environment=settings.environment)

    if store is None:
        if settings.redis_url:
            store = RedisSessionStore(settings.redis_url, namespace=namespace)
        else:
            logger.info("REDIS_URL not set, session state kept in memory")
            store = MemorySessionStore()

    client = ApiClient.from_settings(settings)
    auth = AuthState(store)
    await auth.load()

    cart = CartSessionManager(client, store, auth)
    gate = GuestGate(cart, auth, store)

    result = await cart.initialize()
    if not result.ok:
        logger.warning("Cart could not be resolved at startup: %s", result.error)

    return CartRuntime(client=client, store=store, auth=auth, cart=cart, gate=gate)
