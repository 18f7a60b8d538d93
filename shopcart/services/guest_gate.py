"""Guest gating for add-to-cart by unauthenticated users."""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from shopcart.core.constants import GUEST_MODE_KEY
from shopcart.integrations.session_store import SessionStore
from shopcart.services.auth_state import AuthState
from shopcart.services.cart_service import CartOperationResult, CartSessionManager

logger = logging.getLogger(__name__)

GUEST_DECISION_REQUIRED = "guest_decision_required"


@dataclass
class PendingAction:
    """Add-to-cart call held back until the guest/login decision."""

    product: dict[str, Any]
    quantity: int = 1
    variant: Any = None


class GuestGate:
    """Suspends add_item for anonymous users until they pick guest or login.

    The presentation layer shows the choice when a gated result comes back
    (or when ``on_decision_required`` fires) and answers with
    ``continue_as_guest()`` or ``choose_login()``.
    """

    def __init__(
        self,
        cart: CartSessionManager,
        auth: AuthState,
        store: SessionStore,
        on_decision_required: Callable[[PendingAction], Any] | None = None,
    ):
        self._cart = cart
        self._auth = auth
        self._store = store
        self._on_decision_required = on_decision_required
        self._pending: PendingAction | None = None

    @property
    def pending(self) -> PendingAction | None:
        return self._pending

    async def is_guest_mode(self) -> bool:
        return bool(await self._store.get(GUEST_MODE_KEY))

    async def add_item(
        self,
        product: dict[str, Any],
        quantity: int = 1,
        variant: Any = None,
    ) -> CartOperationResult:
        if self._auth.is_authenticated or await self.is_guest_mode():
            return await self._cart.add_item(product, quantity, variant)

        # Only the latest attempt is kept
        self._pending = PendingAction(product=product, quantity=quantity, variant=variant)
        logger.info("Add to cart deferred until guest/login decision (product %s)", product.get("id"))
        if self._on_decision_required is not None:
            self._on_decision_required(self._pending)
        return CartOperationResult(
            False,
            GUEST_DECISION_REQUIRED,
            "Please log in or continue as guest",
            cart=self._cart.cart,
            gated=True,
        )

    async def continue_as_guest(self) -> CartOperationResult:
        await self._store.set(GUEST_MODE_KEY, "1")
        pending, self._pending = self._pending, None
        if pending is None:
            return CartOperationResult(True, cart=self._cart.cart)

        logger.info("Continuing as guest; replaying deferred add to cart")
        return await self._cart.add_item(pending.product, pending.quantity, pending.variant)

    def choose_login(self) -> None:
        # The caller re-adds the item after authenticating
        self._pending = None
