"""
Cart session manager - keeps a server cart in sync with the client.

The server is authoritative: every mutation is followed by a re-fetch,
nothing is changed locally ahead of the server. The cart id is persisted
in the session store and survives restarts until the cart is cleared
or a cash-on-delivery order is placed.

States: UNINITIALIZED -> RESOLVING -> READY <-> MUTATING. Failures return
to the state the manager was in before the call.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import ValidationError

from shopcart.core.constants import CART_ID_KEY, CARTS_ENDPOINT, MIN_QUANTITY
from shopcart.core.exceptions import CartUnavailableError, DomainError, InvalidQuantityError
from shopcart.core.order_math import CartTotals, compute_totals
from shopcart.domain.cart import Cart
from shopcart.domain.order import ShippingRegion
from shopcart.domain.variants import resolve_variant_id
from shopcart.integrations.http_client import ApiClient, ApiResponse, RequestConfig
from shopcart.integrations.session_store import SessionStore
from shopcart.services.auth_state import AuthState

logger = logging.getLogger(__name__)


class CartState(Enum):
    UNINITIALIZED = "uninitialized"
    RESOLVING = "resolving"
    READY = "ready"
    MUTATING = "mutating"


@dataclass
class CartOperationResult:
    ok: bool
    error_key: str | None = None
    error: str | None = None
    cart: Cart | None = None
    gated: bool = False


def _cart_list(data: Any) -> list[Any]:
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("results"), list):
        return data["results"]
    return []


class CartSessionManager:
    """Owns the cart id lifecycle and mediates every cart mutation."""

    def __init__(
        self,
        client: ApiClient,
        store: SessionStore,
        auth: AuthState | None = None,
        *,
        region: ShippingRegion = ShippingRegion.INSIDE,
    ):
        self._client = client
        self._store = store
        self._auth = auth
        self._cart: Cart | None = None
        self._cart_id: str | None = None
        self._state = CartState.UNINITIALIZED
        self._init_task: asyncio.Task | None = None
        self._mutation_lock = asyncio.Lock()
        self._lock_owner: asyncio.Task | None = None
        self.shipping_region = region
        self.last_error: str | None = None

    # ===================== STATE =====================

    @property
    def cart(self) -> Cart | None:
        return self._cart

    @property
    def cart_id(self) -> str | None:
        return self._cart_id

    @property
    def state(self) -> CartState:
        return self._state

    @property
    def item_count(self) -> int:
        return self._cart.item_count if self._cart else 0

    def set_shipping_region(self, region: ShippingRegion | str | None) -> None:
        """Raises InvalidShippingRegionError for anything but IN/INSIDE/OUT/OUTSIDE."""
        self.shipping_region = ShippingRegion.normalize(region)

    def totals(self) -> CartTotals:
        return compute_totals(self._cart, self.shipping_region)

    def _auth_config(self) -> RequestConfig | None:
        token = self._auth.token if self._auth else None
        return ApiClient.with_auth(token) if token else None

    def _cart_url(self, cart_id: str) -> str:
        return f"{CARTS_ENDPOINT}{cart_id}/"

    def _line_url(self, cart_id: str, line_id: int | None = None) -> str:
        if line_id is None:
            return f"{CARTS_ENDPOINT}{cart_id}/items/"
        return f"{CARTS_ENDPOINT}{cart_id}/items/{line_id}/"

    def _failure(self, error_key: str, error: str | None) -> CartOperationResult:
        self.last_error = error
        return CartOperationResult(False, error_key, error, cart=self._cart)

    def _domain_failure(self, exc: DomainError) -> CartOperationResult:
        logger.info("Cart operation rejected: %s", exc.message)
        return self._failure(exc.error_key, exc.message)

    def _api_failure(self, error_key: str, response: ApiResponse) -> CartOperationResult:
        return self._failure(error_key, response.error)

    def _success(self) -> CartOperationResult:
        self.last_error = None
        return CartOperationResult(True, cart=self._cart)

    async def _adopt(self, cart: Cart) -> None:
        if cart.id != self._cart_id:
            await self._store.set(CART_ID_KEY, cart.id)
            logger.info("Cart id set to %s", cart.id)
        self._cart_id = cart.id
        self._cart = cart

    @asynccontextmanager
    async def _mutating(self) -> AsyncIterator[None]:
        # Overlapping mutations queue here instead of interleaving
        task = asyncio.current_task()
        if task is not None and self._lock_owner is task:
            yield
            return

        async with self._mutation_lock:
            prior = self._state
            self._state = CartState.MUTATING
            self._lock_owner = task
            try:
                yield
            finally:
                self._lock_owner = None
                self._state = CartState.READY if self._cart_id else prior

    @asynccontextmanager
    async def exclusive(self) -> AsyncIterator[None]:
        """Hold off other mutations while the caller works on the current cart.

        Mutations made from inside the block by the same task run directly.
        """
        async with self._mutating():
            yield

    # ===================== REMOTE =====================

    def _parse_cart(self, data: Any) -> Cart | None:
        if not isinstance(data, dict):
            logger.warning("Cart response is not an object: %s", type(data).__name__)
            return None
        try:
            return Cart.model_validate(data)
        except ValidationError as e:
            logger.warning("Could not parse cart response: %s", e.error_count())
            return None

    async def _fetch_cart(self, cart_id: str) -> Cart | None:
        response = await self._client.get(self._cart_url(cart_id), self._auth_config())
        if not response.success:
            self.last_error = response.error
            return None
        return self._parse_cart(response.data)

    async def _create_cart(self) -> Cart | None:
        response = await self._client.post(CARTS_ENDPOINT, config=self._auth_config())
        if not response.success:
            self.last_error = response.error
            return None
        cart = self._parse_cart(response.data)
        if cart:
            logger.info("Created cart %s", cart.id)
        return cart

    async def _get_or_create_cart(self) -> Cart | None:
        response = await self._client.get(CARTS_ENDPOINT, self._auth_config())
        if response.success:
            for raw in _cart_list(response.data):
                cart = self._parse_cart(raw)
                if cart:
                    logger.info("Found existing cart %s", cart.id)
                    return cart
        else:
            logger.warning("Listing carts failed: %s", response.error)
        return await self._create_cart()

    # ===================== LIFECYCLE =====================

    async def initialize(self) -> CartOperationResult:
        """Resolve the cart: stored id first, then get-or-create.

        Concurrent callers share one in-flight resolution.
        """
        if self._init_task is None or self._init_task.done():
            self._init_task = asyncio.ensure_future(self._initialize())
        return await asyncio.shield(self._init_task)

    async def _initialize(self) -> CartOperationResult:
        prior = self._state
        if prior is not CartState.MUTATING:
            self._state = CartState.RESOLVING

        stored_id = await self._store.get(CART_ID_KEY)
        cart = None
        if stored_id:
            cart = await self._fetch_cart(stored_id)
            if cart is None:
                logger.warning("Stored cart %s could not be fetched; resolving a new one", stored_id)

        if cart is None:
            cart = await self._get_or_create_cart()

        if cart is None:
            self._state = prior
            return self._failure(CartUnavailableError.error_key, self.last_error)

        await self._adopt(cart)
        if prior is not CartState.MUTATING:
            self._state = CartState.READY
        return self._success()

    async def refresh(self) -> CartOperationResult:
        if not self._cart_id:
            return await self.initialize()

        cart = await self._fetch_cart(self._cart_id)
        if cart is None:
            return self._failure("refresh_failed", self.last_error)
        await self._adopt(cart)
        return self._success()

    async def _ensure_cart_id(self) -> str:
        if self._cart_id:
            return self._cart_id
        result = await self.initialize()
        if not self._cart_id:
            raise CartUnavailableError(result.error)
        return self._cart_id

    async def _after_mutation(self) -> CartOperationResult:
        refreshed = await self.refresh()
        if not refreshed.ok:
            # The server applied the change; the next refresh will catch up
            logger.warning("Cart refresh after mutation failed: %s", refreshed.error)
            return CartOperationResult(True, cart=self._cart)
        return refreshed

    # ===================== MUTATIONS =====================

    async def add_item(
        self,
        product: dict[str, Any],
        quantity: int = 1,
        variant: Any = None,
    ) -> CartOperationResult:
        try:
            variant_id = resolve_variant_id(product, variant)
            if quantity < MIN_QUANTITY:
                raise InvalidQuantityError(quantity)
        except DomainError as exc:
            return self._domain_failure(exc)

        async with self._mutating():
            try:
                cart_id = await self._ensure_cart_id()
            except CartUnavailableError as exc:
                return self._domain_failure(exc)

            response = await self._client.post(
                self._line_url(cart_id),
                {"variant_id": variant_id, "quantity": quantity},
                self._auth_config(),
            )
            if not response.success:
                return self._api_failure("add_failed", response)

            logger.info("Added variant %s x%s to cart %s", variant_id, quantity, cart_id)
            return await self._after_mutation()

    async def update_quantity(self, line_id: int, quantity: int) -> CartOperationResult:
        """Set a line quantity. Use remove_item to delete a line."""
        if quantity < MIN_QUANTITY:
            return self._domain_failure(InvalidQuantityError(quantity))

        async with self._mutating():
            if not self._cart_id:
                return self._domain_failure(CartUnavailableError())

            response = await self._client.patch(
                self._line_url(self._cart_id, line_id),
                {"quantity": quantity},
                self._auth_config(),
            )
            if not response.success:
                return self._api_failure("update_failed", response)
            return await self._after_mutation()

    async def remove_item(self, line_id: int) -> CartOperationResult:
        async with self._mutating():
            if not self._cart_id:
                return self._domain_failure(CartUnavailableError())

            response = await self._client.delete(
                self._line_url(self._cart_id, line_id), self._auth_config()
            )
            if not response.success:
                return self._api_failure("remove_failed", response)
            return await self._after_mutation()

    async def clear(self) -> CartOperationResult:
        """Empty the server cart and switch to a brand-new cart id."""
        async with self._mutating():
            old_id = self._cart_id
            if old_id:
                snapshot = await self._fetch_cart(old_id) or self._cart
                lines = snapshot.items if snapshot else []
                for line in lines:
                    response = await self._client.delete(
                        self._line_url(old_id, line.id), self._auth_config()
                    )
                    if not response.success:
                        return self._api_failure("clear_failed", response)

            return await self._provision_new_cart(old_id)

    async def start_new_cart(self) -> CartOperationResult:
        """Replace the current cart with a freshly created one."""
        async with self._mutating():
            return await self._provision_new_cart(self._cart_id)

    async def _provision_new_cart(self, old_id: str | None) -> CartOperationResult:
        cart = await self._create_cart()
        if cart is None:
            return self._failure(CartUnavailableError.error_key, self.last_error)
        if cart.id == old_id:
            logger.error("Server returned the previous cart id %s for a new cart", old_id)
            return self._failure("cart_reused", "Could not start a new cart. Please try again.")

        await self._adopt(cart)
        logger.info("Replaced cart %s with %s", old_id, cart.id)
        return self._success()
