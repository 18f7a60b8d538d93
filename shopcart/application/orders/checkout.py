"""Use case: place an order for the current cart."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from shopcart.core.constants import ORDERS_ENDPOINT
from shopcart.core.exceptions import EmptyCartError, InvalidPaymentMethodError
from shopcart.domain.order import (
    OrderSubmission,
    PaymentMethod,
    ShippingAddress,
    validate_guest_address,
)
from shopcart.integrations.http_client import ApiClient
from shopcart.services.auth_state import AuthState
from shopcart.services.cart_service import CartSessionManager

logger = logging.getLogger(__name__)

PAYMENT_URL_KEYS = ("payment_url", "GatewayPageURL")


class CheckoutOutcome:
    REDIRECT = "redirect"  # Online payment pending at the gateway
    PLACED = "placed"  # Cash on delivery, order finalized
    FAILED = "failed"


@dataclass
class CheckoutResult:
    ok: bool
    outcome: str = CheckoutOutcome.FAILED
    error_key: str | None = None
    error: str | None = None
    order_id: str | None = None
    payment_url: str | None = None
    errors: dict[str, str] = field(default_factory=dict)


def _payment_url(data: Any) -> str | None:
    if not isinstance(data, dict):
        return None
    for key in PAYMENT_URL_KEYS:
        if data.get(key):
            return str(data[key])
    return None


def _order_id(data: Any) -> str | None:
    if not isinstance(data, dict):
        return None
    value = data.get("id") or data.get("order_id")
    return str(value) if value is not None else None


async def checkout(
    shipping_address: ShippingAddress,
    payment_method: PaymentMethod | str | None,
    notes: str | None = None,
    *,
    cart_manager: CartSessionManager,
    auth: AuthState,
    client: ApiClient,
) -> CheckoutResult:
    """Submit the current cart as an order.

    Cart mutations from other tasks wait until the order is submitted and,
    for cash on delivery, the replacement cart is in place.
    """
    try:
        method = PaymentMethod.normalize(payment_method)
    except InvalidPaymentMethodError as exc:
        logger.warning("Checkout rejected: %s", exc.message)
        return CheckoutResult(False, error_key=exc.error_key, error=exc.message)

    async with cart_manager.exclusive():
        return await _submit(shipping_address, method, notes, cart_manager, auth, client)


async def _submit(
    shipping_address: ShippingAddress,
    method: PaymentMethod,
    notes: str | None,
    cart_manager: CartSessionManager,
    auth: AuthState,
    client: ApiClient,
) -> CheckoutResult:
    cart = cart_manager.cart
    if cart is None or cart.is_empty:
        exc = EmptyCartError()
        return CheckoutResult(False, error_key=exc.error_key, error=exc.message)

    is_guest = not auth.is_authenticated
    if is_guest:
        errors = validate_guest_address(shipping_address)
        if errors:
            return CheckoutResult(
                False,
                error_key="invalid_address",
                error="Please fill in all required fields correctly",
                errors=errors,
            )

    submission = OrderSubmission(
        cart_id=cart.id,
        payment_method=method,
        region=cart_manager.shipping_region,
        is_guest=is_guest,
        address=shipping_address,
        notes=notes,
    )

    config = None if is_guest else ApiClient.with_auth(auth.token)
    response = await client.post(ORDERS_ENDPOINT, submission.to_payload(), config)

    if not response.success:
        logger.warning("Order creation failed for cart %s: %s", cart.id, response.error)
        return CheckoutResult(False, error_key="order_failed", error=response.error)

    payment_url = _payment_url(response.data)
    if payment_url:
        # Payment is not confirmed yet, so the cart stays as it is
        logger.info("Order for cart %s awaits online payment", cart.id)
        return CheckoutResult(
            True,
            outcome=CheckoutOutcome.REDIRECT,
            order_id=_order_id(response.data),
            payment_url=payment_url,
        )

    order_id = _order_id(response.data)
    logger.info("Order %s placed for cart %s", order_id, cart.id)

    renewed = await cart_manager.start_new_cart()
    if not renewed.ok:
        logger.error("Order %s placed but a new cart could not be created: %s", order_id, renewed.error)

    return CheckoutResult(True, outcome=CheckoutOutcome.PLACED, order_id=order_id)
