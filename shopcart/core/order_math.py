"""Shared helpers for cart totals and quantities."""
from __future__ import annotations

from dataclasses import dataclass

from shopcart.domain.cart import Cart
from shopcart.domain.order import ShippingRegion


@dataclass(frozen=True)
class CartTotals:
    subtotal: float
    delivery_charge: float
    discount: float
    total: float
    item_count: int


def calc_subtotal(cart: Cart) -> float:
    if cart.subtotal is not None:
        return cart.subtotal
    return cart.total_amount


def calc_delivery_charge(cart: Cart, region: ShippingRegion) -> float:
    if region is ShippingRegion.INSIDE:
        charge = cart.delivery_charge_inside_dhaka
    else:
        charge = cart.delivery_charge_outside_dhaka
    if charge is None:
        return float(region.default_charge)
    return charge


def calc_total(subtotal: float, discount: float, delivery_charge: float) -> float:
    # Never negative, even when the coupon exceeds the order
    return max(0.0, subtotal - discount + delivery_charge)


def calc_item_count(cart: Cart) -> int:
    return sum(line.quantity for line in cart.items)


def compute_totals(cart: Cart | None, region: ShippingRegion = ShippingRegion.INSIDE) -> CartTotals:
    if cart is None:
        return CartTotals(0.0, 0.0, 0.0, 0.0, 0)
    subtotal = calc_subtotal(cart)
    delivery = calc_delivery_charge(cart, region)
    discount = cart.coupon_discount
    return CartTotals(
        subtotal=subtotal,
        delivery_charge=delivery,
        discount=discount,
        total=calc_total(subtotal, discount, delivery),
        item_count=calc_item_count(cart),
    )
