from shopcart.core.order_math import (
    calc_delivery_charge,
    calc_subtotal,
    calc_total,
    compute_totals,
)
from shopcart.domain.cart import Cart
from shopcart.domain.order import ShippingRegion


def _cart(**fields) -> Cart:
    return Cart.model_validate({"id": "c1", **fields})


def test_total_adds_delivery_and_subtracts_coupon() -> None:
    cart = _cart(subtotal="500.00", coupon_discount=0, delivery_charge_inside_dhaka=60)
    totals = compute_totals(cart, ShippingRegion.INSIDE)
    assert totals.subtotal == 500
    assert totals.delivery_charge == 60
    assert totals.total == 560


def test_subtotal_falls_back_to_total_amount() -> None:
    assert calc_subtotal(_cart(total_amount="1,250")) == 1250


def test_outside_region_uses_default_charge_when_missing() -> None:
    assert calc_delivery_charge(_cart(), ShippingRegion.OUTSIDE) == 120
    assert calc_delivery_charge(_cart(), ShippingRegion.INSIDE) == 60


def test_region_specific_charge_wins_over_default() -> None:
    cart = _cart(delivery_charge_inside_dhaka=0, delivery_charge_outside_dhaka=150)
    assert calc_delivery_charge(cart, ShippingRegion.INSIDE) == 0
    assert calc_delivery_charge(cart, ShippingRegion.OUTSIDE) == 150


def test_total_is_clamped_at_zero() -> None:
    assert calc_total(100, 500, 60) == 0
    totals = compute_totals(_cart(subtotal=100, coupon_discount=500), ShippingRegion.INSIDE)
    assert totals.total == 0


def test_item_count_sums_quantities() -> None:
    cart = _cart(items=[{"id": 1, "variant": 5, "quantity": 2}, {"id": 2, "variant": 6, "quantity": 3}])
    assert compute_totals(cart).item_count == 5


def test_missing_cart_gives_zero_totals() -> None:
    totals = compute_totals(None)
    assert totals.total == 0
    assert totals.item_count == 0
