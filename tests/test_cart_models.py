"""Tests for the cart pydantic models and their tolerant parsers."""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from shopcart.domain.cart import Cart, CartLine, parse_amount, parse_attributes


@pytest.mark.parametrize(
    "raw, expected",
    [
        ({"size": "M", "color": None}, {"size": "M"}),
        ('{"size": "L"}', {"size": "L"}),
        ('[{"name": "size", "value": "S"}]', {"size": "S"}),
        ([{"key": "color", "value": "Red"}, {"attribute": "fit", "value": "Slim"}], {"color": "Red", "fit": "Slim"}),
        ("size: M, color: Blue", {"size": "M", "color": "Blue"}),
        ("{broken", {}),
        ("", {}),
        (None, {}),
        (17, {}),
    ],
)
def test_parse_attributes(raw, expected):
    assert parse_attributes(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [(10, 10.0), ("1,250.50", 1250.5), (" 99 ", 99.0), ("", 0.0), ("abc", 0.0), (None, 0.0), (True, 0.0)],
)
def test_parse_amount(raw, expected):
    assert parse_amount(raw) == expected


def test_parse_amount_custom_default():
    assert parse_amount("n/a", default=None) is None


def test_line_total_prefers_server_value():
    line = CartLine.model_validate({"id": 1, "variant": {"id": 5, "price": "300"}, "quantity": 2, "total_price": "550"})
    assert line.line_total == 550


def test_line_total_falls_back_to_unit_price():
    line = CartLine.model_validate(
        {"id": 1, "variant": {"id": 5, "price": 300, "final_price": 250}, "quantity": 3}
    )
    assert line.variant.unit_price == 250
    assert line.line_total == 750


def test_variant_given_as_bare_id():
    line = CartLine.model_validate({"id": 3, "variant": "12", "quantity": 1})
    assert line.variant.id == 12


def test_line_rejects_zero_quantity():
    with pytest.raises(ValidationError):
        CartLine.model_validate({"id": 1, "variant": 5, "quantity": 0})


def test_cart_parsing_is_tolerant():
    cart = Cart.model_validate(
        {
            "id": 77,
            "items": None,
            "subtotal": "",
            "coupon_discount": "20",
            "delivery_charge_inside_dhaka": "60",
            "unexpected": "ignored",
        }
    )
    assert cart.id == "77"
    assert cart.is_empty
    assert cart.subtotal is None
    assert cart.coupon_discount == 20
    assert cart.delivery_charge_inside_dhaka == 60
    assert cart.delivery_charge_outside_dhaka is None


def test_cart_requires_id():
    with pytest.raises(ValidationError):
        Cart.model_validate({"id": "", "items": []})


def test_find_line_and_item_count():
    cart = Cart.model_validate(
        {
            "id": "c",
            "items": [
                {"id": 1, "variant": 5, "quantity": 2},
                {"id": 2, "variant": 6, "quantity": 4},
            ],
        }
    )
    assert cart.item_count == 6
    assert cart.find_line(2).quantity == 4
    assert cart.find_line(99) is None
