"""Tests for shopcart.core modules."""
from __future__ import annotations

import logging

from shopcart.core.exceptions import (
    CartUnavailableError,
    ConfigurationException,
    DomainError,
    EmptyCartError,
    InvalidPaymentMethodError,
    InvalidQuantityError,
    InvalidShippingRegionError,
    NoVariantError,
    ShopCartException,
)
from shopcart.core.logging_config import setup_logging


class TestExceptions:
    """Test custom exception classes."""

    def test_base_exception(self):
        exc = ShopCartException("test message")
        assert str(exc) == "test message"
        assert exc.message == "test message"
        assert exc.error_key == "error"

    def test_no_variant_error(self):
        exc = NoVariantError(42)
        assert exc.product_id == 42
        assert "42" in str(exc)
        assert exc.error_key == "no_variant"

    def test_no_variant_error_without_product(self):
        assert NoVariantError().message == "Product has no purchasable variant"

    def test_invalid_quantity_error(self):
        exc = InvalidQuantityError(0)
        assert exc.quantity == 0
        assert exc.error_key == "invalid_quantity"

    def test_empty_cart_error(self):
        assert EmptyCartError().message == "Cart is empty"

    def test_cart_unavailable_default_message(self):
        exc = CartUnavailableError()
        assert exc.reason is None
        assert "try again" in exc.message
        assert CartUnavailableError("Server down").message == "Server down"

    def test_invalid_payment_method_error(self):
        exc = InvalidPaymentMethodError("card")
        assert exc.method == "card"
        assert exc.error_key == "invalid_payment_method"
        assert "card" in exc.message

    def test_invalid_shipping_region_error(self):
        exc = InvalidShippingRegionError("north")
        assert exc.region == "north"
        assert exc.error_key == "invalid_shipping_region"

    def test_inheritance(self):
        for exc in (
            NoVariantError(),
            InvalidQuantityError(0),
            EmptyCartError(),
            CartUnavailableError(),
            InvalidPaymentMethodError("x"),
            InvalidShippingRegionError("x"),
        ):
            assert isinstance(exc, DomainError)
            assert isinstance(exc, ShopCartException)
        assert not isinstance(ConfigurationException("x"), DomainError)


class TestLogging:
    def test_setup_logging_is_idempotent(self):
        first = setup_logging("DEBUG")
        handlers = list(first.handlers)
        second = setup_logging("WARNING")
        assert first is second
        assert second.handlers == handlers
        assert second.level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        assert setup_logging("LOUD").level == logging.INFO
