"""Custom exceptions for the cart client."""
from __future__ import annotations


class ShopCartException(Exception):
    """Base exception for all cart client errors."""

    error_key = "error"

    def __init__(self, message: str, *args: object) -> None:
        super().__init__(message, *args)
        self.message = message


class ConfigurationException(ShopCartException):
    """Configuration errors."""

    error_key = "configuration_error"


class DomainError(ShopCartException):
    """Expected business-rule failures, converted to results by services."""

    pass


class NoVariantError(DomainError):
    """Product carries no resolvable variant identifier."""

    error_key = "no_variant"

    def __init__(self, product_id: object = None) -> None:
        if product_id is None:
            super().__init__("Product has no purchasable variant")
        else:
            super().__init__(f"Product {product_id} has no purchasable variant")
        self.product_id = product_id


class InvalidQuantityError(DomainError):
    """Quantity below the allowed minimum."""

    error_key = "invalid_quantity"

    def __init__(self, quantity: object) -> None:
        super().__init__(f"Quantity must be at least 1, got {quantity}")
        self.quantity = quantity


class EmptyCartError(DomainError):
    """Checkout attempted without any cart lines."""

    error_key = "empty_cart"

    def __init__(self) -> None:
        super().__init__("Cart is empty")


class CartUnavailableError(DomainError):
    """No cart could be fetched or provisioned."""

    error_key = "cart_unavailable"

    def __init__(self, reason: str | None = None) -> None:
        super().__init__(reason or "Cart is not available. Please try again.")
        self.reason = reason


class InvalidPaymentMethodError(DomainError):
    """Payment method is not one the order endpoint accepts."""

    error_key = "invalid_payment_method"

    def __init__(self, method: object) -> None:
        super().__init__(f"Unsupported payment method: {method!r}")
        self.method = method


class InvalidShippingRegionError(DomainError):
    """Shipping region is neither inside nor outside Dhaka."""

    error_key = "invalid_shipping_region"

    def __init__(self, region: object) -> None:
        super().__init__(f"Unknown shipping region: {region!r}")
        self.region = region
