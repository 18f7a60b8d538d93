"""Domain package."""

from .cart import Cart, CartLine, VariantSnapshot, parse_amount, parse_attributes
from .order import (
    OrderSubmission,
    PaymentMethod,
    ShippingAddress,
    ShippingRegion,
    validate_guest_address,
)
from .variants import resolve_variant_id

__all__ = [
    # Cart
    "Cart",
    "CartLine",
    "VariantSnapshot",
    "parse_amount",
    "parse_attributes",
    # Orders
    "OrderSubmission",
    "PaymentMethod",
    "ShippingAddress",
    "ShippingRegion",
    "validate_guest_address",
    # Variants
    "resolve_variant_id",
]
