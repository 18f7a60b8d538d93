"""
Variant and display-field resolution for catalog product payloads.

Catalog payloads expose the same information under several field names.
Each resolver walks a fixed priority list and returns the first usable value.

Variant id priority:
1. explicit override (a variant dict or an id)
2. product["default_variant"]
3. product["variants"][0]
4. product["variant_id"]
"""
from __future__ import annotations

from typing import Any

from shopcart.core.exceptions import NoVariantError

DEFAULT_DISPLAY_STOCK = 10


def _variant_id(candidate: Any) -> int | None:
    if candidate is None or isinstance(candidate, bool):
        return None
    if isinstance(candidate, dict):
        return _variant_id(candidate.get("id"))
    try:
        return int(candidate)
    except (TypeError, ValueError):
        return None


def _first_variant(product: dict[str, Any]) -> Any:
    variants = product.get("variants")
    if isinstance(variants, list) and variants:
        return variants[0]
    return None


def resolve_variant_id(product: dict[str, Any], override: Any = None) -> int:
    """Return the variant id to add to the cart.

    Raises:
        NoVariantError: if no candidate yields an integer id
    """
    candidates = (
        override,
        product.get("default_variant"),
        _first_variant(product),
        product.get("variant_id"),
    )
    for candidate in candidates:
        variant_id = _variant_id(candidate)
        if variant_id is not None:
            return variant_id
    raise NoVariantError(product.get("id"))


def _display_variant(product: dict[str, Any]) -> dict[str, Any]:
    variant = product.get("default_variant") or _first_variant(product)
    return variant if isinstance(variant, dict) else {}


def _number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def resolve_name(product: dict[str, Any]) -> str:
    return str(product.get("name") or product.get("title") or "")


def resolve_price(product: dict[str, Any]) -> float:
    """Selling price: variant final_price, variant price, product price."""
    variant = _display_variant(product)
    for value in (variant.get("final_price"), variant.get("price"), product.get("price")):
        number = _number(value)
        if number:
            return number
    return 0.0


def resolve_original_price(product: dict[str, Any]) -> float:
    variant = _display_variant(product)
    return _number(variant.get("price")) or _number(product.get("price")) or 0.0


def resolve_discount_percent(product: dict[str, Any]) -> int:
    original = resolve_original_price(product)
    final = resolve_price(product)
    if original <= 0 or final >= original:
        return 0
    return round((original - final) / original * 100)


def resolve_image(product: dict[str, Any]) -> str | None:
    variant = _display_variant(product)
    if variant.get("image"):
        return variant["image"]
    if product.get("image"):
        return product["image"]
    images = product.get("images")
    if isinstance(images, list) and images:
        first = images[0]
        if isinstance(first, dict) and first.get("image"):
            return first["image"]
        if isinstance(first, str) and first:
            return first
    return product.get("feature_image") or None


def resolve_stock(product: dict[str, Any]) -> int:
    variant = _display_variant(product)
    for value in (variant.get("available_stock"), variant.get("stock"), product.get("stock")):
        number = _number(value)
        if number is not None:
            return int(number)
    return DEFAULT_DISPLAY_STOCK
