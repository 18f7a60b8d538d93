"""
Pydantic models for cart data returned by the commerce service.

The service is not strict about shapes:
- Amounts may arrive as numbers or numeric strings
- Variant attributes are a loosely structured blob
- Line totals are sometimes omitted

All of that is absorbed here so services only see typed values.
"""
from __future__ import annotations

import json
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def parse_amount(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    """Parse a monetary value; blanks and garbage become ``default``."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        clean = value.strip().replace(",", "")
        if not clean:
            return default
        try:
            return float(clean)
        except ValueError:
            return default
    return default


def _optional_amount(value: Any) -> Optional[float]:
    return parse_amount(value, default=None)


def parse_attributes(raw: Any) -> dict[str, str]:
    """
    Parse a variant attributes blob into a flat mapping.

    Accepted shapes:
    - {"size": "M", "color": "Red"}
    - '{"size": "M"}' or '[{"name": "size", "value": "M"}]' (JSON text)
    - [{"name"|"key"|"attribute": "size", "value": "M"}, ...]
    - "size: M, color: Red"

    Anything else yields an empty dict.
    """
    if raw is None:
        return {}

    if isinstance(raw, dict):
        return {str(k): str(v) for k, v in raw.items() if v is not None}

    if isinstance(raw, list):
        result: dict[str, str] = {}
        for entry in raw:
            if not isinstance(entry, dict):
                continue
            name = entry.get("name") or entry.get("key") or entry.get("attribute")
            value = entry.get("value")
            if name and value is not None:
                result[str(name)] = str(value)
        return result

    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return {}
        if text[0] in "[{":
            try:
                return parse_attributes(json.loads(text))
            except ValueError:
                return {}
        result = {}
        for part in text.split(","):
            if ":" not in part:
                continue
            key, _, value = part.partition(":")
            if key.strip():
                result[key.strip()] = value.strip()
        return result

    return {}


class VariantSnapshot(BaseModel):
    """Variant data embedded in a cart line."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    name: str = ""
    price: float = 0.0
    final_price: Optional[float] = None
    stock: Optional[int] = None
    attributes: dict[str, str] = Field(default_factory=dict)

    @field_validator("price", mode="before")
    @classmethod
    def parse_price(cls, v: Any) -> float:
        return parse_amount(v)

    @field_validator("final_price", mode="before")
    @classmethod
    def parse_final_price(cls, v: Any) -> Optional[float]:
        return _optional_amount(v)

    @field_validator("stock", mode="before")
    @classmethod
    def parse_stock(cls, v: Any) -> Optional[int]:
        amount = _optional_amount(v)
        return None if amount is None else int(amount)

    @field_validator("attributes", mode="before")
    @classmethod
    def parse_attributes_blob(cls, v: Any) -> dict[str, str]:
        return parse_attributes(v)

    @property
    def unit_price(self) -> float:
        if self.final_price is not None and self.final_price > 0:
            return self.final_price
        return self.price


class CartLine(BaseModel):
    """Single line in a server cart."""

    model_config = ConfigDict(extra="ignore")

    id: int
    variant: VariantSnapshot = Field(default_factory=VariantSnapshot)
    quantity: int = Field(default=1, ge=1)
    total_price: Optional[float] = None

    @field_validator("variant", mode="before")
    @classmethod
    def parse_variant(cls, v: Any) -> Any:
        # Some responses only carry the variant id
        if isinstance(v, (int, str)) and not isinstance(v, bool):
            try:
                return {"id": int(v)}
            except ValueError:
                return {}
        return v or {}

    @field_validator("total_price", mode="before")
    @classmethod
    def parse_total(cls, v: Any) -> Optional[float]:
        return _optional_amount(v)

    @property
    def line_total(self) -> float:
        if self.total_price is not None:
            return self.total_price
        return self.variant.unit_price * self.quantity


class Cart(BaseModel):
    """Server-authoritative cart snapshot."""

    model_config = ConfigDict(extra="ignore")

    id: str
    items: list[CartLine] = Field(default_factory=list)
    subtotal: Optional[float] = None
    coupon_discount: float = 0.0
    delivery_charge_inside_dhaka: Optional[float] = None
    delivery_charge_outside_dhaka: Optional[float] = None
    total_amount: float = 0.0

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v: Any) -> str:
        if v is None or str(v).strip() == "":
            raise ValueError("cart id is required")
        return str(v)

    @field_validator("items", mode="before")
    @classmethod
    def default_items(cls, v: Any) -> Any:
        return v if isinstance(v, list) else []

    @field_validator(
        "subtotal", "delivery_charge_inside_dhaka", "delivery_charge_outside_dhaka", mode="before"
    )
    @classmethod
    def parse_optional_amounts(cls, v: Any) -> Optional[float]:
        return _optional_amount(v)

    @field_validator("coupon_discount", "total_amount", mode="before")
    @classmethod
    def parse_amounts(cls, v: Any) -> float:
        return parse_amount(v)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def find_line(self, line_id: int) -> CartLine | None:
        for line in self.items:
            if line.id == line_id:
                return line
        return None
