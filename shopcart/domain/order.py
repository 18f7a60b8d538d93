"""Order submission types, shipping regions and payment methods."""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from shopcart.core.constants import (
    DEFAULT_DELIVERY_INSIDE,
    DEFAULT_DELIVERY_OUTSIDE,
    EMAIL_PATTERN,
    PHONE_PATTERN,
)
from shopcart.core.exceptions import InvalidPaymentMethodError, InvalidShippingRegionError


class ShippingRegion(Enum):
    """Delivery area used for the delivery charge."""

    INSIDE = "IN"  # Inside Dhaka
    OUTSIDE = "OUT"  # Outside Dhaka

    @property
    def default_charge(self) -> int:
        if self is ShippingRegion.INSIDE:
            return DEFAULT_DELIVERY_INSIDE
        return DEFAULT_DELIVERY_OUTSIDE

    @classmethod
    def normalize(cls, value: ShippingRegion | str | None) -> ShippingRegion:
        if isinstance(value, ShippingRegion):
            return value
        if value is None or not str(value).strip():
            return cls.INSIDE
        key = str(value).strip().upper()
        if key in ("IN", "INSIDE"):
            return cls.INSIDE
        if key in ("OUT", "OUTSIDE"):
            return cls.OUTSIDE
        raise InvalidShippingRegionError(value)


class PaymentMethod(Enum):
    """Supported payment methods."""

    COD = "COD"  # Cash on delivery
    OP = "OP"  # Online payment via gateway redirect

    @classmethod
    def normalize(cls, value: PaymentMethod | str | None) -> PaymentMethod:
        if isinstance(value, PaymentMethod):
            return value
        # Missing method means cash on delivery; anything else must be known
        if value is None or not str(value).strip():
            return cls.COD
        key = str(value).strip().upper()
        if key in ("COD", "CASH"):
            return cls.COD
        if key in ("OP", "ONLINE"):
            return cls.OP
        raise InvalidPaymentMethodError(value)


@dataclass
class ShippingAddress:
    name: str = ""
    phone: str = ""
    email: str = ""
    address: str = ""
    city: str = ""
    postal_code: str = ""

    def full_text(self) -> str:
        parts = [self.address, self.city, self.postal_code]
        return ", ".join(part.strip() for part in parts if part and part.strip())


def validate_guest_address(address: ShippingAddress) -> dict[str, str]:
    """Validate the contact fields a guest order needs.

    Returns:
        Mapping of field name to error message; empty when valid
    """
    errors: dict[str, str] = {}

    if not address.name.strip():
        errors["name"] = "Name is required"

    phone = re.sub(r"\s", "", address.phone or "")
    if not phone:
        errors["phone"] = "Phone is required"
    elif not re.match(PHONE_PATTERN, phone):
        errors["phone"] = "Invalid phone number"

    if not address.email:
        errors["email"] = "Email is required for guest checkout"
    elif not re.search(EMAIL_PATTERN, address.email):
        errors["email"] = "Invalid email address"

    if not address.full_text():
        errors["address"] = "Address is required"

    return errors


@dataclass
class OrderSubmission:
    """Payload sent to the orders endpoint."""

    cart_id: str
    payment_method: PaymentMethod
    region: ShippingRegion
    is_guest: bool
    address: ShippingAddress
    notes: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "cart_id": self.cart_id,
            "payment_method": self.payment_method.value,
            "area": self.region.value,
        }
        if self.notes:
            payload["notes"] = self.notes

        full_address = self.address.full_text()
        if self.is_guest:
            payload["name"] = self.address.name.strip()
            payload["email"] = self.address.email.strip()
            payload["phone"] = re.sub(r"\s", "", self.address.phone)
            payload["shipping_address"] = full_address
        elif full_address:
            payload["shipping_address"] = full_address
        return payload
