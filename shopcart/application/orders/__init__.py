"""Order use cases."""

from shopcart.application.orders.checkout import CheckoutOutcome, CheckoutResult, checkout

__all__ = ["CheckoutOutcome", "CheckoutResult", "checkout"]
