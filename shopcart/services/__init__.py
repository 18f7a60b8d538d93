"""Services orchestrating the cart session."""

from .auth_state import AuthState, AuthTokens
from .cart_service import CartOperationResult, CartSessionManager, CartState
from .guest_gate import GuestGate, PendingAction

__all__ = [
    "AuthState",
    "AuthTokens",
    "CartOperationResult",
    "CartSessionManager",
    "CartState",
    "GuestGate",
    "PendingAction",
]
