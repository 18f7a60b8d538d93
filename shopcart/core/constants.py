"""Shared constants for the cart client.

Centralizes endpoint paths, storage keys and defaults so services
don't repeat string literals.
"""

# ============== HTTP ==============
DEFAULT_API_URL = "https://api.hetdcl.com"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_RETRIES = 2  # extra attempts after the first one
DEFAULT_RETRY_INITIAL_DELAY = 2.0  # 2s, 4s, 8s ...
DEFAULT_RETRY_MAX_DELAY = 30.0

GENERIC_ERROR_MESSAGE = "An unexpected error occurred"
TIMEOUT_ERROR_MESSAGE = "Request timeout. Please check your internet connection."
NETWORK_ERROR_MESSAGE = "Network error. Please check your internet connection."
INVALID_RESPONSE_MESSAGE = "Invalid response from server"

# Field-level validation keys checked when extracting error messages
FIELD_ERROR_KEYS = ("email", "password", "username", "phone", "quantity", "variant_id", "cart_id")

# ============== ENDPOINTS ==============
CARTS_ENDPOINT = "/api/v1.0/customers/carts/"
ORDERS_ENDPOINT = "/api/v1.0/customers/orders/"

# ============== STORAGE KEYS ==============
CART_ID_KEY = "cart_id"
GUEST_MODE_KEY = "guest_mode"
AUTH_TOKENS_KEY = "auth_tokens"
AUTH_USER_KEY = "auth_user"

# ============== DELIVERY ==============
DEFAULT_DELIVERY_INSIDE = 60  # Inside Dhaka
DEFAULT_DELIVERY_OUTSIDE = 120  # Outside Dhaka

# ============== VALIDATION ==============
MIN_QUANTITY = 1
PHONE_PATTERN = r"^01[3-9]\d{8}$"
EMAIL_PATTERN = r"\S+@\S+\.\S+"
