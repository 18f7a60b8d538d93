"""Integrations package - HTTP, session storage and error tracking."""

from shopcart.integrations.http_client import ApiClient, ApiResponse, ErrorKind, RequestConfig
from shopcart.integrations.session_store import (
    MemorySessionStore,
    RedisSessionStore,
    SessionStore,
)

__all__ = [
    "ApiClient",
    "ApiResponse",
    "ErrorKind",
    "RequestConfig",
    "MemorySessionStore",
    "RedisSessionStore",
    "SessionStore",
]
