"""Key/value session storage for the cart id, guest flag and auth tokens."""
from __future__ import annotations

import logging
from typing import Any, Protocol

from redis import asyncio as aioredis

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    """Async key/value persistence used by the cart services."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...


class MemorySessionStore:
    """Process-local store; also the fallback for RedisSessionStore."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)


class RedisSessionStore:
    """Session storage persisted in Redis with in-memory fallback.

    Keys are namespaced per device/session so several clients can share
    one Redis instance.
    """

    KEY_PREFIX = "shopcart"

    def __init__(self, redis_url: str | None, namespace: str = "default"):
        self._redis_url = redis_url
        self._namespace = namespace
        self._client = self._init_client()
        self._memory = MemorySessionStore()

    def _init_client(self) -> Any:
        if not self._redis_url:
            logger.warning("REDIS_URL is not set; session store uses in-memory fallback")
            return None
        try:
            client = aioredis.from_url(
                self._redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
        except Exception as exc:
            logger.warning("Redis session store init failed, fallback to in-memory: %s", exc)
            return None
        logger.info("Redis session store enabled")
        return client

    @property
    def using_fallback(self) -> bool:
        return self._client is None

    def _key(self, key: str) -> str:
        return f"{self.KEY_PREFIX}:{self._namespace}:{key}"

    def _switch_to_memory_fallback(self, reason: Exception | str) -> None:
        logger.warning("Redis session store fallback to memory mode: %s", reason)
        self._client = None

    async def get(self, key: str) -> str | None:
        if self._client is not None:
            try:
                return await self._client.get(self._key(key))
            except Exception as exc:
                self._switch_to_memory_fallback(exc)
        return await self._memory.get(key)

    async def set(self, key: str, value: str) -> None:
        if self._client is not None:
            try:
                await self._client.set(self._key(key), value)
                return
            except Exception as exc:
                self._switch_to_memory_fallback(exc)
        await self._memory.set(key, value)

    async def delete(self, key: str) -> None:
        if self._client is not None:
            try:
                await self._client.delete(self._key(key))
                return
            except Exception as exc:
                self._switch_to_memory_fallback(exc)
        await self._memory.delete(key)

    async def close(self) -> None:
        if self._client is not None:
            try:
                await self._client.aclose()
            except Exception as exc:
                logger.warning("Failed to close Redis session store: %s", exc)
