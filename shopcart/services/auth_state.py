"""Read-only view of the persisted auth session."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from shopcart.core.constants import AUTH_TOKENS_KEY, AUTH_USER_KEY, GUEST_MODE_KEY
from shopcart.integrations.session_store import SessionStore

logger = logging.getLogger(__name__)


@dataclass
class AuthTokens:
    access: str
    refresh: str | None = None


class AuthState:
    """Current token and authenticated flag, loaded from the session store.

    Login itself happens elsewhere; this class only reads what was stored
    and owns logout, which also drops the guest-mode flag.
    """

    def __init__(self, store: SessionStore):
        self._store = store
        self._tokens: AuthTokens | None = None
        self._user: dict[str, Any] | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self._tokens and self._tokens.access)

    @property
    def token(self) -> str | None:
        return self._tokens.access if self._tokens else None

    @property
    def user(self) -> dict[str, Any] | None:
        return self._user

    async def load(self) -> None:
        self._tokens = _parse_tokens(await self._store.get(AUTH_TOKENS_KEY))
        raw_user = await self._store.get(AUTH_USER_KEY)
        self._user = None
        if raw_user:
            try:
                user = json.loads(raw_user)
                self._user = user if isinstance(user, dict) else None
            except ValueError:
                logger.warning("Stored user profile is not valid JSON; ignoring it")

    async def set_session(self, tokens: AuthTokens, user: dict[str, Any] | None = None) -> None:
        self._tokens = tokens
        self._user = user
        await self._store.set(
            AUTH_TOKENS_KEY, json.dumps({"access": tokens.access, "refresh": tokens.refresh})
        )
        if user is not None:
            await self._store.set(AUTH_USER_KEY, json.dumps(user, ensure_ascii=False))

    async def logout(self) -> None:
        self._tokens = None
        self._user = None
        await self._store.delete(AUTH_TOKENS_KEY)
        await self._store.delete(AUTH_USER_KEY)
        await self._store.delete(GUEST_MODE_KEY)
        logger.info("Auth session cleared")


def _parse_tokens(raw: str | None) -> AuthTokens | None:
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except ValueError:
        logger.warning("Stored auth tokens are not valid JSON; treating as logged out")
        return None
    if not isinstance(data, dict) or not data.get("access"):
        return None
    return AuthTokens(access=str(data["access"]), refresh=data.get("refresh"))
