"""
HTTP client for the commerce service with timeout, retry and error handling.

Every call returns an ApiResponse; HTTP-level failures never raise.

Retry rules:
- transport failures (connection refused, DNS, reset) and 5xx are retried
  with exponential backoff (2s, 4s, 8s ...)
- 4xx is never retried
- a timed-out attempt is not retried

Usage:
```python
async with ApiClient("https://api.example.com") as client:
    response = await client.get("/api/v1.0/customers/carts/")
    if response.success:
        print(response.data)
```
"""
from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Union

import aiohttp

from shopcart.core.config import Settings
from shopcart.core.constants import (
    DEFAULT_TIMEOUT_SECONDS,
    FIELD_ERROR_KEYS,
    GENERIC_ERROR_MESSAGE,
    INVALID_RESPONSE_MESSAGE,
    NETWORK_ERROR_MESSAGE,
    TIMEOUT_ERROR_MESSAGE,
)
from shopcart.core.retry import RetryPolicy, is_retryable_status
from shopcart.integrations.sentry_integration import add_breadcrumb, capture_exception

logger = logging.getLogger(__name__)


class ErrorKind:
    """Failure classes reported in ApiResponse.kind."""

    TRANSPORT = "transport"
    SERVER = "server"
    CLIENT = "client"
    INVALID_RESPONSE = "invalid_response"
    UNEXPECTED = "unexpected"


@dataclass
class RequestConfig:
    """Per-call overrides."""

    timeout: float | None = None
    retries: int | None = None
    headers: dict[str, str] = field(default_factory=dict)
    skip_error_log: bool = False

    def merged(self, other: RequestConfig | None) -> RequestConfig:
        if other is None:
            return self
        return RequestConfig(
            timeout=other.timeout if other.timeout is not None else self.timeout,
            retries=other.retries if other.retries is not None else self.retries,
            headers={**self.headers, **other.headers},
            skip_error_log=self.skip_error_log or other.skip_error_log,
        )


@dataclass
class ApiResponse:
    success: bool
    data: Any = None
    error: str | None = None
    status: int | None = None
    kind: str | None = None


# ===================== ENVELOPES =====================


@dataclass(frozen=True)
class WrappedEnvelope:
    """{"success": ..., "data": ...} or {"data": ...}"""

    data: Any
    success: bool | None = None


@dataclass(frozen=True)
class PaginatedEnvelope:
    """DRF pagination: {"results": [...], "count": N}"""

    payload: dict[str, Any]

    @property
    def results(self) -> list[Any]:
        results = self.payload.get("results")
        return results if isinstance(results, list) else []

    @property
    def count(self) -> int:
        count = self.payload.get("count")
        return count if isinstance(count, int) else len(self.results)


@dataclass(frozen=True)
class RawEnvelope:
    payload: Any


Envelope = Union[WrappedEnvelope, PaginatedEnvelope, RawEnvelope]


def classify_envelope(payload: Any) -> Envelope:
    """Classify a decoded body; checks run in priority order."""
    if isinstance(payload, dict):
        if "success" in payload and "data" in payload:
            return WrappedEnvelope(data=payload["data"], success=bool(payload["success"]))
        if "data" in payload:
            return WrappedEnvelope(data=payload["data"])
        if "results" in payload:
            return PaginatedEnvelope(payload=payload)
    return RawEnvelope(payload=payload)


def normalize_response(payload: Any) -> Any:
    """Return the innermost usable value of a response body.

    Paginated bodies are passed through unmodified so callers keep ``count``.
    """
    if payload is None:
        return None
    envelope = classify_envelope(payload)
    if isinstance(envelope, WrappedEnvelope):
        return envelope.data
    return envelope.payload


def _first(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else None
    return value


def extract_error_message(error: Any) -> str:
    """Pick the most specific human-readable message from an error body."""
    if isinstance(error, str):
        return error or GENERIC_ERROR_MESSAGE
    if not isinstance(error, dict):
        return GENERIC_ERROR_MESSAGE

    for key in ("detail", "message", "error"):
        value = _first(error.get(key))
        if isinstance(value, dict):
            return extract_error_message(value)
        if value:
            return str(value)

    non_field = _first(error.get("non_field_errors"))
    if non_field:
        return str(non_field)

    for key in FIELD_ERROR_KEYS:
        value = _first(error.get(key))
        if value:
            return str(value)

    return GENERIC_ERROR_MESSAGE


# ===================== CLIENT =====================


class ApiClient:
    """Async HTTP client with retry and response normalization."""

    DEFAULT_HEADERS = {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        retry_policy: RetryPolicy | None = None,
        session: aiohttp.ClientSession | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_policy = retry_policy or RetryPolicy()
        self._session = session
        self._owns_session = session is None
        self._sleep = sleep
        logger.info("API client initialized with base URL: %s", self.base_url)

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> ApiClient:
        policy = RetryPolicy(
            retries=settings.http.retries,
            initial_delay=settings.http.retry_initial_delay,
            max_delay=settings.http.retry_max_delay,
        )
        return cls(settings.api_url, timeout=settings.http.timeout, retry_policy=policy, **kwargs)

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed and self._owns_session:
            await self._session.close()

    @staticmethod
    def with_auth(token: str, use_jwt: bool = False) -> RequestConfig:
        """Request config carrying an Authorization header."""
        scheme = "JWT" if use_jwt else "Bearer"
        return RequestConfig(headers={"Authorization": f"{scheme} {token}"})

    async def get(self, endpoint: str, config: RequestConfig | None = None) -> ApiResponse:
        return await self.request("GET", endpoint, config=config)

    async def post(
        self, endpoint: str, body: Any = None, config: RequestConfig | None = None
    ) -> ApiResponse:
        return await self.request("POST", endpoint, body=body, config=config)

    async def patch(
        self, endpoint: str, body: Any = None, config: RequestConfig | None = None
    ) -> ApiResponse:
        return await self.request("PATCH", endpoint, body=body, config=config)

    async def delete(self, endpoint: str, config: RequestConfig | None = None) -> ApiResponse:
        return await self.request("DELETE", endpoint, config=config)

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        body: Any = None,
        config: RequestConfig | None = None,
    ) -> ApiResponse:
        cfg = RequestConfig(timeout=self.timeout).merged(config)
        policy = self.retry_policy
        if cfg.retries is not None:
            policy = dataclasses.replace(policy, retries=cfg.retries)

        logger.info("API %s %s", method, endpoint)
        add_breadcrumb(f"{method} {endpoint}", category="http")

        try:
            return await self._request_with_retry(method, endpoint, body, cfg, policy)
        except Exception as e:
            logger.exception("%s %s unexpected error: %s", method, endpoint, e)
            capture_exception(e, method=method, endpoint=endpoint)
            return ApiResponse(False, error=GENERIC_ERROR_MESSAGE, kind=ErrorKind.UNEXPECTED)

    async def _request_with_retry(
        self,
        method: str,
        endpoint: str,
        body: Any,
        cfg: RequestConfig,
        policy: RetryPolicy,
    ) -> ApiResponse:
        url = f"{self.base_url}{endpoint}"
        headers = {**self.DEFAULT_HEADERS, **cfg.headers}
        timeout = cfg.timeout if cfg.timeout is not None else self.timeout
        session = await self._get_session()

        attempt = 0
        while True:
            attempt += 1
            try:
                status, raw = await self._send(session, method, url, body, headers, timeout)
            except asyncio.TimeoutError:
                logger.error("Request timeout after %.1fs: %s %s", timeout, method, endpoint)
                return ApiResponse(False, error=TIMEOUT_ERROR_MESSAGE, kind=ErrorKind.TRANSPORT)
            except aiohttp.ClientError as e:
                if attempt < policy.max_attempts:
                    delay = policy.delay_for(attempt)
                    logger.warning(
                        "Network error on %s %s, retrying in %.1fs (attempt %s/%s): %s",
                        method,
                        endpoint,
                        delay,
                        attempt,
                        policy.max_attempts,
                        e,
                    )
                    await self._sleep(delay)
                    continue
                if not cfg.skip_error_log:
                    logger.error(
                        "%s %s failed after %s attempts: %s", method, endpoint, attempt, e
                    )
                return ApiResponse(False, error=NETWORK_ERROR_MESSAGE, kind=ErrorKind.TRANSPORT)

            if is_retryable_status(status) and attempt < policy.max_attempts:
                delay = policy.delay_for(attempt)
                logger.warning(
                    "%s %s returned %s, retrying in %.1fs (attempt %s/%s)",
                    method,
                    endpoint,
                    status,
                    delay,
                    attempt,
                    policy.max_attempts,
                )
                await self._sleep(delay)
                continue

            return self._build_response(method, endpoint, status, raw, cfg)

    async def _send(
        self,
        session: aiohttp.ClientSession,
        method: str,
        url: str,
        body: Any,
        headers: dict[str, str],
        timeout: float,
    ) -> tuple[int, bytes]:
        kwargs: dict[str, Any] = {
            "headers": headers,
            "timeout": aiohttp.ClientTimeout(total=timeout),
        }
        if body is not None:
            kwargs["data"] = json.dumps(body, ensure_ascii=False, default=str)

        async with session.request(method, url, **kwargs) as response:
            return response.status, await response.read()

    def _build_response(
        self,
        method: str,
        endpoint: str,
        status: int,
        raw: bytes,
        cfg: RequestConfig,
    ) -> ApiResponse:
        ok = 200 <= status < 300
        text = raw.decode("utf-8", errors="replace").strip() if raw else ""

        payload: Any = None
        if status != 204 and text:
            try:
                payload = json.loads(text)
            except ValueError:
                if ok:
                    logger.error("%s %s returned malformed JSON (status %s)", method, endpoint, status)
                    return ApiResponse(
                        False,
                        error=INVALID_RESPONSE_MESSAGE,
                        status=status,
                        kind=ErrorKind.INVALID_RESPONSE,
                    )
                # Error pages (HTML from proxies) carry nothing usable
                payload = None

        if not ok:
            message = extract_error_message(payload)
            kind = ErrorKind.SERVER if status >= 500 else ErrorKind.CLIENT
            if not cfg.skip_error_log:
                logger.error("%s %s failed: %s %s", method, endpoint, status, message)
            return ApiResponse(False, error=message, status=status, kind=kind)

        return ApiResponse(True, data=normalize_response(payload), status=status)
