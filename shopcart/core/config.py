"""Environment-driven configuration objects for the cart client."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from urllib.parse import urlparse

from dotenv import load_dotenv

from shopcart.core.constants import (
    DEFAULT_API_URL,
    DEFAULT_RETRIES,
    DEFAULT_RETRY_INITIAL_DELAY,
    DEFAULT_RETRY_MAX_DELAY,
    DEFAULT_TIMEOUT_SECONDS,
)
from shopcart.core.exceptions import ConfigurationException


def _str_to_bool(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"true", "1", "yes", "y"}


def _validate_url(url: str | None, name: str) -> str:
    if not url:
        raise ConfigurationException(f"{name} is required but not defined")
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigurationException(f"{name} is not a valid URL: {url}")
    return url.rstrip("/")


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationException(f"{name} must be a number, got {raw!r}") from exc


@dataclass(slots=True)
class HttpConfig:
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    retries: int = DEFAULT_RETRIES
    retry_initial_delay: float = DEFAULT_RETRY_INITIAL_DELAY
    retry_max_delay: float = DEFAULT_RETRY_MAX_DELAY


@dataclass(slots=True)
class Settings:
    api_url: str
    environment: str = "development"
    redis_url: str | None = None
    sentry_dsn: str | None = None
    enable_error_reporting: bool = False
    http: HttpConfig = field(default_factory=HttpConfig)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def load_settings() -> Settings:
    """Load environment variables once and expose typed settings."""
    load_dotenv()

    api_url = _validate_url(os.getenv("API_URL") or DEFAULT_API_URL, "API_URL")

    environment = "production" if os.getenv("ENVIRONMENT") == "production" else "development"

    # Error reporting follows the environment unless set explicitly
    reporting_flag = os.getenv("ENABLE_ERROR_REPORTING")
    if reporting_flag is None:
        enable_error_reporting = environment == "production"
    else:
        enable_error_reporting = _str_to_bool(reporting_flag)

    http = HttpConfig(
        timeout=_float_env("REQUEST_TIMEOUT", DEFAULT_TIMEOUT_SECONDS),
        retries=int(_float_env("REQUEST_RETRIES", DEFAULT_RETRIES)),
        retry_initial_delay=_float_env("RETRY_INITIAL_DELAY", DEFAULT_RETRY_INITIAL_DELAY),
        retry_max_delay=_float_env("RETRY_MAX_DELAY", DEFAULT_RETRY_MAX_DELAY),
    )

    return Settings(
        api_url=api_url,
        environment=environment,
        redis_url=os.getenv("REDIS_URL") or None,
        sentry_dsn=os.getenv("SENTRY_DSN") or None,
        enable_error_reporting=enable_error_reporting,
        http=http,
    )
