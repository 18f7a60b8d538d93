"""Sentry integration for error tracking."""
from __future__ import annotations

import logging
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

logger = logging.getLogger(__name__)

_initialized = False


def init_sentry(
    dsn: str | None,
    environment: str = "production",
    sample_rate: float = 1.0,
    traces_sample_rate: float = 0.0,
) -> bool:
    """Initialize Sentry error tracking.

    Args:
        dsn: Sentry DSN; tracking stays disabled when empty
        environment: Environment name (production, development)
        sample_rate: Error sampling rate (1.0 = 100%)
        traces_sample_rate: Performance tracing rate

    Returns:
        True if Sentry was initialized successfully
    """
    global _initialized

    if not dsn:
        logger.info("SENTRY_DSN not set - error tracking disabled")
        return False

    try:
        sentry_sdk.init(
            dsn=dsn,
            environment=environment,
            integrations=[
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
            ],
            sample_rate=sample_rate,
            traces_sample_rate=traces_sample_rate,
            # Request bodies carry credentials and addresses
            send_default_pii=False,
        )
    except Exception as e:
        logger.error("Failed to initialize Sentry: %s", e)
        return False

    _initialized = True
    logger.info("Sentry initialized for %s environment", environment)
    return True


def is_enabled() -> bool:
    return _initialized


def capture_exception(error: BaseException, **extra: Any) -> None:
    """Capture exception and send to Sentry with additional context."""
    if not _initialized:
        return

    try:
        sentry_sdk.capture_exception(error, extras=extra or None)
    except Exception as e:
        logger.error("Failed to capture exception in Sentry: %s", e)


def add_breadcrumb(message: str, category: str = "default", level: str = "info", **data: Any) -> None:
    """Add breadcrumb for debugging context."""
    if not _initialized:
        return

    try:
        sentry_sdk.add_breadcrumb(message=message, category=category, level=level, data=data)
    except Exception as e:
        logger.error("Failed to add breadcrumb in Sentry: %s", e)
