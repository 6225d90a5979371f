from __future__ import annotations

from typing import Literal
from urllib.parse import urlparse

from . import config
from .logging_utils import _scraper_event
from .utils import log_line

Entrypoint = Literal["api", "cli", "tests"]


def _raise_config_error(message: str, *, entrypoint: Entrypoint, error: str) -> None:
    _scraper_event(
        "error",
        phase="config",
        context="runtime_validation",
        error=error,
        entrypoint=entrypoint,
    )
    log_line(f"[CONFIG] {message} (entrypoint={entrypoint})")
    raise ValueError(message)


def validate_runtime_config(entrypoint: Entrypoint) -> None:
    """Validate runtime configuration for the given entrypoint.

    Raises ``ValueError`` when a blocking misconfiguration is detected.
    """

    parsed = urlparse(config.BASE_URL)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        _raise_config_error(
            f"MFKN_BASE_URL must be an http(s) URL, got {config.BASE_URL!r}.",
            entrypoint=entrypoint,
            error="base_url_invalid",
        )

    if config.MAX_PAGES < 1:
        _raise_config_error(
            "MFKN_MAX_PAGES must be at least 1.",
            entrypoint=entrypoint,
            error="max_pages_invalid",
        )

    if config.MIN_FREE_MB < 0:
        _raise_config_error(
            "MIN_FREE_MB must be non-negative.",
            entrypoint=entrypoint,
            error="min_free_mb_invalid",
        )

    timeout_fields = [
        ("SCRAPER_TIMEOUT_MS", config.PLAYWRIGHT_NAV_TIMEOUT_MS),
        ("MFKN_SELECTOR_TIMEOUT_SECONDS", config.PLAYWRIGHT_SELECTOR_TIMEOUT_SECONDS),
        ("MFKN_DETAIL_READY_TIMEOUT_SECONDS", config.PLAYWRIGHT_DETAIL_READY_TIMEOUT_SECONDS),
        ("MFKN_NETWORK_IDLE_TIMEOUT_SECONDS", config.PLAYWRIGHT_NETWORK_IDLE_TIMEOUT_SECONDS),
        ("MFKN_BROWSER_LAUNCH_TIMEOUT_SECONDS", config.PLAYWRIGHT_LAUNCH_TIMEOUT_SECONDS),
        ("PLAYWRIGHT_CLICK_TIMEOUT_MS", config.PLAYWRIGHT_CLICK_TIMEOUT_MS),
    ]

    for field_name, value in timeout_fields:
        if value <= 0:
            _raise_config_error(
                f"{field_name} must be greater than zero.",
                entrypoint=entrypoint,
                error="invalid_timeout",
            )


__all__ = ["validate_runtime_config", "Entrypoint"]
