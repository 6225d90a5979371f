from __future__ import annotations

"""Centralised error code taxonomy for indexing failures.

These codes travel on ``FetchError`` and are included in structured logs so
that an operator can tell why a single case failed to index. The taxonomy is
internal-only but should stay stable for log searches.
"""

from typing import Optional


class ErrorCode:
    NETWORK = "network_error"
    NAV_TIMEOUT = "navigation_timeout"
    TARGET_CLOSED = "target_closed"
    HTTP_4XX = "http_4xx"
    HTTP_404 = "http_404_not_found"
    HTTP_5XX = "http_5xx"
    SITE_STRUCTURE = "site_structure_changed"
    DUPLICATE = "duplicate_record"
    INTERNAL = "internal_error"


def classify_http_status(status: Optional[int]) -> str:
    """Map an HTTP response status to an ``ErrorCode`` value."""

    if status is None:
        return ErrorCode.NETWORK
    if status == 404:
        return ErrorCode.HTTP_404
    if 400 <= status < 500:
        return ErrorCode.HTTP_4XX
    if status >= 500:
        return ErrorCode.HTTP_5XX
    return ErrorCode.INTERNAL


__all__ = ["ErrorCode", "classify_http_status"]
