from __future__ import annotations

from enum import Enum
from typing import Any

from .utils import log_line

# Error messages from Playwright can carry whole call logs.
MAX_FIELD_CHARS = 300


def _format_value(value: Any) -> str:
    if isinstance(value, Enum):
        value = value.value
    text = repr(value)
    if len(text) > MAX_FIELD_CHARS:
        text = text[: MAX_FIELD_CHARS - 3] + "..."
    return text


def _scraper_event(label: str = "", *, phase: str | None = None, **fields: Any) -> None:
    """Emit a structured ``[SCRAPER][LABEL] key=value`` log line.

    ``phase`` doubles as the label when no label is given; otherwise it is
    kept in the payload. Fields whose value is ``None`` are left out. The
    call never raises.
    """

    try:
        event_label = label or (phase or "")
        if phase and label:
            fields.setdefault("phase", phase)
        payload = ", ".join(
            f"{key}={_format_value(value)}"
            for key, value in sorted(fields.items())
            if value is not None
        )
        log_line(f"[SCRAPER][{event_label.upper()}] {payload}")
    except Exception:  # noqa: BLE001
        return


__all__ = ["_scraper_event"]
