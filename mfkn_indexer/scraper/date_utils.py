from __future__ import annotations

import re
from datetime import date
from typing import Dict, Optional

DANISH_MONTHS: Dict[str, int] = {
    "januar": 1,
    "februar": 2,
    "marts": 3,
    "april": 4,
    "maj": 5,
    "juni": 6,
    "juli": 7,
    "august": 8,
    "september": 9,
    "oktober": 10,
    "november": 11,
    "december": 12,
}

MIN_YEAR = 1990
MAX_YEAR = 2029

_DANISH_DATE_RE = re.compile(r"(\d{1,2})\.\s*(\w+)\s+(\d{4})")
_LEADING_DEN_RE = re.compile(r"^den\s+", re.IGNORECASE)


def parse_danish_date(value: Optional[str]) -> Optional[date]:
    """Parse a Danish long-form date such as ``"den 12. juni 2025"``.

    Returns ``None`` for unknown month names, impossible calendar dates and
    years outside ``MIN_YEAR``..``MAX_YEAR``.
    """

    candidate = _LEADING_DEN_RE.sub("", (value or "").strip()).lower()
    if not candidate:
        return None

    match = _DANISH_DATE_RE.search(candidate)
    if not match:
        return None

    day, month_name, year = match.groups()
    month = DANISH_MONTHS.get(month_name)
    if month is None:
        return None

    try:
        parsed = date(int(year), month, int(day))
    except ValueError:
        return None

    if not MIN_YEAR <= parsed.year <= MAX_YEAR:
        return None
    return parsed
