"""Cursor resolution over a newest-first listing.

The listing is only ever fetched newest first, so cases that are not yet
stored form a prefix and stored cases form a suffix. ``find_cursor_position``
locates that boundary by walking from the oldest entry towards the newest
and stopping at the first case the store does not know.

The walk trusts the prefix/suffix shape. A previous run that failed on a
record in the middle of its batch while committing older ones leaves a gap
that this scan steps over for good; the unique constraint on the store still
blocks duplicates, but such a gap is not back-filled.
"""
from __future__ import annotations

from typing import Callable, Optional, Sequence

from .logging_utils import _scraper_event
from .parser import CaseSummary

ExistsFn = Callable[[str], bool]


def find_cursor_position(cases: Sequence[CaseSummary], exists: ExistsFn) -> Optional[int]:
    """Return the split index ``k``: ``cases[:k]`` are new, ``cases[k:]`` known.

    Returns ``None`` when every case already exists (including an empty
    listing), which callers must treat differently from ``k == 0``.
    """

    for index in range(len(cases) - 1, -1, -1):
        if not exists(cases[index].external_id):
            position = index + 1
            _scraper_event(
                "cursor",
                position=position,
                total=len(cases),
                oldest_new=cases[index].external_id,
            )
            return position

    _scraper_event("cursor", kind="no_new_records", total=len(cases))
    return None


__all__ = ["ExistsFn", "find_cursor_position"]
