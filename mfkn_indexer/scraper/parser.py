"""Listing-page parsing for MFKN search results."""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from . import config
from .date_utils import parse_danish_date
from .utils import collapse_whitespace, log_line


_CASE_ID_RE = re.compile(r"/afgoerelse/([a-f0-9-]{36})", re.IGNORECASE)


@dataclass(frozen=True)
class CaseSummary:
    """One result card from the newest-first listing."""

    external_id: str
    title: str
    detail_url: str
    case_number: Optional[str] = None
    decision_date: Optional[date] = None


def extract_case_id_from_url(url: str) -> Optional[str]:
    """Return the ruling UUID embedded in a detail-page URL, if any."""

    match = _CASE_ID_RE.search(url or "")
    return match.group(1) if match else None


def parse_search_results(html: str) -> List[CaseSummary]:
    """Parse a (cumulative) listing snapshot into case summaries.

    Cards keep their document order, which the site renders newest first.
    Cards without a title or without a recognisable detail URL are dropped.
    """

    soup = BeautifulSoup(html or "", "html5lib")
    cases: List[CaseSummary] = []

    for anchor in soup.select(config.LISTING_RESULT_SELECTOR):
        title_el = anchor.select_one("h2.ruling-box-title")
        title = collapse_whitespace(title_el.get_text() if title_el else "").strip('"')

        href = (anchor.get("href") or "").strip()
        url = urljoin(config.BASE_URL + "/", href) if href else ""
        external_id = extract_case_id_from_url(url)

        if not title or not external_id:
            continue

        number_el = anchor.select_one(".meta-journalnummer")
        case_number = collapse_whitespace(number_el.get_text() if number_el else "") or None

        date_el = anchor.select_one(".meta-datestamp")
        decision_date = parse_danish_date(date_el.get_text() if date_el else "")

        cases.append(
            CaseSummary(
                external_id=external_id,
                title=title,
                detail_url=url,
                case_number=case_number,
                decision_date=decision_date,
            )
        )

    log_line(f"[PARSE] Parsed {len(cases)} cases from search results")
    return cases


__all__ = ["CaseSummary", "extract_case_id_from_url", "parse_search_results"]
