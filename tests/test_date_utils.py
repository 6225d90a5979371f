from datetime import date

import pytest

from mfkn_indexer.scraper.date_utils import parse_danish_date


@pytest.mark.parametrize(
    "value, expected",
    [
        ("den 12. juni 2025", date(2025, 6, 12)),
        ("1. januar 1990", date(1990, 1, 1)),
        ("Den 31. December 2029", date(2029, 12, 31)),
        ("  3.marts 2021 ", date(2021, 3, 3)),
    ],
)
def test_parse_danish_date_valid(value: str, expected: date) -> None:
    assert parse_danish_date(value) == expected


@pytest.mark.parametrize(
    "value",
    [
        None,
        "",
        "2025-06-12",
        "12. juno 2025",
        "31. februar 2024",
        "1. januar 1989",
        "1. januar 2030",
    ],
)
def test_parse_danish_date_fallback_is_none(value) -> None:
    assert parse_danish_date(value) is None
