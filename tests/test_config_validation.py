from mfkn_indexer.scraper import config
from mfkn_indexer.scraper.config_validation import validate_runtime_config
from mfkn_indexer.scraper.config import build_search_url
import pytest


def test_defaults_are_valid() -> None:
    validate_runtime_config("tests")


def test_min_free_mb_negative(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "MIN_FREE_MB", -5)
    with pytest.raises(ValueError):
        validate_runtime_config("cli")


@pytest.mark.parametrize(
    "field",
    [
        "PLAYWRIGHT_NAV_TIMEOUT_MS",
        "PLAYWRIGHT_SELECTOR_TIMEOUT_SECONDS",
        "PLAYWRIGHT_DETAIL_READY_TIMEOUT_SECONDS",
        "PLAYWRIGHT_CLICK_TIMEOUT_MS",
    ],
)
def test_invalid_timeout(monkeypatch: pytest.MonkeyPatch, field: str) -> None:
    monkeypatch.setattr(config, field, 0)
    with pytest.raises(ValueError):
        validate_runtime_config("cli")


def test_page_cap_below_one(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "MAX_PAGES", 0)
    with pytest.raises(ValueError, match="MFKN_MAX_PAGES"):
        validate_runtime_config("api")


def test_base_url_must_be_http(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "BASE_URL", "ftp://mfkn.example")
    with pytest.raises(ValueError):
        validate_runtime_config("api")


def test_search_url_sorted_newest_first(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "SEARCH_URL", "https://example.test/soeg")
    assert build_search_url() == "https://example.test/soeg?sort=desc&types=ruling"
