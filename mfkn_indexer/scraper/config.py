"""Configuration constants for the MFKN case indexer."""
from __future__ import annotations

import os
from pathlib import Path
from urllib.parse import urlencode

DATA_DIR: Path = Path(os.getenv("MFKN_DATA_DIR", "/app/data"))
LOG_DIR: Path = DATA_DIR / "logs"
LOG_FILE: Path = LOG_DIR / "latest.log"
DB_PATH: Path = DATA_DIR / "mfkn.db"

BASE_URL: str = os.getenv("MFKN_BASE_URL", "https://mfkn.naevneneshus.dk").rstrip("/")
SEARCH_URL: str = os.getenv("MFKN_SEARCH_URL", f"{BASE_URL}/soeg")

# Listing pagination. Each "load more" expansion appends roughly one page of
# CASES_PER_PAGE results; MAX_PAGES is the hard safety cap per run.
CASES_PER_PAGE: int = int(os.getenv("MFKN_CASES_PER_PAGE", "10"))
MAX_PAGES: int = int(os.getenv("MFKN_MAX_PAGES", "20"))

MIN_FREE_MB: int = int(os.getenv("MIN_FREE_MB", "100"))


def _parse_timeout_seconds(env_var: str, default: float, *, minimum: float = 0.1) -> float:
    """Parse a timeout value in seconds from the environment with bounds."""

    try:
        value = float(os.getenv(env_var, str(default)))
    except ValueError:
        return default
    return max(minimum, value)


# Navigation timeout for page.goto calls. Kept in milliseconds for
# compatibility with the SCRAPER_TIMEOUT_MS deployment variable.
PLAYWRIGHT_NAV_TIMEOUT_MS: int = int(os.getenv("SCRAPER_TIMEOUT_MS", "15000"))
# Wait for the listing results to appear and for the load-more control.
PLAYWRIGHT_SELECTOR_TIMEOUT_SECONDS: float = _parse_timeout_seconds(
    "MFKN_SELECTOR_TIMEOUT_SECONDS", 5
)
# Optional readiness wait on detail pages; a miss is tolerated.
PLAYWRIGHT_DETAIL_READY_TIMEOUT_SECONDS: float = _parse_timeout_seconds(
    "MFKN_DETAIL_READY_TIMEOUT_SECONDS", 3
)
# Wait for new results after a load-more click.
PLAYWRIGHT_NETWORK_IDLE_TIMEOUT_SECONDS: float = _parse_timeout_seconds(
    "MFKN_NETWORK_IDLE_TIMEOUT_SECONDS", 3
)
PLAYWRIGHT_LAUNCH_TIMEOUT_SECONDS: float = _parse_timeout_seconds(
    "MFKN_BROWSER_LAUNCH_TIMEOUT_SECONDS", 60
)
# Click-level timeout remains in milliseconds to match Playwright API expectations.
PLAYWRIGHT_CLICK_TIMEOUT_MS: int = int(os.getenv("PLAYWRIGHT_CLICK_TIMEOUT_MS", "2000"))
PLAYWRIGHT_POST_CLICK_SLEEP_SECONDS: float = float(
    os.getenv("PLAYWRIGHT_POST_CLICK_SLEEP_SECONDS", "0.1")
)

HEADLESS: bool = os.getenv("MFKN_HEADLESS", "true").strip().lower() not in {"0", "false"}

BROWSER_ARGS: list[str] = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-features=VizDisplayCompositor",
    "--no-first-run",
    "--disable-extensions",
    "--disable-default-apps",
    "--disable-background-timer-throttling",
    "--disable-backgrounding-occluded-windows",
    "--disable-renderer-backgrounding",
]

USER_AGENT: str = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
VIEWPORT: dict[str, int] = {"width": 1920, "height": 1080}

# Site structure.
LISTING_RESULT_SELECTOR: str = "a.full-link"
LISTING_READY_SELECTOR: str = 'a.full-link, a[href*="/afgoerelse/"]'
LOAD_MORE_SELECTOR: str = "#view-more"
DETAIL_READY_SELECTOR: str = "app-root"
COURT_KEYWORD: str = "nævn"


def build_search_url() -> str:
    """Return the listing URL sorted newest-first and restricted to rulings."""

    params = urlencode({"sort": "desc", "types": "ruling"})
    return f"{SEARCH_URL}?{params}"
