"""Playwright rendering session for the JavaScript-driven MFKN site.

One Chromium browser is shared by every concurrent task of a run. Tasks never
see the browser itself: they check out an isolated context and page through
``RenderingSession.page()``. The browser handle sits behind a lock; when it
disconnects or dies it is dropped and relaunched on the next checkout, and
only one relaunch can happen at a time.
"""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from playwright.async_api import (
    Browser,
    Error as PWError,
    Page,
    Playwright,
    TimeoutError as PWTimeout,
    async_playwright,
)

from . import config
from .error_codes import ErrorCode, classify_http_status
from .logging_utils import _scraper_event
from .utils import log_debug, log_line

class FetchError(Exception):
    """A page could not be rendered: navigation, timeout or HTTP status."""

    def __init__(
        self,
        error_code: str,
        message: str,
        *,
        url: Optional[str] = None,
        http_status: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.url = url
        self.http_status = http_status

def _is_target_closed_error(exc: Exception) -> bool:
    """Return ``True`` if *exc* indicates the Playwright target is gone."""

    message = str(exc)
    return any(
        marker in message
        for marker in (
            "Target closed",
            "Target crashed",
            "has been closed",
            "Browser has been disconnected",
            "Execution context was destroyed",
        )
    )

def _translate(exc: PWError, url: str, action: str) -> FetchError:
    if isinstance(exc, PWTimeout):
        code = ErrorCode.NAV_TIMEOUT
    elif _is_target_closed_error(exc):
        code = ErrorCode.TARGET_CLOSED
    else:
        code = ErrorCode.NETWORK
    _scraper_event("error", phase="render", action=action, url=url, error_code=code, error=str(exc))
    return FetchError(code, f"{action} {url} failed: {exc}", url=url)

class RenderingSession:
    """Lazily launched, self-healing Playwright browser."""

    def __init__(self, *, headless: Optional[bool] = None) -> None:
        self._headless = config.HEADLESS if headless is None else headless
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        # Created on first use so each event loop gets its own lock.
        self._lock: Optional[asyncio.Lock] = None
        self._launch_count = 0

    @property
    def launch_count(self) -> int:
        return self._launch_count

    def _get_lock(self) -> asyncio.Lock:
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    def _on_disconnected(self, browser: Optional[Browser] = None) -> None:
        if browser is None or browser is self._browser:
            log_line("[RENDER] Browser disconnected; it will be relaunched on next use")
            self._browser = None

    async def _teardown_browser(self) -> None:
        browser, self._browser = self._browser, None
        if browser is None:
            return
        try:
            await browser.close()
        except PWError as exc:
            log_debug(f"[RENDER] Ignoring error while closing browser: {exc}")

    async def _ensure_browser(self) -> Browser:
        async with self._get_lock():
            if self._browser is not None and self._browser.is_connected():
                return self._browser

            await self._teardown_browser()
            log_line("[RENDER] Launching Chromium browser...")
            try:
                if self._playwright is None:
                    self._playwright = await async_playwright().start()
                browser = await self._playwright.chromium.launch(
                    headless=self._headless,
                    args=config.BROWSER_ARGS,
                    timeout=config.PLAYWRIGHT_LAUNCH_TIMEOUT_SECONDS * 1000,
                )
            except PWError as exc:
                raise _translate(exc, "chromium", "Launching") from exc

            browser.on("disconnected", self._on_disconnected)
            self._browser = browser
            self._launch_count += 1
            _scraper_event("render", step="browser_launched", launches=self._launch_count)
            return browser

    @asynccontextmanager
    async def page(self) -> AsyncIterator[Page]:
        """Check out a fresh context and page; both are closed on exit."""

        browser = await self._ensure_browser()
        context = await browser.new_context(user_agent=config.USER_AGENT, viewport=config.VIEWPORT)
        try:
            page = await context.new_page()
            yield page
        finally:
            try:
                await context.close()
            except PWError as exc:
                log_debug(f"[RENDER] Ignoring error while closing context: {exc}")

    async def _goto(self, page: Page, url: str) -> None:
        _scraper_event("nav", step="goto", url=url)
        response = await page.goto(
            url,
            wait_until="domcontentloaded",
            timeout=config.PLAYWRIGHT_NAV_TIMEOUT_MS,
        )
        if response is None or not response.ok:
            status = response.status if response is not None else None
            reason = response.status_text if response is not None else "no response"
            code = classify_http_status(status)
            _scraper_event("error", phase="nav", url=url, http_status=status, error_code=code)
            raise FetchError(code, f"HTTP {status}: {reason}", url=url, http_status=status)

    async def render(self, url: str, *, ready_selector: Optional[str] = None) -> str:
        """Return the rendered HTML of ``url``.

        ``ready_selector`` is waited for on a best-effort basis; some pages
        never render it and are captured as they are.
        """

        try:
            async with self.page() as page:
                await self._goto(page, url)
                if ready_selector:
                    try:
                        await page.wait_for_selector(
                            ready_selector,
                            timeout=config.PLAYWRIGHT_DETAIL_READY_TIMEOUT_SECONDS * 1000,
                        )
                    except PWTimeout:
                        log_debug(f"[RENDER] {ready_selector!r} not found on {url}; continuing")
                return await page.content()
        except PWError as exc:
            raise _translate(exc, url, "Rendering") from exc

    async def _click_load_more(self, page: Page) -> bool:
        button = page.locator(config.LOAD_MORE_SELECTOR).first
        try:
            await button.wait_for(
                state="visible",
                timeout=config.PLAYWRIGHT_SELECTOR_TIMEOUT_SECONDS * 1000,
            )
        except PWTimeout:
            return False

        try:
            if not await button.is_enabled():
                log_debug("[RENDER] Load-more control present but disabled")
                return False
            await button.click(timeout=config.PLAYWRIGHT_CLICK_TIMEOUT_MS)
        except PWError as exc:
            log_line(f"[RENDER] Load-more click failed: {exc}")
            return False
        return True

    async def _wait_for_more_results(self, page: Page, previous_count: int) -> None:
        timeout_ms = config.PLAYWRIGHT_NETWORK_IDLE_TIMEOUT_SECONDS * 1000
        try:
            await page.wait_for_function(
                "([selector, previous]) => document.querySelectorAll(selector).length > previous",
                arg=[config.LISTING_RESULT_SELECTOR, previous_count],
                timeout=timeout_ms,
            )
        except PWTimeout:
            log_line("[RENDER] No additional results appeared after load-more; continuing")
        try:
            await page.wait_for_load_state("networkidle", timeout=timeout_ms)
        except PWTimeout:
            log_debug("[RENDER] Network did not go idle after load-more; continuing")
        if config.PLAYWRIGHT_POST_CLICK_SLEEP_SECONDS > 0:
            await asyncio.sleep(config.PLAYWRIGHT_POST_CLICK_SLEEP_SECONDS)

    async def render_with_pagination(self, url: str, max_pages: int) -> List[str]:
        """Return cumulative listing snapshots, one per loaded page.

        Snapshot ``n`` contains everything in snapshot ``n - 1`` plus the
        results revealed by one more load-more click. Stops early when the
        control disappears or is disabled.
        """

        snapshots: List[str] = []
        log_line(f"[RENDER] Fetching listing with pagination: {url} (max_pages={max_pages})")
        try:
            async with self.page() as page:
                await self._goto(page, url)
                try:
                    await page.wait_for_selector(
                        config.LISTING_READY_SELECTOR,
                        timeout=config.PLAYWRIGHT_SELECTOR_TIMEOUT_SECONDS * 1000,
                    )
                except PWTimeout as exc:
                    raise FetchError(
                        ErrorCode.SITE_STRUCTURE,
                        f"No search results rendered on {url}",
                        url=url,
                    ) from exc

                snapshots.append(await page.content())
                log_line(f"[RENDER] Captured listing page 1/{max_pages}")

                while len(snapshots) < max_pages:
                    previous = await page.locator(config.LISTING_RESULT_SELECTOR).count()
                    if not await self._click_load_more(page):
                        log_line("[RENDER] No load-more control found; reached end of listing")
                        break
                    await self._wait_for_more_results(page, previous)
                    snapshots.append(await page.content())
                    log_line(f"[RENDER] Captured listing page {len(snapshots)}/{max_pages}")
        except PWError as exc:
            raise _translate(exc, url, "Paginating") from exc

        return snapshots

    async def close(self) -> None:
        """Tear down the browser and the Playwright driver."""

        async with self._get_lock():
            await self._teardown_browser()
            playwright, self._playwright = self._playwright, None
            if playwright is not None:
                try:
                    await playwright.stop()
                except PWError as exc:
                    log_debug(f"[RENDER] Ignoring error while stopping Playwright: {exc}")
        self._lock = None
        log_line("[RENDER] Browser session closed")


__all__ = ["FetchError", "RenderingSession"]
