"""Incremental, cursor-based indexing of MFKN rulings.

Workflow of one run:

- Claim the single-flight run guard (a second concurrent start is rejected).
- Render the newest-first listing, clicking "load more" up to ``max_pages``
  times, and parse only the last (most complete) snapshot.
- Find the cursor: the boundary between cases the store does not have yet
  and cases it already holds.
- Fan the new cases out to concurrent tasks. Each task renders the ruling
  page, extracts its content and writes case plus content in one
  transaction.
- Fold the tagged task outcomes into counts and release the guard.

No task is retried. Duplicate writes rejected by the store's unique
constraint are counted as skipped; any other task error is counted as
failed, logged individually and folded into the skipped total returned to
the caller.
"""
from __future__ import annotations

import asyncio
import threading
import time
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol

from . import config, db
from .case_content import CaseContent, parse_case_content
from .cursor import find_cursor_position
from .error_codes import ErrorCode
from .logging_utils import _scraper_event
from .parser import CaseSummary, parse_search_results
from .rendering import RenderingSession
from .utils import log_debug, log_line


class IndexingConflictError(Exception):
    """An indexing run is already in progress."""


class PageLimitExceededError(Exception):
    """The listing fetch produced more pages than the safety cap allows."""


class Renderer(Protocol):
    async def render(self, url: str, *, ready_selector: Optional[str] = None) -> str: ...

    async def render_with_pagination(self, url: str, max_pages: int) -> List[str]: ...

    async def close(self) -> None: ...


class TaskOutcome(str, Enum):
    INDEXED = "indexed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class CaseOutcome:
    external_id: str
    outcome: TaskOutcome
    error: Optional[str] = None


@dataclass(frozen=True)
class IndexingResult:
    indexed: int = 0
    skipped: int = 0
    failed: int = 0

    def as_dict(self) -> Dict[str, int]:
        """Caller-facing counts; failures are folded into ``skipped``."""

        return {"indexed": self.indexed, "skipped": self.skipped + self.failed}


class IndexingRunGuard:
    """Lock-protected "run in progress" flag with owner tokens.

    ``acquire`` hands out a token; ``release`` only clears the flag when the
    token still owns it, so a run that was force-reset and finishes late
    cannot clear the flag of a newer run.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._owner: Optional[int] = None
        self._generation = 0

    def acquire(self) -> Optional[int]:
        with self._lock:
            if self._owner is not None:
                return None
            self._generation += 1
            self._owner = self._generation
            return self._owner

    def release(self, token: int) -> None:
        with self._lock:
            if self._owner == token:
                self._owner = None

    def reset(self) -> bool:
        with self._lock:
            previous = self._owner is not None
            self._owner = None
            return previous

    @property
    def running(self) -> bool:
        with self._lock:
            return self._owner is not None


def resolve_max_pages(requested: Optional[int]) -> int:
    """Clamp the caller's page count to ``1..config.MAX_PAGES``.

    ``None`` or a non-positive value means "as many as allowed".
    """

    if not requested or requested < 1:
        return config.MAX_PAGES
    return min(requested, config.MAX_PAGES)


def fold_outcomes(outcomes: Iterable[CaseOutcome]) -> Counter:
    """Count outcomes per kind; the result is independent of input order."""

    return Counter(item.outcome for item in outcomes)


class CaseIndexer:
    """Owns the run guard and drives one indexing run at a time."""

    def __init__(
        self,
        session_factory: Optional[Callable[[], Renderer]] = None,
        *,
        search_url: Optional[str] = None,
    ) -> None:
        # One rendering session per run: Playwright objects are bound to the
        # event loop that created them, and a run owns its loop.
        self._session_factory: Callable[[], Renderer] = session_factory or RenderingSession
        self._search_url = search_url or config.build_search_url()
        self._guard = IndexingRunGuard()

    # Control surface

    def start_run(
        self, max_pages: Optional[int] = None, max_cases: Optional[int] = None
    ) -> Dict[str, int]:
        """Run one indexing pass to completion from synchronous code."""

        result = asyncio.run(self.index_cases(max_pages=max_pages, max_cases=max_cases))
        return result.as_dict()

    def get_run_status(self) -> Dict[str, bool]:
        return {"running": self._guard.running}

    def reset_run_flag(self) -> Dict[str, bool]:
        """Force the guard back to idle. In-flight work is not stopped."""

        previous = self._guard.reset()
        log_line(f"[INDEX] Indexing flag reset manually (previous_state={previous})")
        _scraper_event("state", phase="run_guard", kind="manual_reset", previous_state=previous)
        return {"previous_state": previous}

    def get_case_stats(self) -> Dict[str, int]:
        return db.get_case_stats()

    # Run

    async def index_cases(
        self, max_pages: Optional[int] = None, max_cases: Optional[int] = None
    ) -> IndexingResult:
        """Run one indexing pass.

        ``max_pages`` is clamped by ``resolve_max_pages``. ``max_cases`` caps
        how many new cases are processed: ``None`` means no cap, while ``0``
        is a real cap that processes nothing and counts every new case as
        skipped. Raises ``IndexingConflictError`` while another run holds
        the guard.
        """

        token = self._guard.acquire()
        if token is None:
            _scraper_event("error", phase="run_guard", kind="conflict")
            raise IndexingConflictError("Indexing process is already running")

        started = time.monotonic()
        session: Optional[Renderer] = None
        try:
            log_line("[INDEX] Starting cursor-based case indexing...")
            db.initialize_schema()
            session = self._session_factory()
            result = await self._run(session, max_pages, max_cases)
            _scraper_event(
                "summary",
                indexed=result.indexed,
                skipped=result.skipped,
                failed=result.failed,
                elapsed_s=round(time.monotonic() - started, 2),
            )
            return result
        finally:
            try:
                if session is not None:
                    await session.close()
            finally:
                self._guard.release(token)

    async def _run(
        self, session: Renderer, max_pages: Optional[int], max_cases: Optional[int]
    ) -> IndexingResult:
        pages = resolve_max_pages(max_pages)
        log_line(
            f"[INDEX] Requested {max_pages or 'all'} pages, fetching up to {pages} "
            f"(~{pages * config.CASES_PER_PAGE} cases max)"
        )

        snapshots = await session.render_with_pagination(self._search_url, pages)
        if len(snapshots) > pages:
            raise PageLimitExceededError(
                f"Listing returned {len(snapshots)} pages; the limit is {pages}"
            )
        if not snapshots:
            log_line("[INDEX] No listing content retrieved")
            return IndexingResult()

        all_cases = parse_search_results(snapshots[-1])
        if not all_cases:
            log_line("[INDEX] No cases found in final listing snapshot")
            return IndexingResult()
        log_line(f"[INDEX] Found {len(all_cases)} cases across {len(snapshots)} listing pages")

        position = await asyncio.to_thread(find_cursor_position, all_cases, db.case_exists)
        if position is None:
            log_line("[INDEX] All cases already exist in database, nothing to process")
            return IndexingResult(skipped=len(all_cases))

        new_cases = all_cases[:position]
        known = len(all_cases) - position

        to_process = new_cases
        if max_cases is not None and max_cases >= 0:
            to_process = new_cases[:max_cases]
        truncated = len(new_cases) - len(to_process)

        log_line(
            f"[INDEX] Processing {len(to_process)} new cases, skipping {known} existing"
            + (f" and {truncated} over the case limit" if truncated else "")
        )

        counts = await self._process_batch(session, to_process)
        return IndexingResult(
            indexed=counts[TaskOutcome.INDEXED],
            skipped=counts[TaskOutcome.SKIPPED] + known + truncated,
            failed=counts[TaskOutcome.FAILED],
        )

    async def _process_batch(self, session: Renderer, cases: List[CaseSummary]) -> Counter:
        started = time.monotonic()
        total = len(cases)
        results = await asyncio.gather(
            *(
                self._process_case(session, case, index + 1, total)
                for index, case in enumerate(cases)
            ),
            return_exceptions=True,
        )

        outcomes: List[CaseOutcome] = []
        for case, result in zip(cases, results):
            if isinstance(result, BaseException):
                # _process_case contains its own errors; anything here escaped it.
                log_line(f"[INDEX][ERROR] Task for case {case.external_id} crashed: {result!r}")
                outcomes.append(CaseOutcome(case.external_id, TaskOutcome.FAILED, repr(result)))
            else:
                outcomes.append(result)

        counts = fold_outcomes(outcomes)
        elapsed_ms = int((time.monotonic() - started) * 1000)
        log_line(
            f"[INDEX] Parallel processing complete in {elapsed_ms}ms: "
            f"{counts[TaskOutcome.INDEXED]} inserted, {counts[TaskOutcome.SKIPPED]} skipped, "
            f"{counts[TaskOutcome.FAILED]} failed"
        )
        failures = [item for item in outcomes if item.outcome is TaskOutcome.FAILED]
        if failures:
            log_line(f"[INDEX][WARN] Failed cases ({len(failures)} total):")
            for item in failures:
                log_line(f"[INDEX][WARN]   - {item.external_id} ({item.error})")
        return counts

    async def _process_case(
        self, session: Renderer, case: CaseSummary, index: int, total: int
    ) -> CaseOutcome:
        label = f"[{index}/{total}]"
        try:
            log_debug(f"[INDEX] {label} Fetching full content for case {case.external_id}")
            html = await session.render(
                case.detail_url, ready_selector=config.DETAIL_READY_SELECTOR
            )
            content: CaseContent = parse_case_content(html)
            await asyncio.to_thread(db.create_case_with_content, case, content)
        except db.DuplicateRecordError:
            log_debug(
                f"[INDEX] {label} Case {case.external_id} already exists, skipped "
                f"({ErrorCode.DUPLICATE})"
            )
            return CaseOutcome(case.external_id, TaskOutcome.SKIPPED)
        except Exception as exc:  # noqa: BLE001
            error = f"{type(exc).__name__}: {exc}"
            _scraper_event(
                "error",
                phase="index_case",
                external_id=case.external_id,
                url=case.detail_url,
                error_code=getattr(exc, "error_code", ErrorCode.INTERNAL),
                error=error,
            )
            return CaseOutcome(case.external_id, TaskOutcome.FAILED, error)

        log_debug(f"[INDEX] {label} Inserted case: {case.title[:50]}")
        return CaseOutcome(case.external_id, TaskOutcome.INDEXED)


def summary_payload(result: IndexingResult) -> Dict[str, Any]:
    """Return the operator-facing summary including the separate failure count."""

    return {**result.as_dict(), "failed": result.failed}


__all__ = [
    "CaseIndexer",
    "CaseOutcome",
    "IndexingConflictError",
    "IndexingResult",
    "IndexingRunGuard",
    "PageLimitExceededError",
    "TaskOutcome",
    "fold_outcomes",
    "resolve_max_pages",
    "summary_payload",
]
