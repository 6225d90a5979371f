"""Command line entry point for running an indexing pass or printing stats."""
from __future__ import annotations

import argparse
import asyncio
import json
from typing import Sequence

from . import db
from .config_validation import validate_runtime_config
from .indexing import CaseIndexer, IndexingConflictError, PageLimitExceededError, summary_payload
from .rendering import FetchError
from .utils import ensure_dirs, get_current_log_path, log_line, setup_run_logger


def _build_parser() -> argparse.ArgumentParser:
    """Return an argument parser for the indexing CLI."""

    parser = argparse.ArgumentParser(
        description="Index new MFKN rulings into the local database.",
    )
    parser.add_argument(
        "--pages",
        type=int,
        default=None,
        help="Number of listing pages to load (capped by MFKN_MAX_PAGES).",
    )
    parser.add_argument(
        "--max-cases",
        type=int,
        default=None,
        help="Process at most this many new cases in this run.",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print total/enriched/pending counts and exit.",
    )
    return parser


def main(argv: Sequence[str] | None = None, *, indexer: CaseIndexer | None = None) -> int:
    """Entry point for the indexing CLI."""

    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        validate_runtime_config("cli")
    except ValueError as exc:
        print(f"Configuration error: {exc}")
        return 1

    ensure_dirs()
    db.initialize_schema()

    if indexer is None:
        indexer = CaseIndexer()

    if args.stats:
        print(json.dumps(indexer.get_case_stats(), indent=2))
        return 0

    setup_run_logger()
    try:
        result = asyncio.run(indexer.index_cases(max_pages=args.pages, max_cases=args.max_cases))
    except IndexingConflictError as exc:
        log_line(f"[INDEX] {exc}")
        return 1
    except (FetchError, PageLimitExceededError) as exc:
        log_line(f"[INDEX][ERROR] Indexing failed: {exc}")
        return 1

    log_line(f"[INDEX] Run log written to {get_current_log_path()}")
    print(json.dumps(summary_payload(result), indent=2))
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry
    raise SystemExit(main())
