"""SQLite helpers for the MFKN case indexer.

This module defines the project database path, the connection helper, schema
initialisation, the existence check used by the cursor, the atomic
case-plus-content write used by indexing tasks, and the stats projection.
"""
from __future__ import annotations

import json
import sqlite3
import time
from pathlib import Path
from typing import Dict, Iterable, TYPE_CHECKING

from . import config

if TYPE_CHECKING:
    from .case_content import CaseContent
    from .parser import CaseSummary

DB_PATH: Path = config.DB_PATH

# Seconds a writer waits on a locked database; indexing tasks write in parallel.
BUSY_TIMEOUT_SECONDS = 30.0


class DuplicateRecordError(Exception):
    """The write violated the unique constraint on ``cases.external_id``."""

    def __init__(self, external_id: str) -> None:
        super().__init__(f"Case {external_id} already exists")
        self.external_id = external_id


def get_connection() -> sqlite3.Connection:
    """Return a SQLite connection to the project database.

    The parent directory is created if missing and ``check_same_thread`` is
    disabled because writes run on worker threads. Foreign keys are enforced
    per connection.
    """

    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(DB_PATH, check_same_thread=False, timeout=BUSY_TIMEOUT_SECONDS)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def initialize_schema() -> None:
    """Create the tables if they do not yet exist.

    Safe to call multiple times; each statement uses ``IF NOT EXISTS``.
    """

    statements: Iterable[str] = (
        """
        CREATE TABLE IF NOT EXISTS cases (
            id              INTEGER PRIMARY KEY AUTOINCREMENT,
            external_id     TEXT NOT NULL UNIQUE,
            title           TEXT NOT NULL,
            case_number     TEXT,
            decision_date   TEXT,
            source_url      TEXT NOT NULL,
            created_at      TEXT NOT NULL,
            updated_at      TEXT NOT NULL
        );
        """,
        """
        CREATE INDEX IF NOT EXISTS idx_cases_decision_date
            ON cases(decision_date DESC);
        """,
        """
        CREATE TABLE IF NOT EXISTS case_content (
            id              INTEGER PRIMARY KEY AUTOINCREMENT,
            case_id         INTEGER NOT NULL UNIQUE,
            paragraphs_json TEXT NOT NULL,
            links_json      TEXT NOT NULL,
            court           TEXT,
            parties_json    TEXT NOT NULL,
            keywords_json   TEXT NOT NULL,
            full_text       TEXT,
            created_at      TEXT NOT NULL,
            updated_at      TEXT NOT NULL,
            FOREIGN KEY(case_id) REFERENCES cases(id) ON DELETE CASCADE
        );
        """,
    )

    conn = get_connection()
    try:
        with conn:
            for statement in statements:
                conn.execute(statement)
    finally:
        conn.close()


def _utc_now() -> str:
    """Return a UTC timestamp formatted as ISO8601 without fractional seconds."""

    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


def _is_unique_violation(exc: sqlite3.IntegrityError) -> bool:
    return "UNIQUE constraint failed" in str(exc)


def case_exists(external_id: str) -> bool:
    """Return ``True`` when a case with ``external_id`` is already stored."""

    conn = get_connection()
    try:
        cursor = conn.execute(
            "SELECT 1 FROM cases WHERE external_id = ? LIMIT 1",
            (external_id,),
        )
        return cursor.fetchone() is not None
    finally:
        conn.close()


def create_case_with_content(summary: "CaseSummary", content: "CaseContent") -> int:
    """Insert a case row and its content row in one transaction.

    Returns the new ``cases.id``. Raises ``DuplicateRecordError`` when the
    external id is already stored; nothing is written in that case. Any other
    database error propagates unchanged after the rollback.
    """

    now = _utc_now()
    decision_date = summary.decision_date.isoformat() if summary.decision_date else None

    conn = get_connection()
    try:
        with conn:
            cursor = conn.execute(
                """
                INSERT INTO cases (
                    external_id, title, case_number, decision_date,
                    source_url, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    summary.external_id,
                    summary.title,
                    summary.case_number,
                    decision_date,
                    summary.detail_url,
                    now,
                    now,
                ),
            )
            case_id = int(cursor.lastrowid)
            conn.execute(
                """
                INSERT INTO case_content (
                    case_id, paragraphs_json, links_json, court,
                    parties_json, keywords_json, full_text, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    case_id,
                    json.dumps(content.paragraphs, ensure_ascii=False),
                    json.dumps(content.links_as_dicts(), ensure_ascii=False),
                    content.court,
                    json.dumps(content.parties, ensure_ascii=False),
                    json.dumps(content.keywords, ensure_ascii=False),
                    content.full_text,
                    now,
                    now,
                ),
            )
    except sqlite3.IntegrityError as exc:
        if _is_unique_violation(exc):
            raise DuplicateRecordError(summary.external_id) from exc
        raise
    finally:
        conn.close()
    return case_id


def get_case_stats() -> Dict[str, int]:
    """Return total, enriched (has content) and pending case counts."""

    conn = get_connection()
    try:
        row = conn.execute(
            """
            SELECT
                COUNT(c.id)  AS total,
                COUNT(cc.id) AS enriched
            FROM cases c
            LEFT JOIN case_content cc ON cc.case_id = c.id
            """
        ).fetchone()
    finally:
        conn.close()

    total = int(row["total"] or 0)
    enriched = int(row["enriched"] or 0)
    return {"total": total, "enriched": enriched, "pending": total - enriched}


__all__ = [
    "DuplicateRecordError",
    "case_exists",
    "create_case_with_content",
    "get_case_stats",
    "get_connection",
    "initialize_schema",
]
