from __future__ import annotations

import os

from flask import Flask, Response, jsonify, request

from mfkn_indexer.scraper import db
from mfkn_indexer.scraper.config_validation import validate_runtime_config
from mfkn_indexer.scraper.healthcheck import run_health_checks
from mfkn_indexer.scraper.indexing import (
    CaseIndexer,
    IndexingConflictError,
    PageLimitExceededError,
)
from mfkn_indexer.scraper.logging_utils import _scraper_event
from mfkn_indexer.scraper.rendering import FetchError
from mfkn_indexer.scraper.utils import ensure_dirs

app = Flask(__name__)
app.secret_key = os.environ.get("SECRET_KEY", "dev-secret-change-me")

# Initialise storage paths and SQLite schema on import so WSGI entrypoints
# also have the expected environment ready.
ensure_dirs()
db.initialize_schema()

indexer = CaseIndexer()


def _request_payload() -> dict[str, object]:
    payload: dict[str, object] = {}
    payload.update(request.args or {})

    if request.is_json:
        payload.update(request.get_json(silent=True) or {})
    else:
        payload.update(request.form or {})

    return payload


def _optional_int(payload: dict[str, object], key: str, errors: list[str]) -> int | None:
    raw = payload.get(key)
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool):
        errors.append(f"{key} must be an integer")
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        errors.append(f"{key} must be an integer")
        return None


@app.post("/indexing/start")
def indexing_start() -> Response:
    payload = _request_payload()
    errors: list[str] = []
    max_pages = _optional_int(payload, "max_pages", errors)
    max_cases = _optional_int(payload, "max_cases", errors)

    if errors:
        _scraper_event(
            "error",
            phase="api",
            context="indexing_start",
            error="invalid_params",
            details=errors,
            remote_addr=request.remote_addr,
        )
        return jsonify({"ok": False, "error": "invalid_params", "details": errors}), 400

    try:
        validate_runtime_config("api")
    except ValueError as exc:
        return jsonify({"ok": False, "error": "config_invalid", "details": str(exc)}), 500

    _scraper_event(
        "state",
        phase="api",
        context="indexing_start",
        max_pages=max_pages,
        max_cases=max_cases,
        remote_addr=request.remote_addr,
    )

    try:
        counts = indexer.start_run(max_pages=max_pages, max_cases=max_cases)
    except IndexingConflictError:
        return jsonify({"ok": False, "error": "already_running"}), 409
    except FetchError as exc:
        return (
            jsonify(
                {
                    "ok": False,
                    "error": "fetch_failed",
                    "error_code": exc.error_code,
                    "details": str(exc),
                }
            ),
            502,
        )
    except PageLimitExceededError as exc:
        return jsonify({"ok": False, "error": "page_limit_exceeded", "details": str(exc)}), 500

    return jsonify({"ok": True, **counts})


@app.get("/indexing/status")
def indexing_status() -> Response:
    return jsonify(indexer.get_run_status())


@app.post("/indexing/reset")
def indexing_reset() -> Response:
    return jsonify(indexer.reset_run_flag())


@app.get("/indexing/stats")
def indexing_stats() -> Response:
    return jsonify(indexer.get_case_stats())


@app.get("/api/health")
def api_health() -> Response:
    """Return a JSON health summary for configuration, filesystem, and DB."""

    result = run_health_checks(entrypoint="api")
    status = 200 if result.ok else 503
    return jsonify({"ok": result.ok, "checks": result.checks}), status
