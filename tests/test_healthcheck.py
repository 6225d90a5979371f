from __future__ import annotations

import pytest

from mfkn_indexer.scraper import config, db
from mfkn_indexer.scraper import healthcheck
from tests.test_indexing_api import _reload_main_module


def test_run_health_checks_happy_path(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "MIN_FREE_MB", 0)

    result = healthcheck.run_health_checks(entrypoint="api")
    assert result.ok is True
    assert result.checks["config"]["ok"] is True
    assert result.checks["filesystem"]["ok"] is True
    assert result.checks["database"] == {"ok": True, "cases": 0}


def test_run_health_checks_handles_invalid_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "MIN_FREE_MB", -1)

    result = healthcheck.run_health_checks(entrypoint="cli")
    assert result.ok is False
    assert result.checks["config"]["ok"] is False


def test_health_api_reports_status(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "MIN_FREE_MB", 0)

    main = _reload_main_module()
    client = main.app.test_client()

    resp = client.get("/api/health")
    assert resp.status_code == 200
    payload = resp.get_json()
    assert payload["ok"] is True
    assert "filesystem" in payload["checks"]

    monkeypatch.setattr(db, "initialize_schema", lambda: (_ for _ in ()).throw(RuntimeError("db error")))

    resp_unhealthy = client.get("/api/health")
    assert resp_unhealthy.status_code == 503
    data_unhealthy = resp_unhealthy.get_json()
    assert data_unhealthy["ok"] is False
    assert data_unhealthy["checks"]["database"]["ok"] is False
