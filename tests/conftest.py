"""Pytest configuration and fixtures."""
from __future__ import annotations

from pathlib import Path

import pytest

from mfkn_indexer.scraper import config, db, utils


def _configure_temp_paths(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    data_dir = tmp_path / "data"
    data_dir.mkdir(parents=True, exist_ok=True)
    db_path = data_dir / "mfkn.db"

    monkeypatch.setattr(config, "DATA_DIR", data_dir)
    monkeypatch.setattr(config, "LOG_DIR", data_dir / "logs")
    monkeypatch.setattr(config, "LOG_FILE", data_dir / "logs" / "latest.log")
    monkeypatch.setattr(config, "DB_PATH", db_path)
    monkeypatch.setattr(db, "DB_PATH", db_path)
    # Re-open the shared logger against the temporary log file.
    monkeypatch.setattr(utils, "_LOGGER_INITIALISED", False)
    return db_path


@pytest.fixture(autouse=True)
def temp_data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep every test's database and log files under ``tmp_path``."""

    return _configure_temp_paths(tmp_path, monkeypatch)


@pytest.fixture
def case_summary_factory():
    from mfkn_indexer.scraper.parser import CaseSummary

    def _make(n: int) -> CaseSummary:
        external_id = f"{n:08d}-0000-4000-8000-000000000000"
        return CaseSummary(
            external_id=external_id,
            title=f"Afgørelse {n}",
            detail_url=f"{config.BASE_URL}/afgoerelse/{external_id}",
            case_number=f"NMK-{n}",
        )

    return _make
