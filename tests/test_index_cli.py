from __future__ import annotations

import json

import pytest

from mfkn_indexer.scraper import config, index_cli
from mfkn_indexer.scraper.error_codes import ErrorCode
from mfkn_indexer.scraper.indexing import IndexingConflictError, IndexingResult
from mfkn_indexer.scraper.rendering import FetchError


class StubIndexer:
    def __init__(self, result=None, error: Exception | None = None) -> None:
        self.result = result or IndexingResult(indexed=1, skipped=2, failed=1)
        self.error = error
        self.calls: list[tuple] = []

    async def index_cases(self, max_pages=None, max_cases=None):
        self.calls.append((max_pages, max_cases))
        if self.error is not None:
            raise self.error
        return self.result

    def get_case_stats(self):
        return {"total": 3, "enriched": 2, "pending": 1}


def test_cli_runs_indexer_and_prints_summary(capsys: pytest.CaptureFixture[str]) -> None:
    stub = StubIndexer()

    exit_code = index_cli.main(["--pages", "3", "--max-cases", "5"], indexer=stub)

    assert exit_code == 0
    assert stub.calls == [(3, 5)]
    out = capsys.readouterr().out
    payload = json.loads(out[out.index("{"):])
    assert payload == {"indexed": 1, "skipped": 3, "failed": 1}


def test_cli_stats(capsys: pytest.CaptureFixture[str]) -> None:
    stub = StubIndexer()

    assert index_cli.main(["--stats"], indexer=stub) == 0

    assert json.loads(capsys.readouterr().out) == {"total": 3, "enriched": 2, "pending": 1}
    assert stub.calls == []


@pytest.mark.parametrize(
    "error",
    [
        IndexingConflictError("Indexing process is already running"),
        FetchError(ErrorCode.NETWORK, "net::ERR_NAME_NOT_RESOLVED"),
    ],
)
def test_cli_failures_exit_non_zero(error: Exception) -> None:
    assert index_cli.main([], indexer=StubIndexer(error=error)) == 1


def test_cli_rejects_invalid_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "MAX_PAGES", 0)
    stub = StubIndexer()

    assert index_cli.main([], indexer=stub) == 1
    assert stub.calls == []


def test_cli_reports_run_log_location(capsys: pytest.CaptureFixture[str]) -> None:
    assert index_cli.main([], indexer=StubIndexer()) == 0

    out = capsys.readouterr().out
    assert "[INDEX] Run log written to " in out
    assert "index_" in out.split("Run log written to ", 1)[1].splitlines()[0]
