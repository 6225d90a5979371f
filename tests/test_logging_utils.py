from mfkn_indexer.scraper import logging_utils, utils


def test_scraper_event_label_and_phase(monkeypatch):
    events: list[str] = []
    monkeypatch.setattr(logging_utils, "log_line", lambda msg: events.append(msg))

    logging_utils._scraper_event("state", phase="run_guard", kind="manual_reset")

    assert events
    line = events[-1]
    assert line.startswith("[SCRAPER][STATE]")
    assert "phase='run_guard'" in line
    assert "kind='manual_reset'" in line


def test_scraper_event_never_raises(monkeypatch):
    def broken(msg: str) -> None:
        raise OSError("disk full")

    monkeypatch.setattr(logging_utils, "log_line", broken)

    logging_utils._scraper_event("error", phase="index_case", external_id="x")


def test_log_line_writes_to_current_log_file():
    utils.log_line("[INDEX] hello from tests")

    path = utils.get_current_log_path()
    assert "[INDEX] hello from tests" in path.read_text(encoding="utf-8")


def test_debug_lines_only_reach_the_file(capsys):
    utils.log_debug("[INDEX] debug detail")
    utils.log_line("[INDEX] info line")

    out = capsys.readouterr().out
    assert "[INDEX] info line" in out
    assert "debug detail" not in out
    assert "debug detail" in utils.get_current_log_path().read_text(encoding="utf-8")


def test_setup_run_logger_rotates_file():
    path = utils.setup_run_logger()

    assert path.name.startswith("index_")
    assert utils.get_current_log_path() == path


def test_collapse_whitespace():
    assert utils.collapse_whitespace("  a \n\t b  ") == "a b"
    assert utils.collapse_whitespace(None) == ""


def test_scraper_event_omits_none_and_truncates(monkeypatch):
    events: list[str] = []
    monkeypatch.setattr(logging_utils, "log_line", lambda msg: events.append(msg))

    logging_utils._scraper_event("error", url=None, error="x" * 1000)

    line = events[-1]
    assert "url=" not in line
    assert line.endswith("...")
    assert len(line) < 400
