from __future__ import annotations

import logging

from yttui.logs import configure_logging


def test_configure_logging_writes_to_file(tmp_path) -> None:
    path = tmp_path / "logs" / "yttui.log"
    assert configure_logging("info", path) is None
    logging.getLogger("yttui.history").info("loaded history")
    for handler in logging.getLogger("yttui").handlers:
        handler.flush()
    assert "INFO yttui.history: loaded history" in path.read_text(encoding="utf-8")


def test_configure_logging_unknown_level_defaults_to_warning(tmp_path) -> None:
    assert configure_logging("chatty", tmp_path / "yttui.log") is None
    assert logging.getLogger("yttui").level == logging.WARNING


def test_configure_logging_reports_unusable_path(tmp_path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("file", encoding="utf-8")
    assert configure_logging("info", blocker / "yttui.log") is not None
