from __future__ import annotations

import logging
import sys

from cutout_viewer.logger import get_logger, setup_logger


def test_setup_logger_installs_single_stderr_handler() -> None:
    setup_logger()
    base = setup_logger()

    handlers = [h for h in base.handlers if isinstance(h, logging.StreamHandler) and h.stream is sys.stderr]
    assert len(handlers) == 1
    assert base.propagate is False


def test_get_logger_returns_child_of_base() -> None:
    assert get_logger("transform").name == "cutout_viewer.transform"
    assert get_logger().name == "cutout_viewer"


def test_env_level_override(monkeypatch) -> None:
    monkeypatch.setenv("CUTOUT_VIEWER_LOG_LEVEL", "debug")
    assert setup_logger().level == logging.DEBUG

    monkeypatch.setenv("CUTOUT_VIEWER_LOG_LEVEL", "error")
    assert setup_logger().level == logging.ERROR

    monkeypatch.delenv("CUTOUT_VIEWER_LOG_LEVEL")
    assert setup_logger().level == logging.INFO


def test_category_filter_passes_only_selected(monkeypatch) -> None:
    monkeypatch.setenv("CUTOUT_VIEWER_LOG_CATS", "backend, preview")
    base = setup_logger()
    handler = next(h for h in base.handlers if isinstance(h, logging.StreamHandler) and h.stream is sys.stderr)

    def record(name: str) -> logging.LogRecord:
        return logging.LogRecord(name, logging.INFO, __file__, 1, "msg", None, None)

    assert handler.filter(record("cutout_viewer.backend"))
    assert handler.filter(record("cutout_viewer.preview"))
    assert not handler.filter(record("cutout_viewer.transform"))

    monkeypatch.delenv("CUTOUT_VIEWER_LOG_CATS")
    base = setup_logger()
    assert handler.filter(record("cutout_viewer.transform"))
