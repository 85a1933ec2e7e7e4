"""Tests for log handler setup and teardown (core.logging_setup)."""
import logging
from logging.handlers import TimedRotatingFileHandler

import pytest
from core import logging_setup
from core.logging_setup import LOG_FILE_NAME, get_log_file, setup_logging, teardown_logging


@pytest.fixture
def log_dir(tmp_path):
    yield tmp_path
    teardown_logging()


def _owned_handlers():
    return [h for h in logging.getLogger().handlers if getattr(h, "_portwatch_handler", False)]


def test_log_file_defaults_to_config_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(logging_setup, "get_config_dir", lambda: tmp_path)
    assert get_log_file() == tmp_path / "logs" / LOG_FILE_NAME
    assert get_log_file(str(tmp_path / "elsewhere")) == tmp_path / "elsewhere" / LOG_FILE_NAME


def test_writes_daily_file(log_dir):
    logger = setup_logging(str(log_dir))
    logger.getChild("monitor").info("OFFLINE->ONLINE Lobby (10.0.0.1:25565)")
    for h in _owned_handlers():
        h.flush()
    text = (log_dir / LOG_FILE_NAME).read_text(encoding="utf-8")
    assert "INFO | portwatch.monitor | MainThread | OFFLINE->ONLINE Lobby" in text


@pytest.mark.parametrize("verbose,console_level", [(False, logging.INFO), (True, logging.DEBUG)])
def test_console_level_follows_verbose(log_dir, verbose, console_level):
    setup_logging(str(log_dir), verbose=verbose)
    handlers = _owned_handlers()
    files = [h for h in handlers if isinstance(h, TimedRotatingFileHandler)]
    consoles = [h for h in handlers if not isinstance(h, TimedRotatingFileHandler)]
    assert [h.level for h in files] == [logging.DEBUG]
    assert [h.level for h in consoles] == [console_level]
    assert logging.getLogger("asyncio").level == logging.WARNING


def test_setup_twice_does_not_duplicate(log_dir):
    foreign = logging.NullHandler()
    root = logging.getLogger()
    root.addHandler(foreign)
    try:
        setup_logging(str(log_dir))
        first = _owned_handlers()
        setup_logging(str(log_dir))
        assert len(_owned_handlers()) == 2
        assert all(h not in root.handlers for h in first)
        assert foreign in root.handlers
        teardown_logging()
        assert _owned_handlers() == []
        assert foreign in root.handlers
    finally:
        root.removeHandler(foreign)
