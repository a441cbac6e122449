"""Tests for setup_logging: handlers, levels and third-party loggers."""

import logging
import logging.handlers
from pathlib import Path

import pytest

from gamesapp.logging_config import setup_logging
from gamesapp.settings import get_default_settings, load_settings, reload_settings

_NAMED = ("httpx", "uvicorn.access", "uvicorn.error")


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    level = root.level
    named = {name: logging.getLogger(name).level for name in _NAMED}
    yield
    for h in root.handlers[:]:
        if type(h) in (logging.handlers.RotatingFileHandler, logging.StreamHandler):
            root.removeHandler(h)
            h.close()
    root.setLevel(level)
    for name, named_level in named.items():
        logging.getLogger(name).setLevel(named_level)


class TestSetupLogging:
    def test_file_and_console_handlers(self, tmp_path: Path) -> None:
        handlers = setup_logging(tmp_path, get_default_settings())
        assert [type(h) for h in handlers] == [
            logging.handlers.RotatingFileHandler,
            logging.StreamHandler,
        ]
        assert logging.getLogger().handlers == handlers
        assert (tmp_path / "logs").is_dir()

        logging.getLogger("gamesapp.controller.lifecycle").info("games created successfully.")
        handlers[0].flush()
        text = (tmp_path / "logs" / "gamesapp.log").read_text(encoding="utf-8")
        assert "[INFO] gamesapp.controller.lifecycle: games created successfully." in text

    def test_third_party_levels(self, tmp_path: Path) -> None:
        setup_logging(tmp_path, get_default_settings())
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("uvicorn.access").level == logging.WARNING
        assert logging.getLogger("uvicorn.error").level == logging.INFO

    def test_empty_file_means_console_only(self, tmp_path: Path) -> None:
        settings = get_default_settings()
        settings["logging"]["file"] = ""
        settings["logging"]["log_to_console"] = False
        handlers = setup_logging(tmp_path, settings)
        assert [type(h) for h in handlers] == [logging.StreamHandler]
        assert not (tmp_path / "logs").exists()

    def test_unknown_level_falls_back(self, tmp_path: Path) -> None:
        settings = get_default_settings()
        settings["logging"]["level"] = "chatty"
        settings["logging"]["loggers"] = {"httpx": "loud"}
        setup_logging(tmp_path, settings)
        assert logging.getLogger().level == logging.INFO
        assert logging.getLogger("httpx").level == logging.INFO

    def test_level_from_environment(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GAMESAPP_LOG_LEVEL", "debug")
        reload_settings()
        try:
            settings = load_settings(tmp_path)
        finally:
            reload_settings()
        handlers = setup_logging(tmp_path, settings)
        assert logging.getLogger().level == logging.DEBUG
        assert all(h.level == logging.DEBUG for h in handlers)
