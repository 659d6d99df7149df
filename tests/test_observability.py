"""
Tests for logging setup.
"""

import logging
from pathlib import Path

import pytest

from delivery_build.core.observability.logging_config import (
    LOG_FILE_ENV,
    LOG_LEVEL_ENV,
    configure_from_cli,
    parse_level,
    resolve_level,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestParseLevel:
    def test_names(self):
        assert parse_level("debug") == logging.DEBUG
        assert parse_level("INFO") == logging.INFO

    def test_fallback(self):
        assert parse_level(None) == logging.WARNING
        assert parse_level("chatty") == logging.WARNING


class TestSetupLogging:
    def test_console_level(self):
        setup_logging(level="INFO")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1

    def test_debug_format_has_location(self):
        setup_logging(level="DEBUG")
        fmt = logging.getLogger().handlers[0].formatter._fmt
        assert "%(lineno)d" in fmt

    def test_file_handler(self, tmp_path: Path):
        log_file = tmp_path / "build.log"
        setup_logging(level="WARNING", log_file=str(log_file), log_file_level="DEBUG")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2

        logging.getLogger("delivery_build.test").debug("cargo build started")
        for handler in root.handlers:
            handler.flush()
        assert "cargo build started" in log_file.read_text()

        for handler in root.handlers[1:]:
            handler.close()


class TestResolveLevel:
    def test_flags_win(self):
        env = {LOG_LEVEL_ENV: "ERROR"}
        assert resolve_level(debug=True, environ=env) == "DEBUG"
        assert resolve_level(verbose=True, environ=env) == "INFO"
        assert resolve_level(quiet=True, environ={}) == "ERROR"

    def test_env_then_default(self):
        assert resolve_level(environ={LOG_LEVEL_ENV: "info"}) == "info"
        assert resolve_level(environ={}) == "WARNING"

    def test_warning_format_is_message_only(self):
        setup_logging(level="WARNING")
        assert logging.getLogger().handlers[0].formatter._fmt == "%(message)s"


class TestConfigureFromCli:
    def test_reads_env(self, tmp_path: Path, monkeypatch):
        log_file = tmp_path / "cli.log"
        monkeypatch.setenv(LOG_LEVEL_ENV, "ERROR")
        monkeypatch.setenv(LOG_FILE_ENV, str(log_file))
        configure_from_cli()
        root = logging.getLogger()
        assert root.handlers[0].level == logging.ERROR
        assert len(root.handlers) == 2
        for handler in root.handlers[1:]:
            handler.close()

    def test_verbose_flag(self, monkeypatch):
        monkeypatch.delenv(LOG_FILE_ENV, raising=False)
        monkeypatch.setenv(LOG_LEVEL_ENV, "ERROR")
        configure_from_cli(verbose=True)
        assert logging.getLogger().level == logging.INFO
