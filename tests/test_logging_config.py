"""Tests for logging setup."""

import json
import sys
import logging

import pytest

from beetagged.config import settings
from beetagged.logging_config import JsonFormatter, setup_logging


class TestSetupLogging:
    """Root logger configuration from settings."""

    def setup_method(self):
        """Remember root handlers so each test can restore them."""
        self.root = logging.getLogger()
        self.handlers = self.root.handlers[:]
        self.level = self.root.level

    def teardown_method(self):
        for handler in self.root.handlers[:]:
            self.root.removeHandler(handler)
            handler.close()
        for handler in self.handlers:
            self.root.addHandler(handler)
        self.root.setLevel(self.level)

    def test_json_file_logging(self, monkeypatch, tmp_path):
        log_file = tmp_path / "logs" / "beetagged.log"
        monkeypatch.setattr(settings.logging, "format", "json")
        monkeypatch.setattr(settings.logging, "file", str(log_file))
        monkeypatch.setattr(settings.logging, "level", "DEBUG")

        setup_logging()
        logging.getLogger("beetagged.test").debug("hello")
        for handler in self.root.handlers:
            handler.flush()

        lines = log_file.read_text().splitlines()
        record = json.loads(lines[-1])
        assert record["message"] == "hello"
        assert record["logger"] == "beetagged.test"
        assert self.root.level == logging.DEBUG
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

    def test_text_format_by_default(self, monkeypatch):
        monkeypatch.setattr(settings.logging, "format", "text")
        monkeypatch.setattr(settings.logging, "file", None)

        setup_logging()

        assert len(self.root.handlers) == 1
        assert not isinstance(self.root.handlers[0].formatter, JsonFormatter)


class TestJsonFormatter:
    """One JSON object per record."""

    def test_includes_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.getLogger("x").makeRecord(
                "x", logging.ERROR, __file__, 1, "failed", (), exc_info=sys.exc_info()
            )

        payload = json.loads(JsonFormatter().format(record))

        assert payload["level"] == "ERROR"
        assert "RuntimeError: boom" in payload["exc_info"]

    @pytest.mark.parametrize("level", ["INFO", "WARNING"])
    def test_level_name(self, level):
        record = logging.LogRecord("x", getattr(logging, level), __file__, 1, "msg", (), None)
        assert json.loads(JsonFormatter().format(record))["level"] == level
