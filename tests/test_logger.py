"""Tests for logger.py — setup_logging() and JsonFormatter.

Strategy: Mock logging.basicConfig to verify setup_logging passes correct args,
since pytest's log capture plugin interferes with actual basicConfig calls.
"""

import json
import logging
import sys
from unittest.mock import patch

from codesync.logger import JsonFormatter, setup_logging


class TestSetupLogging:
    """Tests for setup_logging()."""

    @patch("codesync.logger.logging.basicConfig")
    def test_logs_to_stderr(self, mock_basic, monkeypatch):
        monkeypatch.delenv("LOG_FILE", raising=False)
        setup_logging()

        mock_basic.assert_called_once()
        handlers = mock_basic.call_args.kwargs["handlers"]
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.StreamHandler)
        assert handlers[0].stream is sys.stderr

    @patch("codesync.logger.logging.basicConfig")
    def test_log_file_adds_file_handler(self, mock_basic, tmp_path):
        log_file = tmp_path / "codesync.log"
        setup_logging(log_file=str(log_file))

        handlers = mock_basic.call_args.kwargs["handlers"]
        assert len(handlers) == 2
        assert isinstance(handlers[1], logging.FileHandler)
        handlers[1].close()

    @patch("codesync.logger.logging.basicConfig")
    def test_debug_overrides_level(self, mock_basic, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        setup_logging(debug=True)

        assert mock_basic.call_args.kwargs["level"] == logging.DEBUG

    @patch("codesync.logger.logging.basicConfig")
    def test_env_level_beats_config_level(self, mock_basic, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        setup_logging(level="WARNING")

        assert mock_basic.call_args.kwargs["level"] == logging.ERROR

    @patch("codesync.logger.logging.basicConfig")
    def test_config_level_used_without_env(self, mock_basic, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        setup_logging(level="warning")

        assert mock_basic.call_args.kwargs["level"] == logging.WARNING

    @patch("codesync.logger.logging.basicConfig")
    def test_json_format(self, mock_basic):
        setup_logging(log_format="json")

        handler = mock_basic.call_args.kwargs["handlers"][0]
        assert isinstance(handler.formatter, JsonFormatter)

    @patch("codesync.logger.logging.basicConfig")
    def test_third_party_silenced(self, mock_basic, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        setup_logging()

        assert logging.getLogger("urllib3").level == logging.WARNING
        assert logging.getLogger("requests").level == logging.WARNING


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_single_line_json(self):
        record = logging.LogRecord(
            "codesync.sync", logging.INFO, __file__, 1, "synced %d", (3,), None
        )
        out = JsonFormatter().format(record)

        data = json.loads(out)
        assert data["level"] == "INFO"
        assert data["logger"] == "codesync.sync"
        assert data["msg"] == "synced 3"
        assert "\n" not in out

    def test_exception_included(self):
        try:
            raise ValueError("bad")
        except ValueError:
            exc_info = sys.exc_info()
        record = logging.LogRecord(
            "x", logging.ERROR, __file__, 1, "failed", (), exc_info
        )

        data = json.loads(JsonFormatter().format(record))
        assert "ValueError: bad" in data["exc"]
