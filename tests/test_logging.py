"""Tests for structlog configuration."""

from __future__ import annotations

import io
import json
import logging
from unittest.mock import patch

import pytest
import structlog

from csp_policy.config.loader import PolicySettings
from csp_policy.logging_config import configure_logging, setup_logging


@pytest.fixture
def log_stream():
    stream = io.StringIO()
    yield stream
    structlog.reset_defaults()
    logging.getLogger().handlers.clear()


class TestSetupLogging:
    def test_json_output(self, log_stream):
        setup_logging("info", json_format=True, stream=log_stream)
        structlog.get_logger("csp_policy.test").info("csp_compiled", strategy="FirefoxStrategy")

        record = json.loads(log_stream.getvalue().strip().splitlines()[-1])
        assert record["event"] == "csp_compiled"
        assert record["strategy"] == "FirefoxStrategy"
        assert record["level"] == "info"
        assert record["module"] == "csp_policy.test"
        assert "logger" not in record
        assert "timestamp" in record

    def test_level_filtering(self, log_stream):
        setup_logging("warning", json_format=True, stream=log_stream)
        structlog.get_logger("csp_policy.test").info("hidden")
        assert log_stream.getvalue() == ""

    def test_console_output(self, log_stream):
        setup_logging("debug", json_format=False, stream=log_stream)
        structlog.get_logger("csp_policy.test").debug("csp_report_uri_dropped")
        assert "csp_report_uri_dropped" in log_stream.getvalue()

    def test_stdlib_records_rendered(self, log_stream):
        setup_logging("info", json_format=True, stream=log_stream)
        logging.getLogger("third.party").warning("plain message")
        record = json.loads(log_stream.getvalue().strip().splitlines()[-1])
        assert record["event"] == "plain message"
        assert record["module"] == "third.party"


class TestConfigureLogging:
    def test_reads_settings(self):
        with patch("csp_policy.logging_config.setup_logging") as setup:
            configure_logging(PolicySettings(log_level="error", log_json=False))
        setup.assert_called_once_with("error", False)

    def test_defaults_to_global_settings(self, monkeypatch):
        monkeypatch.setenv("CSP_LOG_LEVEL", "warning")
        with patch("csp_policy.logging_config.setup_logging") as setup:
            configure_logging()
        setup.assert_called_once_with("warning", False)
