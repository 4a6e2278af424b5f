"""
Structured logging tests.
"""

import json
import logging

from keywordguard.logging import JSONFormatter, TextFormatter, get_logger, setup_logging


def _record(msg="Test message"):
    return logging.LogRecord(
        name="keywordguard.test",
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


class TestLogging:

    def test_json_formatter(self):
        parsed = json.loads(JSONFormatter().format(_record()))
        assert parsed["level"] == "INFO"
        assert parsed["message"] == "Test message"
        assert parsed["logger"] == "keywordguard.test"
        assert "timestamp" in parsed

    def test_json_formatter_extra_fields(self):
        record = _record("Scan done")
        record.job_id = "upload-42"
        record.missing_critical = ["shopify"]
        parsed = json.loads(JSONFormatter().format(record))
        assert parsed["job_id"] == "upload-42"
        assert parsed["missing_critical"] == ["shopify"]

    def test_json_formatter_ignores_unknown_extras(self):
        record = _record()
        record.resume_text = "private"
        parsed = json.loads(JSONFormatter().format(record))
        assert "resume_text" not in parsed

    def test_text_formatter(self):
        output = TextFormatter().format(_record())
        assert "keywordguard.test: Test message" in output

    def test_get_logger(self):
        log = get_logger("scanner")
        assert log.name == "keywordguard.scanner"

    def test_setup_logging_single_handler(self):
        setup_logging()
        root = setup_logging()
        assert root.name == "keywordguard"
        assert len(root.handlers) == 1
