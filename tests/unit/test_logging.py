"""Tests for structured JSON logging."""

import json
import logging

from codepruner.common.logging import JSONFormatter, setup_logging


def _record(msg="hello %s", args=("world",), **extra):
    record = logging.LogRecord("codepruner.test", logging.WARNING, __file__, 1, msg, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_basic_fields(self):
        data = json.loads(JSONFormatter().format(_record()))
        assert data["level"] == "WARNING"
        assert data["logger"] == "codepruner.test"
        assert data["message"] == "hello world"
        assert "timestamp" in data

    def test_extra_fields_included(self):
        data = json.loads(JSONFormatter().format(_record(tenant_id="t1", dropped=3)))
        assert data["tenant_id"] == "t1"
        assert data["dropped"] == 3
        assert "args" not in data
        assert "levelno" not in data

    def test_non_serializable_extra(self):
        data = json.loads(JSONFormatter().format(_record(routes={"/a"})))
        assert data["routes"] == "{'/a'}"

    def test_exception_included(self):
        try:
            raise ValueError("boom")
        except ValueError:
            import sys
            record = logging.LogRecord(
                "codepruner", logging.ERROR, __file__, 1, "failed", (), sys.exc_info(),
            )
        data = json.loads(JSONFormatter().format(record))
        assert "ValueError: boom" in data["exception"]


class TestSetupLogging:
    def test_idempotent(self):
        setup_logging("DEBUG")
        setup_logging("DEBUG")
        logger = logging.getLogger("codepruner")
        handlers = [h for h in logger.handlers if isinstance(h.formatter, JSONFormatter)]
        assert len(handlers) == 1
        assert logger.level == logging.DEBUG
