from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from datetime import UTC, datetime

import pytest
from flask import Flask

from storefront_fx.logging import JSONLogFormatter, init_request_logging, setup_logging, sync_log_extra


class _MemoryHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


@contextmanager
def isolate_logging():
    root = logging.getLogger()
    previous_handlers = root.handlers[:]
    previous_level = root.level
    try:
        for handler in root.handlers[:]:
            root.removeHandler(handler)
        yield root
    finally:
        for handler in root.handlers[:]:
            root.removeHandler(handler)
        for handler in previous_handlers:
            root.addHandler(handler)
        root.setLevel(previous_level)


def test_json_log_formatter_renders_basic_fields():
    formatter = JSONLogFormatter()
    record = logging.LogRecord(
        name="storefront_fx.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=42,
        msg="Hello %s",
        args=("world",),
        exc_info=None,
    )
    record.request_id = "req-123"

    payload = json.loads(formatter.format(record))

    assert payload["message"] == "Hello world"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "storefront_fx.test"
    assert "timestamp" in payload
    assert payload["request_id"] == "req-123"
    assert "args" not in payload
    assert "msg" not in payload


def test_json_log_formatter_serializes_sync_extras():
    formatter = JSONLogFormatter()
    as_of = datetime(2025, 10, 16, 8, 0, tzinfo=UTC)
    record = logging.LogRecord("storefront_fx.sync", logging.INFO, __file__, 1, "done", None, None)
    for key, value in sync_log_extra(
        event="sync.completed",
        trigger="scheduled",
        status="success",
        provider="exchange",
        base="USD",
        duration_ms=12.34567,
        rates_written=12,
        skipped=("MYR",),
    ).items():
        setattr(record, key, value)
    record.as_of = as_of

    payload = json.loads(formatter.format(record))

    assert payload["event"] == "sync.completed"
    assert payload["trigger"] == "scheduled"
    assert payload["duration_ms"] == 12.346
    assert payload["skipped"] == ["MYR"]
    assert payload["as_of"] == as_of.isoformat()


def test_sync_log_extra_drops_empty_values():
    extra = sync_log_extra(event="sync.skipped", trigger="manual", status="already_running")

    assert extra == {"event": "sync.skipped", "trigger": "manual", "status": "already_running"}


def test_setup_logging_enables_json_formatter_when_configured():
    app = Flask(__name__)
    app.config["LOG_JSON_ENABLED"] = True
    app.config["LOG_LEVEL"] = "DEBUG"

    with isolate_logging():
        setup_logging(app)
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert app.logger.level == logging.DEBUG
        assert root.handlers, "Expected handler to be registered on root logger"
        handler = root.handlers[0]
        assert isinstance(handler.formatter, JSONLogFormatter)
        assert logging.getLogger("apscheduler").level == logging.WARNING


def test_setup_logging_uses_plain_formatter_by_default():
    app = Flask(__name__)
    app.config["LOG_JSON_ENABLED"] = False
    app.config["LOG_LEVEL"] = "WARNING"
    app.config["LOG_FORMAT"] = "%(levelname)s:%(message)s"

    with isolate_logging():
        setup_logging(app)
        root = logging.getLogger()
        assert root.level == logging.WARNING
        handler = root.handlers[0]
        assert isinstance(handler.formatter, logging.Formatter)
        assert handler.formatter._style._fmt == "%(levelname)s:%(message)s"


def _make_test_app():
    app = Flask(__name__)
    app.config["TESTING"] = True

    @app.route("/ok")
    def ok():  # pragma: no cover - invoked via test client
        return "ok", 200

    @app.route("/boom")
    def boom():  # pragma: no cover - invoked via test client
        raise RuntimeError("boom")

    return app


def test_request_logging_emits_correlation_fields():
    app = _make_test_app()
    app.config["LOG_JSON_ENABLED"] = False

    with isolate_logging():
        setup_logging(app)
        init_request_logging(app)
        handler = _MemoryHandler()
        handler.setLevel(logging.INFO)
        logging.getLogger().addHandler(handler)
        client = app.test_client()
        response = client.get("/ok", headers={"X-Request-ID": "abc-123"})

    records = [record for record in handler.records if record.getMessage() == "Request handled"]
    assert records
    record = records[-1]
    assert record.event == "request.completed"
    assert record.method == "GET"
    assert record.status == 200
    assert record.request_id == "abc-123"
    assert response.headers["X-Request-ID"] == "abc-123"
    assert record.duration_ms is not None and record.duration_ms >= 0
    assert record.route == "/ok"


def test_request_logging_captures_errors():
    app = _make_test_app()

    with isolate_logging():
        setup_logging(app)
        init_request_logging(app)
        handler = _MemoryHandler()
        handler.setLevel(logging.INFO)
        logging.getLogger().addHandler(handler)
        client = app.test_client()
        with pytest.raises(RuntimeError):
            client.get("/boom")

    records = [record for record in handler.records if record.getMessage() == "Request failed"]
    assert records
    record = records[-1]
    assert record.event == "request.failed"
    assert record.status == 500
    assert record.request_id
    assert record.duration_ms is not None and record.duration_ms >= 0
    assert "boom" in record.error
