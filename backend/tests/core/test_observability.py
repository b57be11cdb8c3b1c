"""JSON log formatting and request correlation."""

import json
import logging

from venturenet.infrastructure.observability import (
    JSONFormatter, request_id_var, setup_logging,
)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("venturenet.test", logging.INFO, __file__, 1, "hello", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_base_fields():
    out = json.loads(JSONFormatter().format(_record()))
    assert out["level"] == "INFO"
    assert out["logger"] == "venturenet.test"
    assert out["message"] == "hello"
    assert "request_id" not in out


def test_json_formatter_surfaces_known_extras_only():
    out = json.loads(JSONFormatter().format(_record(error_code="EVENT_FULL", status_code=400, secret="x")))
    assert out["error_code"] == "EVENT_FULL"
    assert out["status_code"] == 400
    assert "secret" not in out


def test_json_formatter_includes_bound_request_id():
    token = request_id_var.set("abc")
    try:
        out = json.loads(JSONFormatter().format(_record()))
    finally:
        request_id_var.reset(token)
    assert out["request_id"] == "abc"


def test_setup_logging_does_not_stack_handlers():
    root = logging.getLogger()
    setup_logging("DEBUG", "text")
    setup_logging("INFO", "json")
    assert sum(1 for h in root.handlers if h.get_name() == "venturenet") == 1
