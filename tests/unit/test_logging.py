"""Unit tests for structured logging."""

from __future__ import annotations

import json
import logging
import sys

from tickflow.logging import JsonFormatter, configure_logging


def _record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="tickflow.runtime.manager",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Workflow started",
        args=None,
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_promotes_correlation_ids() -> None:
    line = JsonFormatter().format(
        _record(instance_id="wf_1", workflow_id="Orders", step_id="validate", attempt=2)
    )
    payload = json.loads(line)

    assert payload["level"] == "INFO"
    assert payload["logger"] == "tickflow.runtime.manager"
    assert payload["message"] == "Workflow started"
    assert payload["instance_id"] == "wf_1"
    assert payload["workflow_id"] == "Orders"
    assert payload["step_id"] == "validate"
    assert payload["extra"] == {"attempt": 2}
    assert "timestamp" in payload


def test_json_formatter_omits_extra_when_only_ids_present() -> None:
    payload = json.loads(JsonFormatter().format(_record(action_id="Order.Validate")))

    assert payload["action_id"] == "Order.Validate"
    assert "extra" not in payload


def test_json_formatter_without_extra() -> None:
    payload = json.loads(JsonFormatter().format(_record()))

    assert "extra" not in payload
    assert "exception" not in payload


def test_json_formatter_stringifies_unknown_values() -> None:
    payload = json.loads(JsonFormatter().format(_record(path=object())))

    assert payload["extra"]["path"].startswith("<object object")


def test_json_formatter_includes_exception() -> None:
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = _record()
        record.exc_info = sys.exc_info()

    payload = json.loads(JsonFormatter().format(record))

    assert "RuntimeError: boom" in payload["exception"]


def test_configure_logging_replaces_root_handlers() -> None:
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    try:
        configure_logging("debug")
        configure_logging("warning", json_output=False)

        assert len(root.handlers) == 1
        assert root.level == logging.WARNING
        assert not isinstance(root.handlers[0].formatter, JsonFormatter)
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
        for handler in saved_handlers:
            root.addHandler(handler)
        root.setLevel(saved_level)


def test_json_formatter_includes_stack_info() -> None:
    record = _record()
    record.stack_info = "Stack (most recent call last):\n  frame"

    payload = json.loads(JsonFormatter().format(record))

    assert payload["stack"].startswith("Stack (most recent call last)")
