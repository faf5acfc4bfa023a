from __future__ import annotations

import json
import logging

from ken_assistant.logging import JsonFormatter, configure_logging


def _record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        "ken_assistant.query.executor", logging.INFO, __file__, 10, "Strategy %s", ("a",), None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_renders_message_and_extra() -> None:
    payload = json.loads(JsonFormatter().format(_record(project_id="acme/app", records=3)))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "ken_assistant.query.executor"
    assert payload["message"] == "Strategy a"
    assert payload["extra"] == {"project_id": "acme/app", "records": 3}
    assert "exception" not in payload


def test_json_formatter_omits_empty_extra_and_stringifies_values() -> None:
    plain = json.loads(JsonFormatter().format(_record()))
    odd = json.loads(JsonFormatter().format(_record(when=object)))

    assert "extra" not in plain
    assert isinstance(odd["extra"]["when"], str)


def test_configure_logging_installs_single_json_handler() -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        configure_logging("debug")
        configure_logging("warning")

        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
        assert root.level == logging.WARNING
        assert logging.getLogger("urllib3").level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
