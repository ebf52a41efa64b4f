"""Unit tests for log formatting."""

import json
import logging

from learnpath.logging_config import (
    JsonFormatter,
    KeyValueFormatter,
    RequestIdFilter,
    extra_fields,
    request_id_var,
)


def _record(**extra):
    record = logging.LogRecord("learnpath.test", logging.INFO, __file__, 1, "Module created", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    RequestIdFilter().filter(record)
    return record


class TestFormatters:
    """Structured fields reach both output formats."""

    def test_extra_fields(self):
        record = _record(pathway_id="p-1", module_key="sql-joins")
        assert extra_fields(record) == {"pathway_id": "p-1", "module_key": "sql-joins"}

    def test_json_includes_extra_and_request_id(self):
        token = request_id_var.set("req-42")
        try:
            record = _record(module_key="sql-joins", relinked=2)
        finally:
            request_id_var.reset(token)

        entry = json.loads(JsonFormatter().format(record))
        assert entry["message"] == "Module created"
        assert entry["request_id"] == "req-42"
        assert entry["module_key"] == "sql-joins"
        assert entry["relinked"] == 2

    def test_json_without_request(self):
        entry = json.loads(JsonFormatter().format(_record()))
        assert "request_id" not in entry

    def test_key_value_suffix(self):
        line = KeyValueFormatter().format(_record(module_key="a", pathway_id="p"))
        assert line.endswith("Module created | module_key=a pathway_id=p")
        assert "req=-" in line
