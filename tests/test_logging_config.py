import json
import logging

from page_composer.logging_config import StructuredFormatter, get_trace_id, set_trace_id


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("page_composer.session", logging.INFO, __file__, 10, "Saved page", (), None)
    record.__dict__.update(extra)
    return record


def test_extra_fields_and_trace_are_emitted():
    set_trace_id("trace-123")
    payload = json.loads(StructuredFormatter().format(make_record(page_id="page_1", revision=3)))

    assert get_trace_id() == "trace-123"
    assert payload["message"] == "Saved page"
    assert payload["severity"] == "INFO"
    assert payload["page_id"] == "page_1"
    assert payload["revision"] == 3
    assert payload["logging.googleapis.com/trace"] == "trace-123"
    assert "msg" not in payload
    assert "args" not in payload
