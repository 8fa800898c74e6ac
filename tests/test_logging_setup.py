import json
import logging

from brigade.core.logging_setup import JsonFormatter
from brigade.core.request_context import clear_request_context, set_request_context


def _record(message, **extra):
    record = logging.LogRecord("brigade.test", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_secrets_are_masked_in_messages():
    formatter = JsonFormatter("%(message)s")

    payload = json.loads(
        formatter.format(_record("Authorization: Bearer abc.def.ghi password=hunter2 token=xyz"))
    )

    assert "abc.def.ghi" not in payload["message"]
    assert "hunter2" not in payload["message"]
    assert "xyz" not in payload["message"]
    assert payload["message"].count("***") == 3


def test_request_context_and_security_fields_are_included():
    formatter = JsonFormatter("%(message)s")
    set_request_context(request_id="req-1", tenant="joes-pizza", client_ip="10.0.0.1")
    try:
        payload = json.loads(
            formatter.format(
                _record(
                    "Suspicious login activity",
                    event="SUSPICIOUS_ACTIVITY",
                    severity="ALERT",
                    patterns=["RAPID_ATTEMPTS"],
                )
            )
        )
    finally:
        clear_request_context()

    assert payload["request_id"] == "req-1"
    assert payload["tenant"] == "joes-pizza"
    assert payload["client_ip"] == "10.0.0.1"
    assert payload["event"] == "SUSPICIOUS_ACTIVITY"
    assert payload["severity"] == "ALERT"
    assert payload["patterns"] == ["RAPID_ATTEMPTS"]
    assert "strategy" not in payload
