"""Unit tests for JSON logging, redaction and request context."""

import json
import logging

import pytest

from infinitynet.context import (
    clear_context,
    get_context_dict,
    set_request_context,
    set_subject,
)
from infinitynet.crosscutting.logger import REDACTED, JSONFormatter, redact

pytestmark = pytest.mark.unit


def test_redact_nested_secrets():
    data = {
        "email": "maria@exemplo.com",
        "password": "senha123",
        "nested": {"refreshToken": "abc", "items": [{"pin": "1234"}]},
    }

    result = redact(data)

    assert result["email"] == "maria@exemplo.com"
    assert result["password"] == REDACTED
    assert result["nested"]["refreshToken"] == REDACTED
    assert result["nested"]["items"][0]["pin"] == REDACTED


def test_redact_truncates_long_strings_and_bytes():
    assert redact("x" * 5000).endswith("…(truncado)")
    assert redact(b"abc") == "<bytes 3B>"


def test_context_lifecycle():
    set_request_context(request_id="req-1", method="GET", path="/api/users")
    set_subject("user-1", "admin")

    assert get_context_dict() == {
        "request_id": "req-1",
        "method": "GET",
        "path": "/api/users",
        "subject": "user-1",
        "source": "admin",
    }

    clear_context()
    assert get_context_dict() == {}


def test_formatter_includes_context_and_redacted_extras():
    set_request_context(request_id="req-2", method="POST", path="/api/auth/login")
    record = logging.makeLogRecord(
        {
            "name": "api-infinitynet",
            "levelno": logging.WARNING,
            "levelname": "WARNING",
            "msg": "login falhou",
            "api_key": "k-123",
            "user_id": "u-1",
        }
    )

    try:
        payload = json.loads(JSONFormatter().format(record))
    finally:
        clear_context()

    assert payload["message"] == "login falhou"
    assert payload["request_id"] == "req-2"
    assert payload["api_key"] == REDACTED
    assert payload["user_id"] == "u-1"
    assert payload["service"] == "api-infinitynet"
