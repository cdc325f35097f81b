import json
import logging

import pytest
from fastapi.testclient import TestClient

from app.core.errors import unhandled_exception_handler
from app.core.logging import JsonFormatter, RequestContextFilter, audit, get_audit_logger
from app.main import app
from app.middlewares.request_context import resolve_request_id

client = TestClient(app)


def test_unknown_route_uses_envelope() -> None:
    response = client.get("/api/v1/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {"code": "not_found", "message": "Not Found", "data": None, "details": {}}


def test_method_not_allowed_uses_envelope() -> None:
    response = client.get("/api/v1/auth/sign-out")
    assert response.status_code == 405
    assert response.json()["code"] == "method_not_allowed"


def test_validation_error_lists_fields_without_values() -> None:
    response = client.post(
        "/api/v1/auth/reset-password", json={"token": "", "new_password": "hunter2-secret"}
    )
    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "validation_error"
    assert body["message"].startswith("token:")
    assert body["details"]["fields"][0]["field"] == "token"
    assert "hunter2-secret" not in response.text


@pytest.mark.asyncio
async def test_unhandled_errors_are_opaque() -> None:
    class _Request:
        method = "GET"

        class url:
            path = "/boom"

    response = await unhandled_exception_handler(_Request(), RuntimeError("postgres://user:pw@db"))

    assert response.status_code == 500
    body = json.loads(response.body)
    assert body["code"] == "internal_server_error"
    assert "postgres" not in response.body.decode()


def test_request_id_is_echoed_or_generated() -> None:
    echoed = client.get("/api/v1/health/live", headers={"X-Request-ID": "abc-123"})
    assert echoed.headers["x-request-id"] == "abc-123"

    assert resolve_request_id(b"abc-123") == "abc-123"
    assert resolve_request_id(b"bad id\nwith newline") != "bad id\nwith newline"
    assert len(resolve_request_id(b"")) == 32


def test_audit_records_are_json_and_redacted() -> None:
    records: list[logging.LogRecord] = []

    class _Collect(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            records.append(record)

    handler = _Collect()
    handler.addFilter(RequestContextFilter())
    logger = get_audit_logger()
    logger.addHandler(handler)
    try:
        audit("auth.sign_in", user_id=7, token="raw-session-token")
    finally:
        logger.removeHandler(handler)

    (record,) = records
    line = json.loads(JsonFormatter(stream_label="audit").format(record))
    assert line["msg"] == "auth.sign_in"
    assert line["stream"] == "audit"
    assert line["audit"] == {"event": "auth.sign_in", "user_id": 7, "token": "[redacted]"}
