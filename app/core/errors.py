"""Exception handlers rendering every failure as ``{code, message, data, details}``."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.context import get_request_id
from app.core.exceptions import AppError

logger = logging.getLogger(__name__)

HTTP_CODES = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    429: "rate_limited",
}
REQUEST_SECTIONS = {"body", "query", "path", "cookie", "header"}


def _phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Request failed"


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    payload = {"code": code, "message": message, "data": None, "details": details or {}}
    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload), headers=headers)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Request %s %s failed with %s", request.method, request.url.path, exc.code)
    return error_response(exc.status_code, exc.code, exc.message, exc.details)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = HTTP_CODES.get(exc.status_code, "http_error")
    message = exc.detail if isinstance(exc.detail, str) else _phrase(exc.status_code)
    return error_response(exc.status_code, code, message, headers=getattr(exc, "headers", None))


def _field_errors(exc: RequestValidationError) -> list[dict[str, str]]:
    fields = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc") or [] if part not in REQUEST_SECTIONS]
        fields.append({"field": ".".join(loc), "message": str(error.get("msg") or "Invalid value")})
    return fields


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Submitted values (passwords, tokens) are never echoed back.
    fields = _field_errors(exc)
    if fields and fields[0]["field"]:
        message = f"{fields[0]['field']}: {fields[0]['message']}"
    else:
        message = fields[0]["message"] if fields else "Validation failed"
    return error_response(422, "validation_error", message, {"fields": fields})


async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("Rate limit exceeded on %s: %s", request.url.path, exc.detail)
    return error_response(
        429,
        "rate_limited",
        "Too many requests. Please try again later.",
        {"limit": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(
        500,
        "internal_server_error",
        "Internal server error",
        {"request_id": get_request_id()},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
