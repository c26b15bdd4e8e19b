"""Structured logging, request ids and the JSON error envelope.

Every log line is one JSON object carrying the current request id. Domain
code reports what happened through `log_event("job.created", job_id=...)`.
"""

import json
import logging
import time
from contextvars import ContextVar
from typing import Any
from uuid import uuid4

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from mywork.core.api_docs import error_code

REQUEST_ID_HEADER = "X-Request-ID"

_request_id: ContextVar[str] = ContextVar("request_id", default="-")
logger = logging.getLogger("mywork.api")


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "event": record.getMessage(),
            "level": record.levelname.lower(),
            "request_id": getattr(record, "request_id", _request_id.get()),
        }
        entry.update(getattr(record, "fields", {}))
        if record.exc_info:
            entry["traceback"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get()
        return True


def configure_logging(level: int = logging.INFO) -> None:
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(JsonLogFormatter())
    handler.addFilter(RequestIdFilter())
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False


def log_event(event: str, *, level: int = logging.INFO, **fields: Any) -> None:
    logger.log(level, event, extra={"fields": fields})


def _request_id_for(request: Request) -> str:
    return getattr(request.state, "request_id", None) or _request_id.get()


def error_envelope(
    request: Request,
    status_code: int,
    message: str,
    *,
    code: str | None = None,
    details: list[dict] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = {
        "error": {
            "code": code or error_code(status_code),
            "message": message,
            "request_id": _request_id_for(request),
            "path": request.url.path,
            "details": details,
        }
    }
    return JSONResponse(status_code=status_code, content=body, headers=headers)


async def request_logging_middleware(request: Request, call_next):
    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
    request.state.request_id = request_id
    token = _request_id.set(request_id)
    started = time.perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
    finally:
        log_event(
            "request",
            method=request.method,
            path=request.url.path,
            status_code=status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        _request_id.reset(token)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(
        "unhandled_exception",
        exc_info=(type(exc), exc, exc.__traceback__),
        extra={"fields": {"path": request.url.path, "error": str(exc)}},
    )
    return error_envelope(request, 500, "Internal server error")


async def http_exception_handler(request: Request, exc: HTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
    return error_envelope(request, exc.status_code, message, headers=exc.headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    issues = []
    for err in exc.errors():
        location = [str(part) for part in err.get("loc", ()) if part != "body"]
        issues.append(
            {
                "field": ".".join(location) or "body",
                "message": err.get("msg", "Invalid value"),
                "type": err.get("type"),
            }
        )

    message = f"Invalid {issues[0]['field']}: {issues[0]['message']}" if issues else "Validation failed"
    return error_envelope(request, 400, message, code="validation_error", details=issues)
