"""
hr_portal.api.errors

Error type and exception handlers for the API layer.

Responsibilities:
- Provide `ApiError`, the exception handlers raise to short-circuit a request.
- Render every error (ours, FastAPI's, unhandled) as `{"error": message, ...}`.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from starlette.responses import JSONResponse
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_500_INTERNAL_SERVER_ERROR

from hr_portal.observability.logging import get_logger

log = get_logger(__name__)


class ApiError(Exception):
    """
    Handler-level failure with the status code and message returned to the caller.
    Extra keyword arguments are merged into the JSON body.
    """

    def __init__(self, status_code: int, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.extra = extra


def error_response(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


async def _api_error_handler(_: Request, exc: ApiError) -> JSONResponse:
    return error_response(exc.status_code, exc.message, **exc.extra)


async def _http_exception_handler(_: Request, exc: HTTPException) -> JSONResponse:
    response = error_response(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def _validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{field}: {first.get('msg', 'invalid')}" if field else first.get("msg", "")
    else:
        message = "Invalid request"
    return error_response(HTTP_400_BAD_REQUEST, message or "Invalid request")


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # Never return stack traces to clients; keep them in the server log.
    log.exception("unhandled_error", path=request.url.path, error=str(exc))
    return error_response(HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, _api_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unhandled_error_handler)


# --- Module Notes -----------------------------------------------------------
# Browser clients only read the `error` key, so FastAPI's default `detail`
# shape is rewritten here as well.
