# src/marketdesk/interfaces/api/errors.py
"""
Exception handlers: every failure leaves the API as
`{"success": false, "message": ..., "errorCode": ...}`.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from marketdesk.domain.errors import DomainError

log = logging.getLogger(__name__)


def error_body(message: str, code: str) -> dict:
    return {"success": False, "message": message, "errorCode": code}


def _log_client_error(request: Request, status_code: int, message: str) -> None:
    where = f"{request.method} {request.url.path}"
    if status_code in (401, 403):
        log.warning(f"Unauthorized access attempt: {where} -> {status_code} {message}")
    else:
        log.warning(f"Client error: {where} -> {status_code} {message}")


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    if exc.status_code >= 500:
        log.error(f"Server error on {request.method} {request.url.path}: {exc.message}", exc_info=exc)
    else:
        _log_client_error(request, exc.status_code, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.code), headers=headers)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    _log_client_error(request, exc.status_code, str(exc.detail))
    code = "NOT_FOUND" if exc.status_code == 404 else "HTTP_ERROR"
    return JSONResponse(status_code=exc.status_code, content=error_body(str(exc.detail), code), headers=exc.headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
    message = f"{field}: {first.get('msg')}" if field else str(first.get("msg", "Invalid request"))
    _log_client_error(request, 400, message)
    return JSONResponse(status_code=400, content=error_body(message, "VALIDATION_ERROR"))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(status_code=500, content=error_body("Internal server error", "INTERNAL_SERVER_ERROR"))


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
