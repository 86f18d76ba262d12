# safehome/api/errors.py
"""
Перевод ошибок в HTTP-ответы.
Ядро бросает типизированные исключения, ответ формируется только здесь.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from safehome.api.schemas import ErrorResponse
from safehome.common.exceptions import SafeHomeError
from safehome.common.logger import log_error


def error_response(status_code: int, error_code: str, message: str, details: Any = None) -> JSONResponse:
    body = ErrorResponse(error_code=error_code, message=message, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def handle_safehome_error(request: Request, exc: SafeHomeError) -> JSONResponse:
    return error_response(exc.status_code, exc.error_code, exc.message, exc.details)


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"field": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return error_response(400, "VALIDATION_ERROR", "Validation failed", details)


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return error_response(404, "NOT_FOUND", "Endpoint not found")
    return error_response(exc.status_code, "HTTP_ERROR", str(exc.detail))


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    await log_error(
        f"Необработанная ошибка {request.method} {request.url.path}: {exc}",
        extra={"method": request.method, "path": request.url.path},
        exc_info=True,
    )
    return error_response(500, "INTERNAL_ERROR", "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SafeHomeError, handle_safehome_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, handle_request_validation)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, handle_unexpected)
