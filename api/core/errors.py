"""
Error taxonomy shared by every feature package and the JSON handlers that
turn it into HTTP responses.

Services raise these instead of HTTPException so the same rules apply no
matter which layer notices the problem. Every response body carries a
human-readable `error` field; auth failures add a stable `codigo`.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_body(self) -> dict[str, Any]:
        return {"error": self.message, **self.extra}


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class ConstraintViolation(AppError):
    """
    Raised by the storage adapter when the store rejects a write.

    `kind` is one of: unique, foreign_key, check, not_null.
    Unique-key clashes are conflicts; the rest are bad input.
    """

    def __init__(self, message: str, *, constraint: str | None = None, kind: str = "unique") -> None:
        super().__init__(message)
        self.constraint = constraint
        self.kind = kind

    @property
    def status_code(self) -> int:  # type: ignore[override]
        if self.kind == "unique":
            return status.HTTP_409_CONFLICT
        return status.HTTP_400_BAD_REQUEST


class ResourceExhausted(AppError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class StorageError(AppError):
    """
    Opaque wrapper for backend failures. `detail` keeps the original message
    for logs only; it never reaches the client.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Error de base de datos", *, detail: str | None = None) -> None:
        super().__init__(message)
        self.detail = detail


class QueryShapeError(AppError):
    """Placeholders and bound values disagree, or a filter has no column."""


class DialectError(AppError):
    """A statement needs syntax the target dialect does not map."""


class AuthError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str, *, codigo: str, status_code: int | None = None, **extra: Any) -> None:
        super().__init__(message, codigo=codigo, **extra)
        self.codigo = codigo
        if status_code is not None:
            self.status_code = status_code


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if isinstance(exc, StorageError):
        logger.error(
            "storage_error path=%s detail=%s",
            request.url.path,
            exc.detail,
        )
    elif exc.status_code >= 500:
        logger.error("app_error path=%s error=%s", request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def _http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else "Error en la solicitud"
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": detail},
        headers=getattr(exc, "headers", None),
    )


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {
            "campo": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "mensaje": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Datos de entrada inválidos", "detalles": details},
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error path=%s", request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Error interno del servidor"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(HTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
