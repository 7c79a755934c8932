"""
Logging setup and per-request access logging.
"""

from __future__ import annotations

import logging
import time
from uuid import uuid4

from fastapi import FastAPI, Request

access_logger = logging.getLogger("reciclaje.access")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Top-level packages whose module loggers make up the application logger.
APP_LOGGERS = ("reciclaje", "main", "core", "auth", "materials", "purchases", "sales", "expenses", "reports")

_handler: logging.Handler | None = None


def setup_logging(level: str = "INFO") -> None:
    """
    Attach one shared stream handler to the application loggers.

    Third-party and root loggers are left alone. Calling it again only
    updates the level.
    """
    global _handler
    if _handler is None:
        _handler = logging.StreamHandler()
        _handler.setFormatter(logging.Formatter(LOG_FORMAT))
    for name in APP_LOGGERS:
        logger = logging.getLogger(name)
        if _handler not in logger.handlers:
            logger.addHandler(_handler)
        logger.setLevel(level)


def install_request_logging(app: FastAPI) -> None:
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get("x-request-id") or uuid4().hex
        request.state.request_id = request_id
        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Request-ID"] = request_id
        access_logger.info(
            "request method=%s path=%s status=%s duration_ms=%.1f request_id=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            request_id,
        )
        return response
