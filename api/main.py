from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from auth import router as auth_router
from auth import service as auth_service
from core import schema
from core.config import Settings
from core.db import Database
from core.errors import register_exception_handlers
from core.observability import install_request_logging, setup_logging
from expenses import router as expenses_router
from materials import router as materials_router
from purchases import router as purchases_router
from reports import router as reports_router
from sales import router as sales_router

API_VERSION = "1.0.0"
API_PREFIX = "/api"


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.log_level)
        # One storage handle per process, shared through app.state.
        database = await Database.connect(settings)
        try:
            await schema.initialize(database)
            await auth_service.ensure_admin(database, settings)
            app.state.db = database
            yield
        finally:
            await database.close()

    app = FastAPI(title="Sistema de Reciclaje API", version=API_VERSION, lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_request_logging(app)
    register_exception_handlers(app)

    app.include_router(auth_router.router, prefix=API_PREFIX, tags=["auth"])
    app.include_router(auth_router.users_router, prefix=API_PREFIX, tags=["usuarios"])
    app.include_router(materials_router.router, prefix=API_PREFIX, tags=["materiales"])
    app.include_router(purchases_router.router, prefix=API_PREFIX, tags=["compras"])
    app.include_router(sales_router.router, prefix=API_PREFIX, tags=["ventas"])
    app.include_router(expenses_router.router, prefix=API_PREFIX, tags=["gastos"])
    app.include_router(reports_router.router, prefix=API_PREFIX, tags=["reportes"])

    @app.get(f"{API_PREFIX}/health")
    def health() -> dict:
        return {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": API_VERSION,
        }

    return app


app = create_app()
