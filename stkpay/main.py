"""
FastAPI application entry point
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from stkpay.infrastructure.settings import Settings, get_settings
from stkpay.infrastructure.logging_config import setup_logging
from stkpay.infrastructure.database import Database
from stkpay.integrations.gateway import PaymentGateway, build_gateway
from stkpay.api.exceptions import (
    http_exception_handler,
    validation_exception_handler,
    general_exception_handler,
)
from stkpay.api.public.health import router as health_router
from stkpay.api.public.metrics import router as metrics_router
from stkpay.api.v1 import build_router
from stkpay.utils.trace_id import TraceIDMiddleware
from stkpay.utils.request_logging import RequestLoggingMiddleware

# Register models on Base.metadata before any create_all
import stkpay.core.transactions.models  # noqa: F401

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    gateway: Optional[PaymentGateway] = None,
) -> FastAPI:
    """
    Build the application.

    ``database`` and ``gateway`` are created from settings at startup unless
    passed in; either way the lifespan owns them and closes them at shutdown.
    """
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.database = database or Database.from_url(
            settings.DATABASE_URL,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
        )
        if settings.DB_CREATE_TABLES:
            app.state.database.create_all()
        app.state.gateway = gateway or build_gateway(settings)
        logger.info(
            f"Application started: env={settings.ENV}, gateway={type(app.state.gateway).__name__}"
        )
        try:
            yield
        finally:
            await app.state.gateway.aclose()
            app.state.database.dispose()
            logger.info("Application stopped")

    app = FastAPI(
        title="STK Pay API",
        description="Mobile-money push payments: initiation, gateway webhooks and status polling",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Custom middlewares (last added is outermost: trace id is set before request logging runs)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(TraceIDMiddleware)

    if settings.CORS_ENABLED:
        cors_origins = settings.cors_allow_origins_list
        if not cors_origins:
            logger.warning(
                "CORS_ENABLED=True but CORS_ALLOW_ORIGINS is empty or not set. "
                "Set CORS_ALLOW_ORIGINS (comma-separated, e.g., 'http://localhost:3000')."
            )
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(health_router)
    app.include_router(metrics_router)
    app.include_router(build_router(settings.API_PREFIX))

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "name": "STK Pay API",
            "version": VERSION,
            "status": "running",
            "endpoints": {
                "pay": f"{settings.API_PREFIX}/pay",
                "webhook": f"{settings.API_PREFIX}/webhook",
                "status": f"{settings.API_PREFIX}/status/{{transaction_id}}",
            },
        }

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the application with uvicorn"""
    import uvicorn

    settings = get_settings()
    uvicorn.run("stkpay.main:app", host="0.0.0.0", port=settings.PORT, log_config=None)
