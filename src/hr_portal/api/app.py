"""
hr_portal.api.app

FastAPI app factory for the HR portal API.

Responsibilities:
- Build the FastAPI application and register routers/middleware/error handlers.
- Create and dispose shared infrastructure (DB engine, HTTP clients, storage client).
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hr_portal import __version__
from hr_portal.api.errors import install_error_handlers
from hr_portal.api.routers.archive import router as archive_router
from hr_portal.api.routers.dev_auth import router as dev_auth_router
from hr_portal.api.routers.functions import router as functions_router
from hr_portal.api.routers.health import router as health_router
from hr_portal.api.routers.storage import router as storage_router
from hr_portal.clients.auth_api import AuthApiClient, create_auth_http
from hr_portal.clients.email import EmailClient
from hr_portal.clients.storage import create_storage
from hr_portal.db.init_db import init_db
from hr_portal.db.session import create_engine, create_sessionmaker
from hr_portal.observability.logging import configure_logging, get_logger
from hr_portal.observability.middleware import RequestContextMiddleware
from hr_portal.settings import Settings

log = get_logger(__name__)


def create_app(*, settings: Settings) -> FastAPI:
    configure_logging(service_name=settings.service_name, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env, token_verification=settings.token_verification)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        if settings.env in ("dev", "test"):
            # Production tables are owned by the backend project's migrations.
            await init_db(engine)

        auth_http = create_auth_http(settings)
        fetch_http = httpx.AsyncClient(
            timeout=settings.zip_fetch_timeout_seconds, follow_redirects=True
        )
        email_http = httpx.AsyncClient(base_url=settings.resend_base_url, timeout=30.0)

        app.state.auth_api = AuthApiClient(settings=settings, http=auth_http)
        app.state.fetch_http = fetch_http
        app.state.email = (
            EmailClient(
                api_key=settings.resend_api_key,
                sender=settings.resend_from_email,
                http=email_http,
            )
            if settings.resend_api_key
            else None
        )
        app.state.storage = create_storage(settings)
        if app.state.storage is None:
            log.warning("storage_not_configured")

        try:
            yield
        finally:
            for client in (auth_http, fetch_http, email_http):
                await client.aclose()
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="HR Portal API",
        version=__version__,
        docs_url="/docs" if settings.env != "prod" else None,
        openapi_url="/openapi.json" if settings.env != "prod" else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["authorization", "apikey", "content-type", "x-client-info", "x-request-id"],
        expose_headers=["content-disposition", "x-request-id"],
    )
    install_error_handlers(app)

    app.include_router(health_router, tags=["health"])
    app.include_router(dev_auth_router)
    app.include_router(storage_router)
    app.include_router(archive_router)
    app.include_router(functions_router)
    return app


# --- Module Notes -----------------------------------------------------------
# Routers stay thin: auth dependencies, body checks and one call into a
# client or service.
