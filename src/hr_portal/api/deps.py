"""
hr_portal.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings, DB sessions and the shared clients
  created at startup (auth backend, object storage, outbound HTTP, e-mail).
- Encapsulate app.state access patterns.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from hr_portal.api.errors import ApiError
from hr_portal.clients.auth_api import AuthApiClient
from hr_portal.clients.email import EmailClient
from hr_portal.clients.storage import ObjectStorage
from hr_portal.settings import Settings, get_settings


def settings_dep(request: Request) -> Settings:
    # The settings the app was built with (see `create_app`); tests pass their own.
    return getattr(request.app.state, "settings", None) or get_settings()


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    # Created on app startup in `hr_portal.api.app.create_app`.
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped session; handlers commit explicitly.
    async with session_factory() as session:
        yield session


def auth_api_dep(request: Request) -> AuthApiClient:
    return request.app.state.auth_api  # type: ignore[attr-defined]


def storage_dep(request: Request) -> ObjectStorage:
    storage: ObjectStorage | None = getattr(request.app.state, "storage", None)
    if storage is None:
        raise ApiError(HTTP_500_INTERNAL_SERVER_ERROR, "Missing R2 configuration")
    return storage


def fetch_http_dep(request: Request) -> httpx.AsyncClient:
    # Outbound client for fetching archive sources (signed URLs).
    return request.app.state.fetch_http  # type: ignore[attr-defined]


def email_dep(request: Request) -> EmailClient | None:
    # None when no e-mail API key is configured.
    return getattr(request.app.state, "email", None)


# --- Module Notes -----------------------------------------------------------
# Tests replace clients through `app.dependency_overrides` or by assigning to
# app.state inside the lifespan.
