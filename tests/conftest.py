"""
tests.conftest

Shared fixtures: an in-process app with a throwaway SQLite database, moto-backed
object storage and `httpx.MockTransport` fakes for the auth backend, the e-mail
API and remote archive sources.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from datetime import timedelta
from typing import Any

import boto3
import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from hr_portal.auth.deps import jwt_config
from hr_portal.auth.jwt import issue_token
from hr_portal.db.models import UserProfile
from hr_portal.settings import Settings
from tests.fakes import (
    AUTH_URL,
    BUCKET,
    EMAIL_URL,
    S3_ENDPOINT,
    FakeAuthBackend,
    Outbox,
    RemoteFiles,
    make_profile,
    running_app,
)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        jwt_secret="test-secret",
        supabase_url=AUTH_URL,
        supabase_anon_key="anon-key",
        supabase_service_role_key="service-key",
        r2_endpoint=S3_ENDPOINT,
        r2_access_key_id="testing",
        r2_secret_access_key="testing",
        r2_bucket=BUCKET,
        r2_region="us-east-1",
        cron_secret="cron-secret",
        resend_api_key="re_test",
        resend_base_url=EMAIL_URL,
    )


@pytest.fixture
def auth_backend(settings: Settings) -> FakeAuthBackend:
    return FakeAuthBackend(service_key=settings.supabase_service_role_key)


@pytest.fixture
def outbox() -> Outbox:
    return Outbox()


@pytest.fixture
def remote_files() -> RemoteFiles:
    return RemoteFiles()


@pytest_asyncio.fixture
async def app(
    settings: Settings,
    auth_backend: FakeAuthBackend,
    outbox: Outbox,
    remote_files: RemoteFiles,
) -> AsyncIterator[FastAPI]:
    async with running_app(settings, auth_backend, outbox, remote_files) as app:
        yield app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def s3(app: FastAPI):
    # Only valid while `app` (and with it the moto mock) is alive.
    return boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


@pytest.fixture
def seed(app: FastAPI) -> Callable[..., Awaitable[None]]:
    async def _seed(*rows: Any) -> None:
        async with app.state.sessionmaker() as session:
            session.add_all(rows)
            await session.commit()

    return _seed


@pytest.fixture
def load(app: FastAPI) -> Callable[..., Awaitable[Any]]:
    async def _load(model: type, pk: Any) -> Any:
        async with app.state.sessionmaker() as session:
            return await session.get(model, pk)

    return _load


@pytest.fixture
def auth_headers(settings: Settings) -> Callable[..., dict[str, str]]:
    def _headers(user_id: uuid.UUID | str, *, email: str | None = None) -> dict[str, str]:
        token = issue_token(
            cfg=jwt_config(settings),
            subject=str(user_id),
            email=email,
            ttl=timedelta(minutes=5),
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest_asyncio.fixture
async def admin(seed) -> UserProfile:
    profile = make_profile("admin", email="admin@school.test", full_name="Ada Admin")
    await seed(profile)
    return profile


# --- Module Notes -----------------------------------------------------------
# Rows are given explicit ids before seeding so tests can refer to them after
# the seeding session is closed.
