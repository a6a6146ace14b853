"""
hr_portal.db.session

Async SQLAlchemy engine + session factory helpers.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from hr_portal.settings import Settings


def create_engine(settings: Settings) -> AsyncEngine:
    url = make_url(settings.database_url)
    kwargs: dict[str, Any] = {}
    if url.get_backend_name() != "sqlite":
        # pool_pre_ping helps detect stale connections in long-lived processes.
        kwargs["pool_pre_ping"] = True
    if url.get_driver_name() == "asyncpg":
        # Shows up in pg_stat_activity next to the backend project's own connections.
        kwargs["connect_args"] = {"server_settings": {"application_name": settings.service_name}}
    return create_async_engine(url, **kwargs)


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False keeps loaded rows usable after handlers commit.
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)
