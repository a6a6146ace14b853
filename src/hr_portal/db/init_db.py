"""
hr_portal.db.init_db

DB initialization helper for local development and tests.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine

from hr_portal.db.base import Base


async def init_db(engine: AsyncEngine) -> None:
    """
    Create mapped tables if they don't exist. Production tables are managed by
    the backend project's own migrations.
    """

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
