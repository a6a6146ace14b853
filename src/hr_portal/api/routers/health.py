"""
hr_portal.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Provide liveness probe (`/healthz`).
- Provide readiness probe (`/readyz`) with DB connectivity validation.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from hr_portal.api.deps import db_session

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(request: Request, session: AsyncSession = Depends(db_session)) -> dict[str, object]:
    await session.execute(text("SELECT 1"))
    # Storage is optional at boot; report it so deploys missing R2 settings are visible.
    return {
        "status": "ready",
        "storage_configured": getattr(request.app.state, "storage", None) is not None,
    }
