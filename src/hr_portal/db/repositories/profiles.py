"""
hr_portal.db.repositories.profiles

Repository for `UserProfile` rows and the rows that hang off them.

Responsibilities:
- Look up profiles by id, username or e-mail (case-insensitive).
- Upsert/delete profiles for account administration.
- Clear supervisor assignments ahead of a supervisor delete.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hr_portal.db.models import SupervisorTeacherAssignment, UserProfile, utcnow


class ProfileRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: uuid.UUID) -> UserProfile | None:
        return await self._session.get(UserProfile, user_id)

    async def get_by_username(self, username: str) -> UserProfile | None:
        # Exact, case-insensitive match (ILIKE would treat "_" as a wildcard).
        stmt = select(UserProfile).where(func.lower(UserProfile.username) == username.lower())
        return (await self._session.execute(stmt.limit(1))).scalar_one_or_none()

    async def get_by_email(self, email: str) -> UserProfile | None:
        stmt = select(UserProfile).where(func.lower(UserProfile.email) == email.lower())
        return (await self._session.execute(stmt.limit(1))).scalar_one_or_none()

    async def upsert(self, user_id: uuid.UUID, **fields: Any) -> UserProfile:
        profile = await self._session.get(UserProfile, user_id)
        if profile is None:
            profile = UserProfile(id=user_id, **fields)
            self._session.add(profile)
        else:
            for name, value in fields.items():
                setattr(profile, name, value)
            profile.updated_at = utcnow()
        await self._session.flush()
        return profile

    async def update(self, user_id: uuid.UUID, **fields: Any) -> bool:
        profile = await self._session.get(UserProfile, user_id, with_for_update=True)
        if profile is None:
            return False
        for name, value in fields.items():
            setattr(profile, name, value)
        profile.updated_at = utcnow()
        await self._session.flush()
        return True

    async def delete(self, user_id: uuid.UUID) -> None:
        await self._session.execute(delete(UserProfile).where(UserProfile.id == user_id))

    async def delete_supervisor_assignments(self, supervisor_id: uuid.UUID) -> None:
        await self._session.execute(
            delete(SupervisorTeacherAssignment).where(
                SupervisorTeacherAssignment.supervisor_user_id == supervisor_id
            )
        )
