"""
hr_portal.db.repositories.folders

Folder permission checks.

Responsibilities:
- Resolve a folder's ancestor chain.
- Decide whether a user holds a given access level on a folder, either directly
  or through an inheriting grant on an ancestor.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hr_portal.db.models import Folder, FolderAccess, Permission

MANAGE = frozenset({FolderAccess.manage.value})
DOWNLOAD = frozenset({FolderAccess.download.value, FolderAccess.manage.value})

# Folder trees are shallow; the bound only protects against parent cycles.
_MAX_DEPTH = 64


class FolderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, folder_id: uuid.UUID) -> Folder | None:
        return await self._session.get(Folder, folder_id)

    async def lineage(self, folder_id: uuid.UUID) -> list[uuid.UUID]:
        """
        The folder itself followed by its ancestors, nearest first.
        Unknown folders yield an empty list.
        """

        chain: list[uuid.UUID] = []
        current: uuid.UUID | None = folder_id
        while current is not None and current not in chain and len(chain) < _MAX_DEPTH:
            folder = await self._session.get(Folder, current)
            if folder is None:
                break
            chain.append(folder.id)
            current = folder.parent_id
        return chain

    async def has_access(
        self,
        *,
        user_id: uuid.UUID,
        folder_id: uuid.UUID,
        accepted: Iterable[str],
    ) -> bool:
        chain = await self.lineage(folder_id)
        if not chain:
            return False
        stmt = select(Permission).where(
            Permission.principal_user_id == user_id,
            Permission.resource_type == "folder",
            Permission.resource_id.in_(chain),
            Permission.access.in_(list(accepted)),
        )
        for grant in (await self._session.execute(stmt)).scalars():
            # Grants on the folder itself always apply; ancestor grants only when inherited.
            if grant.resource_id == folder_id or grant.inherit:
                return True
        return False
