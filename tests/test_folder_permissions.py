"""
tests.test_folder_permissions

Folder lineage and grant resolution at the repository level.
"""

from __future__ import annotations

import uuid

import pytest

from hr_portal.db.models import Folder, Permission
from hr_portal.db.repositories.folders import DOWNLOAD, MANAGE, FolderRepo


def _grant(user_id: uuid.UUID, folder_id: uuid.UUID, access: str, inherit: bool) -> Permission:
    return Permission(
        id=uuid.uuid4(),
        principal_user_id=user_id,
        resource_id=folder_id,
        access=access,
        inherit=inherit,
    )


@pytest.mark.asyncio
async def test_lineage_is_nearest_first(app, seed) -> None:
    root = Folder(id=uuid.uuid4(), name="root")
    mid = Folder(id=uuid.uuid4(), name="mid", parent_id=root.id)
    leaf = Folder(id=uuid.uuid4(), name="leaf", parent_id=mid.id)
    await seed(root, mid, leaf)

    async with app.state.sessionmaker() as session:
        repo = FolderRepo(session)
        assert await repo.lineage(leaf.id) == [leaf.id, mid.id, root.id]
        assert await repo.lineage(uuid.uuid4()) == []


@pytest.mark.asyncio
async def test_lineage_stops_on_cycles(app, seed) -> None:
    a_id, b_id = uuid.uuid4(), uuid.uuid4()
    await seed(Folder(id=a_id, name="a", parent_id=b_id), Folder(id=b_id, name="b", parent_id=a_id))

    async with app.state.sessionmaker() as session:
        assert await FolderRepo(session).lineage(a_id) == [a_id, b_id]


@pytest.mark.asyncio
async def test_grant_resolution(app, seed) -> None:
    user = uuid.uuid4()
    root = Folder(id=uuid.uuid4(), name="root")
    child = Folder(id=uuid.uuid4(), name="child", parent_id=root.id)
    await seed(root, child, _grant(user, root.id, "download", inherit=True))

    async with app.state.sessionmaker() as session:
        repo = FolderRepo(session)
        assert await repo.has_access(user_id=user, folder_id=child.id, accepted=DOWNLOAD)
        assert not await repo.has_access(user_id=user, folder_id=child.id, accepted=MANAGE)
        assert not await repo.has_access(user_id=uuid.uuid4(), folder_id=child.id, accepted=DOWNLOAD)
        assert not await repo.has_access(user_id=user, folder_id=uuid.uuid4(), accepted=DOWNLOAD)


@pytest.mark.asyncio
async def test_direct_grant_applies_without_inherit(app, seed) -> None:
    user = uuid.uuid4()
    folder = Folder(id=uuid.uuid4(), name="f")
    await seed(folder, _grant(user, folder.id, "manage", inherit=False))

    async with app.state.sessionmaker() as session:
        repo = FolderRepo(session)
        assert await repo.has_access(user_id=user, folder_id=folder.id, accepted=MANAGE)
        # manage implies download
        assert await repo.has_access(user_id=user, folder_id=folder.id, accepted=DOWNLOAD)
