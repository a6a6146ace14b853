"""
hr_portal.db.repositories.documents

Repositories for stored-object rows: folder files and HR documents.
"""

from __future__ import annotations

import uuid
from typing import Generic, TypeVar

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from hr_portal.db.models import FileRecord, HrEmployeeDocument, HrMeetingDocument

DocT = TypeVar("DocT", FileRecord, HrEmployeeDocument, HrMeetingDocument)


class DocumentRepo(Generic[DocT]):
    def __init__(self, session: AsyncSession, model: type[DocT]) -> None:
        self._session = session
        self._model = model

    async def get(self, doc_id: uuid.UUID) -> DocT | None:
        return await self._session.get(self._model, doc_id)

    async def delete(self, doc_id: uuid.UUID) -> None:
        await self._session.execute(delete(self._model).where(self._model.id == doc_id))


def file_repo(session: AsyncSession) -> DocumentRepo[FileRecord]:
    return DocumentRepo(session, FileRecord)


def employee_document_repo(session: AsyncSession) -> DocumentRepo[HrEmployeeDocument]:
    return DocumentRepo(session, HrEmployeeDocument)


def meeting_document_repo(session: AsyncSession) -> DocumentRepo[HrMeetingDocument]:
    return DocumentRepo(session, HrMeetingDocument)
