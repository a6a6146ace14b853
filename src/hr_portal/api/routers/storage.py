"""
hr_portal.api.routers.storage

Object storage endpoints (`/api/r2/*`).

Responsibilities:
- Presign direct uploads for folder files, employee documents and meeting documents.
- Presign downloads for the same three kinds of objects.
- Delete HR documents (object first, then the row).
"""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from hr_portal.api.deps import db_session, storage_dep
from hr_portal.api.errors import ApiError
from hr_portal.api.schemas import (
    DocumentRequest,
    FileDownloadRequest,
    PresignEmployeeDocRequest,
    PresignFolderUploadRequest,
    PresignMeetingDocRequest,
)
from hr_portal.auth.deps import get_principal, require_admin
from hr_portal.auth.models import Principal
from hr_portal.clients.storage import ObjectStorage, StorageError
from hr_portal.db.models import HrEmployeeDocument, HrMeetingDocument
from hr_portal.db.repositories.documents import (
    DocumentRepo,
    employee_document_repo,
    file_repo,
    meeting_document_repo,
)
from hr_portal.db.repositories.folders import DOWNLOAD, MANAGE, FolderRepo
from hr_portal.observability.logging import get_logger
from hr_portal.services import object_keys

log = get_logger(__name__)

router = APIRouter(prefix="/api/r2", tags=["storage"])

# Presigned URL lifetimes, in seconds.
FOLDER_UPLOAD_TTL = 60
FOLDER_DOWNLOAD_TTL = 60
EMPLOYEE_DOC_UPLOAD_TTL = 60
EMPLOYEE_DOC_DOWNLOAD_TTL = 300
MEETING_DOC_UPLOAD_TTL = 300
MEETING_DOC_DOWNLOAD_TTL = 300

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def _required(value: str | None, message: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ApiError(HTTP_400_BAD_REQUEST, message)
    return value


def _as_uuid(value: str, *, status_code: int, message: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError as e:
        raise ApiError(status_code, message) from e


def _storage_failure(e: StorageError) -> ApiError:
    log.error("storage_error", error=str(e))
    return ApiError(HTTP_500_INTERNAL_SERVER_ERROR, str(e))


# -- folder files --------------------------------------------------------------


@router.post("/presign")
async def presign_folder_upload(
    body: PresignFolderUploadRequest | None = None,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
    storage: ObjectStorage = Depends(storage_dep),
) -> dict[str, Any]:
    body = body or PresignFolderUploadRequest()
    if not body.folder_id or not body.filename or not body.content_type:
        raise ApiError(HTTP_400_BAD_REQUEST, "folderId, filename, contentType required")

    folder_id = _as_uuid(
        body.folder_id, status_code=HTTP_403_FORBIDDEN, message="No permission to upload to this folder"
    )
    allowed = principal.is_admin or (
        principal.is_active
        and await FolderRepo(session).has_access(
            user_id=principal.user_id, folder_id=folder_id, accepted=MANAGE
        )
    )
    if not allowed:
        raise ApiError(HTTP_403_FORBIDDEN, "No permission to upload to this folder")

    key = object_keys.folder_file_key(str(folder_id), body.filename)
    try:
        upload_url = storage.presign_upload(
            key=key,
            content_type=body.content_type,
            expires_in=FOLDER_UPLOAD_TTL,
            metadata={"sizeBytes": str(body.size_bytes)} if body.size_bytes else None,
        )
    except StorageError as e:
        raise _storage_failure(e) from e
    return {"uploadUrl": upload_url, "objectKey": key}


@router.post("/download")
async def presign_folder_download(
    body: FileDownloadRequest | None = None,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
    storage: ObjectStorage = Depends(storage_dep),
) -> dict[str, Any]:
    body = body or FileDownloadRequest()
    raw_id = _required(body.file_id, "fileId required")
    file_id = _as_uuid(raw_id, status_code=HTTP_403_FORBIDDEN, message="File not accessible")

    # Unknown files and files the caller may not read look the same.
    record = await file_repo(session).get(file_id)
    if record is None:
        raise ApiError(HTTP_403_FORBIDDEN, "File not accessible")
    if not principal.is_admin:
        allowed = principal.is_active and await FolderRepo(session).has_access(
            user_id=principal.user_id, folder_id=record.folder_id, accepted=DOWNLOAD
        )
        if not allowed:
            raise ApiError(HTTP_403_FORBIDDEN, "File not accessible")

    if not record.key:
        raise ApiError(HTTP_500_INTERNAL_SERVER_ERROR, "File missing storage key")
    try:
        url = storage.presign_download(
            key=record.key,
            filename=record.display_name,
            content_type=record.mime_type,
            expires_in=FOLDER_DOWNLOAD_TTL,
            disposition=body.disposition,
        )
    except StorageError as e:
        raise _storage_failure(e) from e
    return {"url": url}


# -- HR documents (admin only) -------------------------------------------------


async def _load_document(
    repo: DocumentRepo[Any], raw_id: str | None
) -> HrEmployeeDocument | HrMeetingDocument:
    doc_id = _as_uuid(
        _required(raw_id, "documentId is required"),
        status_code=HTTP_404_NOT_FOUND,
        message="Document not found",
    )
    doc = await repo.get(doc_id)
    if doc is None:
        raise ApiError(HTTP_404_NOT_FOUND, "Document not found")
    return doc


def _presign_document_download(
    storage: ObjectStorage,
    doc: HrEmployeeDocument | HrMeetingDocument,
    body: DocumentRequest,
    ttl: int,
) -> dict[str, Any]:
    try:
        url = storage.presign_download(
            key=doc.object_key,
            filename=doc.name or "download",
            content_type=doc.mime_type,
            expires_in=ttl,
            disposition=body.disposition,
        )
    except StorageError as e:
        raise _storage_failure(e) from e
    return {"url": url}


async def _delete_document(
    session: AsyncSession,
    storage: ObjectStorage,
    repo: DocumentRepo[Any],
    doc: HrEmployeeDocument | HrMeetingDocument,
    actor: Principal,
) -> dict[str, Any]:
    try:
        await storage.delete(doc.object_key)
    except StorageError as e:
        raise _storage_failure(e) from e
    await repo.delete(doc.id)
    await session.commit()
    log.info("object_deleted", object_key=doc.object_key, document_id=str(doc.id), actor=str(actor.user_id))
    return {"ok": True}


@router.post("/presign-employee-doc")
async def presign_employee_doc_upload(
    body: PresignEmployeeDocRequest | None = None,
    principal: Principal = Depends(require_admin),
    storage: ObjectStorage = Depends(storage_dep),
) -> dict[str, Any]:
    body = body or PresignEmployeeDocRequest()
    employee_id = _required(body.employee_id, "Missing employeeId")
    filename = _required(body.filename, "Missing filename")

    key = object_keys.employee_document_key(employee_id, filename)
    try:
        upload_url = storage.presign_upload(
            key=key,
            content_type=body.content_type or DEFAULT_CONTENT_TYPE,
            expires_in=EMPLOYEE_DOC_UPLOAD_TTL,
            content_length=body.size_bytes or None,
        )
    except StorageError as e:
        raise _storage_failure(e) from e
    return {"uploadUrl": upload_url, "objectKey": key}


@router.post("/download-employee-doc")
async def presign_employee_doc_download(
    body: DocumentRequest | None = None,
    principal: Principal = Depends(require_admin),
    session: AsyncSession = Depends(db_session),
    storage: ObjectStorage = Depends(storage_dep),
) -> dict[str, Any]:
    body = body or DocumentRequest()
    doc = await _load_document(employee_document_repo(session), body.document_id)
    return _presign_document_download(storage, doc, body, EMPLOYEE_DOC_DOWNLOAD_TTL)


@router.post("/delete-employee-doc")
async def delete_employee_doc(
    body: DocumentRequest | None = None,
    principal: Principal = Depends(require_admin),
    session: AsyncSession = Depends(db_session),
    storage: ObjectStorage = Depends(storage_dep),
) -> dict[str, Any]:
    body = body or DocumentRequest()
    repo = employee_document_repo(session)
    doc = await _load_document(repo, body.document_id)
    return await _delete_document(session, storage, repo, doc, principal)


@router.post("/presign-meeting")
async def presign_meeting_doc_upload(
    body: PresignMeetingDocRequest | None = None,
    principal: Principal = Depends(require_admin),
    storage: ObjectStorage = Depends(storage_dep),
) -> dict[str, Any]:
    body = body or PresignMeetingDocRequest()
    meeting_id = _required(body.meeting_id, "meetingId is required")
    filename = _required(body.filename, "filename is required")

    key = object_keys.meeting_document_key(meeting_id, filename)
    try:
        upload_url = storage.presign_upload(
            key=key,
            content_type=body.content_type or DEFAULT_CONTENT_TYPE,
            expires_in=MEETING_DOC_UPLOAD_TTL,
        )
    except StorageError as e:
        raise _storage_failure(e) from e
    return {"uploadUrl": upload_url, "objectKey": key, "sizeBytes": body.size_bytes or 0}


@router.post("/download-meeting")
async def presign_meeting_doc_download(
    body: DocumentRequest | None = None,
    principal: Principal = Depends(require_admin),
    session: AsyncSession = Depends(db_session),
    storage: ObjectStorage = Depends(storage_dep),
) -> dict[str, Any]:
    body = body or DocumentRequest()
    doc = await _load_document(meeting_document_repo(session), body.document_id)
    return _presign_document_download(storage, doc, body, MEETING_DOC_DOWNLOAD_TTL)


@router.post("/delete-meeting")
async def delete_meeting_doc(
    body: DocumentRequest | None = None,
    principal: Principal = Depends(require_admin),
    session: AsyncSession = Depends(db_session),
    storage: ObjectStorage = Depends(storage_dep),
) -> dict[str, Any]:
    body = body or DocumentRequest()
    repo = meeting_document_repo(session)
    doc = await _load_document(repo, body.document_id)
    return await _delete_document(session, storage, repo, doc, principal)


# --- Module Notes -----------------------------------------------------------
# Uploads go straight from the browser to storage with the presigned URL; the
# client records the returned object key in the matching table afterwards.
