"""
hr_portal.api.routers.archive

Zip download endpoint (`/api/zip`).

Responsibilities:
- Validate the request and the caller's session.
- Stream the archive produced by `services.archive.stream_zip`.
"""

from __future__ import annotations

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from starlette.status import HTTP_400_BAD_REQUEST

from hr_portal.api.deps import fetch_http_dep, settings_dep
from hr_portal.api.errors import ApiError
from hr_portal.api.schemas import ZipRequest
from hr_portal.auth.deps import require_active_user
from hr_portal.auth.models import Principal
from hr_portal.observability.logging import get_logger
from hr_portal.services.archive import ArchiveEntry, stream_zip
from hr_portal.services.object_keys import safe_archive_name
from hr_portal.settings import Settings

log = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["archive"])


@router.post("/zip")
async def download_zip(
    body: ZipRequest | None = None,
    principal: Principal = Depends(require_active_user),
    http: httpx.AsyncClient = Depends(fetch_http_dep),
    settings: Settings = Depends(settings_dep),
) -> StreamingResponse:
    body = body or ZipRequest()
    if not body.files:
        raise ApiError(HTTP_400_BAD_REQUEST, "No files provided")

    zip_name = safe_archive_name(body.zip_name)
    entries = [ArchiveEntry(url=f.url or "", path=f.path or "file") for f in body.files]
    log.info("archive_requested", zip_name=zip_name, files=len(entries), actor=str(principal.user_id))

    return StreamingResponse(
        stream_zip(entries, http=http, allowed_hosts=settings.zip_allowed_hosts),
        media_type="application/zip",
        headers={
            "Content-Disposition": f'attachment; filename="{zip_name}.zip"',
            "Cache-Control": "no-store",
        },
    )
