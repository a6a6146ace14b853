"""
hr_portal.clients.storage

Object storage boundary (Cloudflare R2 through the S3 API, via boto3).

Responsibilities:
- Presign PUT URLs for direct browser uploads.
- Presign GET URLs with response content type/disposition overrides.
- Delete objects.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from starlette.concurrency import run_in_threadpool

from hr_portal.settings import Settings

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client


class StorageError(Exception):
    pass


class ObjectStorage:
    def __init__(self, *, bucket: str, s3_client: S3Client) -> None:
        self.bucket = bucket
        self._s3 = s3_client

    def presign_upload(
        self,
        *,
        key: str,
        content_type: str,
        expires_in: int,
        content_length: int | None = None,
        metadata: dict[str, str] | None = None,
    ) -> str:
        params: dict[str, Any] = {"Bucket": self.bucket, "Key": key, "ContentType": content_type}
        if content_length is not None:
            params["ContentLength"] = content_length
        if metadata:
            params["Metadata"] = metadata
        return self._presign("put_object", params, expires_in)

    def presign_download(
        self,
        *,
        key: str,
        filename: str,
        content_type: str | None,
        expires_in: int,
        disposition: str = "attachment",
    ) -> str:
        params = {
            "Bucket": self.bucket,
            "Key": key,
            "ResponseContentType": content_type or "application/octet-stream",
            "ResponseContentDisposition": content_disposition(filename, disposition),
        }
        return self._presign("get_object", params, expires_in)

    async def delete(self, key: str) -> None:
        # boto3 is blocking; keep it off the event loop.
        try:
            await run_in_threadpool(self._s3.delete_object, Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to delete object: {e}") from e

    def _presign(self, operation: str, params: dict[str, Any], expires_in: int) -> str:
        # Presigning is a local signature computation; no network round trip.
        try:
            return self._s3.generate_presigned_url(
                ClientMethod=operation, Params=params, ExpiresIn=expires_in
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to presign {operation}: {e}") from e


def content_disposition(filename: str, disposition: str = "attachment") -> str:
    safe = (filename or "download").replace('"', "")
    return f'{disposition}; filename="{safe}"'


def create_storage(settings: Settings) -> ObjectStorage | None:
    if not settings.storage_configured:
        return None
    s3_client = boto3.client(
        "s3",
        region_name=settings.r2_region,
        endpoint_url=settings.r2_endpoint,
        aws_access_key_id=settings.r2_access_key_id,
        aws_secret_access_key=settings.r2_secret_access_key,
        config=Config(signature_version="s3v4", s3={"addressing_style": "path"}),
    )
    return ObjectStorage(bucket=settings.r2_bucket or "", s3_client=s3_client)


# --- Module Notes -----------------------------------------------------------
# `create_storage` returns None when credentials are absent so the app can boot;
# `api.deps.storage_dep` turns that into a 500 per request.
