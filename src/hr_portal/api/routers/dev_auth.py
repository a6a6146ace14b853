from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from starlette.status import HTTP_404_NOT_FOUND

from hr_portal.api.deps import settings_dep
from hr_portal.api.errors import ApiError
from hr_portal.auth.deps import jwt_config
from hr_portal.auth.jwt import issue_token
from hr_portal.settings import Settings

router = APIRouter(prefix="/v1/dev", tags=["dev"])


class DevTokenRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)
    email: str | None = Field(default=None, max_length=320)
    ttl_minutes: int = Field(default=60, ge=1, le=24 * 60)


class DevTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


@router.post("/token", response_model=DevTokenResponse)
async def mint_dev_token(
    body: DevTokenRequest,
    settings: Settings = Depends(settings_dep),
) -> DevTokenResponse:
    # Tokens are signed with the local secret, which only matters in "local" verification mode.
    if settings.env == "prod" or settings.token_verification != "local":
        raise ApiError(HTTP_404_NOT_FOUND, "Not found")

    token = issue_token(
        cfg=jwt_config(settings),
        subject=body.user_id,
        email=body.email,
        ttl=timedelta(minutes=body.ttl_minutes),
    )
    return DevTokenResponse(access_token=token)
