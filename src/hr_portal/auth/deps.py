"""
hr_portal.auth.deps

FastAPI dependency functions for authentication and authorization.

Responsibilities:
- Extract the bearer token.
- Resolve it to an `Identity` (local JWT verification or the auth backend).
- Join the identity with the caller's profile and enforce role/active checks.
"""

from __future__ import annotations

import uuid

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN

from hr_portal.api.deps import auth_api_dep, db_session, settings_dep
from hr_portal.api.errors import ApiError
from hr_portal.auth.jwt import JwtConfig, JwtValidationError, decode_and_validate
from hr_portal.auth.models import ADMIN, EMPLOYEE, SUPERVISOR, TEACHER, Identity, Principal
from hr_portal.clients.auth_api import AuthApiClient, AuthApiError
from hr_portal.db.repositories.profiles import ProfileRepo
from hr_portal.observability.logging import get_logger
from hr_portal.settings import Settings

log = get_logger(__name__)

_bearer = HTTPBearer(auto_error=False)


def jwt_config(settings: Settings) -> JwtConfig:
    return JwtConfig(alg=settings.jwt_alg, audience=settings.jwt_audience, secret=settings.jwt_secret)


def bearer_token(creds: HTTPAuthorizationCredentials | None = Depends(_bearer)) -> str:
    token = creds.credentials.strip() if creds is not None else ""
    if not token:
        raise ApiError(HTTP_401_UNAUTHORIZED, "Missing bearer token")
    return token


async def get_identity(
    token: str = Depends(bearer_token),
    settings: Settings = Depends(settings_dep),
    auth_api: AuthApiClient = Depends(auth_api_dep),
) -> Identity:
    if settings.token_verification == "remote":
        try:
            return await auth_api.get_user_for_token(token)
        except AuthApiError as e:
            log.info("token_rejected", reason=e.message)
            raise ApiError(HTTP_401_UNAUTHORIZED, "Invalid session") from e

    try:
        payload = decode_and_validate(cfg=jwt_config(settings), token=token)
    except JwtValidationError as e:
        log.info("token_rejected", reason=str(e))
        raise ApiError(HTTP_401_UNAUTHORIZED, "Invalid session") from e
    return Identity(user_id=str(payload["sub"]), email=payload.get("email"))


async def _load_principal(
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(db_session),
) -> Principal | None:
    try:
        user_id = uuid.UUID(identity.user_id)
    except ValueError as e:
        raise ApiError(HTTP_401_UNAUTHORIZED, "Invalid session") from e
    profile = await ProfileRepo(session).get(user_id)
    if profile is None:
        return None
    return Principal(
        user_id=user_id,
        role=profile.role,
        is_active=profile.is_active,
        email=profile.email or identity.email,
    )


def get_principal(principal: Principal | None = Depends(_load_principal)) -> Principal:
    if principal is None:
        raise ApiError(HTTP_403_FORBIDDEN, "Forbidden")
    return principal


def require_roles(*required: str, denied: str = "Forbidden"):
    """
    Dependency factory: caller must have an active profile with one of `required` roles.
    """

    required_set = frozenset(required)

    def _dep(principal: Principal | None = Depends(_load_principal)) -> Principal:
        if principal is None or not principal.is_active or principal.role not in required_set:
            raise ApiError(HTTP_403_FORBIDDEN, denied)
        return principal

    return _dep


require_admin = require_roles(ADMIN)
require_admin_function = require_roles(ADMIN, denied="Admin-only")
require_active_user = require_roles(ADMIN, SUPERVISOR, TEACHER, EMPLOYEE)


# --- Module Notes -----------------------------------------------------------
# Unlike role claims in a token, profile lookups see deactivation immediately.
