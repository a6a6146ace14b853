"""
hr_portal.services.accounts

Account administration and onboarding flows.

Responsibilities:
- Create supervisor (e-mail) and teacher (username) accounts: auth user + profile row.
- Delete supervisor/teacher accounts: dependent rows, profile, then auth user.
- Reset the "password set" flag and toggle the active flag of managed accounts.
- Username/e-mail password login and the first-time password setup flow.

Every method either returns the JSON body for a successful response or raises
`ApiError` with the status code the caller should see.
"""

from __future__ import annotations

import re
import secrets
import string
import uuid
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from hr_portal.api.errors import ApiError
from hr_portal.auth.models import ADMIN, MANAGED_ROLES, SUPERVISOR, TEACHER, Principal
from hr_portal.clients.auth_api import AuthApiClient, AuthApiError
from hr_portal.db.models import UserProfile, utcnow
from hr_portal.db.repositories.profiles import ProfileRepo
from hr_portal.observability.logging import get_logger
from hr_portal.settings import Settings

log = get_logger(__name__)

# 3-30 chars of lowercase letters/digits/._- that start and end alphanumeric.
USERNAME_RE = re.compile(r"^[a-z0-9][a-z0-9._-]{1,28}[a-z0-9]$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 8

_PASSWORD_ALPHABET = string.ascii_letters + string.digits + "!@#$%^&*-_=+"


def normalize(value: Any) -> str:
    return str(value if value is not None else "").strip().lower()


def looks_like_email(value: str) -> bool:
    return bool(EMAIL_RE.match(value.strip()))


def is_valid_username(value: str) -> bool:
    return bool(USERNAME_RE.match(normalize(value)))


def temporary_password() -> str:
    # Unknown to everyone; the user sets a real one through the setup flow.
    # The suffix satisfies upper/lower/digit/symbol password policies.
    return f"{uuid.uuid4()}Aa1!"


def random_password(length: int = 40) -> str:
    return "".join(secrets.choice(_PASSWORD_ALPHABET) for _ in range(length))


def parse_user_id(value: str, field: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError as e:
        raise ApiError(HTTP_400_BAD_REQUEST, f"Invalid {field}") from e


class AccountService:
    def __init__(
        self,
        *,
        session: AsyncSession,
        settings: Settings,
        auth_api: AuthApiClient,
    ) -> None:
        self._session = session
        self._settings = settings
        self._auth = auth_api
        self._profiles = ProfileRepo(session)

    # -- creation ---------------------------------------------------------------

    async def create_supervisor(self, *, actor: Principal, email: str, full_name: str) -> dict[str, Any]:
        email = normalize(email)
        full_name = (full_name or "").strip()
        if not email or "@" not in email:
            raise ApiError(HTTP_400_BAD_REQUEST, "Invalid supervisor_email")
        if not full_name:
            raise ApiError(HTTP_400_BAD_REQUEST, "supervisor_full_name required")

        user_id = await self._create_auth_user(
            email=email, user_metadata={"full_name": full_name}
        )
        result = await self._upsert_profile(
            user_id,
            email=email,
            full_name=full_name,
            role=SUPERVISOR,
            is_active=True,
        )
        log.info("account_created", role=SUPERVISOR, user_id=str(user_id), actor=str(actor.user_id))
        return result

    async def create_teacher(self, *, actor: Principal, username: str, full_name: str) -> dict[str, Any]:
        username = normalize(username)
        full_name = (full_name or "").strip()
        if not username or not is_valid_username(username):
            raise ApiError(HTTP_400_BAD_REQUEST, "Invalid teacher_username")
        if not full_name:
            raise ApiError(HTTP_400_BAD_REQUEST, "teacher_full_name required")

        if await self._profiles.get_by_username(username) is not None:
            raise ApiError(HTTP_409_CONFLICT, "Username already exists")

        # The auth backend requires an e-mail; teachers sign in by username, so
        # derive a stable address under a reserved, undeliverable domain.
        user_id = await self._create_auth_user(
            email=f"{username}@{self._settings.synthetic_email_domain}",
            user_metadata={"full_name": full_name, "username": username},
        )
        result = await self._upsert_profile(
            user_id,
            email=None,
            username=username,
            full_name=full_name,
            role=TEACHER,
            is_active=True,
        )
        log.info("account_created", role=TEACHER, user_id=str(user_id), actor=str(actor.user_id))
        return result

    async def _create_auth_user(self, *, email: str, user_metadata: dict[str, Any]) -> uuid.UUID:
        try:
            created = await self._auth.create_user(
                email=email,
                password=temporary_password(),
                user_metadata=user_metadata,
            )
        except AuthApiError as e:
            raise ApiError(HTTP_400_BAD_REQUEST, e.message) from e

        raw_id = created.get("id")
        if not raw_id:
            raise ApiError(HTTP_500_INTERNAL_SERVER_ERROR, "Create user returned no id")
        return uuid.UUID(str(raw_id))

    async def _upsert_profile(self, user_id: uuid.UUID, **fields: Any) -> dict[str, Any]:
        try:
            await self._profiles.upsert(user_id, **fields)
            await self._session.commit()
        except SQLAlchemyError as e:
            # The auth user already exists, so the call still succeeds.
            await self._session.rollback()
            log.warning("profile_upsert_failed", user_id=str(user_id), error=str(e))
            return {
                "ok": True,
                "user_id": str(user_id),
                "warning": "Auth user created but profile upsert failed",
                "detail": str(e),
            }
        return {"ok": True, "user_id": str(user_id)}

    # -- deletion ---------------------------------------------------------------

    async def delete_supervisor(self, *, actor: Principal, supervisor_id: str) -> dict[str, Any]:
        target_id = self._deletable_target(actor, supervisor_id, "supervisor_id")
        target = await self._profiles.get(target_id)
        if target is not None and target.role == ADMIN:
            raise ApiError(HTTP_400_BAD_REQUEST, "Refusing to delete an admin.")
        if target is None or target.role != SUPERVISOR:
            raise ApiError(HTTP_400_BAD_REQUEST, "Refusing to delete a non-supervisor.")

        try:
            await self._profiles.delete_supervisor_assignments(target_id)
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise ApiError(
                HTTP_400_BAD_REQUEST, f"DB error deleting supervisor assignments: {e}"
            ) from e
        await self._delete_profile_then_auth_user(target_id)
        log.info("account_deleted", role=SUPERVISOR, user_id=str(target_id), actor=str(actor.user_id))
        return {"ok": True}

    async def delete_teacher(self, *, actor: Principal, teacher_id: str) -> dict[str, Any]:
        target_id = self._deletable_target(actor, teacher_id, "teacher_id")
        target = await self._profiles.get(target_id)
        if target is not None and target.role in (ADMIN, SUPERVISOR):
            raise ApiError(HTTP_400_BAD_REQUEST, "Refusing to delete an admin/supervisor.")

        await self._delete_profile_then_auth_user(target_id)
        log.info("account_deleted", role=TEACHER, user_id=str(target_id), actor=str(actor.user_id))
        return {"ok": True}

    def _deletable_target(self, actor: Principal, raw_id: str, field: str) -> uuid.UUID:
        raw_id = (raw_id or "").strip()
        if not raw_id:
            raise ApiError(HTTP_400_BAD_REQUEST, f"{field} required")
        target_id = parse_user_id(raw_id, field)
        if target_id == actor.user_id:
            raise ApiError(HTTP_400_BAD_REQUEST, "You cannot delete yourself.")
        return target_id

    async def _delete_profile_then_auth_user(self, user_id: uuid.UUID) -> None:
        # The profile delete must be committed before the auth user is removed:
        # the auth backend cascades into user_profiles and would block on our row lock.
        try:
            await self._profiles.delete(user_id)
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise ApiError(HTTP_400_BAD_REQUEST, f"DB error deleting profile: {e}") from e

        try:
            await self._auth.delete_user(str(user_id))
        except AuthApiError as e:
            raise ApiError(HTTP_400_BAD_REQUEST, f"Auth delete error: {e.message}") from e

    # -- managed account flags --------------------------------------------------

    async def _managed_target(self, raw_id: str, verb: str) -> UserProfile:
        raw_id = (raw_id or "").strip()
        if not raw_id:
            raise ApiError(HTTP_400_BAD_REQUEST, "Missing target_user_id")
        target = await self._profiles.get(parse_user_id(raw_id, "target_user_id"))
        if target is None:
            raise ApiError(HTTP_404_NOT_FOUND, "Target not found.")
        if target.role not in MANAGED_ROLES:
            raise ApiError(HTTP_400_BAD_REQUEST, f"Can only {verb} teacher/supervisor accounts.")
        return target

    async def reset_password(self, *, actor: Principal, target_user_id: str) -> dict[str, Any]:
        target = await self._managed_target(target_user_id, "reset")
        await self._profiles.update(target.id, has_set_password=False, password_set_at=None)
        await self._session.commit()

        # Best effort: the old password must stop working even if the user never
        # completes setup again.
        try:
            await self._auth.set_password(str(target.id), random_password(40))
        except AuthApiError as e:
            log.warning("password_rotation_failed", user_id=str(target.id), error=e.message)

        log.info("password_reset", user_id=str(target.id), actor=str(actor.user_id))
        return {"ok": True, "target_user_id": str(target.id)}

    async def set_active(self, *, actor: Principal, target_user_id: str, is_active: bool) -> dict[str, Any]:
        target = await self._managed_target(target_user_id, "update")
        await self._profiles.update(target.id, is_active=is_active)
        await self._session.commit()

        # Best effort: revoke (or restore) sign-in on the auth backend.
        try:
            await self._auth.set_banned(str(target.id), banned=not is_active)
        except AuthApiError as e:
            log.warning("session_revoke_failed", user_id=str(target.id), error=e.message)

        log.info("account_active_set", user_id=str(target.id), is_active=is_active, actor=str(actor.user_id))
        return {"ok": True, "target_user_id": str(target.id), "is_active": is_active}

    # -- sign-in and setup (unauthenticated) ------------------------------------

    async def login(self, *, identifier: str, password: str) -> dict[str, Any]:
        identifier = (identifier or "").strip()
        if not identifier or not password:
            raise ApiError(HTTP_400_BAD_REQUEST, "identifier + password required")

        if looks_like_email(identifier):
            email = identifier.lower()
        else:
            profile = await self._profiles.get_by_username(normalize(identifier))
            # Same response for unknown usernames and bad passwords.
            if profile is None:
                raise ApiError(HTTP_401_UNAUTHORIZED, "Invalid credentials")
            if not profile.is_active:
                raise ApiError(HTTP_403_FORBIDDEN, "Not authorized")
            try:
                auth_user = await self._auth.get_user(str(profile.id))
            except AuthApiError as e:
                raise ApiError(HTTP_401_UNAUTHORIZED, "Invalid credentials") from e
            email = normalize(auth_user.get("email"))
            if not email:
                raise ApiError(HTTP_401_UNAUTHORIZED, "Invalid credentials")

        try:
            session = await self._auth.sign_in_with_password(email=email, password=password)
        except AuthApiError as e:
            log.info("login_failed", reason=e.message)
            raise ApiError(HTTP_401_UNAUTHORIZED, "Invalid credentials") from e

        return {
            "access_token": session.access_token,
            "refresh_token": session.refresh_token,
            "expires_in": session.expires_in,
            "token_type": session.token_type,
            "user": session.user,
        }

    async def _setup_profile(self, identifier: str) -> UserProfile | None:
        if "@" in identifier:
            email = normalize(identifier)
            if not looks_like_email(email):
                raise ApiError(HTTP_400_BAD_REQUEST, "Invalid email")
            profile = await self._profiles.get_by_email(email)
        else:
            username = normalize(identifier)
            if not username:
                raise ApiError(HTTP_400_BAD_REQUEST, "Invalid username")
            profile = await self._profiles.get_by_username(username)

        if profile is None or not profile.is_active or profile.role not in MANAGED_ROLES:
            return None
        return profile

    async def _auth_user_exists(self, user_id: uuid.UUID) -> bool:
        try:
            user = await self._auth.get_user(str(user_id))
        except AuthApiError:
            return False
        return bool(user.get("id"))

    async def setup_check(self, *, identifier: str) -> dict[str, Any]:
        identifier = (identifier or "").strip()
        if not identifier:
            raise ApiError(HTTP_400_BAD_REQUEST, "Missing identifier")

        # Never reveal accounts outside the onboarding roles.
        profile = await self._setup_profile(identifier)
        if profile is None:
            return {"status": "not_found"}
        if profile.has_set_password:
            return {"status": "has_password"}
        if not await self._auth_user_exists(profile.id):
            return {"status": "not_found"}

        return {
            "status": "no_password",
            "user_id": str(profile.id),
            "full_name": profile.full_name,
            "role": profile.role,
            "email": profile.email,
            "username": profile.username,
        }

    async def setup_set_password(self, *, identifier: str, password: str) -> dict[str, Any]:
        identifier = (identifier or "").strip()
        if not identifier:
            raise ApiError(HTTP_400_BAD_REQUEST, "Missing identifier")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ApiError(
                HTTP_400_BAD_REQUEST,
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            )

        profile = await self._setup_profile(identifier)
        if profile is None:
            raise ApiError(HTTP_404_NOT_FOUND, "Profile not found")
        if profile.has_set_password:
            raise ApiError(HTTP_409_CONFLICT, "Already set up")
        if not await self._auth_user_exists(profile.id):
            raise ApiError(HTTP_404_NOT_FOUND, "Auth user not found")

        try:
            await self._auth.set_password(str(profile.id), password)
        except AuthApiError as e:
            raise ApiError(HTTP_500_INTERNAL_SERVER_ERROR, e.message) from e

        await self._profiles.update(profile.id, has_set_password=True, password_set_at=utcnow())
        await self._session.commit()
        log.info("password_set", user_id=str(profile.id))
        return {"ok": True}


# --- Module Notes -----------------------------------------------------------
# Profile ids equal auth user ids for every account created here, so the setup
# flow never has to search the auth backend by e-mail.
