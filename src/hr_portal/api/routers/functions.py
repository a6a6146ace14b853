"""
hr_portal.api.routers.functions

Account administration and onboarding functions (`/functions/v1/*`).

Responsibilities:
- Admin-only account management: create/delete supervisors and teachers,
  reset the password-setup flag, (de)activate accounts.
- Unauthenticated sign-in and first-time password setup.
- The cron-triggered HR reminder run.
"""

from __future__ import annotations

import secrets
from typing import Any

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import (
    HTTP_401_UNAUTHORIZED,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_503_SERVICE_UNAVAILABLE,
)

from hr_portal.api.deps import auth_api_dep, db_session, email_dep, settings_dep
from hr_portal.api.errors import ApiError
from hr_portal.api.schemas import (
    CreateSupervisorRequest,
    CreateTeacherRequest,
    DeleteSupervisorRequest,
    DeleteTeacherRequest,
    LoginRequest,
    SetUserActiveRequest,
    SetupRequest,
    TargetUserRequest,
)
from hr_portal.auth.deps import require_admin_function
from hr_portal.auth.models import Principal
from hr_portal.clients.auth_api import AuthApiClient
from hr_portal.clients.email import EmailClient, EmailError
from hr_portal.observability.logging import get_logger
from hr_portal.services.accounts import AccountService
from hr_portal.services.reminders import RemindersNotConfigured, ReminderService
from hr_portal.settings import Settings

log = get_logger(__name__)

router = APIRouter(prefix="/functions/v1", tags=["functions"])


def account_service(
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
    auth_api: AuthApiClient = Depends(auth_api_dep),
) -> AccountService:
    return AccountService(session=session, settings=settings, auth_api=auth_api)


# -- admin-only ----------------------------------------------------------------


@router.post("/admin-create-supervisor")
async def admin_create_supervisor(
    body: CreateSupervisorRequest | None = None,
    actor: Principal = Depends(require_admin_function),
    accounts: AccountService = Depends(account_service),
) -> dict[str, Any]:
    body = body or CreateSupervisorRequest()
    return await accounts.create_supervisor(
        actor=actor,
        email=body.supervisor_email or "",
        full_name=body.supervisor_full_name or "",
    )


@router.post("/admin-create-teacher")
async def admin_create_teacher(
    body: CreateTeacherRequest | None = None,
    actor: Principal = Depends(require_admin_function),
    accounts: AccountService = Depends(account_service),
) -> dict[str, Any]:
    body = body or CreateTeacherRequest()
    return await accounts.create_teacher(
        actor=actor,
        username=body.teacher_username or "",
        full_name=body.teacher_full_name or "",
    )


@router.post("/admin-delete-supervisor")
async def admin_delete_supervisor(
    body: DeleteSupervisorRequest | None = None,
    actor: Principal = Depends(require_admin_function),
    accounts: AccountService = Depends(account_service),
) -> dict[str, Any]:
    body = body or DeleteSupervisorRequest()
    return await accounts.delete_supervisor(actor=actor, supervisor_id=body.supervisor_id or "")


@router.post("/admin-delete-teacher")
async def admin_delete_teacher(
    body: DeleteTeacherRequest | None = None,
    actor: Principal = Depends(require_admin_function),
    accounts: AccountService = Depends(account_service),
) -> dict[str, Any]:
    body = body or DeleteTeacherRequest()
    return await accounts.delete_teacher(actor=actor, teacher_id=body.teacher_id or "")


@router.post("/admin-reset-user-password")
async def admin_reset_user_password(
    body: TargetUserRequest | None = None,
    actor: Principal = Depends(require_admin_function),
    accounts: AccountService = Depends(account_service),
) -> dict[str, Any]:
    body = body or TargetUserRequest()
    return await accounts.reset_password(actor=actor, target_user_id=body.target_user_id or "")


@router.post("/admin-set-user-active")
async def admin_set_user_active(
    body: SetUserActiveRequest | None = None,
    actor: Principal = Depends(require_admin_function),
    accounts: AccountService = Depends(account_service),
) -> dict[str, Any]:
    body = body or SetUserActiveRequest()
    return await accounts.set_active(
        actor=actor, target_user_id=body.target_user_id or "", is_active=body.is_active
    )


# -- unauthenticated -----------------------------------------------------------


@router.post("/auth-username-login")
async def auth_username_login(
    body: LoginRequest | None = None,
    accounts: AccountService = Depends(account_service),
) -> dict[str, Any]:
    body = body or LoginRequest()
    return await accounts.login(identifier=body.identifier or "", password=body.password or "")


@router.post("/teacher-setup-check")
async def teacher_setup_check(
    body: SetupRequest | None = None,
    accounts: AccountService = Depends(account_service),
) -> dict[str, Any]:
    body = body or SetupRequest()
    return await accounts.setup_check(identifier=body.ident)


@router.post("/teacher-setup-set-password")
async def teacher_setup_set_password(
    body: SetupRequest | None = None,
    accounts: AccountService = Depends(account_service),
) -> dict[str, Any]:
    body = body or SetupRequest()
    return await accounts.setup_set_password(identifier=body.ident, password=body.password or "")


# -- scheduled -----------------------------------------------------------------


@router.post("/send-pto-reminders")
async def send_pto_reminders(
    x_cron_secret: str = Header(default=""),
    settings: Settings = Depends(settings_dep),
    session: AsyncSession = Depends(db_session),
    email: EmailClient | None = Depends(email_dep),
) -> Any:
    expected = settings.cron_secret.strip()
    if not expected or not secrets.compare_digest(x_cron_secret.strip().encode(), expected.encode()):
        raise ApiError(HTTP_401_UNAUTHORIZED, "Unauthorized")

    try:
        result = await ReminderService(session=session, email=email).run()
    except RemindersNotConfigured as e:
        raise ApiError(HTTP_500_INTERNAL_SERVER_ERROR, str(e)) from e
    except EmailError as e:
        log.error("reminder_email_failed", error=str(e))
        return JSONResponse(
            status_code=HTTP_503_SERVICE_UNAVAILABLE,
            content={"error": "EMAIL_ERROR", "message": str(e)},
        )
    return result.as_dict()


# --- Module Notes -----------------------------------------------------------
# Function names match the paths browser clients already invoke, so the
# frontend only needs its base URL changed.
