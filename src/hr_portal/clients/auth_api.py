"""
hr_portal.clients.auth_api

HTTP client boundary for the authentication backend (Supabase GoTrue REST API).

Responsibilities:
- Resolve a caller's access token into an `Identity`.
- Password sign-in with the public (anon) key.
- Admin account operations with the service-role key: create, get, update, delete.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from hr_portal.auth.models import Identity
from hr_portal.settings import Settings

# Long enough to outlive any refresh token; GoTrue expects a Go duration string.
BAN_FOREVER = "876000h"


class AuthApiError(Exception):
    """
    Non-2xx response (or transport failure) from the authentication backend.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass(frozen=True, slots=True)
class AuthSession:
    access_token: str
    refresh_token: str
    expires_in: int | None
    token_type: str
    user: dict[str, Any]


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ("msg", "message", "error_description", "error"):
            value = body.get(key)
            if value:
                return str(value)
    return f"HTTP {response.status_code}"


class AuthApiClient:
    """
    Thin async wrapper; every method either returns parsed JSON or raises `AuthApiError`.
    """

    def __init__(self, *, settings: Settings, http: httpx.AsyncClient) -> None:
        self._settings = settings
        self._http = http

    def _anon_headers(self, token: str | None = None) -> dict[str, str]:
        key = self._settings.supabase_anon_key
        return {"apikey": key, "Authorization": f"Bearer {token or key}"}

    def _service_headers(self) -> dict[str, str]:
        key = self._settings.supabase_service_role_key
        return {"apikey": key, "Authorization": f"Bearer {key}"}

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            r = await self._http.request(method, f"/auth/v1{path}", **kwargs)
        except httpx.HTTPError as e:
            raise AuthApiError(f"Auth backend unreachable: {e}") from e
        if r.is_error:
            raise AuthApiError(_error_message(r), status_code=r.status_code)
        if not r.content:
            return {}
        try:
            return r.json()
        except ValueError as e:
            raise AuthApiError("Auth backend returned invalid JSON", status_code=r.status_code) from e

    async def get_user_for_token(self, token: str) -> Identity:
        data = await self._request("GET", "/user", headers=self._anon_headers(token))
        user_id = str(data.get("id") or "")
        if not user_id:
            raise AuthApiError("Token has no user", status_code=401)
        return Identity(user_id=user_id, email=data.get("email"))

    async def sign_in_with_password(self, *, email: str, password: str) -> AuthSession:
        data = await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            headers=self._anon_headers(),
            json={"email": email, "password": password},
        )
        if not data.get("access_token") or not data.get("refresh_token"):
            raise AuthApiError("Sign-in returned no session", status_code=401)
        return AuthSession(
            access_token=data["access_token"],
            refresh_token=data["refresh_token"],
            expires_in=data.get("expires_in"),
            token_type=data.get("token_type", "bearer"),
            user=data.get("user") or {},
        )

    async def create_user(
        self,
        *,
        email: str,
        password: str,
        user_metadata: dict[str, Any],
        email_confirm: bool = True,
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            "/admin/users",
            headers=self._service_headers(),
            json={
                "email": email,
                "password": password,
                "email_confirm": email_confirm,
                "user_metadata": user_metadata,
            },
        )

    async def get_user(self, user_id: str) -> dict[str, Any]:
        return await self._request(
            "GET", f"/admin/users/{user_id}", headers=self._service_headers()
        )

    async def update_user(self, user_id: str, attributes: dict[str, Any]) -> dict[str, Any]:
        return await self._request(
            "PUT",
            f"/admin/users/{user_id}",
            headers=self._service_headers(),
            json=attributes,
        )

    async def delete_user(self, user_id: str) -> None:
        await self._request("DELETE", f"/admin/users/{user_id}", headers=self._service_headers())

    async def set_password(self, user_id: str, password: str) -> None:
        await self.update_user(user_id, {"password": password})

    async def set_banned(self, user_id: str, banned: bool) -> None:
        # A ban also stops refresh-token use, which signs the user out everywhere.
        await self.update_user(user_id, {"ban_duration": BAN_FOREVER if banned else "none"})


def create_auth_http(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=settings.supabase_url.rstrip("/"),
        timeout=settings.auth_timeout_seconds,
    )


# --- Module Notes -----------------------------------------------------------
# The httpx client is created once per process (see `api.app`) and shared by
# every request; tests swap the transport for `httpx.MockTransport`.
