"""
tests.test_auth

Bearer-token verification (local JWT and remote auth backend) and role checks.
"""

from __future__ import annotations

import uuid
from datetime import timedelta

import httpx
import pytest

from hr_portal.auth.jwt import JwtConfig, JwtValidationError, decode_and_validate, issue_token
from hr_portal.clients.auth_api import AuthApiClient, AuthApiError
from tests.fakes import AUTH_URL, make_profile, running_app

CFG = JwtConfig(alg="HS256", audience="authenticated", secret="s3cret")


def test_issue_and_decode_round_trip() -> None:
    token = issue_token(cfg=CFG, subject="user-1", email="a@b.test")
    claims = decode_and_validate(cfg=CFG, token=token)
    assert claims["sub"] == "user-1"
    assert claims["email"] == "a@b.test"
    assert claims["role"] == "authenticated"


def test_expired_token_is_rejected() -> None:
    token = issue_token(cfg=CFG, subject="user-1", ttl=timedelta(seconds=-30))
    with pytest.raises(JwtValidationError):
        decode_and_validate(cfg=CFG, token=token)


def test_wrong_audience_is_rejected() -> None:
    token = issue_token(cfg=JwtConfig(alg="HS256", audience="anon", secret="s3cret"), subject="u")
    with pytest.raises(JwtValidationError):
        decode_and_validate(cfg=CFG, token=token)


@pytest.mark.asyncio
async def test_missing_bearer_token(client: httpx.AsyncClient) -> None:
    r = await client.post("/api/r2/download", json={"fileId": str(uuid.uuid4())})
    assert r.status_code == 401
    assert r.json() == {"error": "Missing bearer token"}


@pytest.mark.asyncio
async def test_garbage_token(client: httpx.AsyncClient) -> None:
    r = await client.post(
        "/api/r2/download",
        json={"fileId": str(uuid.uuid4())},
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert r.status_code == 401
    assert r.json() == {"error": "Invalid session"}


@pytest.mark.asyncio
async def test_token_signed_with_other_secret(client: httpx.AsyncClient, admin) -> None:
    token = issue_token(cfg=CFG, subject=str(admin.id))
    r = await client.post(
        "/api/r2/presign-meeting",
        json={"meetingId": "m1", "filename": "a.pdf"},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_non_uuid_subject(client: httpx.AsyncClient, auth_headers) -> None:
    r = await client.post("/api/zip", json={"files": []}, headers=auth_headers("not-a-uuid"))
    assert r.status_code == 401
    assert r.json() == {"error": "Invalid session"}


@pytest.mark.asyncio
async def test_valid_token_without_profile(client: httpx.AsyncClient, auth_headers) -> None:
    r = await client.post(
        "/api/r2/download", json={"fileId": str(uuid.uuid4())}, headers=auth_headers(uuid.uuid4())
    )
    assert r.status_code == 403
    assert r.json() == {"error": "Forbidden"}


@pytest.mark.asyncio
async def test_admin_routes_reject_other_roles(client: httpx.AsyncClient, seed, auth_headers) -> None:
    teacher = make_profile("teacher", username="t.one")
    await seed(teacher)

    r = await client.post(
        "/api/r2/presign-meeting",
        json={"meetingId": "m1", "filename": "a.pdf"},
        headers=auth_headers(teacher.id),
    )
    assert r.status_code == 403
    assert r.json() == {"error": "Forbidden"}

    r = await client.post(
        "/functions/v1/admin-reset-user-password",
        json={"target_user_id": str(teacher.id)},
        headers=auth_headers(teacher.id),
    )
    assert r.status_code == 403
    assert r.json() == {"error": "Admin-only"}


@pytest.mark.asyncio
async def test_inactive_admin_is_rejected(client: httpx.AsyncClient, seed, auth_headers) -> None:
    admin = make_profile("admin", is_active=False)
    await seed(admin)
    r = await client.post(
        "/api/r2/presign-meeting",
        json={"meetingId": "m1", "filename": "a.pdf"},
        headers=auth_headers(admin.id),
    )
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_dev_token_mints_usable_token(client: httpx.AsyncClient, admin) -> None:
    r = await client.post("/v1/dev/token", json={"user_id": str(admin.id)})
    assert r.status_code == 200
    token = r.json()["access_token"]

    r = await client.post(
        "/api/r2/presign-meeting",
        json={"meetingId": "m1", "filename": "a.pdf"},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_remote_verification(settings, auth_backend, outbox, remote_files) -> None:
    remote = settings.model_copy(update={"token_verification": "remote"})
    async with running_app(remote, auth_backend, outbox, remote_files) as app:
        async with app.state.sessionmaker() as session:
            teacher = make_profile("teacher", username="remote.t")
            session.add(teacher)
            await session.commit()
        uid = auth_backend.add_user("remote.t@sic.invalid", user_id=teacher.id)
        auth_backend.tokens["opaque-token"] = uid

        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            # Passing auth, then failing on the empty file list.
            r = await client.post(
                "/api/zip", json={"files": []}, headers={"Authorization": "Bearer opaque-token"}
            )
            assert r.status_code == 400
            assert r.json() == {"error": "No files provided"}

            r = await client.post(
                "/api/zip", json={"files": []}, headers={"Authorization": "Bearer unknown"}
            )
            assert r.status_code == 401
            assert r.json() == {"error": "Invalid session"}

            # Local tokens mean nothing to the remote verifier.
            r = await client.post("/v1/dev/token", json={"user_id": str(teacher.id)})
            assert r.status_code == 404


@pytest.mark.asyncio
async def test_auth_client_rejects_non_json_success(settings) -> None:
    def html_page(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>gateway</html>")

    async with httpx.AsyncClient(base_url=AUTH_URL, transport=httpx.MockTransport(html_page)) as http:
        auth_api = AuthApiClient(settings=settings, http=http)
        with pytest.raises(AuthApiError) as exc:
            await auth_api.get_user(str(uuid.uuid4()))

    assert exc.value.message == "Auth backend returned invalid JSON"
    assert exc.value.status_code == 200
