"""
hr_portal.auth.jwt

Access-token issuing and validation helpers.

Responsibilities:
- Decode and validate auth-backend access tokens (HS256, audience `authenticated`).
- Issue tokens of the same shape for local development and tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import InvalidTokenError


@dataclass(frozen=True, slots=True)
class JwtConfig:
    alg: str
    audience: str
    secret: str


class JwtValidationError(Exception):
    pass


def issue_token(
    *,
    cfg: JwtConfig,
    subject: str,
    email: str | None = None,
    ttl: timedelta = timedelta(hours=1),
) -> str:
    now = datetime.now(tz=UTC)
    # Mirrors the claims the auth backend puts into user access tokens.
    payload: dict[str, Any] = {
        "aud": cfg.audience,
        "sub": subject,
        "role": "authenticated",
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
    }
    if email:
        payload["email"] = email
    return jwt.encode(payload, cfg.secret, algorithm=cfg.alg)


def decode_and_validate(*, cfg: JwtConfig, token: str) -> dict[str, Any]:
    try:
        return jwt.decode(
            token,
            cfg.secret,
            algorithms=[cfg.alg],
            audience=cfg.audience,
            options={"require": ["exp", "sub", "aud"]},
        )
    except InvalidTokenError as e:
        raise JwtValidationError(str(e)) from e


# --- Module Notes -----------------------------------------------------------
# Tokens are only issued locally by `api/routers/dev_auth.py`; production tokens
# come from the auth backend's sign-in endpoint.
