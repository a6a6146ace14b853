"""
hr_portal.auth.models

Auth domain models.

Responsibilities:
- `Identity`: who the authentication backend says the token belongs to.
- `Principal`: the identity joined with the caller's profile row (role, active flag).
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass

ADMIN = "admin"
SUPERVISOR = "supervisor"
TEACHER = "teacher"
EMPLOYEE = "employee"

# Roles an administrator may reset, (de)activate or onboard through the setup flow.
MANAGED_ROLES = frozenset({TEACHER, SUPERVISOR})


@dataclass(frozen=True, slots=True)
class Identity:
    user_id: str
    email: str | None = None


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated and profiled caller.
    """

    user_id: uuid.UUID
    role: str
    is_active: bool
    email: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.is_active and self.role == ADMIN


# --- Module Notes -----------------------------------------------------------
# Roles live in `user_profiles.role`, not in the token, so a role change takes
# effect on the next request without re-issuing tokens.
