"""
hr_portal.auth

Authentication/authorization package.

Responsibilities:
- Access-token helpers and validation.
- FastAPI auth dependencies (caller identity, profile-backed role checks).
"""
