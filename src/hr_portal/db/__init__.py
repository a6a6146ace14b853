"""
hr_portal.db

Persistence package.

Responsibilities:
- ORM models for the profile/document tables the handlers read and write.
- Async engine/session helpers and per-table repositories.
"""
