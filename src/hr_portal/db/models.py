"""
hr_portal.db.models

ORM mapping of the backend tables the handlers touch.

Responsibilities:
- Map profile, folder/permission/file and HR document tables as they exist in the
  application database (the schema is owned by the backend project).
- Keep column names identical to the database so rows pass through unchanged.
"""

from __future__ import annotations

import enum
import uuid
from datetime import UTC, date, datetime, time, timedelta

from sqlalchemy import (
    BigInteger,
    Boolean,
    Date,
    ForeignKey,
    Index,
    String,
    Text,
    Time,
    Uuid as SAUuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from hr_portal.db.base import Base


def utcnow() -> datetime:
    # Naive UTC timestamps keep SQLite (dev/test) and Postgres comparisons consistent.
    return datetime.now(UTC).replace(tzinfo=None)


class FolderAccess(enum.StrEnum):
    view = "view"
    download = "download"
    manage = "manage"


class UserProfile(Base):
    __tablename__ = "user_profiles"

    # Same id as the auth backend user.
    id: Mapped[uuid.UUID] = mapped_column(SAUuid(as_uuid=True), primary_key=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True, index=True)
    username: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True)
    full_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    role: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    has_set_password: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    password_set_at: Mapped[datetime | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)


class SupervisorTeacherAssignment(Base):
    __tablename__ = "supervisor_teacher_assignments"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    supervisor_user_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("user_profiles.id"), nullable=False, index=True
    )
    teacher_user_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("user_profiles.id"), nullable=False, index=True
    )


class Folder(Base):
    __tablename__ = "folders"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    parent_id: Mapped[uuid.UUID | None] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("folders.id"), nullable=True, index=True
    )


class Permission(Base):
    __tablename__ = "permissions"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    principal_user_id: Mapped[uuid.UUID] = mapped_column(SAUuid(as_uuid=True), nullable=False)
    resource_type: Mapped[str] = mapped_column(String(32), nullable=False, default="folder")
    resource_id: Mapped[uuid.UUID] = mapped_column(SAUuid(as_uuid=True), nullable=False)
    access: Mapped[str] = mapped_column(String(16), nullable=False)
    inherit: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("ix_permissions_principal_resource", "principal_user_id", "resource_id"),
    )


class FileRecord(Base):
    __tablename__ = "files"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    folder_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("folders.id"), nullable=False, index=True
    )
    # `original_name`/`storage_key` are canonical; `name`/`object_key` are legacy columns.
    name: Mapped[str | None] = mapped_column(String(512), nullable=True)
    original_name: Mapped[str | None] = mapped_column(String(512), nullable=True)
    storage_key: Mapped[str | None] = mapped_column(Text, nullable=True)
    object_key: Mapped[str | None] = mapped_column(Text, nullable=True)
    mime_type: Mapped[str | None] = mapped_column(String(255), nullable=True)
    size_bytes: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)

    @property
    def key(self) -> str | None:
        return self.storage_key or self.object_key

    @property
    def display_name(self) -> str:
        return self.original_name or self.name or "download"


class HrEmployee(Base):
    __tablename__ = "hr_employees"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    profile_id: Mapped[uuid.UUID | None] = mapped_column(
        SAUuid(as_uuid=True),
        ForeignKey("user_profiles.id", ondelete="CASCADE"),
        nullable=True,
    )
    legal_first_name: Mapped[str] = mapped_column(String(128), nullable=False)
    legal_last_name: Mapped[str] = mapped_column(String(128), nullable=False)
    has_pto: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    pto_reminder_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    pto_reminder_sent_at: Mapped[datetime | None] = mapped_column(nullable=True)


class HrEmployeeDocument(Base):
    __tablename__ = "hr_employee_documents"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("hr_employees.id"), nullable=False, index=True
    )
    name: Mapped[str | None] = mapped_column(String(512), nullable=True)
    object_key: Mapped[str] = mapped_column(Text, nullable=False)
    mime_type: Mapped[str | None] = mapped_column(String(255), nullable=True)
    size_bytes: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)


class HrMeetingDocument(Base):
    __tablename__ = "hr_meeting_documents"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    meeting_id: Mapped[uuid.UUID] = mapped_column(SAUuid(as_uuid=True), nullable=False, index=True)
    name: Mapped[str | None] = mapped_column(String(512), nullable=True)
    object_key: Mapped[str] = mapped_column(Text, nullable=False)
    mime_type: Mapped[str | None] = mapped_column(String(255), nullable=True)
    size_bytes: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)


class HrSettings(Base):
    __tablename__ = "hr_settings"

    # Single-row table keyed by `true`.
    id: Mapped[bool] = mapped_column(Boolean, primary_key=True, default=True)
    admin_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    reminders_enabled: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    reminders_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    reminders_tz: Mapped[str | None] = mapped_column(String(64), nullable=True)
    reminders_last_ran_at: Mapped[datetime | None] = mapped_column(nullable=True)


class HrEmployeeEventReminder(Base):
    __tablename__ = "hr_employee_event_reminders"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("hr_employees.id"), nullable=False, index=True
    )
    event_type_name: Mapped[str] = mapped_column(String(128), nullable=False)
    event_date: Mapped[date] = mapped_column(Date, nullable=False)
    days_before: Mapped[int] = mapped_column(nullable=False, default=0)
    sent_at: Mapped[datetime | None] = mapped_column(nullable=True)

    @property
    def due_date(self) -> date:
        return self.event_date - timedelta(days=self.days_before)


# --- Module Notes -----------------------------------------------------------
# Only the columns the handlers use are mapped; the real tables carry more.
