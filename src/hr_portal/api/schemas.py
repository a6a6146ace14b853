"""
hr_portal.api.schemas

Request bodies shared by the routers.

Every field is optional and numbers are accepted where strings are expected;
handlers answer a missing field with their own 400 message.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelBody(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )


class SnakeBody(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)


class PresignFolderUploadRequest(CamelBody):
    folder_id: str | None = None
    filename: str | None = None
    content_type: str | None = None
    size_bytes: int | None = Field(default=None, ge=0)


class PresignEmployeeDocRequest(CamelBody):
    employee_id: str | None = None
    filename: str | None = None
    content_type: str | None = None
    size_bytes: int | None = Field(default=None, ge=0)


class PresignMeetingDocRequest(CamelBody):
    meeting_id: str | None = None
    filename: str | None = None
    content_type: str | None = None
    size_bytes: int | None = Field(default=None, ge=0)


class DownloadBody(CamelBody):
    mode: str | None = None

    @property
    def disposition(self) -> Literal["inline", "attachment"]:
        return "inline" if self.mode == "inline" else "attachment"


class FileDownloadRequest(DownloadBody):
    file_id: str | None = None


class DocumentRequest(DownloadBody):
    document_id: str | None = None


class ZipSource(BaseModel):
    url: str | None = None
    path: str | None = None


class ZipRequest(CamelBody):
    zip_name: str | None = None
    files: list[ZipSource] = Field(default_factory=list)


class CreateSupervisorRequest(SnakeBody):
    supervisor_email: str | None = None
    supervisor_full_name: str | None = None


class CreateTeacherRequest(SnakeBody):
    teacher_username: str | None = None
    teacher_full_name: str | None = None


class DeleteSupervisorRequest(SnakeBody):
    supervisor_id: str | None = None


class DeleteTeacherRequest(SnakeBody):
    teacher_id: str | None = None


class TargetUserRequest(SnakeBody):
    target_user_id: str | None = None


class SetUserActiveRequest(TargetUserRequest):
    is_active: bool = False


class LoginRequest(SnakeBody):
    identifier: str | None = None
    password: str | None = None


class SetupRequest(SnakeBody):
    # `email` is accepted for older clients.
    identifier: str | None = None
    email: str | None = None
    password: str | None = None

    @property
    def ident(self) -> str:
        return (self.identifier or self.email or "").strip()
