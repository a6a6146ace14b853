"""
hr_portal.services.object_keys

Object key naming for uploads.

Every upload gets a fresh UUID prefix, so two uploads of the same file never
collide and keys never need to be checked for existence. Each key family keeps
its own filename rule; existing objects were written with these exact rules.
"""

from __future__ import annotations

import re
import uuid

# Folder files: each character outside ASCII word chars, `.-()+` and whitespace.
_FOLDER_UNSAFE = re.compile(r"[^A-Za-z0-9_.\-()+\s]")
# Employee documents: runs outside `[A-Za-z0-9._-]`.
_EMPLOYEE_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")
# Meeting documents and archive names: runs of path-ish characters only.
_PATHISH = re.compile(r'[\\/:*?"<>|]+')

FOLDER_FILENAME_MAX = 180
EMPLOYEE_FILENAME_MAX = 140
MEETING_FILENAME_MAX = 180


def folder_filename(name: str | None) -> str:
    return _FOLDER_UNSAFE.sub("_", name or "")[:FOLDER_FILENAME_MAX] or "file"


def employee_filename(name: str | None) -> str:
    return _EMPLOYEE_UNSAFE.sub("_", name or "file")[:EMPLOYEE_FILENAME_MAX] or "file"


def meeting_filename(name: str | None) -> str:
    base = (name or "file").strip()
    return _PATHISH.sub("_", base)[:MEETING_FILENAME_MAX] or "file"


def safe_archive_name(name: str | None) -> str:
    cleaned = _PATHISH.sub("_", (name or "").strip())
    return cleaned or "folder"


def _key(prefix: str, owner_id: str, clean_name: str) -> str:
    return f"{prefix}/{owner_id}/{uuid.uuid4()}-{clean_name}"


def folder_file_key(folder_id: str, filename: str) -> str:
    return _key("folders", folder_id, folder_filename(filename))


def employee_document_key(employee_id: str, filename: str) -> str:
    return _key("hr/employees", employee_id, employee_filename(filename))


def meeting_document_key(meeting_id: str, filename: str) -> str:
    return _key("meetings", meeting_id, meeting_filename(filename))
