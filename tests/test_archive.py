"""
tests.test_archive

Streaming zip downloads, including per-file failure markers.
"""

from __future__ import annotations

import io
import zipfile

import httpx
import pytest

from hr_portal.services.archive import ArchiveEntry, error_marker, stream_zip
from tests.fakes import RemoteFiles, make_profile


async def _collect(chunks) -> bytes:
    return b"".join([chunk async for chunk in chunks])


@pytest.mark.asyncio
async def test_zip_requires_session(client: httpx.AsyncClient) -> None:
    r = await client.post("/api/zip", json={"files": [{"url": "https://files.test/a", "path": "a"}]})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_zip_rejects_empty_request(client: httpx.AsyncClient, seed, auth_headers) -> None:
    teacher = make_profile("teacher", username="t.zip")
    await seed(teacher)

    r = await client.post("/api/zip", json={"zipName": "x", "files": []}, headers=auth_headers(teacher.id))
    assert r.status_code == 400
    assert r.json() == {"error": "No files provided"}

    r = await client.post("/api/zip", headers=auth_headers(teacher.id))
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_zip_streams_files_and_failure_markers(
    client: httpx.AsyncClient, seed, auth_headers, remote_files: RemoteFiles
) -> None:
    employee = make_profile("employee", email="e@school.test")
    await seed(employee)
    remote_files.files["https://files.test/a.txt"] = b"hello " * 1000
    remote_files.files["https://files.test/b.pdf"] = 403

    r = await client.post(
        "/api/zip",
        json={
            "zipName": "Term 1/Week:2",
            "files": [
                {"url": "https://files.test/a.txt", "path": "/docs/a.txt"},
                {"url": "https://files.test/b.pdf", "path": "docs/b.pdf"},
                {"url": "https://unreachable.test/c.txt", "path": "c.txt"},
                {"url": "", "path": "skipped.txt"},
            ],
        },
        headers=auth_headers(employee.id),
    )
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/zip"
    assert r.headers["content-disposition"] == 'attachment; filename="Term 1_Week_2.zip"'
    assert r.headers["cache-control"] == "no-store"

    with zipfile.ZipFile(io.BytesIO(r.content)) as zf:
        assert zf.namelist() == ["docs/a.txt", "docs/b.pdf.error.txt", "c.txt.error.txt"]
        assert zf.read("docs/a.txt") == b"hello " * 1000
        assert zf.getinfo("docs/a.txt").compress_type == zipfile.ZIP_DEFLATED
        assert zf.read("docs/b.pdf.error.txt").decode() == error_marker(403, "https://files.test/b.pdf")
        assert zf.read("c.txt.error.txt").decode() == "Failed to fetch (error)\nhttps://unreachable.test/c.txt\n"
        assert zf.testzip() is None


@pytest.mark.asyncio
async def test_default_archive_name(client: httpx.AsyncClient, seed, auth_headers, remote_files) -> None:
    teacher = make_profile("teacher", username="t.name")
    await seed(teacher)
    remote_files.files["https://files.test/a.txt"] = b"a"

    r = await client.post(
        "/api/zip",
        json={"files": [{"url": "https://files.test/a.txt", "path": "a.txt"}]},
        headers=auth_headers(teacher.id),
    )
    assert r.headers["content-disposition"] == 'attachment; filename="folder.zip"'


@pytest.mark.asyncio
async def test_stream_zip_respects_host_allowlist() -> None:
    files = RemoteFiles()
    files.files["https://files.test/ok.txt"] = b"ok"
    files.files["https://elsewhere.test/secret.txt"] = b"secret"

    async with httpx.AsyncClient(transport=httpx.MockTransport(files.handle)) as http:
        data = await _collect(
            stream_zip(
                [
                    ArchiveEntry(url="https://files.test/ok.txt", path="ok.txt"),
                    ArchiveEntry(url="https://elsewhere.test/secret.txt", path="secret.txt"),
                ],
                http=http,
                allowed_hosts=["files.test"],
            )
        )

    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        assert zf.read("ok.txt") == b"ok"
        assert zf.read("secret.txt.error.txt").decode().startswith("Failed to fetch (host not allowed)")
        assert "secret.txt" not in zf.namelist()


@pytest.mark.asyncio
async def test_stream_zip_yields_before_the_end() -> None:
    files = RemoteFiles()
    for i in range(3):
        files.files[f"https://files.test/{i}.bin"] = bytes(range(256)) * 64

    async with httpx.AsyncClient(transport=httpx.MockTransport(files.handle)) as http:
        chunks = [
            chunk
            async for chunk in stream_zip(
                [ArchiveEntry(url=f"https://files.test/{i}.bin", path=f"{i}.bin") for i in range(3)],
                http=http,
            )
        ]

    assert len([c for c in chunks if c]) > 1
    with zipfile.ZipFile(io.BytesIO(b"".join(chunks))) as zf:
        assert len(zf.namelist()) == 3
        # zip64 headers, so entries past 4 GiB stay readable
        assert all(info.extract_version >= 45 for info in zf.infolist())
