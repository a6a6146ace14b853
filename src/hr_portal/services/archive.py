"""
hr_portal.services.archive

Zip archive streaming.

Responsibilities:
- Fetch each remote file (usually a presigned GET URL) and append it to a zip.
- Yield archive bytes as they are produced so the response streams.
- Replace files that cannot be fetched with a small `.error.txt` marker entry
  instead of failing the whole archive.
"""

from __future__ import annotations

import zipfile
from collections.abc import AsyncIterator, Iterable
from dataclasses import dataclass

import httpx

from hr_portal.observability.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    url: str
    path: str


class _ChunkSink:
    """
    Write-only, unseekable file object collecting whatever zipfile writes.
    zipfile switches to data-descriptor mode for unseekable outputs.
    """

    def __init__(self) -> None:
        self._chunks: list[bytes] = []

    def write(self, data: bytes) -> int:
        self._chunks.append(bytes(data))
        return len(data)

    def flush(self) -> None:
        pass

    def drain(self) -> bytes:
        data = b"".join(self._chunks)
        self._chunks.clear()
        return data


def error_marker(status: int | str, url: str) -> str:
    return f"Failed to fetch ({status})\n{url}\n"


def _host_allowed(url: str, allowed_hosts: frozenset[str]) -> bool:
    if not allowed_hosts:
        return True
    try:
        return httpx.URL(url).host in allowed_hosts
    except httpx.InvalidURL:
        return False


async def stream_zip(
    entries: Iterable[ArchiveEntry],
    *,
    http: httpx.AsyncClient,
    allowed_hosts: Iterable[str] = (),
) -> AsyncIterator[bytes]:
    allowed = frozenset(allowed_hosts)
    sink = _ChunkSink()
    added = failed = 0

    with zipfile.ZipFile(sink, mode="w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as zf:  # type: ignore[arg-type]
        for entry in entries:
            path = (entry.path or "").lstrip("/")
            if not entry.url or not path:
                continue

            if not _host_allowed(entry.url, allowed):
                zf.writestr(f"{path}.error.txt", error_marker("host not allowed", entry.url))
                failed += 1
                yield sink.drain()
                continue

            try:
                async with http.stream("GET", entry.url) as response:
                    if response.is_error:
                        zf.writestr(f"{path}.error.txt", error_marker(response.status_code, entry.url))
                        failed += 1
                    else:
                        with zf.open(path, mode="w", force_zip64=True) as dest:
                            async for chunk in response.aiter_bytes():
                                dest.write(chunk)
                                data = sink.drain()
                                if data:
                                    yield data
                        added += 1
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                log.warning("archive_fetch_failed", archive_path=path, error=str(e))
                zf.writestr(f"{path}.error.txt", error_marker("error", entry.url))
                failed += 1

            data = sink.drain()
            if data:
                yield data

    # Closing the ZipFile writes the central directory.
    log.info("archive_streamed", files_added=added, files_failed=failed)
    yield sink.drain()


# --- Module Notes -----------------------------------------------------------
# Entries are fetched one at a time; memory use is bounded by a single chunk
# plus the deflate window, regardless of archive size.
