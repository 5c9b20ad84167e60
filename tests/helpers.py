from __future__ import annotations

import io
import json
import tarfile
from pathlib import Path
from typing import Any, Iterable, Mapping

import requests
from requests.structures import CaseInsensitiveDict

from hicnsync.config import HicnSyncConfig, load_config

BASE_URL = "http://depot.test"
EXPORT_URL = f"{BASE_URL}/__pkgicon/all.tar.gz"

# 2014-10-24T19:32:27Z
MODIFIED_MILLIS = 1414179147000
MODIFIED_HEADER = "Fri, 24 Oct 2014 19:32:27 +0000"


def metadata_document(*, created: Any = 1414000000000, modified: Any = MODIFIED_MILLIS) -> bytes:
    return json.dumps({"createTimestamp": created, "dataModifiedTimestamp": modified}).encode("utf-8")


SAMPLE_FILES: dict[str, bytes] = {
    "hicn/info.json": metadata_document(),
    "hicn/haikuports/icon.hvif": b"ncif\x01\x02\x03",
    "hicn/webpositive/16.png": b"\x89PNG fake",
}


def make_icon_archive(files: Mapping[str, bytes] = SAMPLE_FILES) -> bytes:
    """Build an in-memory ``.tar.gz`` holding ``files``."""

    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for name, data in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


def write_metadata(mirror_root: Path, payload: bytes | str) -> Path:
    """Write ``hicn/info.json`` below ``mirror_root``."""

    path = mirror_root / "hicn" / "info.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(payload, str):
        path.write_text(payload, encoding="utf-8")
    else:
        path.write_bytes(payload)
    return path


def snapshot_tree(root: Path) -> dict[str, bytes]:
    """Map every file below ``root`` to its bytes, keyed by posix relative path."""

    return {
        path.relative_to(root).as_posix(): path.read_bytes()
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


class MemorySink:
    """In-memory ``DownloadSink`` recording how the fetcher drove it."""

    def __init__(self, name: str = "memory") -> None:
        self.path = Path(f"<{name}>")
        self.buffer = bytearray()
        self.resets = 0
        self.closed = False
        self.discarded = False

    def reset(self) -> None:
        self.buffer.clear()
        self.resets += 1
        self.closed = False

    def write(self, chunk: bytes) -> None:
        self.buffer.extend(chunk)

    def progress(self) -> int:
        return len(self.buffer)

    def close(self) -> None:
        self.closed = True

    def discard(self) -> None:
        self.buffer.clear()
        self.discarded = True

    @property
    def data(self) -> bytes:
        return bytes(self.buffer)


class DummyResponse:
    def __init__(
        self,
        status_code: int = 200,
        content: bytes = b"",
        *,
        headers: Mapping[str, str] | None = None,
        break_after: int | None = None,
    ) -> None:
        self.status_code = status_code
        self.content = content
        self.headers = CaseInsensitiveDict(headers or {})
        self.break_after = break_after
        self.closed = False

    def iter_content(self, chunk_size: int = 8192):
        sent = 0
        for idx in range(0, len(self.content), chunk_size):
            if self.break_after is not None and sent >= self.break_after:
                raise requests.exceptions.ChunkedEncodingError("connection broken")
            chunk = self.content[idx : idx + chunk_size]
            sent += len(chunk)
            yield chunk

    def close(self) -> None:
        self.closed = True


def redirect(location: str | None) -> DummyResponse:
    headers = {"Location": location} if location is not None else {}
    return DummyResponse(302, headers=headers)


class ScriptedSession:
    """Stand-in for ``requests.Session`` replaying a fixed list of responses or errors."""

    def __init__(self, script: Iterable[DummyResponse | Exception]) -> None:
        self.script = list(script)
        self.calls: list[dict[str, Any]] = []

    def get(self, url: str, **kwargs: Any) -> DummyResponse:
        self.calls.append({"url": url, **kwargs})
        if not self.script:
            raise AssertionError(f"unexpected request #{len(self.calls)} to {url}")
        step = self.script.pop(0)
        if isinstance(step, Exception):
            raise step
        return step

    @property
    def urls(self) -> list[str]:
        return [call["url"] for call in self.calls]


def make_config(mirror_root: Path, **overrides: Any) -> HicnSyncConfig:
    """Load the packaged defaults pointed at ``mirror_root`` and the test server."""

    merged: dict[str, Any] = {
        "runtime.mirror_root": str(mirror_root),
        "server.base_url": BASE_URL,
    }
    merged.update(overrides)
    return load_config(overrides=merged)
