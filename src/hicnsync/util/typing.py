"""Shared typing helpers for hicnsync modules."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class HttpSession(Protocol):
    """Transport able to issue a GET; ``requests.Session`` satisfies it."""

    def get(self, url: str, **kwargs: Any) -> Any:
        """Issue a GET request (``headers``, ``timeout``, ``stream``, ``allow_redirects``)."""
        ...


@runtime_checkable
class DownloadSink(Protocol):
    """Destination a response body is streamed into."""

    path: Path

    def reset(self) -> None:
        """Drop anything written by an earlier attempt."""
        ...

    def write(self, chunk: bytes) -> None:
        """Append ``chunk``."""
        ...

    def progress(self) -> int:
        """Return the number of bytes written since the last reset."""
        ...

    def close(self) -> None:
        """Flush and release the destination, keeping its content."""
        ...

    def discard(self) -> None:
        """Release the destination and delete its content."""
        ...


__all__ = ["DownloadSink", "HttpSession"]
