"""File-backed download sink."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, Optional

LOGGER = logging.getLogger(__name__)


class FileSink:
    """Stream response bytes into ``path``, truncating it on every reset.

    With ``trace`` enabled every chunk is logged at DEBUG level together with
    the running byte count.
    """

    def __init__(self, path: Path, *, name: str = "icon-export", trace: bool = False) -> None:
        self.path = path
        self.name = name
        self.trace = trace
        self._handle: Optional[BinaryIO] = None
        self._written = 0

    def reset(self) -> None:
        self._close_handle()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._handle = self.path.open("wb")
        self._written = 0

    def write(self, chunk: bytes) -> None:
        if self._handle is None:
            raise RuntimeError(f"sink {self.name!r} written before reset()")
        self._handle.write(chunk)
        self._written += len(chunk)
        if self.trace:
            LOGGER.debug("[%s] received %d bytes (%d total)", self.name, len(chunk), self._written)

    def progress(self) -> int:
        return self._written

    def close(self) -> None:
        self._close_handle()

    def discard(self) -> None:
        self._close_handle()
        self.path.unlink(missing_ok=True)
        self._written = 0

    def _close_handle(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None


__all__ = ["FileSink"]
