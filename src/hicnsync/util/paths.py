"""Path utilities for the mirror and its transient files."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


def mirror_root_from_config(mirror_root: str | Path) -> Path:
    """Return the resolved mirror directory."""
    return Path(mirror_root).expanduser().resolve()


def temporary_archive_path(*, directory: Path | None = None) -> Path:
    """Reserve a fresh ``.tar.gz`` path for the download."""
    handle, name = tempfile.mkstemp(prefix="hicn-", suffix=".tar.gz", dir=directory)
    os.close(handle)
    return Path(name)


__all__ = ["mirror_root_from_config", "temporary_archive_path"]
