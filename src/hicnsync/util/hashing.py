"""Digest helpers for downloaded archives."""

from __future__ import annotations

import hashlib
from pathlib import Path


def sha256sum(path: Path) -> str:
    """Return the SHA-256 hex digest of the file at ``path``."""
    with path.open("rb") as handle:
        return hashlib.file_digest(handle, "sha256").hexdigest()


__all__ = ["sha256sum"]
