"""Error types raised while refreshing the icon mirror."""

from __future__ import annotations


class HicnSyncError(Exception):
    """Base class for failures surfaced by a refresh run."""


class FetchError(HicnSyncError, OSError):
    """Raised when the icon archive could not be downloaded.

    Covers transport failures once the failure bound is spent, redirect
    protocol violations and unexpected HTTP statuses.
    """

    def __init__(self, message: str, *, url: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class MetadataError(HicnSyncError, ValueError):
    """Raised when ``hicn/info.json`` exists but cannot be interpreted."""


class ArchiveError(HicnSyncError):
    """Raised when the downloaded archive cannot be decompressed or unpacked."""


__all__ = ["ArchiveError", "FetchError", "HicnSyncError", "MetadataError"]
