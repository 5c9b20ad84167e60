"""Pydantic models describing hicnsync configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ServerConfig(BaseModel):
    """Remote server settings shared by every request."""

    model_config = ConfigDict(extra="allow")

    base_url: str = "https://depot.haiku-os.org"
    user_agent: str = "hicnsync/0.1.0"
    headers: Dict[str, str] = Field(default_factory=dict)
    trace_logging: bool = False

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError("base_url must be an http:// or https:// URL.")
        return value.rstrip("/")

    def create_full_url(self, path: str) -> str:
        """Join ``path`` onto the configured base URL."""

        return f"{self.base_url}/{path.lstrip('/')}"


class DownloadPolicyConfig(BaseModel):
    """Bounds and timeouts for the icon archive download."""

    model_config = ConfigDict(extra="allow")

    export_path: str = "/__pkgicon/all.tar.gz"
    timeout_seconds: float = Field(default=30.0, gt=0)
    max_redirects: int = Field(default=3, ge=0)
    max_failures: int = Field(default=2, ge=0)
    backoff_seconds: float = Field(default=0.0, ge=0)
    chunk_size: int = Field(default=8192, ge=1)


class RuntimeConfig(BaseModel):
    """Execution-time configuration such as the mirror location."""

    model_config = ConfigDict(extra="allow")

    mirror_root: Path = Path("./data/icons")
    log_path: Optional[Path] = None


class HicnSyncConfig(BaseModel):
    """Root configuration object for the icon mirror refresher."""

    model_config = ConfigDict(extra="allow")

    server: ServerConfig = Field(default_factory=ServerConfig)
    download: DownloadPolicyConfig = Field(default_factory=DownloadPolicyConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)

    @property
    def export_url(self) -> str:
        """Absolute URL of the icon archive export."""

        return self.server.create_full_url(self.download.export_path)


__all__ = [
    "DownloadPolicyConfig",
    "HicnSyncConfig",
    "RuntimeConfig",
    "ServerConfig",
]
