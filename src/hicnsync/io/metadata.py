"""Sidecar metadata describing the mirrored icon data."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from hicnsync.errors import MetadataError

METADATA_RELATIVE_PATH = Path("hicn") / "info.json"

# Largest integer a JSON double carries without loss.
MAX_SAFE_TIMESTAMP_MILLIS = 2**53 - 1


class IconMetadata(BaseModel):
    """Creation and modification timestamps (epoch milliseconds) of the icon data."""

    model_config = ConfigDict(frozen=True)

    created_at: int = Field(alias="createTimestamp", ge=0)
    data_modified_at: int = Field(alias="dataModifiedTimestamp", ge=0)

    @field_validator("created_at", "data_modified_at", mode="before")
    @classmethod
    def _coerce_millis(cls, value: object) -> int:
        """Accept integral doubles and reject anything that would lose precision."""

        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"timestamp must be a number, got {type(value).__name__}")
        if isinstance(value, float):
            if not value.is_integer():
                raise ValueError(f"timestamp {value!r} is not a whole number of milliseconds")
            value = int(value)
        if value > MAX_SAFE_TIMESTAMP_MILLIS:
            raise ValueError(f"timestamp {value} exceeds the safe integer range of a JSON number")
        return value


def metadata_path_for(mirror_root: Path) -> Path:
    """Return the location of ``info.json`` inside ``mirror_root``."""
    return mirror_root / METADATA_RELATIVE_PATH


def read_icon_metadata(mirror_root: Path) -> IconMetadata | None:
    """Load the mirror's metadata, returning ``None`` when no metadata file exists.

    A file that is present but unreadable or malformed raises ``MetadataError``.
    """
    path = metadata_path_for(mirror_root)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as exc:
        raise MetadataError(f"Unable to read icon metadata at {path}: {exc}") from exc

    return parse_icon_metadata(text, source=path)


def parse_icon_metadata(text: str, *, source: Path | str = "<string>") -> IconMetadata:
    """Parse the JSON document of an ``info.json`` file."""
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MetadataError(f"Icon metadata at {source} is not valid JSON: {exc}") from exc

    if not isinstance(payload, dict):
        raise MetadataError(f"Expected a JSON object in {source}, got {type(payload).__name__}.")

    try:
        return IconMetadata.model_validate(payload)
    except ValidationError as exc:
        raise MetadataError(f"Invalid icon metadata in {source}: {exc}") from exc


__all__ = [
    "IconMetadata",
    "METADATA_RELATIVE_PATH",
    "metadata_path_for",
    "parse_icon_metadata",
    "read_icon_metadata",
]
