"""Request header helpers: application headers and conditional GET values."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from email.utils import format_datetime

from hicnsync.config.models import ServerConfig
from hicnsync.io.metadata import IconMetadata

IF_MODIFIED_SINCE = "If-Modified-Since"

DEFAULT_HEADERS: Mapping[str, str] = {
    "Accept": "application/x-gzip, application/octet-stream;q=0.9, */*;q=0.1",
    "Connection": "keep-alive",
}


def if_modified_since_value(timestamp_millis: int) -> str:
    """Format epoch milliseconds as an RFC 2822 date in UTC.

    Sub-second precision is dropped, e.g. ``1414179147123`` becomes
    ``'Fri, 24 Oct 2014 19:32:27 +0000'``.
    """
    if timestamp_millis < 0:
        raise ValueError(f"timestamp must not be negative, got {timestamp_millis}")
    try:
        moment = datetime.fromtimestamp(timestamp_millis // 1000, tz=UTC)
    except (OverflowError, OSError) as exc:
        raise ValueError(f"timestamp {timestamp_millis} is outside the supported date range") from exc
    return format_datetime(moment)


def conditional_headers(metadata: IconMetadata | None) -> dict[str, str]:
    """Return the ``If-Modified-Since`` header for ``metadata``, if any."""
    if metadata is None:
        return {}
    return {IF_MODIFIED_SINCE: if_modified_since_value(metadata.data_modified_at)}


def application_headers(server: ServerConfig) -> dict[str, str]:
    """Headers sent with every request to the icon server."""
    merged = dict(DEFAULT_HEADERS)
    merged["User-Agent"] = server.user_agent
    merged.update(server.headers)
    return merged


__all__ = [
    "DEFAULT_HEADERS",
    "IF_MODIFIED_SINCE",
    "application_headers",
    "conditional_headers",
    "if_modified_since_value",
]
