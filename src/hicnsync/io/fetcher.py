"""Conditional download of the icon archive with bounded retries and redirects."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urljoin

import requests

from hicnsync.config.models import HicnSyncConfig
from hicnsync.errors import FetchError, MetadataError
from hicnsync.io.headers import IF_MODIFIED_SINCE, application_headers, if_modified_since_value
from hicnsync.io.metadata import read_icon_metadata
from hicnsync.util.paths import mirror_root_from_config
from hicnsync.util.typing import DownloadSink, HttpSession

LOGGER = logging.getLogger(__name__)

HTTP_STATUS_OK = 200
HTTP_STATUS_FOUND = 302
HTTP_STATUS_NOT_MODIFIED = 304

# Pseudo status recorded when no HTTP response was obtained.
TRANSPORT_FAILURE = 0


@dataclass(frozen=True)
class Fetched:
    """A complete archive was written to ``path``."""

    path: Path


@dataclass(frozen=True)
class NotModified:
    """The server reported that the data has not changed."""


@dataclass(frozen=True)
class Failed:
    """The download chain ended without data."""

    error: FetchError


FetchOutcome = Union[Fetched, NotModified, Failed]


@dataclass(frozen=True)
class DownloadAttemptState:
    """Position of a single fetch within its redirect and failure bounds."""

    current_url: str
    if_modified_since: Optional[str] = None
    redirect_count: int = 0
    failure_count: int = 0

    def redirected(self, location: str) -> "DownloadAttemptState":
        """Follow ``location``; the failure count starts over for the new URL."""
        return replace(
            self,
            current_url=location,
            redirect_count=self.redirect_count + 1,
            failure_count=0,
        )

    def failed(self) -> "DownloadAttemptState":
        """Retry the same URL once more."""
        return replace(self, failure_count=self.failure_count + 1)


def is_transient(status_code: int) -> bool:
    """Transport failures and 5xx responses are worth retrying."""
    return status_code == TRANSPORT_FAILURE or 500 <= status_code <= 599


class IconArchiveFetcher:
    """Download the icon archive into ``sink`` honouring ``If-Modified-Since``.

    Each call to :meth:`fetch` runs an iterative attempt loop. A 302 moves on
    to the ``Location`` URL, a transport failure or 5xx retries the current
    URL, and any other status ends the chain. Exceeding ``max_redirects`` or
    ``max_failures`` yields :class:`Failed` without issuing another request.
    """

    def __init__(
        self,
        sink: DownloadSink,
        *,
        mirror_root: Path,
        session: HttpSession | None = None,
        headers: Mapping[str, str] | None = None,
        timeout_seconds: float = 30.0,
        max_redirects: int = 3,
        max_failures: int = 2,
        backoff_seconds: float = 0.0,
        chunk_size: int = 8192,
    ) -> None:
        self.sink = sink
        self.mirror_root = mirror_root
        self.session = session if session is not None else requests.Session()
        self.headers = dict(headers or {})
        self.timeout_seconds = timeout_seconds
        self.max_redirects = max_redirects
        self.max_failures = max_failures
        self.backoff_seconds = backoff_seconds
        self.chunk_size = chunk_size

    @classmethod
    def from_config(
        cls,
        config: HicnSyncConfig,
        sink: DownloadSink,
        *,
        session: HttpSession | None = None,
    ) -> "IconArchiveFetcher":
        policy = config.download
        return cls(
            sink,
            mirror_root=mirror_root_from_config(config.runtime.mirror_root),
            session=session,
            headers=application_headers(config.server),
            timeout_seconds=policy.timeout_seconds,
            max_redirects=policy.max_redirects,
            max_failures=policy.max_failures,
            backoff_seconds=policy.backoff_seconds,
            chunk_size=policy.chunk_size,
        )

    def fetch(self, target_url: str) -> FetchOutcome:
        """Run the attempt loop against ``target_url`` and classify the result."""

        state = DownloadAttemptState(
            current_url=target_url,
            if_modified_since=self.if_modified_since_header(),
        )

        while True:
            if state.redirect_count > self.max_redirects:
                LOGGER.warning("exceeded %d redirects --> failure", self.max_redirects)
                return self._fail(
                    FetchError(f"Exceeded {self.max_redirects} redirects", url=state.current_url)
                )

            if state.failure_count > self.max_failures:
                LOGGER.warning("exceeded %d failures for %s", self.max_failures, state.current_url)
                return self._fail(
                    FetchError(
                        f"Exceeded {self.max_failures} retries fetching {state.current_url}",
                        url=state.current_url,
                    )
                )

            try:
                status_code, location = self._attempt(state)
            except OSError as exc:
                error = FetchError(
                    f"Unable to store download in {self.sink.path}: {exc}", url=state.current_url
                )
                error.__cause__ = exc
                return self._fail(error)

            if status_code == HTTP_STATUS_OK:
                self.sink.close()
                LOGGER.info("did complete streaming data (%d bytes)", self.sink.progress())
                return Fetched(self.sink.path)

            if status_code == HTTP_STATUS_NOT_MODIFIED:
                LOGGER.info("remote data has not changed since [%s]", state.if_modified_since)
                self.sink.discard()
                return NotModified()

            if status_code == HTTP_STATUS_FOUND:
                if location:
                    target = urljoin(state.current_url, location)
                    LOGGER.info("will redirect to; %s", target)
                    state = state.redirected(target)
                    continue
                LOGGER.warning("unable to find 'Location' header for redirect")
                return self._fail(
                    FetchError(
                        "Redirect without a 'Location' header",
                        url=state.current_url,
                        status_code=status_code,
                    )
                )

            if is_transient(status_code):
                LOGGER.warning("error response from server; %d --> retry...", status_code)
                state = state.failed()
                self._backoff(state.failure_count)
                continue

            LOGGER.warning("unexpected response from server; %d", status_code)
            return self._fail(
                FetchError(
                    f"Unexpected HTTP status {status_code} from {state.current_url}",
                    url=state.current_url,
                    status_code=status_code,
                )
            )

    def if_modified_since_header(self) -> Optional[str]:
        """Derive the conditional header value from the mirror's metadata."""

        try:
            metadata = read_icon_metadata(self.mirror_root)
        except MetadataError as exc:
            LOGGER.warning("ignoring icon metadata; %s", exc)
            return None

        if metadata is None:
            LOGGER.info("no icon metadata in %s; fetching unconditionally", self.mirror_root)
            return None

        try:
            return if_modified_since_value(metadata.data_modified_at)
        except ValueError as exc:
            LOGGER.warning("ignoring icon metadata; %s", exc)
            return None

    def _attempt(self, state: DownloadAttemptState) -> tuple[int, Optional[str]]:
        """Issue one GET and stream a 200 body into the sink.

        Returns the status code (``TRANSPORT_FAILURE`` when the request or the
        body transfer broke down) and the ``Location`` header, if any.
        """

        url = state.current_url
        headers = dict(self.headers)
        if state.if_modified_since:
            headers[IF_MODIFIED_SINCE] = state.if_modified_since

        self.sink.reset()
        LOGGER.info("will stream '%s' to [%s]", url, self.sink.path)

        try:
            response = self.session.get(
                url,
                headers=headers,
                timeout=self.timeout_seconds,
                stream=True,
                allow_redirects=False,
            )
        except requests.RequestException as exc:
            LOGGER.warning("request to %s failed; %s", url, exc)
            return TRANSPORT_FAILURE, None

        try:
            status_code = response.status_code
            if status_code == HTTP_STATUS_OK:
                for chunk in response.iter_content(chunk_size=self.chunk_size):
                    if chunk:
                        self.sink.write(chunk)
            return status_code, response.headers.get("Location")
        except requests.RequestException as exc:
            LOGGER.warning(
                "transfer from %s interrupted after %d bytes; %s", url, self.sink.progress(), exc
            )
            return TRANSPORT_FAILURE, None
        finally:
            response.close()

    def _backoff(self, failure_count: int) -> None:
        if not self.backoff_seconds or failure_count > self.max_failures:
            return
        delay = self.backoff_seconds * (2 ** (failure_count - 1))
        time.sleep(delay)

    def _fail(self, error: FetchError) -> Failed:
        self.sink.discard()
        return Failed(error)


__all__ = [
    "DownloadAttemptState",
    "Failed",
    "FetchOutcome",
    "Fetched",
    "IconArchiveFetcher",
    "NotModified",
    "is_transient",
]
