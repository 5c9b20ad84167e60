"""Top-level refresh of the local icon mirror."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from hicnsync.config.models import HicnSyncConfig
from hicnsync.io.fetcher import Failed, IconArchiveFetcher, NotModified
from hicnsync.io.replace import remove_temporary_file, replace_mirror
from hicnsync.io.sink import FileSink
from hicnsync.util.hashing import sha256sum
from hicnsync.util.paths import mirror_root_from_config, temporary_archive_path
from hicnsync.util.typing import HttpSession

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefreshResult:
    """Outcome of a successful refresh; ``updated`` is False when the server had nothing new."""

    updated: bool
    archive_sha256: Optional[str] = None
    status: str = "ok"


class IconMirrorRefresher:
    """Fetch the icon archive and, when it changed, replace the local mirror.

    Callers must not run two refreshers against the same mirror at once.
    """

    def __init__(
        self,
        config: HicnSyncConfig,
        *,
        session: HttpSession | None = None,
        temp_dir: Path | None = None,
    ) -> None:
        self.config = config
        self.session = session
        self.temp_dir = temp_dir

    @property
    def mirror_root(self) -> Path:
        return mirror_root_from_config(self.config.runtime.mirror_root)

    def run(self) -> RefreshResult:
        """Refresh the mirror, raising the classified error when the fetch or unpack fails."""

        archive_path = temporary_archive_path(directory=self.temp_dir)
        sink = FileSink(archive_path, trace=self.config.server.trace_logging)
        fetcher = IconArchiveFetcher.from_config(self.config, sink, session=self.session)

        LOGGER.info("will start fetching icons from %s", self.config.export_url)
        try:
            outcome = fetcher.fetch(self.config.export_url)

            if isinstance(outcome, Failed):
                raise outcome.error

            if isinstance(outcome, NotModified):
                LOGGER.info("icon mirror at %s is up to date", self.mirror_root)
                return RefreshResult(updated=False)

            digest = sha256sum(outcome.path)
            LOGGER.info("downloaded icon archive sha256=%s", digest)
            replace_mirror(outcome.path, self.mirror_root)
            return RefreshResult(updated=True, archive_sha256=digest)
        finally:
            remove_temporary_file(archive_path)
            LOGGER.info("did complete fetching icons")


__all__ = ["IconMirrorRefresher", "RefreshResult"]
