"""Replace the local icon mirror with the contents of a downloaded archive."""

from __future__ import annotations

import logging
import shutil
import tarfile
import tempfile
import uuid
import zlib
from pathlib import Path

from hicnsync.errors import ArchiveError

LOGGER = logging.getLogger(__name__)


def replace_mirror(archive_path: Path, mirror_root: Path) -> Path:
    """Swap ``mirror_root`` for the unpacked contents of ``archive_path``.

    The archive is unpacked into a staging directory beside the mirror first,
    so a corrupt archive leaves the existing mirror untouched. Only once the
    unpack succeeded is the old tree moved aside and the staging directory
    renamed into its place. The temporary archive is removed afterwards on a
    best-effort basis.
    """

    mirror_root.parent.mkdir(parents=True, exist_ok=True)
    staging = Path(tempfile.mkdtemp(prefix=f".{mirror_root.name}.staging-", dir=mirror_root.parent))
    # mkdtemp creates 0700 directories.
    staging.chmod(0o755)

    try:
        unpack_archive(archive_path, staging)
    except Exception:
        shutil.rmtree(staging, ignore_errors=True)
        raise

    _swap_into_place(staging, mirror_root)
    remove_temporary_file(archive_path)
    return mirror_root


def unpack_archive(archive_path: Path, dest: Path) -> None:
    """Decompress the gzip tarball ``archive_path`` and extract it into ``dest``."""

    LOGGER.info("unpacking %s into %s", archive_path, dest)
    try:
        with tarfile.open(archive_path, "r:gz") as tar:
            tar.extractall(dest, filter="data")
    except (tarfile.TarError, EOFError, zlib.error, OSError) as exc:
        raise ArchiveError(f"Unable to unpack icon archive {archive_path}: {exc}") from exc


def remove_temporary_file(path: Path) -> None:
    """Delete ``path``, logging instead of raising when that is not possible."""

    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        LOGGER.warning("unable to delete the temporary tgz path; %s (%s)", path, exc)


def _swap_into_place(staging: Path, mirror_root: Path) -> None:
    retired: Path | None = None
    if mirror_root.exists():
        LOGGER.info("delete any existing stored data in %s", mirror_root)
        retired = mirror_root.with_name(f".{mirror_root.name}.retired-{uuid.uuid4().hex}")
        mirror_root.rename(retired)

    try:
        staging.rename(mirror_root)
    except OSError:
        if retired is not None:
            retired.rename(mirror_root)
        shutil.rmtree(staging, ignore_errors=True)
        raise

    if retired is not None:
        try:
            shutil.rmtree(retired)
        except OSError as exc:
            LOGGER.warning("unable to delete the previous mirror at %s; %s", retired, exc)


__all__ = ["remove_temporary_file", "replace_mirror", "unpack_archive"]
