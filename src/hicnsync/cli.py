"""Command-line entry points for the icon mirror refresher."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import typer

from hicnsync.config import ConfigError, dump_example_config, load_config
from hicnsync.errors import HicnSyncError
from hicnsync.io.headers import conditional_headers
from hicnsync.io.metadata import metadata_path_for, read_icon_metadata
from hicnsync.refresh import IconMirrorRefresher
from hicnsync.util.logging import configure_logging
from hicnsync.util.paths import mirror_root_from_config

app = typer.Typer(add_completion=False, help="Keep a local mirror of the server's icon archive up to date")


def _load(config_path: Optional[Path], overrides: dict[str, Any]):
    try:
        return load_config(config_path, overrides=overrides)
    except ConfigError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


@app.command()
def refresh(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML/TOML/JSON config file"),
    mirror: Optional[Path] = typer.Option(None, help="Mirror directory (overrides runtime.mirror_root)"),
    base_url: Optional[str] = typer.Option(None, help="Server base URL (overrides server.base_url)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable trace logging"),
) -> None:
    """Download the icon archive if it changed and replace the mirror."""

    overrides: dict[str, Any] = {}
    if mirror is not None:
        overrides["runtime.mirror_root"] = str(mirror)
    if base_url is not None:
        overrides["server.base_url"] = base_url
    if verbose:
        overrides["server.trace_logging"] = True

    cfg = _load(config_path, overrides)
    logger = configure_logging(log_path=cfg.runtime.log_path, verbose=cfg.server.trace_logging)

    try:
        result = IconMirrorRefresher(cfg).run()
    except (HicnSyncError, OSError) as exc:
        logger.error("icon refresh failed; %s", exc)
        typer.echo(f"Refresh failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    mirror_root = mirror_root_from_config(cfg.runtime.mirror_root)
    if result.updated:
        typer.echo(f"Updated {mirror_root} (sha256 {result.archive_sha256})")
    else:
        typer.echo(f"{mirror_root} is up to date")


@app.command("show-metadata")
def show_metadata(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML/TOML/JSON config file"),
    mirror: Optional[Path] = typer.Option(None, help="Mirror directory (overrides runtime.mirror_root)"),
) -> None:
    """Print the mirror's metadata and the conditional header it yields."""

    overrides: dict[str, Any] = {}
    if mirror is not None:
        overrides["runtime.mirror_root"] = str(mirror)
    cfg = _load(config_path, overrides)
    mirror_root = mirror_root_from_config(cfg.runtime.mirror_root)

    try:
        metadata = read_icon_metadata(mirror_root)
    except HicnSyncError as exc:
        typer.echo(f"Unreadable metadata: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if metadata is None:
        typer.echo(f"No metadata at {metadata_path_for(mirror_root)}")
        return

    typer.echo(f"createTimestamp: {metadata.created_at}")
    typer.echo(f"dataModifiedTimestamp: {metadata.data_modified_at}")
    try:
        headers = conditional_headers(metadata)
    except ValueError as exc:
        typer.echo(f"No usable conditional header: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    for name, value in headers.items():
        typer.echo(f"{name}: {value}")


@app.command("dump-config")
def dump_config(
    dest: Path = typer.Argument(..., help="Destination .yaml or .json file"),
) -> None:
    """Write the default configuration to DEST."""

    try:
        dump_example_config(dest)
    except ConfigError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(f"Wrote {dest}")


def main() -> None:
    app()


__all__ = ["main", "app"]
