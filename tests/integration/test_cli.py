from __future__ import annotations

import logging

import pytest
from typer.testing import CliRunner

from hicnsync import cli
from hicnsync.refresh import IconMirrorRefresher
from tests.helpers import (
    BASE_URL,
    MODIFIED_HEADER,
    SAMPLE_FILES,
    DummyResponse,
    ScriptedSession,
    make_icon_archive,
    metadata_document,
    snapshot_tree,
    write_metadata,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv("HICNSYNC_BASE_URL", raising=False)
    monkeypatch.delenv("HICNSYNC_MIRROR_ROOT", raising=False)
    monkeypatch.setattr(cli, "configure_logging", lambda **_: logging.getLogger("hicnsync"))


def _use_session(monkeypatch, session: ScriptedSession) -> None:
    monkeypatch.setattr(cli, "IconMirrorRefresher", lambda config: IconMirrorRefresher(config, session=session))


def test_refresh_command_updates_mirror(monkeypatch, tmp_path) -> None:
    session = ScriptedSession([DummyResponse(200, make_icon_archive())])
    _use_session(monkeypatch, session)
    mirror = tmp_path / "mirror"

    result = CliRunner().invoke(cli.app, ["refresh", "--mirror", str(mirror), "--base-url", BASE_URL])

    assert result.exit_code == 0, result.output
    assert "Updated" in result.output
    assert snapshot_tree(mirror) == SAMPLE_FILES


def test_refresh_command_reports_up_to_date(monkeypatch, tmp_path) -> None:
    mirror = tmp_path / "mirror"
    write_metadata(mirror, metadata_document())
    _use_session(monkeypatch, ScriptedSession([DummyResponse(304)]))

    result = CliRunner().invoke(cli.app, ["refresh", "--mirror", str(mirror), "--base-url", BASE_URL])

    assert result.exit_code == 0, result.output
    assert "up to date" in result.output


def test_refresh_command_fails_on_fetch_error(monkeypatch, tmp_path) -> None:
    _use_session(monkeypatch, ScriptedSession([DummyResponse(500)] * 3))

    result = CliRunner().invoke(cli.app, ["refresh", "--mirror", str(tmp_path / "mirror"), "--base-url", BASE_URL])

    assert result.exit_code == 1


def test_refresh_command_rejects_bad_config(tmp_path) -> None:
    result = CliRunner().invoke(cli.app, ["refresh", "--mirror", str(tmp_path), "--base-url", "not-a-url"])

    assert result.exit_code == 1


def test_show_metadata(tmp_path) -> None:
    mirror = tmp_path / "mirror"
    write_metadata(mirror, metadata_document())

    result = CliRunner().invoke(cli.app, ["show-metadata", "--mirror", str(mirror)])

    assert result.exit_code == 0, result.output
    assert f"If-Modified-Since: {MODIFIED_HEADER}" in result.output


def test_show_metadata_without_file(tmp_path) -> None:
    result = CliRunner().invoke(cli.app, ["show-metadata", "--mirror", str(tmp_path)])

    assert result.exit_code == 0
    assert "No metadata" in result.output


def test_dump_config(tmp_path) -> None:
    dest = tmp_path / "hicnsync.yaml"

    result = CliRunner().invoke(cli.app, ["dump-config", str(dest)])

    assert result.exit_code == 0
    assert "max_redirects: 3" in dest.read_text(encoding="utf-8")
