"""Config loading entry points for hicnsync."""

from __future__ import annotations

import json
import os
import tomllib
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import ValidationError

from .models import HicnSyncConfig

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "hicnsync.default.yaml"

ENV_OVERRIDES: Mapping[str, str] = {
    "HICNSYNC_BASE_URL": "server.base_url",
    "HICNSYNC_MIRROR_ROOT": "runtime.mirror_root",
}


class ConfigError(RuntimeError):
    """Raised when configuration files cannot be loaded or validated."""


def load_config(
    path: Path | None = None,
    *,
    overrides: Mapping[str, Any] | None = None,
) -> HicnSyncConfig:
    """Load the hicnsync configuration applying file, environment and explicit overrides.

    Precedence, lowest first: packaged defaults, ``path``, environment
    variables listed in ``ENV_OVERRIDES``, then ``overrides``.
    """

    default_data = _expect_mapping(_read_structured_file(DEFAULT_CONFIG_PATH), DEFAULT_CONFIG_PATH)

    if path:
        config_data = _expect_mapping(_read_structured_file(path), path)
    else:
        config_data = {}

    merged: dict[str, Any] = _deep_merge(default_data, config_data)

    env_overrides = _environment_overrides()
    if env_overrides:
        merged = _deep_merge(merged, _expand_override_keys(env_overrides))

    if overrides:
        merged = _deep_merge(merged, _expand_override_keys(overrides))

    try:
        return HicnSyncConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


def dump_example_config(dest: Path) -> None:
    """Write the packaged default configuration to ``dest``."""

    suffix = dest.suffix.lower()
    if suffix == ".toml":
        raise ConfigError("TOML export is not supported yet; use a YAML destination.")

    merged = _read_structured_file(DEFAULT_CONFIG_PATH)
    dest.parent.mkdir(parents=True, exist_ok=True)
    if suffix == ".json":
        dest.write_text(json.dumps(merged, indent=2), encoding="utf-8")
        return
    dest.write_text(
        yaml.safe_dump(merged, sort_keys=False),
        encoding="utf-8",
    )


def _environment_overrides() -> dict[str, str]:
    result: dict[str, str] = {}
    for variable, dotted_key in ENV_OVERRIDES.items():
        value = os.getenv(variable)
        if value and value.strip():
            result[dotted_key] = value.strip()
    return result


def _expect_mapping(payload: Any, source: Path) -> dict[str, Any]:
    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise ConfigError(f"Expected mapping data in {source}, got {type(payload)!r}.")
    return dict(payload)


def _read_structured_file(path: Path) -> Any:
    """Return the parsed contents of a YAML/TOML/JSON file."""

    if not path.exists():
        raise ConfigError(f"Config file {path} does not exist.")

    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")

    try:
        if suffix in {".yaml", ".yml"}:
            return yaml.safe_load(text) or {}
        if suffix == ".toml":
            return tomllib.loads(text)
        if suffix == ".json":
            return json.loads(text)
    except (yaml.YAMLError, tomllib.TOMLDecodeError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Unable to parse config file {path}: {exc}") from exc

    raise ConfigError(f"Unsupported config format for {path}")


def _deep_merge(base: Mapping[str, Any], extra: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge two mappings returning a new dictionary."""

    result: dict[str, Any] = {key: value for key, value in base.items()}
    for key, value in extra.items():
        if (
            key in result
            and isinstance(result[key], Mapping)
            and isinstance(value, Mapping)
        ):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _expand_override_keys(overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Support dotted-notation overrides like ``server.base_url``."""

    result: dict[str, Any] = {}
    for key, value in overrides.items():
        converted = _expand_single_override(key, value)
        result = _deep_merge(result, converted)
    return result


def _expand_single_override(key: Any, value: Any) -> dict[str, Any]:
    if isinstance(key, str) and "." in key:
        parts = key.split(".")
        cursor: dict[str, Any] = {}
        root = cursor
        for segment in parts[:-1]:
            next_cursor: dict[str, Any] = {}
            cursor[segment] = next_cursor
            cursor = next_cursor
        cursor[parts[-1]] = value
        return root
    return {key: value}


__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "ENV_OVERRIDES",
    "load_config",
    "dump_example_config",
]
