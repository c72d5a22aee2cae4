"""
TOML-based config file loading for respath.

The nearest `.respath.toml`, `respath.toml`, or `pyproject.toml` holding a
`[tool.respath]` table supplies search path, discovery and output settings.
A flag given on the command line always beats the file, and the file beats
the built-in defaults.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, TypeVar, cast

if sys.version_info >= (3, 11):
    import tomllib  # pyright: ignore[reportUnreachable]
else:
    import tomli as tomllib  # type: ignore[no-redef]  # pyright: ignore[reportUnreachable]

log = logging.getLogger(__name__)


@dataclass
class RespathConfig:
    """
    Settings read from a config file. A `None` field was absent from the file,
    which is different from a value that happens to equal the default.
    """

    # Search path
    classpath: list[str] | None = None
    bare_paths: str | None = None
    # Discovery
    separator: str | None = None
    exclude: list[str] | None = None
    extend_exclude: list[str] | None = None
    follow_symlinks: bool | None = None
    classification_cache_size: int | None = None
    # Output
    format: str | None = None


# Checked in this order in each directory, nearest directory first
_CONFIG_FILENAMES = [".respath.toml", "respath.toml", "pyproject.toml"]

_VALID_FIELDS = {f.name for f in fields(RespathConfig)}


def find_config_file(start_dir: Path) -> Path | None:
    """
    Nearest config file at or above `start_dir`, or `None`. A `pyproject.toml`
    only counts when it has a `[tool.respath]` table.
    """
    current = start_dir.resolve()
    while True:
        for filename in _CONFIG_FILENAMES:
            candidate = current / filename
            if candidate.is_file():
                if filename == "pyproject.toml":
                    if _pyproject_has_respath_section(candidate):
                        return candidate
                else:
                    return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def _pyproject_has_respath_section(path: Path) -> bool:
    try:
        data = tomllib.loads(path.read_text())
        return "respath" in data.get("tool", {})
    except (tomllib.TOMLDecodeError, OSError):
        return False


def load_config(config_path: Path) -> RespathConfig:
    """
    Read `config_path`, using only its `[tool.respath]` table when it is a
    `pyproject.toml`. Relative `classpath` roots are anchored at the file's
    directory.
    """
    data = tomllib.loads(config_path.read_text())

    if config_path.name == "pyproject.toml":
        data = data.get("tool", {}).get("respath", {})

    config = _parse_config_data(data)
    if config.classpath is not None:
        base = config_path.resolve().parent
        config.classpath = [str(base / root) for root in config.classpath]
    return config


def _parse_config_data(data: dict[str, Any]) -> RespathConfig:
    # Keys may sit at top level or inside [search-path], [discovery] and [output].
    flat: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, dict):
            flat.update(cast(dict[str, Any], value))
        else:
            flat[key] = value

    mapped: dict[str, Any] = {}
    for key, value in flat.items():
        field_name = key.replace("-", "_")
        if field_name in _VALID_FIELDS:
            mapped[field_name] = value
        else:
            log.warning("Ignoring unrecognized config key: %s", key)

    return RespathConfig(**mapped)


_T = TypeVar("_T")


def merge_cli_with_config(
    cli_opts: _T,
    config: RespathConfig | None,
    explicit_flags: set[str],
) -> _T:
    """
    Copy every configured value onto `cli_opts` unless that option is in
    `explicit_flags`. Options the config does not know about are left alone.
    """
    if config is None:
        return cli_opts

    for cfg_field in fields(RespathConfig):
        cfg_value = getattr(config, cfg_field.name)
        if cfg_value is None:
            continue

        if cfg_field.name in explicit_flags:
            continue

        if hasattr(cli_opts, cfg_field.name):
            setattr(cli_opts, cfg_field.name, cfg_value)

    return cli_opts
