"""Locating and reading ``tracectl.toml``.

``TRACECTL_CONFIG`` names the file explicitly; otherwise the nearest
``tracectl.toml`` in the start directory or one of its parents is used.
The directory holding it is the project root: relative dataset paths and
the ``.tracectl/`` state directory resolve there.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from tracectl.config.models import TraceConfig

CONFIG_FILENAME = "tracectl.toml"
CONFIG_ENV_VAR = "TRACECTL_CONFIG"


class ConfigError(ValueError):
    """A config file exists but is not valid TOML or not valid settings."""


def find_config(start: Path | None = None) -> Path | None:
    """Path of the config file in effect for *start* (default: cwd).

    An env override that points nowhere means no config at all; the
    walk-up is not used as a fallback.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        path = Path(override)
        return path if path.is_file() else None

    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def read_toml(path: Path) -> dict[str, Any]:
    """Parse *path* as TOML.

    Raises:
        ConfigError: The file is not valid TOML.
    """
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise ConfigError(msg) from exc


def load_config(path: Path | None = None, cwd: Path | None = None) -> TraceConfig:
    """Validated config sections from *path*, or defaults when there is no file.

    Raises:
        ConfigError: The file is not valid TOML or holds invalid values.
    """
    path = path or find_config(cwd)
    if path is None:
        return TraceConfig()
    try:
        return TraceConfig.model_validate(read_toml(path))
    except ValidationError as exc:
        msg = f"{path}: {exc.error_count()} invalid setting(s)"
        raise ConfigError(msg) from exc
