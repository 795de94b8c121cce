"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``TRACECTL_*`` prefix, nested sections via ``__``
  3. TOML file    — ``tracectl.toml`` discovered via walk-up
  4. Code defaults — baked into the section models
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any

import click
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from tracectl.config.discovery import ConfigError, find_config, read_toml
from tracectl.config.models import DatasetConfig, ExplorerConfig, LayoutConfig, SessionsConfig


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Sections of a ``tracectl.toml``, below env vars and above defaults."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path is not None and toml_path.is_file():
            try:
                self._data = read_toml(toml_path)
            except ConfigError as exc:
                raise click.ClickException(str(exc)) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# Thread-local storage for the TOML path during construction.
_tls = threading.local()


class TraceSettings(BaseSettings):
    """Settings for the whole tracectl CLI, frozen after construction.

    Attributes:
        root: Project directory (parent of ``tracectl.toml``, or CWD).
            Relative dataset paths and the session database resolve here.
        config_path: The TOML file in effect, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "TRACECTL_",
        "env_nested_delimiter": "__",
    }

    root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    dataset: DatasetConfig = Field(default_factory=DatasetConfig)
    explorer: ExplorerConfig = Field(default_factory=ExplorerConfig)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    sessions: SessionsConfig = Field(default_factory=SessionsConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert the TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        root: Path | None = None,
        dataset_path: str | None = None,
        notation: str | None = None,
        **cli_flags: Any,
    ) -> TraceSettings:
        """Construct settings from a CLI invocation.

        ``--config`` replaces discovery; a path that does not exist means
        no config file. The project root is *root*, else the directory of
        the config file, else the working directory.

        ``--dataset`` and ``--notation`` override single keys of the
        ``[dataset]`` section and leave the rest of it alone. A relative
        ``--dataset`` is taken relative to the working directory, not the
        project root.
        """
        if config_path:
            candidate = Path(config_path)
            toml_path = candidate if candidate.is_file() else None
        else:
            toml_path = find_config(root)
        if root is None:
            root = toml_path.parent if toml_path else Path.cwd()

        _tls.toml_path = toml_path
        try:
            settings = cls(root=root, config_path=toml_path, **cli_flags)
        finally:
            _tls.toml_path = None

        overrides: dict[str, Any] = {}
        if dataset_path:
            overrides["path"] = str(Path(dataset_path).expanduser().resolve())
        if notation:
            overrides["notation"] = notation.strip().lower()
        if overrides:
            dataset = settings.dataset.model_copy(update=overrides)
            settings = settings.model_copy(update={"dataset": dataset})
        return settings

    def dataset_file(self) -> Path | None:
        """Absolute dataset path, resolved against :attr:`root`."""
        if not self.dataset.path:
            return None
        path = Path(self.dataset.path).expanduser()
        return path if path.is_absolute() else self.root / path
