"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, ``tracectl.toml`` only
contains overrides. A fresh project needs only ``[dataset] path``.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from tracectl.domain.labels import DEFAULT_FONT
from tracectl.domain.types import TraceDirection


class DatasetConfig(BaseModel):
    """[dataset] section."""

    model_config = {"frozen": True}

    path: str | None = None
    notation: str | None = None  # overrides the dataset's declared kind


class ExplorerConfig(BaseModel):
    """[explorer] section."""

    model_config = {"frozen": True}

    direction: TraceDirection = TraceDirection.BOTH
    expand_depth: int = Field(default=1, ge=0)
    max_depth_default: int = Field(default=3, ge=0)
    pinned_seeds: bool = True


class LayoutConfig(BaseModel):
    """[layout] section."""

    model_config = {"frozen": True}

    wrap_labels: bool = True
    auto_fit_columns: bool = True
    rich_layout_max_nodes: int = Field(default=120, ge=0)
    font: str = DEFAULT_FONT
    wrap_cache_capacity: int = Field(default=5000, ge=1)


class SessionsConfig(BaseModel):
    """[sessions] section."""

    model_config = {"frozen": True}

    backend: Literal["sqlite", "memory"] = "sqlite"
    db_name: str = "tracectl.db"


class TraceConfig(BaseModel):
    """Root model for ``tracectl.toml``."""

    model_config = {"frozen": True}

    dataset: DatasetConfig = Field(default_factory=DatasetConfig)
    explorer: ExplorerConfig = Field(default_factory=ExplorerConfig)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    sessions: SessionsConfig = Field(default_factory=SessionsConfig)
