"""Workspace — the single dependency injected into every service.

Owns the lazily loaded dataset, its notation adapter and traversal
graph, the session store, the plugin manager, and the shared label wrap
cache. Nothing is touched until first use, so ``--help`` never reads a
dataset or opens a database.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tracectl.config.logging import bind_log_context
from tracectl.infrastructure.database.engine import STATE_DIR, create_db_engine, init_database
from tracectl.infrastructure.datasets import NoDatasetError, load_dataset
from tracectl.infrastructure.graph.engine import TraversalGraph
from tracectl.infrastructure.sessions import MappingSessionStore, SessionStore, SqlSessionStore
from tracectl.notations.registry import get_adapter
from tracectl.plugins.manager import PluginManager
from tracectl.services.layout import WrapCache

if TYPE_CHECKING:
    from pathlib import Path

    from tracectl.config.settings import TraceSettings
    from tracectl.domain.dataset import Dataset
    from tracectl.notations.base import NotationAdapter

logger = logging.getLogger(__name__)


class Workspace:
    """Lazy container for everything a tracectl command needs.

    Args:
        settings: Resolved settings.
        dataset: Preloaded dataset; skips reading ``[dataset] path``.
        session_store: Store to use instead of the configured backend.
        load_plugins: Discover plugins before resolving the adapter.
    """

    def __init__(
        self,
        settings: TraceSettings,
        *,
        dataset: Dataset | None = None,
        session_store: SessionStore | None = None,
        load_plugins: bool = True,
    ) -> None:
        self.settings = settings
        self._dataset = dataset
        self._session_store = session_store
        self._load_plugins = load_plugins
        self._plugin_manager: PluginManager | None = None
        self._graph: TraversalGraph | None = None
        self.wrap_cache = WrapCache(capacity=settings.layout.wrap_cache_capacity)

    @property
    def root(self) -> Path:
        return self.settings.root

    @property
    def dataset(self) -> Dataset:
        """The dataset (loaded on first access).

        Raises:
            NoDatasetError: No dataset path is configured.
            DatasetError: The configured file cannot be loaded.
        """
        if self._dataset is None:
            path = self.settings.dataset_file()
            if path is None:
                msg = "No dataset configured; pass --dataset or set [dataset] path"
                raise NoDatasetError(msg)
            self._dataset = load_dataset(path, notation=self.settings.dataset.notation)
            bind_log_context(dataset=self._dataset.id, notation=self._dataset.kind)
            logger.debug(
                "Loaded dataset %s: %d elements, %d relationships",
                path,
                len(self._dataset.elements),
                len(self._dataset.relationships),
            )
        return self._dataset

    @property
    def plugin_manager(self) -> PluginManager:
        if self._plugin_manager is None:
            self._plugin_manager = PluginManager()
            if self._load_plugins:
                names = self._plugin_manager.discover_and_load(
                    local_dir=self.root / STATE_DIR / "plugins"
                )
                if names:
                    logger.debug("Loaded plugins: %s", ", ".join(names))
        return self._plugin_manager

    @property
    def notation(self) -> str:
        """Effective notation kind: configured override, else the dataset's kind."""
        return self.settings.dataset.notation or self.dataset.kind

    @property
    def adapter(self) -> NotationAdapter:
        _ = self.plugin_manager
        return get_adapter(self.notation)

    @property
    def graph(self) -> TraversalGraph:
        if self._graph is None:
            self._graph = TraversalGraph(self.dataset, self.adapter)
        return self._graph

    @property
    def sessions(self) -> SessionStore:
        """The configured session store (created on first access)."""
        if self._session_store is None:
            cfg = self.settings.sessions
            if cfg.backend == "memory":
                self._session_store = MappingSessionStore()
            else:
                self._session_store = SqlSessionStore(init_database(self.root, cfg.db_name))
        return self._session_store

    @classmethod
    def in_memory(cls, settings: TraceSettings, dataset: Dataset) -> Workspace:
        """Workspace over *dataset* with an in-memory SQLite session store."""
        return cls(
            settings,
            dataset=dataset,
            session_store=SqlSessionStore(create_db_engine(None)),
            load_plugins=False,
        )
