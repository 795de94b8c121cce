"""Plugin discovery and notation adapter registration.

Plugins are found in two places: the ``tracectl.plugins`` entry point
group of installed distributions, and ``*.py`` files in the project's
``.tracectl/plugins/`` directory. Each plugin class that implements
``register_notation_adapters`` is instantiated once; the adapters it
returns are added to :mod:`tracectl.notations.registry`. Adapters for
the built-in notations cannot be replaced.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
import sys
from collections.abc import Iterator
from types import ModuleType
from typing import TYPE_CHECKING, Any

import pluggy

from tracectl.notations.registry import register_adapter
from tracectl.plugins.hookspecs import PROJECT_NAME, TracectlHookSpec

if TYPE_CHECKING:
    from pathlib import Path

ENTRY_POINT_GROUP = "tracectl.plugins"
LOCAL_MODULE_PREFIX = "tracectl_local_plugin_"

logger = logging.getLogger(__name__)


def _implements_hooks(obj: Any) -> bool:
    marker = f"{PROJECT_NAME}_impl"
    return any(
        getattr(getattr(obj, name, None), marker, None) is not None
        for name in dir(obj)
        if not name.startswith("_")
    )


def _import_local(path: Path) -> ModuleType | None:
    """Import one plugin file under a private module name; None on failure."""
    module_name = f"{LOCAL_MODULE_PREFIX}{path.stem}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        logger.warning("Failed to load local plugin %s: not importable", path)
        return None
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception:
        sys.modules.pop(module_name, None)
        logger.warning("Failed to load local plugin %s", path, exc_info=True)
        return None
    return module


def _plugin_classes(module: ModuleType) -> Iterator[type]:
    """Classes defined in *module* (not imported into it) with hook impls."""
    for _, cls in inspect.getmembers(module, inspect.isclass):
        if cls.__module__ == module.__name__ and _implements_hooks(cls):
            yield cls


class PluginManager:
    """Finds plugins and feeds their notation adapters to the registry.

    Attributes:
        contributed: Notation kind -> name of the plugin that added it.
    """

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(TracectlHookSpec)
        self._loaded = False
        self.contributed: dict[str, str] = {}

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def discover_and_load(self, *, local_dir: Path | None = None) -> list[str]:
        """Load entry point and local plugins, then register their adapters.

        Returns the sorted names of all registered plugins.
        """
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._instantiate_entry_point_classes()
        if local_dir is not None and local_dir.is_dir():
            for path in sorted(local_dir.glob("*.py")):
                if not path.name.startswith("_"):
                    self._load_local(path)
        for plugin in self._pm.get_plugins():
            self._collect_adapters(plugin)
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance; its adapters count at once if already loaded."""
        self._pm.register(plugin, name=name or type(plugin).__name__)
        if self._loaded:
            self._collect_adapters(plugin)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    def get_plugins(self) -> list[object]:
        return list(self._pm.get_plugins())

    def list_plugin_names(self) -> list[str]:
        return sorted(self._name_of(p) for p in self._pm.get_plugins())

    def _name_of(self, plugin: object) -> str:
        return self._pm.get_name(plugin) or type(plugin).__name__

    def _load_local(self, path: Path) -> None:
        module = _import_local(path)
        if module is None:
            return
        for cls in _plugin_classes(module):
            try:
                instance = cls()
            except Exception:
                logger.warning("Failed to instantiate plugin %s from %s", cls.__name__, path)
                continue
            self._pm.register(instance, name=f"{module.__name__}.{cls.__name__}")
            logger.debug("Loaded local plugin %s from %s", cls.__name__, path)

    def _instantiate_entry_point_classes(self) -> None:
        # Entry points may name a class; hooks need a bound instance.
        for plugin in self.get_plugins():
            if not inspect.isclass(plugin) or not _implements_hooks(plugin):
                continue
            name = self._name_of(plugin)
            self._pm.unregister(plugin)
            try:
                self._pm.register(plugin(), name=name)
            except Exception:
                logger.warning("Failed to instantiate entry point plugin %s", name, exc_info=True)

    def _collect_adapters(self, plugin: object) -> None:
        """Call *plugin*'s adapter hook and register what it returns."""
        impls = [
            impl
            for impl in self._pm.hook.register_notation_adapters.get_hookimpls()
            if impl.plugin is plugin
        ]
        name = self._name_of(plugin)
        for impl in impls:
            try:
                adapters = impl.function()
            except Exception:
                logger.warning("Plugin %s failed to provide notation adapters", name, exc_info=True)
                continue
            if adapters is None:
                continue
            if not isinstance(adapters, dict):
                logger.warning("Plugin %s returned %s, not a dict", name, type(adapters).__name__)
                continue
            for kind, adapter in adapters.items():
                try:
                    register_adapter(kind, adapter)
                except (TypeError, ValueError) as exc:
                    logger.warning("Skipping notation adapter %r from %s: %s", kind, name, exc)
                    continue
                self.contributed[str(kind).strip().lower()] = name
