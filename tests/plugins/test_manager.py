"""Tests for plugin discovery and adapter registration."""

from __future__ import annotations

import logging
from collections.abc import Generator
from pathlib import Path

import pytest

from tracectl.notations.generic import GenericAdapter
from tracectl.notations.registry import get_adapter, registered_kinds, unregister_adapter
from tracectl.plugins import PluginManager, hookimpl

_LOCAL_PLUGIN = '''
from tracectl.notations.generic import GenericAdapter
from tracectl.plugins import hookimpl


class SysmlAdapter(GenericAdapter):
    @property
    def kind(self):
        return "sysml"


class SysmlPlugin:
    @hookimpl
    def register_notation_adapters(self):
        return {"sysml": SysmlAdapter()}
'''


class _PetriAdapter(GenericAdapter):
    @property
    def kind(self) -> str:
        return "petri"


class _PetriPlugin:
    @hookimpl
    def register_notation_adapters(self) -> dict[str, GenericAdapter]:
        return {"petri": _PetriAdapter()}


class _ConflictingPlugin:
    @hookimpl
    def register_notation_adapters(self) -> dict[str, GenericAdapter]:
        return {"archimate": GenericAdapter()}


@pytest.fixture(autouse=True)
def _restore_registry() -> Generator[None]:
    yield
    for kind in ("sysml", "petri"):
        unregister_adapter(kind)


class TestPluginManager:
    def test_local_plugin_registers_adapter(self, tmp_path: Path) -> None:
        (tmp_path / "sysml.py").write_text(_LOCAL_PLUGIN, encoding="utf-8")
        (tmp_path / "_private.py").write_text("raise RuntimeError", encoding="utf-8")
        pm = PluginManager()
        names = pm.discover_and_load(local_dir=tmp_path)
        assert "tracectl_local_plugin_sysml.SysmlPlugin" in names
        assert pm.is_loaded
        assert get_adapter("sysml").kind == "sysml"
        assert "sysml" in registered_kinds()

    def test_broken_local_plugin_only_warns(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        (tmp_path / "broken.py").write_text("raise RuntimeError('nope')", encoding="utf-8")
        pm = PluginManager()
        with caplog.at_level(logging.WARNING, logger="tracectl.plugins.manager"):
            pm.discover_and_load(local_dir=tmp_path)
        assert "Failed to load local plugin" in caplog.text
        assert pm.get_plugins() == []

    def test_missing_local_dir(self, tmp_path: Path) -> None:
        assert PluginManager().discover_and_load(local_dir=tmp_path / "none") == []

    def test_register_after_load(self) -> None:
        pm = PluginManager()
        pm.discover_and_load()
        pm.register_plugin(_PetriPlugin())
        assert get_adapter("petri").kind == "petri"
        assert "_PetriPlugin" in pm.list_plugin_names()
        assert pm.contributed == {"petri": "_PetriPlugin"}

    def test_builtin_conflict_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        pm = PluginManager()
        pm.discover_and_load()
        with caplog.at_level(logging.WARNING, logger="tracectl.plugins.manager"):
            pm.register_plugin(_ConflictingPlugin())
        assert "Skipping notation adapter 'archimate'" in caplog.text
        assert get_adapter("archimate").kind == "archimate"

    def test_hook_relay(self) -> None:
        pm = PluginManager()
        plugin = _PetriPlugin()
        pm.register_plugin(plugin)
        results = pm.hook.register_notation_adapters()
        assert [list(r) for r in results] == [["petri"]]
        pm.unregister(plugin)
        assert pm.get_plugins() == []
