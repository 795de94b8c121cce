"""Shared pytest fixtures for tracectl tests."""

from __future__ import annotations

import json
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from tracectl.config.settings import TraceSettings
from tracectl.domain.dataset import Dataset
from tracectl.infrastructure.workspace import Workspace
from tracectl.notations.archimate import ArchimateAdapter
from tracectl.notations.generic import GenericAdapter
from tracectl.services.telemetry import _current_span, disable_telemetry

# Webshop model:
#
#   actor --Assignment--> proc <--Serving-- svc <--Realization-- app <--Serving-- db
#   proc --Realization--> goal
#   actor --Association-- goal   (undirected)
ARCHIMATE_MODEL: dict[str, Any] = {
    "id": "shop",
    "kind": "archimate",
    "name": "Webshop",
    "elements": [
        {"id": "actor", "name": "Customer", "type": "BusinessActor"},
        {"id": "proc", "name": "Place Order", "type": "BusinessProcess"},
        {
            "id": "svc",
            "name": "Order Service",
            "type": "ApplicationService",
            "documentation": "Accepts and validates orders.",
        },
        {"id": "app", "name": "Order API", "type": "ApplicationComponent"},
        {"id": "db", "name": "Database Server", "type": "Node"},
        {"id": "goal", "name": "Grow Sales", "type": "Goal"},
    ],
    "relationships": [
        {"id": "r1", "type": "Assignment", "sourceElementId": "actor", "targetElementId": "proc"},
        {"id": "r2", "type": "Serving", "sourceElementId": "svc", "targetElementId": "proc"},
        {"id": "r3", "type": "Realization", "sourceElementId": "app", "targetElementId": "svc"},
        {"id": "r4", "type": "Serving", "sourceElementId": "db", "targetElementId": "app"},
        {"id": "r5", "type": "Realization", "sourceElementId": "proc", "targetElementId": "goal"},
        {"id": "r6", "type": "Association", "sourceElementId": "actor", "targetElementId": "goal"},
    ],
}

# A -> B -> C -> D, plus A -> C and a dangling relationship.
CHAIN_MODEL: dict[str, Any] = {
    "id": "chain",
    "kind": "generic",
    "elements": [
        {"id": "A", "name": "Alpha", "type": "x.Thing"},
        {"id": "B", "name": "Beta", "type": "x.Thing"},
        {"id": "C", "name": "Gamma", "type": "y.Other"},
        {"id": "D", "name": "Delta", "type": "y.Other"},
    ],
    "relationships": [
        {"id": "e1", "type": "flow", "source": "A", "target": "B"},
        {"id": "e2", "type": "flow", "source": "B", "target": "C"},
        {"id": "e3", "type": "flow", "source": "C", "target": "D"},
        {"id": "e4", "type": "uses", "source": "A", "target": "C"},
        {"id": "e5", "type": "flow", "source": "D", "target": "missing"},
    ],
}


@pytest.fixture(autouse=True)
def _reset_telemetry() -> Generator[None]:
    yield
    disable_telemetry()
    _current_span.set(None)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def archimate_dataset() -> Dataset:
    return Dataset.model_validate(ARCHIMATE_MODEL)


@pytest.fixture
def chain_dataset() -> Dataset:
    return Dataset.model_validate(CHAIN_MODEL)


@pytest.fixture
def archimate_adapter() -> ArchimateAdapter:
    return ArchimateAdapter()


@pytest.fixture
def generic_adapter() -> GenericAdapter:
    return GenericAdapter()


@pytest.fixture
def settings(tmp_path: Path) -> TraceSettings:
    return TraceSettings.from_cli(root=tmp_path)


@pytest.fixture
def workspace(settings: TraceSettings, archimate_dataset: Dataset) -> Workspace:
    """Workspace over the webshop model with an in-memory session store."""
    return Workspace.in_memory(settings, archimate_dataset)


@pytest.fixture
def dataset_file(tmp_path: Path) -> Path:
    """The webshop model written to ``model.json`` under tmp_path."""
    path = tmp_path / "model.json"
    path.write_text(json.dumps(ARCHIMATE_MODEL), encoding="utf-8")
    return path


@pytest.fixture
def _isolated_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run CLI tests from tmp_path so the session database lands there."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("TRACECTL_CONFIG", raising=False)
