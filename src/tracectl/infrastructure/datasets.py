"""Dataset file loading — JSON and YAML model snapshots.

A dataset file holds one model::

    {"id": "shop", "kind": "archimate", "name": "Webshop",
     "elements": [{"id": "A", "name": "Order API", "type": "ApplicationComponent"}],
     "relationships": [{"id": "R1", "type": "Serving", "source": "A", "target": "B"}]}

YAML files use the same shape. Validation is delegated to the
:class:`~tracectl.domain.dataset.Dataset` model.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from tracectl.domain.dataset import Dataset

logger = logging.getLogger(__name__)

DATASET_SUFFIXES = (".json", ".yaml", ".yml")


class DatasetError(Exception):
    """A dataset file could not be read, parsed or validated."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class NoDatasetError(DatasetError):
    """No dataset path is configured."""


def parse_dataset(raw: str, *, suffix: str = ".json") -> dict[str, Any]:
    """Parse raw dataset text into a plain mapping."""
    if suffix == ".json":
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            msg = f"Invalid JSON: {exc}"
            raise DatasetError(msg) from exc
    else:
        try:
            data = YAML(typ="safe").load(raw)
        except YAMLError as exc:
            msg = f"Invalid YAML: {exc}"
            raise DatasetError(msg) from exc

    if not isinstance(data, dict):
        msg = "Dataset root must be a mapping"
        raise DatasetError(msg)
    return data


def load_dataset(path: Path, *, notation: str | None = None) -> Dataset:
    """Load and validate a dataset file.

    Args:
        path: ``.json``, ``.yaml`` or ``.yml`` file.
        notation: Overrides the ``kind`` declared in the file.

    Raises:
        DatasetError: Unsupported extension, missing file, unparsable
            content, or schema violation.
    """
    suffix = path.suffix.lower()
    if suffix not in DATASET_SUFFIXES:
        expected = ", ".join(DATASET_SUFFIXES)
        msg = f"Unsupported dataset format {suffix or '(none)'!r}; expected one of {expected}"
        raise DatasetError(msg, path=path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"Cannot read dataset {path}: {exc.strerror or exc}"
        raise DatasetError(msg, path=path) from exc

    try:
        data = parse_dataset(raw, suffix=suffix)
    except DatasetError as exc:
        raise DatasetError(f"{path}: {exc}", path=path) from exc

    if notation:
        data["kind"] = notation
    data.setdefault("id", path.stem)

    try:
        dataset = Dataset.model_validate(data)
    except ValidationError as exc:
        msg = f"{path}: invalid dataset ({exc.error_count()} errors)"
        raise DatasetError(msg, path=path) from exc

    dangling = len(dataset.relationships) - len(dataset.resolved_relationships())
    if dangling:
        logger.debug("Dataset %s has %d relationships with missing endpoints", path, dangling)
    logger.debug(
        "Loaded dataset %s: %d elements, %d relationships",
        dataset.id,
        len(dataset.elements),
        len(dataset.relationships),
    )
    return dataset
