"""BaseService — foundation for the tracectl service classes.

Every service receives a :class:`Workspace` at construction time and
reaches the dataset, adapter, traversal graph and session store through
it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tracectl.infrastructure.datasets import DatasetError, NoDatasetError
from tracectl.services.result import DATASET_INVALID, NO_DATASET, ServiceResult

if TYPE_CHECKING:
    from tracectl.infrastructure.workspace import Workspace

logger = logging.getLogger(__name__)


class BaseService:
    """Base for service-layer classes.

    Usage::

        class TraceService(BaseService):
            def expand(self, session: str, node_id: str) -> ServiceResult:
                dataset = self._workspace.dataset
                ...
    """

    def __init__(self, workspace: Workspace) -> None:
        self._workspace = workspace

    @staticmethod
    def _dataset_failure(op: str, exc: DatasetError) -> ServiceResult:
        """Convert a dataset loading error into a failed result."""
        code = NO_DATASET if isinstance(exc, NoDatasetError) else DATASET_INVALID
        detail = {"path": str(exc.path)} if exc.path is not None else {}
        logger.debug("Dataset unavailable for %s: %s", op, exc)
        return ServiceResult.failure(op, code, str(exc), **detail)
