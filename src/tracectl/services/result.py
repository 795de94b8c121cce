"""Result envelope returned by every public service operation.

Commands never catch service exceptions: a service converts its own
failures into ``ServiceResult(ok=False, error=...)`` and the CLI decides
how to print it and which exit code to use.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

# Error codes (``ServiceError.code``).
NO_DATASET = "NO_DATASET"
DATASET_INVALID = "DATASET_INVALID"
NOT_FOUND = "NOT_FOUND"
SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
SESSION_INVALID = "SESSION_INVALID"
PENDING = "PENDING"


class ServiceError(BaseModel):
    """Why an operation failed: a stable code, a message, and context."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Outcome of one service operation.

    Attributes:
        ok: False when ``error`` is set.
        op: Operation name (``"seed"``, ``"session_list"``); renderers
            are chosen by it.
        data: Payload of a successful operation.
        warnings: Problems that did not stop the operation.
        error: Failure details when ``ok`` is False.
        meta: Extras such as the ``-v`` telemetry tree.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(cls, op: str, code: str, message: str, **detail: Any) -> ServiceResult:
        """Failed result for *op* with *detail* as the error context."""
        return cls(ok=False, op=op, error=ServiceError(code=code, message=message, detail=detail))
