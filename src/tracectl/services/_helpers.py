"""Shared service-layer helper functions."""

from __future__ import annotations

from datetime import UTC, datetime


def now_iso() -> str:
    """Current UTC time as ISO 8601 (session ``savedAt`` stamps)."""
    return datetime.now(UTC).isoformat()


def normalize_filter(values: list[str] | tuple[str, ...] | None) -> set[str] | None:
    """Trimmed, non-empty filter values; ``None`` means "no filter".

    Examples:
        >>> sorted(normalize_filter([" Flow ", "", "Serving"]))
        ['Flow', 'Serving']
        >>> normalize_filter(["  "]) is None
        True
    """
    if not values:
        return None
    cleaned = {v.strip() for v in values if isinstance(v, str) and v.strip()}
    return cleaned or None


def split_csv(raw: str | None) -> list[str] | None:
    """Split a comma-separated CLI option into trimmed values.

    Examples:
        >>> split_csv("Flow, Serving")
        ['Flow', 'Serving']
        >>> split_csv(None) is None
        True
    """
    if raw is None:
        return None
    values = [part.strip() for part in raw.split(",") if part.strip()]
    return values or None
