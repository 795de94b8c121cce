"""Session stores — named exploration snapshots per (notation kind, model id).

Two backends share the :class:`SessionStore` contract:

- :class:`SqlSessionStore` keeps rows in the ``trace_sessions`` table.
- :class:`MappingSessionStore` keeps a JSON list under a namespaced key in
  any string key-value mapping (a dict in tests, a shelf, a browser-like
  local store).

Saving a session under an existing name replaces it. Listings are
sorted by name.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import MutableMapping
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError
from sqlalchemy import delete, insert, select

from tracectl.domain.session import TraceSession
from tracectl.infrastructure.database.schema import metadata, trace_sessions

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

SESSION_KEY_PREFIX = "tracectl.traceability.sessions"

type SessionList = list[TraceSession]


def session_key(kind: str, model_id: str) -> str:
    """Namespaced storage key of one session collection.

    Examples:
        >>> session_key("archimate", "shop")
        'tracectl.traceability.sessions.archimate.shop'
    """
    return f"{SESSION_KEY_PREFIX}.{kind}.{model_id}"


class SessionStore(ABC):
    """Persistence interface for saved sessions."""

    @abstractmethod
    def list(self, kind: str, model_id: str) -> SessionList:
        """All sessions of one model, sorted by name."""
        ...

    @abstractmethod
    def save(self, kind: str, model_id: str, session: TraceSession) -> None:
        """Insert *session*, replacing any session with the same name."""
        ...

    @abstractmethod
    def delete(self, kind: str, model_id: str, name: str) -> bool:
        """Delete a session by name. Returns whether one was removed."""
        ...

    def get(self, kind: str, model_id: str, name: str) -> TraceSession | None:
        """Look up one session by name."""
        for session in self.list(kind, model_id):
            if session.name == name:
                return session
        return None


class MappingSessionStore(SessionStore):
    """Sessions as a JSON list under ``tracectl.traceability.sessions.<kind>.<model_id>``."""

    def __init__(self, storage: MutableMapping[str, str] | None = None) -> None:
        self._storage: MutableMapping[str, str] = storage if storage is not None else {}

    def _load(self, kind: str, model_id: str) -> list[Any] | None:
        """Raw records of one collection; None when the stored text is unparsable."""
        raw = self._storage.get(session_key(kind, model_id))
        if not raw:
            return []
        try:
            records = json.loads(raw)
        except json.JSONDecodeError:
            return None
        return records if isinstance(records, list) else None

    def _validated(self, kind: str, model_id: str, records: list[Any]) -> SessionList:
        sessions: list[TraceSession] = []
        for record in records:
            try:
                sessions.append(TraceSession.model_validate(record))
            except ValidationError:
                logger.debug("Skipping malformed session record in %s/%s", kind, model_id)
        return sessions

    def _read(self, kind: str, model_id: str) -> SessionList:
        records = self._load(kind, model_id)
        if records is None:
            logger.warning("Ignoring unparsable session collection for %s/%s", kind, model_id)
            return []
        return self._validated(kind, model_id, records)

    def _write(self, kind: str, model_id: str, sessions: SessionList) -> None:
        ordered = sorted(sessions, key=lambda s: s.name)
        self._storage[session_key(kind, model_id)] = json.dumps(
            [s.to_record() for s in ordered], separators=(",", ":")
        )

    def list(self, kind: str, model_id: str) -> SessionList:
        return sorted(self._read(kind, model_id), key=lambda s: s.name)

    def save(self, kind: str, model_id: str, session: TraceSession) -> None:
        records = self._load(kind, model_id)
        if records is None:
            logger.warning(
                "Replacing unparsable session collection for %s/%s; earlier sessions are lost",
                kind,
                model_id,
            )
            records = []
        sessions = [
            s for s in self._validated(kind, model_id, records) if s.name != session.name
        ]
        sessions.append(session)
        self._write(kind, model_id, sessions)

    def delete(self, kind: str, model_id: str, name: str) -> bool:
        sessions = self._read(kind, model_id)
        kept = [s for s in sessions if s.name != name]
        if len(kept) == len(sessions):
            return False
        self._write(kind, model_id, kept)
        return True


class SqlSessionStore(SessionStore):
    """Sessions as rows of the ``trace_sessions`` table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        metadata.create_all(engine)

    def list(self, kind: str, model_id: str) -> SessionList:
        stmt = (
            select(trace_sessions)
            .where(trace_sessions.c.kind == kind, trace_sessions.c.model_id == model_id)
            .order_by(trace_sessions.c.name)
        )
        sessions: list[TraceSession] = []
        with self._engine.connect() as conn:
            for row in conn.execute(stmt):
                try:
                    state = json.loads(row.state)
                except json.JSONDecodeError:
                    logger.warning(
                        "Session %r of %s/%s has unparsable state", row.name, kind, model_id
                    )
                    state = row.state
                sessions.append(
                    TraceSession(
                        name=row.name,
                        saved_at=row.saved_at,
                        seed_id=row.seed_id,
                        expand_depth=row.expand_depth,
                        state=state,
                    )
                )
        return sessions

    def save(self, kind: str, model_id: str, session: TraceSession) -> None:
        with self._engine.begin() as conn:
            conn.execute(
                delete(trace_sessions).where(
                    trace_sessions.c.kind == kind,
                    trace_sessions.c.model_id == model_id,
                    trace_sessions.c.name == session.name,
                )
            )
            conn.execute(
                insert(trace_sessions).values(
                    kind=kind,
                    model_id=model_id,
                    name=session.name,
                    saved_at=session.saved_at,
                    seed_id=session.seed_id,
                    expand_depth=session.expand_depth,
                    state=json.dumps(session.state, separators=(",", ":")),
                )
            )

    def delete(self, kind: str, model_id: str, name: str) -> bool:
        with self._engine.begin() as conn:
            result = conn.execute(
                delete(trace_sessions).where(
                    trace_sessions.c.kind == kind,
                    trace_sessions.c.model_id == model_id,
                    trace_sessions.c.name == name,
                )
            )
        return bool(result.rowcount)
