"""SQLAlchemy Core table definitions for the tracectl database."""

from __future__ import annotations

from sqlalchemy import Column, Index, Integer, MetaData, Table, Text, UniqueConstraint

metadata = MetaData()

trace_sessions = Table(
    "trace_sessions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("kind", Text, nullable=False),  # notation kind
    Column("model_id", Text, nullable=False),
    Column("name", Text, nullable=False),
    Column("saved_at", Text, nullable=False),
    Column("seed_id", Text),
    Column("expand_depth", Integer, nullable=False, default=1, server_default="1"),
    Column("state", Text, nullable=False),  # JSON object
    UniqueConstraint("kind", "model_id", "name"),
)

Index("ix_trace_sessions_scope", trace_sessions.c.kind, trace_sessions.c.model_id)
