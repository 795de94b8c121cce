"""Database engine setup for SQLite with WAL mode.

Sessions live at ``{root}/.tracectl/{db_name}``. SQLAlchemy Core (not
ORM) is used because tracectl is a short-lived CLI process.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from tracectl.infrastructure.database.schema import metadata

STATE_DIR = ".tracectl"


def create_db_engine(db_path: Path | None) -> Engine:
    """Create a SQLite engine with WAL mode. ``None`` gives an in-memory database."""
    if db_path is None:
        engine = create_engine("sqlite://", echo=False)
    else:
        engine = create_engine(f"sqlite:///{db_path}", echo=False)

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

    return engine


def init_database(root: Path, db_name: str = "tracectl.db") -> Engine:
    """Initialize the database at ``{root}/.tracectl/{db_name}``.

    Creates the state directory (plus ``plugins/``) and all tables.
    Idempotent.
    """
    state_dir = root / STATE_DIR
    state_dir.mkdir(parents=True, exist_ok=True)
    (state_dir / "plugins").mkdir(exist_ok=True)

    engine = create_db_engine(state_dir / db_name)
    metadata.create_all(engine)
    return engine
