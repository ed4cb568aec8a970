"""Database setup for Holidarr using SQLModel."""

from typing import Any, Sequence

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, Session, create_engine

from holidarr.core.config import get_settings

settings = get_settings()


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine, applying the SQLite threading flag where needed."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Sessions are used from asyncio.to_thread workers
        connect_args["check_same_thread"] = False
    return create_engine(database_url, echo=echo, connect_args=connect_args)


# Create engine
engine = build_engine(settings.database_url, echo=settings.debug)


def create_db_and_tables(bind: Engine | None = None) -> None:
    """Create all database tables."""
    # Table classes must be imported so they register with the metadata
    from holidarr.models import tables  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)


def insert_ignore(
    session: Session,
    table: type[SQLModel],
    values: dict[str, Any],
    conflict_columns: Sequence[str],
) -> None:
    """INSERT a row, silently doing nothing if the natural key already exists.

    This is the only write primitive the classification store uses: the first
    writer wins and duplicates are dropped, so no row is ever updated.
    """
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = pg_insert(table).values(**values)
    elif dialect == "sqlite":
        stmt = sqlite_insert(table).values(**values)
    else:
        raise NotImplementedError(f"insert_ignore is not supported on {dialect}")

    session.exec(stmt.on_conflict_do_nothing(index_elements=list(conflict_columns)))
