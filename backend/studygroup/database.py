"""SQLAlchemy engine, session factory and the unit-of-work scope."""
import logging
from contextlib import contextmanager
from typing import Iterator, Mapping, Optional

from sqlalchemy import Table, UniqueConstraint, create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from studygroup.config import settings
from studygroup.errors import ConflictError

logger = logging.getLogger(__name__)

_connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(settings.DATABASE_URL, connect_args=_connect_args, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Iterator[Session]:
    """FastAPI dependency — one session per request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _unique_keys(table: Table) -> Iterator[tuple[str, list[str]]]:
    for index in table.indexes:
        if index.unique:
            yield index.name, [column.name for column in index.columns]
    for constraint in table.constraints:
        if isinstance(constraint, UniqueConstraint) and constraint.name:
            yield constraint.name, [column.name for column in constraint.columns]


def violated_index(exc: IntegrityError) -> Optional[str]:
    """Name of the unique index or constraint behind ``exc``, if known.

    PostgreSQL reports the name; SQLite reports the indexed columns as
    ``UNIQUE constraint failed: table.col[, table.col]``.
    """
    text = str(exc.orig)
    for table in Base.metadata.tables.values():
        for name, column_names in _unique_keys(table):
            columns = ", ".join(f"{table.name}.{column}" for column in column_names)
            if f'"{name}"' in text or text.strip() == f"UNIQUE constraint failed: {columns}":
                return name
    return None


@contextmanager
def unit_of_work(
    db: Session,
    on_conflict: Optional[Mapping[str, ConflictError]] = None,
) -> Iterator[Session]:
    """All-or-nothing transaction scope.

    Commits when the block exits cleanly and rolls back on any exception.
    ``on_conflict`` maps unique index names to the typed failure the
    matching pre-check raises, so a race lost to a concurrent writer
    surfaces with the same code. Violations of any other constraint are
    re-raised unchanged.
    """
    try:
        yield db
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        index_name = violated_index(exc)
        if not on_conflict or index_name not in on_conflict:
            raise
        error = on_conflict[index_name]
        logger.warning("Integrity conflict on %s reported as %s: %s", index_name, error.code, exc.orig)
        raise error from exc
    except Exception:
        db.rollback()
        raise
