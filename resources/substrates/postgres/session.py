"""Short-lived sessions for log-entry persistence.

Each repository call opens its own session and transaction, so a fan-out
write never holds a Postgres connection while other stores are written.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from packages.ark_shared.logging import get_logger

_LOGGER = get_logger(__name__)


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Return the factory for log repository sessions on ``engine``.

    Loaded rows stay readable after commit so they can be mapped into
    ``LogEntry`` values once the transaction has closed.
    """
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@contextmanager
def transactional_session(
    session_factory: sessionmaker[Session], *, read_only: bool = False
) -> Iterator[Session]:
    """Run one repository call in its own transaction.

    Inserts and bookkeeping updates commit on a clean exit. ``read_only``
    lookups and window scans roll back instead of committing. Errors roll back
    and propagate so the writer can report the primary store as failed.
    """
    session = session_factory()
    try:
        yield session
        if read_only:
            session.rollback()
        else:
            session.commit()
    except Exception as exc:
        session.rollback()
        _LOGGER.debug(
            "Log transaction rolled back: exception_type=%s", type(exc).__name__
        )
        raise
    finally:
        session.close()
