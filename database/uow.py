import contextlib
import logging
from typing import Optional

from sqlalchemy.orm import sessionmaker

from database.database import SessionLocal, get_engine
from database.repository import LostFoundRepository

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def lostfound_uow(session_factory: Optional[sessionmaker] = None):
    """Per-unit-of-work transaction scope.

    Yields a LostFoundRepository bound to a fresh Session. Commits on
    success, rolls back on exception, always closes.

    Usage:
        with lostfound_uow() as repo:
            row = repo.handoffs.get_session(session_id)
            # perform operations...
        # commit happens automatically on successful exit
    """
    if session_factory is None:
        get_engine()
        session_factory = SessionLocal
    session = session_factory()
    try:
        repo = LostFoundRepository(session)
        yield repo
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
