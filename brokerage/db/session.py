import logging
from typing import Callable, Generator, TypeVar

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from brokerage.core.config import settings
from brokerage.core.errors import ConcurrencyConflictError, ConcurrentInsertError

logger = logging.getLogger(__name__)

T = TypeVar("T")

engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def run_in_transaction(
    db: Session,
    work: Callable[[], T],
    attempts: int | None = None,
) -> T:
    """
    Run ``work`` as one unit of work on ``db``.

    Commits when ``work`` returns, rolls back on any exception. A lost
    optimistic version check (``StaleDataError``) or a row another
    transaction inserted first (``ConcurrentInsertError``) rolls back and
    re-runs the whole unit; ``work`` must therefore re-read everything it
    touches.

    Raises:
        ConcurrencyConflictError: if every attempt hit a conflict
    """
    attempts = attempts or settings.conflict_retry_attempts
    for attempt in range(1, attempts + 1):
        try:
            result = work()
            db.commit()
            return result
        except (StaleDataError, ConcurrentInsertError) as exc:
            db.rollback()
            logger.warning("%s on attempt %d/%d", type(exc).__name__, attempt, attempts)
        except Exception:
            db.rollback()
            raise
    raise ConcurrencyConflictError(attempts)
