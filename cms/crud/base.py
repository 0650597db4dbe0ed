import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, UTC
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from cms.core.exceptions import InternalError, ResourceConflict
from cms.db.database import is_unique_violation

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(UTC)


@contextmanager
def translate_errors(session: Session, conflict_message: str = "Resource already exists") -> Iterator[None]:
    """Roll back and re-raise database errors as CMS errors.

    Unique-constraint failures become ResourceConflict; every other
    database error becomes InternalError.
    """
    try:
        yield
    except IntegrityError as exc:
        session.rollback()
        if is_unique_violation(exc):
            logger.warning("Unique constraint violated: %s", exc.orig)
            raise ResourceConflict(conflict_message) from exc
        logger.error("Integrity error: %s", exc.orig)
        raise InternalError() from exc
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Database error", exc_info=True)
        raise InternalError() from exc


def commit(session: Session, conflict_message: str = "Resource already exists") -> None:
    with translate_errors(session, conflict_message):
        session.commit()
