# app/utils/store.py
from contextlib import contextmanager
import logging

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.dialects import postgresql, sqlite

from app.errors import ProviderError

logger = logging.getLogger(__name__)


def insert_for(db: Session, model):
    """
    INSERT construct with ON CONFLICT support for the session's dialect.

    Owner-unique writes rely on the store enforcing the conflict, so only
    dialects that can express ON CONFLICT are accepted.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise RuntimeError(f"Database dialect '{dialect}' does not support conditional upserts")


@contextmanager
def store_errors(db: Session, action: str):
    """Roll back and re-raise store faults (timeouts included) as ProviderError."""
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ Store failure while trying to {action}: {str(e)}")
        raise ProviderError("Application store unavailable")
