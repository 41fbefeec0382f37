# src/marketdesk/infrastructure/db/uow.py
"""
Unit of Work: one transaction per service operation.

`session_scope` commits on success, rolls back on any exception, and
re-raises storage faults as classified domain errors.
"""

import logging
from contextlib import contextmanager
from typing import Callable, ContextManager, Generator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .base import SessionLocal, engine
from .errors import classify_db_error
from .models import Base

log = logging.getLogger(__name__)

SessionScope = Callable[[], ContextManager[Session]]


def create_tables(bind=None):
    """Creates all tables defined in the models package."""
    log.info("Creating database tables if they do not exist...")
    try:
        Base.metadata.create_all(bind or engine)
        log.info("Database tables checked/created successfully.")
    except Exception as e:
        log.critical(f"Failed to create database tables: {e}", exc_info=True)
        raise


def make_session_scope(factory: Optional[sessionmaker] = None) -> SessionScope:
    """Build a `session_scope` bound to a specific session factory (tests use their own engine)."""
    factory = factory or SessionLocal

    @contextmanager
    def _scope() -> Generator[Session, None, None]:
        session = factory()
        log.debug(f"Session {id(session)} opened.")
        try:
            yield session
            session.commit()
            log.debug(f"Session {id(session)} committed.")
        except SQLAlchemyError as e:
            log.error(f"Session {id(session)} rollback due to storage error: {e}", exc_info=True)
            session.rollback()
            raise classify_db_error(e) from e
        except Exception as e:
            log.debug(f"Session {id(session)} rollback due to {type(e).__name__}: {e}")
            session.rollback()
            raise
        finally:
            session.close()
            log.debug(f"Session {id(session)} closed.")

    return _scope


session_scope = make_session_scope()
