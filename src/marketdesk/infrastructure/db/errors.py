# src/marketdesk/infrastructure/db/errors.py
"""
Maps SQLAlchemy's exception hierarchy onto the domain error taxonomy.
"""

import logging

from sqlalchemy import exc as sa_exc

from marketdesk.domain.errors import DomainError, Conflict, Transient, Internal

log = logging.getLogger(__name__)


def classify_db_error(error: Exception) -> DomainError:
    """Return the domain error a storage exception should surface as."""
    if isinstance(error, DomainError):
        return error
    if isinstance(error, sa_exc.IntegrityError):
        return Conflict("Resource conflicts with existing data")
    if isinstance(error, (sa_exc.OperationalError, sa_exc.TimeoutError, sa_exc.DisconnectionError)):
        return Transient()
    if isinstance(error, sa_exc.DBAPIError) and error.connection_invalidated:
        return Transient()
    if isinstance(error, sa_exc.SQLAlchemyError):
        return Internal("Database error")
    return Internal()
