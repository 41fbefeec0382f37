# --- START OF FILE: src/marketdesk/infrastructure/db/models/base.py ---
import uuid
from datetime import datetime, timezone

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """The base class for all SQLAlchemy ORM models."""
    pass


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    # Python-side timestamps keep microsecond precision on every backend,
    # which chat ordering relies on.
    return datetime.now(timezone.utc)
# --- END OF FILE ---
