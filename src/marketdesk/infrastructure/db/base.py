# src/marketdesk/infrastructure/db/base.py
"""
Database engine setup and session factory.

This version includes a custom JSON serializer to handle Decimal types so
Decimal values can be written to JSON/JSONB columns without errors.
"""

import json
import logging
from decimal import Decimal

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from marketdesk.config import settings

log = logging.getLogger(__name__)


# --- Custom JSON Serializer ---
def _custom_json_serializer(obj):
    """Converts Decimal objects to strings; anything else unknown is an error."""
    if isinstance(obj, Decimal):
        return str(obj)
    raise TypeError(f"Object of type {obj.__class__.__name__} is not JSON serializable")


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # Web workers share connections across threads; concurrent writers
        # wait on the file lock instead of failing immediately.
        return {"connect_args": {"check_same_thread": False, "timeout": 30}}
    return {"pool_pre_ping": True, "pool_recycle": 3600}


def build_engine(url: str):
    log.info(f"Initializing database engine for URL: ...{url[-20:]}")
    return create_engine(
        url,
        json_serializer=lambda obj: json.dumps(obj, default=_custom_json_serializer),
        **_engine_kwargs(url),
    )


# --- Database Engine Creation ---
engine = build_engine(settings.DATABASE_URL)


# --- Session Management ---
# expire_on_commit=False keeps loaded attributes usable after the unit of work
# closes, so services can hand ORM rows back to the routers and the gateway.
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


# --- Dependency for FastAPI ---
def get_session():
    """
    Provides a session per request and closes it afterwards.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
