# tests/conftest.py
"""
Fixtures and test setup for the Pytest suite.
"""

import os
from decimal import Decimal

import pytest

# Set test environment variables BEFORE any application code is imported.
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["ENV"] = "test"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["AUTO_CREATE_TABLES"] = "false"

from marketdesk.boot import build_services
from marketdesk.domain.entities import Principal, UserRole
from marketdesk.infrastructure.db.base import engine
from marketdesk.infrastructure.db.models.base import Base
from marketdesk.infrastructure.db.repository import UserRepository
from marketdesk.infrastructure.db.uow import session_scope
from marketdesk.interfaces.api.security.auth import create_access_token, hash_password


@pytest.fixture(scope="session", autouse=True)
def db_engine():
    """Creates the test schema once and removes the database file afterwards."""
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()
    if os.path.exists("./test.db"):
        os.remove("./test.db")


@pytest.fixture(autouse=True)
def clean_tables(db_engine):
    yield
    with db_engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


class RecordingBroadcaster:
    """Captures gateway emits as (sid, event, data)."""

    def __init__(self):
        self.sent = []

    async def emit(self, event, data, to):
        self.sent.append((to, event, data))

    def events(self, sid, event=None):
        return [d for to, e, d in self.sent if to == sid and (event is None or e == event)]

    def recipients(self, event):
        return [to for to, e, _ in self.sent if e == event]

    def clear(self):
        self.sent.clear()


@pytest.fixture
def broadcaster() -> RecordingBroadcaster:
    return RecordingBroadcaster()


@pytest.fixture
def services(broadcaster):
    return build_services(session_scope=session_scope, broadcaster=broadcaster)


@pytest.fixture
def make_user():
    """Factory: make_user(role=..., balance=..., email=..., password=...) -> User."""
    counter = {"n": 0}

    def _make(role=UserRole.CUSTOMER, balance="0", email=None, password=None, is_active=True):
        counter["n"] += 1
        email = email or f"{role.value.lower()}{counter['n']}@example.com"
        with session_scope() as session:
            return UserRepository(session).add(
                email=email,
                password_hash=hash_password(password) if password else None,
                role=role,
                account_balance=Decimal(str(balance)),
                is_active=is_active,
            )

    return _make


def principal_of(user) -> Principal:
    return Principal(user_id=user.id, role=user.role)


def token_for(user) -> str:
    return create_access_token(user.id, user.role)


def auth_header(user) -> dict:
    return {"Authorization": f"Bearer {token_for(user)}"}
