# src/marketdesk/infrastructure/db/models/__init__.py
"""
Makes the 'models' directory a package and ensures all SQLAlchemy ORM models
are registered on `Base.metadata` for Alembic and `create_all`.
"""

from .base import Base
from .auth import User, UserRole
from .order import Order, OrderStatus, OrderType
from .chat import ChatSession, ChatMessage, ChatStatus, ChatSenderType

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Order",
    "OrderStatus",
    "OrderType",
    "ChatSession",
    "ChatMessage",
    "ChatStatus",
    "ChatSenderType",
]
