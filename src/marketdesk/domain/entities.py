# src/marketdesk/domain/entities.py
"""
Core enumerations and plain domain objects.

The ORM models import their enums from here so the database layer and the
services share a single source of truth.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, List


# --- ENUMERATIONS ---

class UserRole(Enum):
    """Roles a user can have."""
    CUSTOMER = "CUSTOMER"
    ADMIN = "ADMIN"


class OrderType(Enum):
    OPTION = "OPTION"


class OrderStatus(Enum):
    """
    Lifecycle of an order. ACTIVE is the only state an order can leave, and
    it leaves it at most once.
    """
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"


class ChatStatus(Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    WAITING = "WAITING"  # reserved, never assigned


class ChatSenderType(Enum):
    """Tag captured on each message at send time."""
    USER = "USER"
    ADMIN = "ADMIN"

    @classmethod
    def for_role(cls, role: UserRole) -> "ChatSenderType":
        return cls.ADMIN if role == UserRole.ADMIN else cls.USER


# --- VALUE-LIKE ENTITIES ---

@dataclass(frozen=True)
class Principal:
    """An authenticated caller, as resolved by the auth verifier."""
    user_id: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


@dataclass
class MessagePreview:
    id: str
    message: str
    sender_type: ChatSenderType
    created_at: datetime
    is_read: bool


@dataclass
class ChatSessionSummary:
    """A session as shown in session lists: the row plus its latest message and unread count."""
    session: Any
    last_message: Optional[MessagePreview] = None
    unread_count: int = 0


@dataclass
class MessagePage:
    messages: List[Any] = field(default_factory=list)
    page: int = 1
    limit: int = 50
    total: int = 0

    @property
    def total_pages(self) -> int:
        # ceil(total / limit) without floats
        return -(-self.total // self.limit) if self.limit else 0


@dataclass
class PostedMessage:
    """Result of appending a message: the stored row and the session's routing state."""
    message: Any
    session_id: str
    assigned_admin_id: Optional[str]

    @property
    def needs_admin(self) -> bool:
        return self.assigned_admin_id is None and self.message.sender_type == ChatSenderType.USER
