#--- START OF FILE: src/marketdesk/infrastructure/db/repository.py ---
# File: src/marketdesk/infrastructure/db/repository.py
# Repositories wrap one Session each; they flush but never commit.
# The unit of work (uow.session_scope) owns the transaction boundary.

import logging
from typing import List, Optional, Dict, Iterable, Tuple
from decimal import Decimal
from datetime import datetime

from sqlalchemy.orm import Session
from sqlalchemy import and_, func, select, update

from marketdesk.domain.entities import (
    UserRole,
    OrderStatus,
    ChatStatus,
    ChatSenderType,
)

from .models import User, Order, ChatSession, ChatMessage
from .models.base import utcnow

logger = logging.getLogger(__name__)

# ==========================================================
# USER REPOSITORY
# ==========================================================
class UserRepository:
    """Repository for User rows."""
    def __init__(self, session: Session):
        self.session = session

    def find_by_id(self, user_id: str) -> Optional[User]:
        return self.session.get(User, user_id)

    def find_active(self, user_id: str) -> Optional[User]:
        """Finds a user only if it exists and is active."""
        return self.session.query(User).filter(User.id == user_id, User.is_active == True).first()

    def find_by_email(self, email: str) -> Optional[User]:
        return self.session.query(User).filter(func.lower(User.email) == email.strip().lower()).first()

    def find_active_admin(self, user_id: str) -> Optional[User]:
        return self.session.query(User).filter(
            User.id == user_id,
            User.role == UserRole.ADMIN,
            User.is_active == True,
        ).first()

    def add(self, email: str, password_hash: Optional[str], role: UserRole = UserRole.CUSTOMER, **kwargs) -> User:
        user = User(
            email=email.strip().lower(),
            password_hash=password_hash,
            role=role,
            first_name=kwargs.get("first_name"),
            last_name=kwargs.get("last_name"),
            account_balance=kwargs.get("account_balance", Decimal("0")),
            is_active=kwargs.get("is_active", True),
        )
        self.session.add(user)
        self.session.flush()
        logger.info("Created user id=%s role=%s", user.id, role.value)
        return user

    def credit_balance(self, user_id: str, amount: Decimal) -> int:
        """
        Atomic in-database increment. Returns the number of rows updated
        (0 when the user is missing or inactive).
        """
        result = self.session.execute(
            update(User)
            .where(User.id == user_id, User.is_active == True)
            .values(account_balance=User.account_balance + amount, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def get_balance(self, user_id: str) -> Optional[Decimal]:
        return self.session.execute(select(User.account_balance).where(User.id == user_id)).scalar_one_or_none()


# ==========================================================
# ORDER REPOSITORY
# ==========================================================
class OrderRepository:
    """Repository for Order rows."""
    def __init__(self, session: Session):
        self.session = session

    def add(self, **kwargs) -> Order:
        order = Order(**kwargs)
        self.session.add(order)
        self.session.flush()
        return order

    def get(self, order_id: str) -> Optional[Order]:
        return self.session.query(Order).filter(Order.id == order_id, Order.is_active == True).first()

    def list_for_user(self, user_id: str, status: Optional[OrderStatus] = None) -> List[Order]:
        query = self.session.query(Order).filter(Order.user_id == user_id, Order.is_active == True)
        if status:
            query = query.filter(Order.status == status)
        return query.order_by(Order.created_at.desc()).all()

    def complete_if_active(self, order_id: str, profit: Decimal, settled_at: datetime) -> int:
        """
        Conditional state flip ACTIVE -> COMPLETED. The WHERE on status is the
        exactly-once guard: concurrent callers serialise on the row and every
        caller after the first updates zero rows.
        """
        result = self.session.execute(
            update(Order)
            .where(and_(Order.id == order_id, Order.status == OrderStatus.ACTIVE))
            .values(
                status=OrderStatus.COMPLETED,
                profit=profit,
                is_won=True,
                settled_at=settled_at,
                updated_at=settled_at,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount


# ==========================================================
# CHAT REPOSITORY
# ==========================================================
class ChatRepository:
    """Repository for ChatSession and ChatMessage rows."""
    def __init__(self, session: Session):
        self.session = session

    # --- Sessions ---
    def get_session(self, session_id: str) -> Optional[ChatSession]:
        return self.session.query(ChatSession).filter(
            ChatSession.id == session_id, ChatSession.is_active == True
        ).first()

    def latest_open_session(self, user_id: str) -> Optional[ChatSession]:
        return self.session.query(ChatSession).filter(
            ChatSession.user_id == user_id,
            ChatSession.status == ChatStatus.OPEN,
            ChatSession.is_active == True,
        ).order_by(ChatSession.created_at.desc()).first()

    def add_session(self, user_id: str) -> ChatSession:
        chat = ChatSession(user_id=user_id, status=ChatStatus.OPEN)
        self.session.add(chat)
        self.session.flush()
        return chat

    def list_sessions(self, owner_id: Optional[str] = None, status: Optional[ChatStatus] = None) -> List[ChatSession]:
        query = self.session.query(ChatSession).filter(ChatSession.is_active == True)
        if owner_id is not None:
            query = query.filter(ChatSession.user_id == owner_id)
        if status is not None:
            query = query.filter(ChatSession.status == status)
        return query.order_by(
            ChatSession.last_message_at.desc().nullslast(),
            ChatSession.created_at.desc(),
        ).all()

    def session_access_rows(self) -> List[Tuple[str, str, Optional[str]]]:
        """(id, owner, assigned admin) for every active session."""
        rows = self.session.execute(
            select(ChatSession.id, ChatSession.user_id, ChatSession.admin_id).where(ChatSession.is_active == True)
        ).all()
        return [tuple(r) for r in rows]

    # --- Messages ---
    def add_message(self, **kwargs) -> ChatMessage:
        msg = ChatMessage(**kwargs)
        self.session.add(msg)
        self.session.flush()
        return msg

    def count_messages(self, session_id: str) -> int:
        return self.session.query(func.count(ChatMessage.id)).filter(
            ChatMessage.session_id == session_id, ChatMessage.is_active == True
        ).scalar() or 0

    def page_messages(self, session_id: str, offset: int, limit: int) -> List[ChatMessage]:
        return self.session.query(ChatMessage).filter(
            ChatMessage.session_id == session_id, ChatMessage.is_active == True
        ).order_by(ChatMessage.created_at.asc(), ChatMessage.id.asc()).offset(offset).limit(limit).all()

    def latest_messages(self, session_ids: Iterable[str]) -> Dict[str, ChatMessage]:
        """Most recent active message per session."""
        ids = list(session_ids)
        if not ids:
            return {}
        latest = (
            select(ChatMessage.session_id, func.max(ChatMessage.created_at).label("max_created"))
            .where(ChatMessage.session_id.in_(ids), ChatMessage.is_active == True)
            .group_by(ChatMessage.session_id)
            .subquery()
        )
        rows = self.session.query(ChatMessage).join(
            latest,
            and_(
                ChatMessage.session_id == latest.c.session_id,
                ChatMessage.created_at == latest.c.max_created,
            ),
        ).filter(ChatMessage.is_active == True).all()
        out: Dict[str, ChatMessage] = {}
        for m in rows:
            out.setdefault(m.session_id, m)
        return out

    def unread_counts(
        self,
        session_ids: Iterable[str],
        exclude_author: Optional[str] = None,
        sender_type: Optional[ChatSenderType] = None,
    ) -> Dict[str, int]:
        ids = list(session_ids)
        if not ids:
            return {}
        query = select(ChatMessage.session_id, func.count(ChatMessage.id)).where(
            ChatMessage.session_id.in_(ids),
            ChatMessage.is_read == False,
            ChatMessage.is_active == True,
        )
        if exclude_author is not None:
            query = query.where(ChatMessage.user_id != exclude_author)
        if sender_type is not None:
            query = query.where(ChatMessage.sender_type == sender_type)
        rows = self.session.execute(query.group_by(ChatMessage.session_id)).all()
        return {sid: count for sid, count in rows}

    def mark_read(self, session_id: str, reader_id: str, read_at: datetime) -> int:
        result = self.session.execute(
            update(ChatMessage)
            .where(
                ChatMessage.session_id == session_id,
                ChatMessage.user_id != reader_id,
                ChatMessage.is_read == False,
                ChatMessage.is_active == True,
            )
            .values(is_read=True, read_at=read_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def count_unread_for_admin(self, admin_id: str) -> int:
        return self.session.query(func.count(ChatMessage.id)).select_from(ChatMessage).join(
            ChatSession, ChatMessage.session_id == ChatSession.id
        ).filter(
            ChatSession.admin_id == admin_id,
            ChatSession.is_active == True,
            ChatSession.status == ChatStatus.OPEN,
            ChatMessage.sender_type == ChatSenderType.USER,
            ChatMessage.is_read == False,
            ChatMessage.is_active == True,
        ).scalar() or 0

    def count_unread_for_owner(self, user_id: str) -> int:
        return self.session.query(func.count(ChatMessage.id)).select_from(ChatMessage).join(
            ChatSession, ChatMessage.session_id == ChatSession.id
        ).filter(
            ChatSession.user_id == user_id,
            ChatSession.is_active == True,
            ChatMessage.sender_type == ChatSenderType.ADMIN,
            ChatMessage.is_read == False,
            ChatMessage.is_active == True,
        ).scalar() or 0
#--- END OF FILE ---
