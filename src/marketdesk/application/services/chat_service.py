# src/marketdesk/application/services/chat_service.py
"""
ChatService - the chat session registry.

Owns the session lifecycle (OPEN -> CLOSED, reopened by admin assignment),
message persistence and read accounting. Every operation that touches a
session runs the shared access predicate from `marketdesk.domain.access`;
an inaccessible session is reported as `NotFound` so callers cannot check for
session ids.
"""

import logging
from typing import List, Optional

from marketdesk.config import settings
from marketdesk.domain.access import can_access_session, session_is_accessible
from marketdesk.domain.entities import (
    ChatSenderType,
    ChatSessionSummary,
    ChatStatus,
    MessagePage,
    MessagePreview,
    PostedMessage,
    Principal,
)
from marketdesk.domain.errors import InvalidState, NotFound, ValidationError
from marketdesk.domain.value_objects import MessageContent
from marketdesk.infrastructure.db.models import ChatSession
from marketdesk.infrastructure.db.models.base import utcnow
from marketdesk.infrastructure.db.repository import ChatRepository, UserRepository
from marketdesk.infrastructure.db.uow import SessionScope, session_scope as default_session_scope

log = logging.getLogger(__name__)

SESSION_NOT_FOUND = "Chat session not found"


class ChatService:
    def __init__(
        self,
        session_scope: Optional[SessionScope] = None,
        default_limit: Optional[int] = None,
        max_limit: Optional[int] = None,
    ):
        self.session_scope = session_scope or default_session_scope
        self.default_limit = default_limit or settings.CHAT_PAGE_LIMIT_DEFAULT
        self.max_limit = max_limit or settings.CHAT_PAGE_LIMIT_MAX

    # --- Sessions ---

    def get_or_create_open_session(self, user_id: str) -> ChatSession:
        """
        Return the newest OPEN session of the user, creating one if none exists.
        Two racing first calls may both create a session; that duplicate is tolerated.
        """
        with self.session_scope() as session:
            repo = ChatRepository(session)
            chat = repo.latest_open_session(user_id)
            if chat:
                return chat
            chat = repo.add_session(user_id)
            log.info(f"Opened chat session {chat.id} for user {user_id}")
            return chat

    def get_session(self, session_id: str, principal: Principal) -> ChatSession:
        with self.session_scope() as session:
            chat = ChatRepository(session).get_session(session_id)
            if not session_is_accessible(chat, principal):
                raise NotFound(SESSION_NOT_FOUND)
            return chat

    def list_sessions_for(self, principal: Principal, status: Optional[ChatStatus] = None) -> List[ChatSessionSummary]:
        """
        Customers see their own sessions, admins see every session (optionally
        filtered by status). Newest activity first.
        """
        with self.session_scope() as session:
            repo = ChatRepository(session)
            if principal.is_admin:
                sessions = repo.list_sessions(status=status)
            else:
                sessions = repo.list_sessions(owner_id=principal.user_id, status=status)

            ids = [s.id for s in sessions]
            latest = repo.latest_messages(ids)
            if principal.is_admin:
                unread = repo.unread_counts(ids, sender_type=ChatSenderType.USER)
            else:
                unread = repo.unread_counts(ids, exclude_author=principal.user_id)

            summaries = []
            for s in sessions:
                last = latest.get(s.id)
                preview = None
                if last is not None:
                    preview = MessagePreview(
                        id=last.id,
                        message=last.message,
                        sender_type=last.sender_type,
                        created_at=last.created_at,
                        is_read=last.is_read,
                    )
                summaries.append(ChatSessionSummary(session=s, last_message=preview, unread_count=unread.get(s.id, 0)))
            return summaries

    def accessible_session_ids(self, principal: Principal) -> List[str]:
        with self.session_scope() as session:
            rows = ChatRepository(session).session_access_rows()
            return [sid for sid, owner, admin in rows if can_access_session(owner, admin, principal)]

    def assign_admin(self, session_id: str, admin_id: str) -> ChatSession:
        with self.session_scope() as session:
            if not UserRepository(session).find_active_admin(admin_id):
                raise NotFound("Admin not found")
            chat = ChatRepository(session).get_session(session_id)
            if not chat:
                raise NotFound(SESSION_NOT_FOUND)
            chat.admin_id = admin_id
            chat.status = ChatStatus.OPEN
            session.flush()
            log.info(f"Assigned admin {admin_id} to chat session {session_id}")
            return chat

    def close(self, session_id: str, principal: Principal) -> ChatSession:
        with self.session_scope() as session:
            chat = ChatRepository(session).get_session(session_id)
            if not session_is_accessible(chat, principal):
                raise NotFound(SESSION_NOT_FOUND)
            if chat.status != ChatStatus.CLOSED:
                chat.status = ChatStatus.CLOSED
                session.flush()
                log.info(f"Chat session {session_id} closed by {principal.user_id}")
            return chat

    # --- Messages ---

    def list_messages(self, session_id: str, principal: Principal, page: int = 1, limit: Optional[int] = None) -> MessagePage:
        limit = self.default_limit if limit is None else limit
        if page < 1:
            raise ValidationError("Page must be positive")
        if limit < 1 or limit > self.max_limit:
            raise ValidationError(f"Limit must be between 1 and {self.max_limit}")

        with self.session_scope() as session:
            repo = ChatRepository(session)
            if not session_is_accessible(repo.get_session(session_id), principal):
                raise NotFound(SESSION_NOT_FOUND)
            total = repo.count_messages(session_id)
            messages = repo.page_messages(session_id, offset=(page - 1) * limit, limit=limit)
            return MessagePage(messages=messages, page=page, limit=limit, total=total)

    def append(
        self,
        session_id: str,
        principal: Principal,
        body: Optional[str] = None,
        image_url: Optional[str] = None,
        audio_url: Optional[str] = None,
    ) -> PostedMessage:
        """
        Persist a message and bump the session's `last_message_at`.
        The sender tag follows the author's role at send time.
        """
        with self.session_scope() as session:
            repo = ChatRepository(session)
            chat = repo.get_session(session_id)
            if not session_is_accessible(chat, principal):
                raise NotFound(SESSION_NOT_FOUND)
            content = MessageContent.parse(body, image_url, audio_url)
            if chat.status == ChatStatus.CLOSED:
                raise InvalidState("Chat session is closed")

            now = utcnow()
            msg = repo.add_message(
                session_id=session_id,
                user_id=principal.user_id,
                sender_type=ChatSenderType.for_role(principal.role),
                message=content.body,
                image_url=content.image_url,
                audio_url=content.audio_url,
                created_at=now,
            )
            chat.last_message_at = now
            session.flush()
            return PostedMessage(message=msg, session_id=session_id, assigned_admin_id=chat.admin_id)

    def mark_read(self, session_id: str, principal: Principal) -> int:
        """
        Mark every unread message written by someone else as read.
        Zero rows, no error, when the caller cannot see the session.
        """
        with self.session_scope() as session:
            repo = ChatRepository(session)
            if not session_is_accessible(repo.get_session(session_id), principal):
                return 0
            count = repo.mark_read(session_id, principal.user_id, utcnow())
            log.debug(f"Marked {count} messages read in session {session_id} for {principal.user_id}")
            return count

    def unread_count(self, principal: Principal) -> int:
        with self.session_scope() as session:
            repo = ChatRepository(session)
            if principal.is_admin:
                return repo.count_unread_for_admin(principal.user_id)
            return repo.count_unread_for_owner(principal.user_id)
