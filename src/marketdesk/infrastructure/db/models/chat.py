# src/marketdesk/infrastructure/db/models/chat.py
"""
SQLAlchemy ORM models for live support chat.

A session is owned by its customer (`user_id`); an admin gets a non-owning,
revocable grant through the optional `admin_id` foreign key.
"""

from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, Enum, Text, Index
from sqlalchemy.orm import relationship
from .base import Base, new_id, utcnow

from marketdesk.domain.entities import ChatStatus, ChatSenderType


class ChatSession(Base):
    __tablename__ = 'chat_sessions'

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey('users.id'), nullable=False, index=True)
    admin_id = Column(String(36), ForeignKey('users.id'), nullable=True, index=True)

    status = Column(Enum(ChatStatus, name="chatstatus"), nullable=False, default=ChatStatus.OPEN, index=True)
    last_message_at = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, default=True, server_default='true', nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User", back_populates="chat_sessions", foreign_keys=[user_id])
    admin = relationship("User", foreign_keys=[admin_id])
    messages = relationship("ChatMessage", back_populates="session", order_by="ChatMessage.created_at")

    def __repr__(self):
        return f"<ChatSession(id={self.id}, user={self.user_id}, admin={self.admin_id}, status={self.status.value})>"


class ChatMessage(Base):
    __tablename__ = 'chat_messages'
    __table_args__ = (
        Index('ix_chat_messages_session_created', 'session_id', 'created_at'),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    session_id = Column(String(36), ForeignKey('chat_sessions.id'), nullable=False)
    user_id = Column(String(36), ForeignKey('users.id'), nullable=False, index=True)

    sender_type = Column(Enum(ChatSenderType, name="chatsendertype"), nullable=False)
    message = Column(Text, nullable=False, default="")
    image_url = Column(String(2048), nullable=True)
    audio_url = Column(String(2048), nullable=True)

    is_read = Column(Boolean, default=False, server_default='false', nullable=False)
    read_at = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, default=True, server_default='true', nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    session = relationship("ChatSession", back_populates="messages")
    author = relationship("User")

    def __repr__(self):
        return f"<ChatMessage(id={self.id}, session={self.session_id}, sender={self.sender_type.value})>"
