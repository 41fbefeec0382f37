# src/marketdesk/infrastructure/db/models/auth.py
"""
SQLAlchemy ORM model for users. The role enum is imported from the domain
layer so there is a single source of truth.
"""

from sqlalchemy import Column, String, DateTime, Boolean, Enum, Numeric, CheckConstraint
from sqlalchemy.orm import relationship
from .base import Base, new_id, utcnow

from marketdesk.domain.entities import UserRole


class User(Base):
    __tablename__ = 'users'
    __table_args__ = (
        CheckConstraint('account_balance >= 0', name='ck_users_balance_non_negative'),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)

    role = Column(Enum(UserRole, name="userrole"), nullable=False, default=UserRole.CUSTOMER, server_default='CUSTOMER')
    account_balance = Column(Numeric(20, 8), nullable=False, default=0, server_default='0')
    is_active = Column(Boolean, default=True, server_default='true', nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    # --- Relationships ---
    orders = relationship("Order", back_populates="user")
    chat_sessions = relationship("ChatSession", back_populates="user", foreign_keys="ChatSession.user_id")

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role.value}', active={self.is_active})>"
