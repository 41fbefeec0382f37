# src/marketdesk/infrastructure/db/models/order.py
"""
SQLAlchemy ORM model for balance-backed orders. Orders are never deleted;
`is_active` is the soft-deactivation flag kept for audit retention.
"""

from sqlalchemy import (
    Column, Integer, String, DateTime, Boolean, ForeignKey, Enum, Text, Numeric, CheckConstraint
)
from sqlalchemy.orm import relationship
from .base import Base, new_id, utcnow

from marketdesk.domain.entities import OrderStatus, OrderType


class Order(Base):
    __tablename__ = 'orders'
    __table_args__ = (
        CheckConstraint('amount > 0', name='ck_orders_amount_positive'),
        CheckConstraint('ror > 0 AND ror <= 100', name='ck_orders_ror_range'),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey('users.id'), nullable=False, index=True)

    order_type = Column(Enum(OrderType, name="ordertype"), nullable=False, default=OrderType.OPTION)
    status = Column(Enum(OrderStatus, name="orderstatus"), nullable=False, default=OrderStatus.ACTIVE, index=True)

    symbol = Column(String(32), nullable=False, index=True)
    amount = Column(Numeric(20, 8), nullable=False)
    currency = Column(String(10), nullable=False, default="USDT")
    ror = Column(Numeric(7, 4), nullable=False)
    entry_price = Column(Numeric(20, 8), nullable=False)
    period_seconds = Column(Integer, nullable=False)

    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)

    # Set together, and only, when the order is settled.
    profit = Column(Numeric(20, 8), nullable=True)
    is_won = Column(Boolean, nullable=True)
    settled_at = Column(DateTime(timezone=True), nullable=True)

    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, server_default='true', nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User", back_populates="orders")

    def __repr__(self):
        return f"<Order(id={self.id}, user={self.user_id}, {self.symbol} {self.amount} status={self.status.value})>"
