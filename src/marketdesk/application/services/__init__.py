# src/marketdesk/application/services/__init__.py

from .order_service import OrderService
from .chat_service import ChatService

__all__ = [
    "OrderService",
    "ChatService",
]
