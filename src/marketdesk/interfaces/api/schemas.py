# --- START OF FILE: src/marketdesk/interfaces/api/schemas.py ---
"""
Request and response models. Wire names are camelCase; Python attributes stay
snake_case (`populate_by_name`), so ORM rows validate directly via `from_attributes`.
"""
from __future__ import annotations
from typing import Any, List, Optional
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from marketdesk.domain.entities import ChatSessionSummary, MessagePage
from marketdesk.domain.value_objects import MAX_MESSAGE_LENGTH

def _to_str(v: Any) -> str | None:
    if v is None: return None
    if hasattr(v, "value"): return str(v.value)
    return str(v)

def _to_float(v: Any) -> float | None:
    if v is None: return None
    return float(v)

def envelope(data: Any = None, message: str = "OK") -> dict:
    return {"success": True, "message": message, "data": data}

def dump(model: BaseModel) -> dict:
    return model.model_dump(mode="json", by_alias=True)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# --- Requests ---

class OptionOrderIn(CamelModel):
    symbol: str
    amount: Decimal
    duration: int = Field(description="Seconds until the order matures")
    ror: Decimal
    entry_price: Decimal

class SendMessageIn(CamelModel):
    session_id: str
    message: Optional[str] = Field(default=None, max_length=MAX_MESSAGE_LENGTH)
    image_url: Optional[str] = None
    audio_url: Optional[str] = None

class AssignAdminIn(CamelModel):
    admin_id: str

class RegisterIn(CamelModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=6, max_length=128)
    first_name: Optional[str] = None
    last_name: Optional[str] = None

class RefreshIn(CamelModel):
    refresh_token: str = Field(min_length=1)

class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


# --- Responses ---

class UserOut(CamelModel):
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str
    account_balance: float

    @field_validator("role", mode="before")
    def _v_role(cls, v): return _to_str(v) or ""
    @field_validator("account_balance", mode="before")
    def _v_balance(cls, v): return _to_float(v) or 0.0

class OrderOut(CamelModel):
    id: str
    user_id: str
    order_type: str
    status: str
    symbol: str
    amount: float
    currency: str
    ror: float
    entry_price: float
    period_seconds: int
    start_date: datetime
    end_date: datetime
    profit: Optional[float] = None
    is_won: Optional[bool] = None
    settled_at: Optional[datetime] = None
    description: Optional[str] = None
    created_at: datetime

    @field_validator("order_type", "status", mode="before")
    def _v_enum(cls, v): return _to_str(v) or ""
    @field_validator("amount", "ror", "entry_price", "profit", mode="before")
    def _v_num(cls, v): return _to_float(v)

class ChatMessageOut(CamelModel):
    id: str
    session_id: str
    user_id: str
    sender_type: str
    message: str = ""
    image_url: Optional[str] = None
    audio_url: Optional[str] = None
    is_read: bool = False
    read_at: Optional[datetime] = None
    created_at: datetime

    @field_validator("sender_type", mode="before")
    def _v_sender(cls, v): return _to_str(v) or ""

class MessagePreviewOut(CamelModel):
    id: str
    message: str
    sender_type: str
    created_at: datetime
    is_read: bool

    @field_validator("sender_type", mode="before")
    def _v_sender(cls, v): return _to_str(v) or ""

class ChatSessionOut(CamelModel):
    id: str
    user_id: str
    admin_id: Optional[str] = None
    status: str
    last_message_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    @field_validator("status", mode="before")
    def _v_status(cls, v): return _to_str(v) or ""

class ChatSessionSummaryOut(ChatSessionOut):
    last_message: Optional[MessagePreviewOut] = None
    unread_count: int = 0

    @classmethod
    def from_summary(cls, summary: ChatSessionSummary) -> "ChatSessionSummaryOut":
        out = cls.model_validate(summary.session)
        if summary.last_message is not None:
            out.last_message = MessagePreviewOut.model_validate(summary.last_message)
        out.unread_count = summary.unread_count
        return out

class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int

class MessagePageOut(CamelModel):
    messages: List[ChatMessageOut]
    pagination: Pagination

    @classmethod
    def from_page(cls, page: MessagePage) -> "MessagePageOut":
        return cls(
            messages=[ChatMessageOut.model_validate(m) for m in page.messages],
            pagination=Pagination(page=page.page, limit=page.limit, total=page.total, total_pages=page.total_pages),
        )
# --- END OF FILE ---
