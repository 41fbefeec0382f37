# src/marketdesk/interfaces/api/routers/chat.py
"""
Chat REST surface. Messages posted here are relayed through the realtime
gateway exactly like socket sends; reading or listing never broadcasts.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from marketdesk.application.services.chat_service import ChatService
from marketdesk.domain.entities import ChatStatus, Principal
from marketdesk.interfaces.api.deps import get_chat_service, get_current_principal, get_gateway, require_admin
from marketdesk.interfaces.api.schemas import (
    AssignAdminIn,
    ChatMessageOut,
    ChatSessionOut,
    ChatSessionSummaryOut,
    MessagePageOut,
    SendMessageIn,
    dump,
    envelope,
)
from marketdesk.interfaces.realtime.gateway import RealtimeGateway

router = APIRouter(prefix="/chat", tags=["Chat"])


@router.get("/session")
def get_or_create_session(
    principal: Principal = Depends(get_current_principal),
    chat: ChatService = Depends(get_chat_service),
):
    session = chat.get_or_create_open_session(principal.user_id)
    return envelope(dump(ChatSessionOut.model_validate(session)))


@router.get("/sessions")
def list_my_sessions(
    principal: Principal = Depends(get_current_principal),
    chat: ChatService = Depends(get_chat_service),
):
    summaries = chat.list_sessions_for(principal)
    return envelope([dump(ChatSessionSummaryOut.from_summary(s)) for s in summaries])


@router.get("/sessions/all")
def list_all_sessions(
    status: Optional[ChatStatus] = None,
    principal: Principal = Depends(require_admin),
    chat: ChatService = Depends(get_chat_service),
):
    summaries = chat.list_sessions_for(principal, status=status)
    return envelope([dump(ChatSessionSummaryOut.from_summary(s)) for s in summaries])


@router.get("/unread")
def unread_count(
    principal: Principal = Depends(get_current_principal),
    chat: ChatService = Depends(get_chat_service),
):
    return envelope({"count": chat.unread_count(principal)})


@router.get("/{session_id}/messages")
def list_messages(
    session_id: str,
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    principal: Principal = Depends(get_current_principal),
    chat: ChatService = Depends(get_chat_service),
):
    result = chat.list_messages(session_id, principal, page=page, limit=limit)
    return envelope(dump(MessagePageOut.from_page(result)))


@router.post("/message", status_code=status.HTTP_201_CREATED)
async def send_message(
    body: SendMessageIn,
    principal: Principal = Depends(get_current_principal),
    gateway: RealtimeGateway = Depends(get_gateway),
):
    posted = await gateway.post_message(
        body.session_id, principal, body.message, body.image_url, body.audio_url, channel="rest"
    )
    return envelope(dump(ChatMessageOut.model_validate(posted.message)), "Message sent")


@router.post("/{session_id}/read")
def mark_read(
    session_id: str,
    principal: Principal = Depends(get_current_principal),
    chat: ChatService = Depends(get_chat_service),
):
    return envelope({"count": chat.mark_read(session_id, principal)}, "Messages marked as read")


@router.post("/{session_id}/assign")
def assign_admin(
    session_id: str,
    body: AssignAdminIn,
    principal: Principal = Depends(require_admin),
    chat: ChatService = Depends(get_chat_service),
):
    session = chat.assign_admin(session_id, body.admin_id)
    return envelope(dump(ChatSessionOut.model_validate(session)), "Admin assigned")


@router.post("/{session_id}/close")
def close_session(
    session_id: str,
    principal: Principal = Depends(get_current_principal),
    chat: ChatService = Depends(get_chat_service),
):
    session = chat.close(session_id, principal)
    return envelope(dump(ChatSessionOut.model_validate(session)), "Session closed")
