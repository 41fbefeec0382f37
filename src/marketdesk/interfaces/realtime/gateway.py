# src/marketdesk/interfaces/realtime/gateway.py
"""
RealtimeGateway - authenticated, room-scoped chat relay.

Per connection:  CONNECTING -> AUTHENTICATED -> (IDLE | ROOM_MEMBER) -> DISCONNECTED.
A handshake that fails verification never reaches AUTHENTICATED and joins no room.

Rooms:
    user:<id>        every connection of that user
    admin:all        every admin connection
    session:<id>     connections that joined that chat session

The gateway is transport-agnostic: it talks to sockets only through a
`Broadcaster`. The python-socketio adapter in `socketio_server.py` provides the
production one; tests plug in a recording fake.
"""

import asyncio
import logging
import weakref
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Protocol

from marketdesk.application.services.chat_service import ChatService
from marketdesk.domain.access import session_is_accessible
from marketdesk.domain.entities import PostedMessage, Principal
from marketdesk.domain.errors import DomainError, NotFound, Unauthorized, ValidationError
from marketdesk.domain.value_objects import MessageContent
from marketdesk.interfaces.api import metrics
from marketdesk.interfaces.api.schemas import ChatMessageOut
from marketdesk.interfaces.api.security.verifier import AuthVerifier, credential_from_handshake

from .rooms import ADMIN_ROOM, RoomRegistry, session_room, user_room

log = logging.getLogger(__name__)


class Broadcaster(Protocol):
    async def emit(self, event: str, data: Dict[str, Any], to: str) -> None: ...


class ConnectionState(Enum):
    CONNECTING = "CONNECTING"
    AUTHENTICATED = "AUTHENTICATED"
    DISCONNECTED = "DISCONNECTED"


@dataclass
class Connection:
    sid: str
    principal: Optional[Principal] = None
    state: ConnectionState = ConnectionState.CONNECTING
    session_rooms: set = field(default_factory=set)

    @property
    def phase(self) -> str:
        """IDLE or ROOM_MEMBER once authenticated, otherwise the raw state."""
        if self.state != ConnectionState.AUTHENTICATED:
            return self.state.value
        return "ROOM_MEMBER" if self.session_rooms else "IDLE"


def message_payload(message: Any) -> Dict[str, Any]:
    return ChatMessageOut.model_validate(message).model_dump(mode="json", by_alias=True)


def _session_id_from(data: Any) -> str:
    if not isinstance(data, Mapping):
        raise ValidationError("Payload must be an object")
    session_id = data.get("sessionId")
    if not isinstance(session_id, str) or not session_id.strip():
        raise ValidationError("sessionId is required")
    return session_id.strip()


class RealtimeGateway:
    def __init__(
        self,
        verifier: AuthVerifier,
        chat_service: ChatService,
        broadcaster: Optional[Broadcaster] = None,
    ):
        self.verifier = verifier
        self.chat_service = chat_service
        self.broadcaster = broadcaster
        self.rooms = RoomRegistry()
        self.connections: Dict[str, Connection] = {}
        self._session_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def bind(self, broadcaster: Broadcaster) -> None:
        self.broadcaster = broadcaster

    # --- Plumbing ---

    async def _run(self, fn: Callable, *args):
        """Run blocking store work off the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, fn, *args)

    def _session_lock(self, session_id: str) -> asyncio.Lock:
        lock = self._session_locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._session_locks[session_id] = lock
        return lock

    def _principal(self, sid: str) -> Principal:
        conn = self.connections.get(sid)
        if conn is None or conn.state != ConnectionState.AUTHENTICATED:
            raise Unauthorized("Connection is not authenticated")
        return conn.principal

    def _still_connected(self, sid: str) -> bool:
        conn = self.connections.get(sid)
        return conn is not None and conn.state == ConnectionState.AUTHENTICATED

    def _join(self, sid: str, room: str) -> bool:
        """Add `sid` to `room`. False when already a member or the connection is gone."""
        conn = self.connections.get(sid)
        if conn is None:
            return False
        joined = self.rooms.join(sid, room)
        if room.startswith("session:"):
            conn.session_rooms.add(room)
        return joined

    async def emit(self, sid: str, event: str, data: Dict[str, Any]) -> None:
        if self.broadcaster is None:
            log.warning(f"No broadcaster bound; dropping '{event}' for {sid}")
            return
        await self.broadcaster.emit(event, data, to=sid)

    async def emit_to_room(self, room: str, event: str, data: Dict[str, Any], skip_sid: Optional[str] = None) -> int:
        """Emit to each member of `room` in join order. Returns the number of recipients."""
        sent = 0
        for member in self.rooms.members(room):
            if member == skip_sid:
                continue
            await self.emit(member, event, data)
            sent += 1
        return sent

    async def emit_error(self, sid: str, error: DomainError) -> None:
        await self.emit(sid, "error", error.to_dict())

    async def _guarded(self, sid: str, event: str, handler: Callable, *args) -> None:
        """Report failures to the calling connection only; the connection stays open."""
        try:
            await handler(sid, *args)
        except DomainError as e:
            log.info(f"'{event}' from {sid} refused: {e.code} {e.message}")
            await self.emit_error(sid, e)
        except Exception:
            log.exception(f"Unexpected error handling '{event}' from {sid}")
            await self.emit(sid, "error", {"message": f"Failed to handle {event}", "code": "INTERNAL_SERVER_ERROR"})

    # --- Lifecycle ---

    async def connect(self, sid: str, auth: Optional[Mapping[str, Any]] = None, environ: Optional[Mapping[str, Any]] = None) -> Principal:
        """
        Verify the handshake credential and join the personal (and admin) room.
        Raises `Unauthorized` when the credential is missing or rejected.
        """
        conn = Connection(sid=sid)
        credential = credential_from_handshake(auth, environ)
        try:
            principal = await self._run(self.verifier.verify, credential)
        except Unauthorized as e:
            log.info(f"Socket {sid} rejected: {e.message}")
            raise

        conn.principal = principal
        conn.state = ConnectionState.AUTHENTICATED
        self.connections[sid] = conn
        self._join(sid, user_room(principal.user_id))
        if principal.is_admin:
            self._join(sid, ADMIN_ROOM)
        metrics.SOCKET_CONNECTIONS.inc()
        log.info(f"Socket connected: {principal.user_id} ({principal.role.value}) sid={sid}")
        return principal

    async def disconnect(self, sid: str) -> None:
        conn = self.connections.pop(sid, None)
        self.rooms.leave_all(sid)
        if conn is None:
            return
        conn.state = ConnectionState.DISCONNECTED
        conn.session_rooms.clear()
        metrics.SOCKET_CONNECTIONS.dec()
        log.info(f"Socket disconnected: {conn.principal.user_id if conn.principal else '?'} sid={sid}")

    # --- Events ---

    async def on_join_sessions(self, sid: str, data: Any = None) -> None:
        await self._guarded(sid, "join-sessions", self._join_sessions)

    async def _join_sessions(self, sid: str) -> None:
        principal = self._principal(sid)
        session_ids = await self._run(self.chat_service.accessible_session_ids, principal)
        if not self._still_connected(sid):
            log.info(f"Socket {sid} left during join-sessions; nothing joined")
            return
        for session_id in session_ids:
            self._join(sid, session_room(session_id))
        await self.emit(sid, "sessions-joined", {"count": len(session_ids)})

    async def on_join_session(self, sid: str, data: Any = None) -> None:
        await self._guarded(sid, "join-session", self._join_session, data)

    async def _join_session(self, sid: str, data: Any) -> None:
        principal = self._principal(sid)
        session_id = _session_id_from(data)
        try:
            chat = await self._run(self.chat_service.get_session, session_id, principal)
        except NotFound:
            raise NotFound("Session not found or access denied")
        if not session_is_accessible(chat, principal):
            raise NotFound("Session not found or access denied")
        if not self._still_connected(sid):
            log.info(f"Socket {sid} left during join-session {session_id}")
            return

        room = session_room(session_id)
        joined = self._join(sid, room)
        await self.emit(sid, "session-joined", {"sessionId": session_id})
        if not joined:
            return
        await self.emit_to_room(room, "user-joined", {"sessionId": session_id, "userId": principal.user_id}, skip_sid=sid)

    async def on_send_message(self, sid: str, data: Any = None) -> None:
        await self._guarded(sid, "send-message", self._send_message, data)

    async def _send_message(self, sid: str, data: Any) -> None:
        principal = self._principal(sid)
        session_id = _session_id_from(data)
        body, image_url, audio_url = data.get("message"), data.get("imageUrl"), data.get("audioUrl")
        MessageContent.parse(body, image_url, audio_url)
        await self.post_message(session_id, principal, body, image_url, audio_url, channel="socket")

    async def post_message(
        self,
        session_id: str,
        author: Principal,
        body: Optional[str],
        image_url: Optional[str] = None,
        audio_url: Optional[str] = None,
        channel: str = "rest",
    ) -> PostedMessage:
        """
        Store a message and relay it. Socket and REST sends both come through here:
        append and broadcast share one per-session lock so the room sees commit order.
        """
        async with self._session_lock(session_id):
            posted = await self._run(self.chat_service.append, session_id, author, body, image_url, audio_url)
            await self.relay_message(posted, author, channel=channel)
        return posted

    async def relay_message(self, posted: PostedMessage, author: Principal, channel: str = "rest") -> None:
        """
        Fan a stored message out: `new-message` to every member of the session
        room, plus `new-chat-request` to admins while a customer's session is unassigned.
        """
        metrics.CHAT_MESSAGES.labels(channel=channel).inc()
        await self.emit_to_room(
            session_room(posted.session_id),
            "new-message",
            {"sessionId": posted.session_id, "message": message_payload(posted.message)},
        )
        if posted.needs_admin:
            await self.emit_to_room(ADMIN_ROOM, "new-chat-request", {"sessionId": posted.session_id, "userId": author.user_id})

    async def on_mark_read(self, sid: str, data: Any = None) -> None:
        await self._guarded(sid, "mark-read", self._mark_read, data)

    async def _mark_read(self, sid: str, data: Any) -> None:
        principal = self._principal(sid)
        session_id = _session_id_from(data)
        room = session_room(session_id)
        await self._run(self.chat_service.mark_read, session_id, principal)
        # Same rule as typing: only room members may notify the room.
        if not self.rooms.is_member(sid, room):
            return
        await self.emit_to_room(room, "messages-read", {"sessionId": session_id, "userId": principal.user_id}, skip_sid=sid)

    async def on_typing(self, sid: str, data: Any = None) -> None:
        await self._guarded(sid, "typing", self._typing, data)

    async def _typing(self, sid: str, data: Any) -> None:
        principal = self._principal(sid)
        session_id = _session_id_from(data)
        room = session_room(session_id)
        # No store round-trip: joining the room already passed the access check.
        if not self.rooms.is_member(sid, room):
            log.debug(f"Typing from {sid} ignored: not a member of {room}")
            return
        await self.emit_to_room(
            room,
            "user-typing",
            {"sessionId": session_id, "userId": principal.user_id, "isTyping": bool(data.get("isTyping"))},
            skip_sid=sid,
        )
