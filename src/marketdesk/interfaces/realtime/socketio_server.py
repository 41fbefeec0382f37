# src/marketdesk/interfaces/realtime/socketio_server.py
"""
python-socketio transport for the RealtimeGateway.

Only this module knows about socket.io: it maps wire events onto gateway
handlers and gives the gateway a `Broadcaster` that emits to a single sid.
"""

import logging
from typing import Any, Dict, List

import socketio
from socketio.exceptions import ConnectionRefusedError as HandshakeRefused

from marketdesk.domain.errors import Unauthorized

from .gateway import RealtimeGateway

log = logging.getLogger(__name__)


class SocketIOBroadcaster:
    def __init__(self, sio: socketio.AsyncServer):
        self.sio = sio

    async def emit(self, event: str, data: Dict[str, Any], to: str) -> None:
        await self.sio.emit(event, data, to=to)


def build_socket_server(gateway: RealtimeGateway, cors_origins: List[str]) -> socketio.AsyncServer:
    allowed = "*" if "*" in cors_origins else cors_origins
    sio = socketio.AsyncServer(async_mode="asgi", cors_allowed_origins=allowed, logger=False, engineio_logger=False)
    gateway.bind(SocketIOBroadcaster(sio))

    @sio.event
    async def connect(sid, environ, auth=None):
        try:
            await gateway.connect(sid, auth, environ)
        except Unauthorized as e:
            raise HandshakeRefused({"message": e.message, "code": e.code})

    @sio.event
    async def disconnect(sid, *args):
        await gateway.disconnect(sid)

    sio.on("join-sessions", gateway.on_join_sessions)
    sio.on("join-session", gateway.on_join_session)
    sio.on("send-message", gateway.on_send_message)
    sio.on("mark-read", gateway.on_mark_read)
    sio.on("typing", gateway.on_typing)

    log.info("Socket.IO server ready")
    return sio
