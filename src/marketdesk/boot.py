# src/marketdesk/boot.py

import logging
from typing import Any, Dict, Optional

from marketdesk.application.services.chat_service import ChatService
from marketdesk.application.services.order_service import OrderService
from marketdesk.infrastructure.db.uow import SessionScope
from marketdesk.interfaces.api.security.verifier import AuthVerifier
from marketdesk.interfaces.realtime.gateway import Broadcaster, RealtimeGateway

log = logging.getLogger(__name__)


def build_services(session_scope: Optional[SessionScope] = None, broadcaster: Optional[Broadcaster] = None) -> Dict[str, Any]:
    """
    Composition root. One instance of each service per process; the gateway
    gets its broadcaster here or later through `RealtimeGateway.bind`.
    """
    order_service = OrderService(session_scope)
    chat_service = ChatService(session_scope)
    auth_verifier = AuthVerifier(session_scope)
    gateway = RealtimeGateway(auth_verifier, chat_service, broadcaster)

    log.info("Services built")
    return {
        "order_service": order_service,
        "chat_service": chat_service,
        "auth_verifier": auth_verifier,
        "gateway": gateway,
    }
