# src/marketdesk/interfaces/api/deps.py

from __future__ import annotations
from fastapi import Request, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Any, Optional, Set

from marketdesk.domain.entities import Principal, UserRole
from marketdesk.domain.errors import Forbidden, Transient
from marketdesk.application.services.order_service import OrderService
from marketdesk.application.services.chat_service import ChatService
from marketdesk.interfaces.api.security.verifier import AuthVerifier
from marketdesk.interfaces.realtime.gateway import RealtimeGateway

# --- Security & Auth Dependencies ---

bearer_scheme = HTTPBearer(auto_error=False)

def _service(request: Request, name: str) -> Any:
    service = (request.app.state.services or {}).get(name)
    if not service:
        raise Transient(f"{name} is currently unavailable")
    return service

def get_current_principal(
    request: Request,
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    """Same verifier as the socket handshake; raises Unauthorized on any rejection."""
    verifier = _service(request, "auth_verifier")
    return verifier.verify(creds.credentials if creds else None)

def require_roles(required: Set[UserRole]):
    """
    Dependency that requires the current user to have one of the specified roles.
    """
    def _dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in required:
            raise Forbidden("Insufficient permissions")
        return principal
    return _dependency

require_admin = require_roles({UserRole.ADMIN})

# --- Service Dependencies ---

def get_order_service(request: Request) -> OrderService:
    return _service(request, "order_service")

def get_chat_service(request: Request) -> ChatService:
    return _service(request, "chat_service")

def get_gateway(request: Request) -> RealtimeGateway:
    return _service(request, "gateway")

def get_auth_verifier(request: Request) -> AuthVerifier:
    return _service(request, "auth_verifier")
