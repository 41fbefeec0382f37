# src/marketdesk/interfaces/api/security/verifier.py
"""
The auth verifier: credential -> Principal.

The REST dependency and the realtime handshake both call `AuthVerifier.verify`
so a token is accepted or rejected identically on both paths.
"""

import logging
from typing import Any, Mapping, Optional

from jose import JWTError

from marketdesk.domain.entities import Principal
from marketdesk.domain.errors import Unauthorized
from marketdesk.infrastructure.db.repository import UserRepository
from marketdesk.infrastructure.db.uow import SessionScope, session_scope as default_session_scope

from .auth import ACCESS_TOKEN_TYPE, decode_token

log = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def extract_bearer(authorization: Optional[str]) -> Optional[str]:
    """Token from an `Authorization: Bearer <token>` header value, or None."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


def credential_from_handshake(auth: Optional[Mapping[str, Any]], environ: Optional[Mapping[str, Any]]) -> Optional[str]:
    """Socket handshakes carry the token in `auth.token` or in the Authorization header."""
    if auth and isinstance(auth, Mapping):
        token = auth.get("token")
        if isinstance(token, str) and token.strip():
            return token.strip()
    if environ:
        return extract_bearer(environ.get("HTTP_AUTHORIZATION"))
    return None


class AuthVerifier:
    def __init__(self, session_scope: Optional[SessionScope] = None):
        self.session_scope = session_scope or default_session_scope

    def verify(self, credential: Optional[str], token_type: str = ACCESS_TOKEN_TYPE) -> Principal:
        """Resolve an active user from a token of `token_type`. Refresh tokens only pass when asked for."""
        if not credential:
            raise Unauthorized("Authentication token required")
        try:
            payload = decode_token(credential)
        except JWTError:
            raise Unauthorized("Invalid token")

        user_id = payload.get("sub")
        if not user_id or payload.get("type") != token_type:
            raise Unauthorized("Invalid token")

        with self.session_scope() as session:
            user = UserRepository(session).find_active(str(user_id))
            if not user:
                raise Unauthorized("User not found")
            # Role comes from the store, not the token, so demotions apply immediately.
            return Principal(user_id=user.id, role=user.role)
