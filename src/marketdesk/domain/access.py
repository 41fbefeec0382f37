# src/marketdesk/domain/access.py
"""
Chat session authorization.

`can_access_session` is the only place the chat access rule is written down.
The REST routers, the chat service and the realtime gateway all go through it.
"""

from typing import Any, Optional

from .entities import Principal, UserRole


def can_access_session(owner_id: str, assigned_admin_id: Optional[str], principal: Principal) -> bool:
    """ADMIN always passes; anyone else must own the session or be its assigned admin."""
    if principal.role == UserRole.ADMIN:
        return True
    return principal.user_id in (owner_id, assigned_admin_id)


def session_is_accessible(session: Any, principal: Principal) -> bool:
    """Same rule, applied to a ChatSession row (or anything with `user_id`/`admin_id`)."""
    if session is None:
        return False
    return can_access_session(session.user_id, session.admin_id, principal)
