# src/marketdesk/interfaces/realtime/rooms.py
"""
Explicit room membership: which connection is in which room.

Kept in-process and independent of the socket transport so joins, rejoins
after reconnect and broadcast fan-out can be tested without a live socket.
"""

from collections import defaultdict
from typing import Dict, List, Set

ADMIN_ROOM = "admin:all"


def user_room(user_id: str) -> str:
    return f"user:{user_id}"


def session_room(session_id: str) -> str:
    return f"session:{session_id}"


class RoomRegistry:
    def __init__(self):
        self._rooms: Dict[str, Dict[str, None]] = defaultdict(dict)  # room -> sids, join order kept
        self._memberships: Dict[str, Set[str]] = defaultdict(set)   # sid -> rooms

    def join(self, sid: str, room: str) -> bool:
        """Add `sid` to `room`. Returns False when it was already a member."""
        if sid in self._rooms[room]:
            return False
        self._rooms[room][sid] = None
        self._memberships[sid].add(room)
        return True

    def leave(self, sid: str, room: str) -> None:
        members = self._rooms.get(room)
        if members is not None:
            members.pop(sid, None)
            if not members:
                del self._rooms[room]
        rooms = self._memberships.get(sid)
        if rooms is not None:
            rooms.discard(room)

    def leave_all(self, sid: str) -> Set[str]:
        rooms = self._memberships.pop(sid, set())
        for room in rooms:
            members = self._rooms.get(room)
            if members is not None:
                members.pop(sid, None)
                if not members:
                    del self._rooms[room]
        return rooms

    def members(self, room: str) -> List[str]:
        return list(self._rooms.get(room, {}))

    def rooms_of(self, sid: str) -> Set[str]:
        return set(self._memberships.get(sid, set()))

    def is_member(self, sid: str, room: str) -> bool:
        return sid in self._rooms.get(room, {})

    def __len__(self) -> int:
        return len(self._rooms)
