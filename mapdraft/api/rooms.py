"""
Rooms - Communication groups for session broadcasts.

A room is the set of socket connections subscribed to one session id.
Each connection (RoomMember) owns an outbox queue drained by a single
sender task, so acknowledgements and broadcasts reach a client in the
order they were produced and only one coroutine ever writes to the socket.

Broadcasts are fire-and-forget: a member whose socket fails is marked
closed and skipped; its endpoint removes it from its rooms on exit.
"""

from __future__ import annotations
from typing import Any
import asyncio
import logging
import uuid

from ..engine_core.state import PartyLabel

logger = logging.getLogger(__name__)


class RoomMember:
    """One connected client."""

    def __init__(self, websocket: Any, member_id: str | None = None):
        self.member_id = member_id or uuid.uuid4().hex
        self.websocket = websocket
        self.closed = False
        # Session id -> the party this connection acts as there
        self.seats: dict[str, PartyLabel] = {}
        self._outbox: asyncio.Queue[dict[str, Any] | None] = asyncio.Queue()
        try:
            self._loop: asyncio.AbstractEventLoop | None = asyncio.get_running_loop()
        except RuntimeError:
            self._loop = None

    def send(self, message: dict[str, Any]) -> bool:
        """Queue a message; returns False if the member is gone."""
        if self.closed:
            return False
        self._enqueue(message)
        return True

    def close(self) -> None:
        """Stop the sender after it drains what is already queued."""
        if not self.closed:
            self.closed = True
            self._enqueue(None)

    def _enqueue(self, message: dict[str, Any] | None) -> None:
        # Mutations made from a worker thread (sync callers) hop onto the socket's loop
        try:
            current = asyncio.get_running_loop()
        except RuntimeError:
            current = None
        if self._loop is None or current is self._loop:
            self._outbox.put_nowait(message)
        elif self._loop.is_closed():
            self.closed = True
        else:
            self._loop.call_soon_threadsafe(self._outbox.put_nowait, message)

    async def run_sender(self) -> None:
        """Drain the outbox into the socket until closed."""
        while True:
            message = await self._outbox.get()
            if message is None:
                return
            try:
                await self.websocket.send_json(message)
            except Exception:
                logger.debug("Dropping member %s after failed send", self.member_id)
                self.closed = True
                return


class RoomRegistry:
    """Session id -> members subscribed to that session."""

    def __init__(self):
        self._rooms: dict[str, dict[str, RoomMember]] = {}

    def join(self, room_id: str, member: RoomMember) -> None:
        self._rooms.setdefault(room_id, {})[member.member_id] = member

    def leave(self, room_id: str, member: RoomMember) -> bool:
        """
        Remove a member from a room.

        Returns True if this emptied the room.
        """
        members = self._rooms.get(room_id)
        if members is None or member.member_id not in members:
            return False
        del members[member.member_id]
        if not members:
            del self._rooms[room_id]
            return True
        return False

    def leave_all(self, member: RoomMember) -> list[str]:
        """Remove a member everywhere; returns the rooms it emptied."""
        emptied = []
        for room_id in self.rooms_of(member):
            if self.leave(room_id, member):
                emptied.append(room_id)
        return emptied

    def rooms_of(self, member: RoomMember) -> list[str]:
        return [
            room_id for room_id, members in self._rooms.items()
            if member.member_id in members
        ]

    def members(self, room_id: str) -> list[RoomMember]:
        return list(self._rooms.get(room_id, {}).values())

    def active_rooms(self) -> set[str]:
        return set(self._rooms)

    def broadcast(self, room_id: str, message: dict[str, Any]) -> int:
        """Queue a message for every live member; returns how many took it."""
        delivered = 0
        for member in self.members(room_id):
            if member.send(message):
                delivered += 1
        return delivered
