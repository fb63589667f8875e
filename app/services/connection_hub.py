# app/services/connection_hub.py
import asyncio
import logging
import uuid
from collections import defaultdict
from typing import Dict, Iterable, Optional, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class Connection:
    """One live socket plus the chat context it announced on join."""

    def __init__(
        self,
        websocket: Optional[WebSocket] = None,
        is_admin: bool = False,
        admin_id: Optional[int] = None,
        connection_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ):
        self.id = connection_id or uuid.uuid4().hex
        self.websocket = websocket
        self.is_admin = is_admin
        self.admin_id = admin_id

        if websocket is not None:
            ip_address = ip_address or (websocket.client.host if websocket.client else None)
            user_agent = user_agent or websocket.headers.get("user-agent")
        self.ip_address = ip_address
        self.user_agent = user_agent

        # cached from join_session, used when the first message creates the session
        self.user_id: Optional[str] = None
        self.guest_id: Optional[str] = None
        self.guest_details: Optional[dict] = None

        self.rooms: Set[str] = set()
        self.closed = False
        self._send_lock = asyncio.Lock()

    async def emit(self, event: str, data) -> bool:
        if self.closed or self.websocket is None:
            return False
        # keeps per-connection delivery FIFO when handler and bot task both send
        async with self._send_lock:
            try:
                await self.websocket.send_json({"event": event, "data": data})
                return True
            except Exception as exc:
                self.closed = True
                logger.debug("Dropping %s for closed connection %s: %s", event, self.id, exc)
                return False

    def __repr__(self):
        kind = "admin" if self.is_admin else "client"
        return f"<Connection {self.id} {kind}>"


class ConnectionHub:
    """
    In-process pub/sub for chat sockets: named rooms plus the set of admin observers.
    """

    def __init__(self):
        self._connections: Dict[str, Connection] = {}
        self._rooms: Dict[str, Set[str]] = defaultdict(set)

    def register(self, conn: Connection):
        self._connections[conn.id] = conn
        logger.info("Connected: %r", conn)

    def unregister(self, conn: Connection):
        for room in list(conn.rooms):
            self.leave(conn, room)
        self._connections.pop(conn.id, None)
        conn.closed = True
        logger.info("Disconnected: %r", conn)

    def join(self, conn: Connection, room: str):
        self._rooms[room].add(conn.id)
        conn.rooms.add(room)

    def join_all(self, conn: Connection, rooms: Iterable[str]):
        for room in rooms:
            self.join(conn, room)

    def leave(self, conn: Connection, room: str):
        members = self._rooms.get(room)
        if members is not None:
            members.discard(conn.id)
            if not members:
                del self._rooms[room]
        conn.rooms.discard(room)

    def members(self, room: str):
        return [self._connections[cid] for cid in self._rooms.get(room, ()) if cid in self._connections]

    @property
    def admins(self):
        return [c for c in self._connections.values() if c.is_admin]

    def __len__(self):
        return len(self._connections)

    async def emit_to_room(self, room: str, event: str, data, exclude: Optional[Connection] = None) -> int:
        delivered = 0
        for conn in self.members(room):
            if conn is exclude:
                continue
            if await conn.emit(event, data):
                delivered += 1
        return delivered

    async def broadcast_admins(self, event: str, data) -> int:
        delivered = 0
        for conn in self.admins:
            if await conn.emit(event, data):
                delivered += 1
        return delivered
