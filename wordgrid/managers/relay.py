"""
Room relay for client-authoritative game sync.

The relay knows nothing about the rules. It tracks who is in each room, which
seat they hold and which member is host, and fans messages out verbatim.
Connections only need an async ``send_json(dict)``.
"""

from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from fastapi import WebSocketDisconnect
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from ..schemas import (
    ActionMessage, FullStateBroadcast, FullStateMessage, HostPromoted,
    RequestState, Roster, RosterEntry, Welcome, client_message_adapter,
)

logger = logging.getLogger(__name__)

PLAYER_SEATS = (1, 2)

@dataclass
class Member:
    id: int
    name: str

@dataclass
class Room:
    id: str
    # insertion order is join order
    clients: Dict[Any, Member] = field(default_factory=dict)
    host: Optional[Any] = None

    def roster(self) -> Roster:
        return Roster(players=[RosterEntry(id=m.id, name=m.name) for m in self.clients.values()])

    def connection_for(self, player_id: int) -> Optional[Any]:
        return next((conn for conn, m in self.clients.items() if m.id == player_id), None)

def assign_seat(used, preferred: Optional[int] = None) -> int:
    if preferred in PLAYER_SEATS and preferred not in used:
        return preferred
    seat = 1
    while seat in used:
        seat += 1
    return seat

class RoomRelay:
    def __init__(self):
        self.rooms: Dict[str, Room] = {}

    def get_or_create(self, room_id: str) -> Room:
        if room_id not in self.rooms:
            self.rooms[room_id] = Room(room_id)
            logger.info("Room %s created", room_id)
        return self.rooms[room_id]

    async def _send(self, conn, message: Union[BaseModel, dict]):
        payload = message.model_dump() if isinstance(message, BaseModel) else message
        try:
            await conn.send_json(payload)
        except (RuntimeError, WebSocketDisconnect):
            logger.debug("Dropped %s to a closed connection", payload.get('type'))

    async def broadcast(self, room: Room, message: Union[BaseModel, dict], exclude=None):
        for conn in list(room.clients):
            if conn is not exclude:
                await self._send(conn, message)

    async def join(self, conn, room_id: str, name: str, preferred_id: Optional[int] = None) -> Member:
        room = self.get_or_create(room_id)
        used = {m.id for m in room.clients.values()}
        member = Member(assign_seat(used, preferred_id), name)
        if not room.clients:
            room.host = conn
        room.clients[conn] = member
        is_host = room.host is conn
        logger.info("Room %s: %s joined as %d%s", room_id, name, member.id, ' (host)' if is_host else '')

        await self._send(conn, Welcome(playerId=member.id, isHost=is_host))
        await self.broadcast(room, room.roster())
        if room.host is not None and not is_host:
            await self._send(room.host, RequestState(targetPlayerId=member.id))
        return member

    async def handle_message(self, conn, room_id: str, raw: Union[str, bytes, dict]):
        room = self.rooms.get(room_id)
        if room is None or conn not in room.clients:
            return
        try:
            data = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
            message = client_message_adapter.validate_python(data)
        except (ValueError, SchemaError) as e:
            logger.debug("Room %s: dropped malformed message: %s", room_id, e)
            return

        if isinstance(message, FullStateMessage):
            target = room.connection_for(message.targetPlayerId) if message.targetPlayerId is not None else None
            if target is not None:
                await self._send(target, FullStateMessage(payload=message.payload).model_dump(exclude={'targetPlayerId'}))
        elif isinstance(message, FullStateBroadcast):
            await self.broadcast(room, FullStateMessage(payload=message.payload).model_dump(exclude={'targetPlayerId'}))
        elif isinstance(message, ActionMessage):
            # echoed to the sender too so every client applies actions the same way
            sender = room.clients[conn]
            await self.broadcast(room, ActionMessage(action=message.action, senderId=sender.id))

    async def leave(self, conn, room_id: str):
        room = self.rooms.get(room_id)
        if room is None or conn not in room.clients:
            return
        member = room.clients.pop(conn)
        logger.info("Room %s: %s (%d) left", room_id, member.name, member.id)
        if room.host is conn:
            room.host = next(iter(room.clients), None)
            if room.host is not None:
                logger.info("Room %s: host moved to %d", room_id, room.clients[room.host].id)
                await self._send(room.host, HostPromoted())
        if not room.clients:
            del self.rooms[room_id]
            logger.info("Room %s destroyed", room_id)
            return
        await self.broadcast(room, room.roster())
