from __future__ import annotations
import logging
from typing import Optional

from fastapi import APIRouter, Query, WebSocket, status

from ..managers.relay import RoomRelay

logger = logging.getLogger(__name__)

router = APIRouter()

def _parse_seat(raw: Optional[str]) -> Optional[int]:
    try:
        return int(float(raw)) if raw is not None else None
    except (ValueError, OverflowError):
        return None

@router.websocket('/ws')
async def relay_endpoint(websocket: WebSocket, room: str = '', name: str = '',
                         pref_id: Optional[str] = Query(None, alias='prefId')):
    relay: RoomRelay = websocket.app.state.relay
    await websocket.accept()
    room, name = room.strip(), name.strip()
    if not room or not name:
        # no reply, just close
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await relay.join(websocket, room, name, _parse_seat(pref_id))
    try:
        while True:
            message = await websocket.receive()
            if message['type'] == 'websocket.disconnect':
                break
            raw = message.get('text')
            if raw is None and message.get('bytes') is not None:
                raw = message['bytes'].decode('utf-8', 'replace')
            if raw is not None:
                await relay.handle_message(websocket, room, raw)
    finally:
        await relay.leave(websocket, room)
