from __future__ import annotations
import logging
import uuid
from typing import Dict, Optional, Tuple

from pydantic import ValidationError as SchemaError

from ..errors import MatchmakingDenied
from ..schemas import FindGame, GameStart

logger = logging.getLogger(__name__)

WAITING_MESSAGE = 'Waiting for another player...'

class Matchmaker:
    """Pairs the first two distinct identities waiting at the same time."""

    def __init__(self, sio):
        self.sio = sio
        self.active: Dict[str, str] = {}  # identity -> sid
        self.identities: Dict[str, str] = {}  # sid -> identity
        self.waiting: Optional[Tuple[str, str]] = None  # (sid, identity)

    def _claim(self, sid: str, payload) -> str:
        try:
            request = FindGame.model_validate(payload) if isinstance(payload, dict) else FindGame()
        except SchemaError:
            request = FindGame()
        identity = (request.username or '').strip()
        if not identity:
            raise MatchmakingDenied('missing_identity')
        owner = self.active.get(identity)
        if owner is not None and owner != sid:
            raise MatchmakingDenied('already_active')
        previous = self.identities.get(sid)
        if previous and previous != identity and self.active.get(previous) == sid:
            del self.active[previous]
        self.active[identity] = sid
        self.identities[sid] = identity
        return identity

    async def find_game(self, sid: str, payload) -> Optional[GameStart]:
        try:
            identity = self._claim(sid, payload)
        except MatchmakingDenied as e:
            logger.info("Matchmaking denied for %s: %s", sid, e.reason)
            await self.sio.emit('auth:denied', e.to_dict(), to=sid)
            return None

        if self.waiting is None or self.waiting[0] == sid or self.waiting[1] == identity:
            self.waiting = (sid, identity)
            await self.sio.emit('waiting', WAITING_MESSAGE, to=sid)
            return None

        other_sid, other_identity = self.waiting
        self.waiting = None
        start = GameStart(roomId=f"room-{uuid.uuid4().hex[:12]}", player1=other_identity, player2=identity)
        await self.sio.enter_room(other_sid, start.roomId)
        await self.sio.enter_room(sid, start.roomId)
        await self.sio.emit('game:start', start.model_dump(), room=start.roomId)
        logger.info("Paired %s and %s in %s", other_identity, identity, start.roomId)
        return start

    def disconnect(self, sid: str):
        if self.waiting and self.waiting[0] == sid:
            self.waiting = None
        identity = self.identities.pop(sid, None)
        if identity and self.active.get(identity) == sid:
            del self.active[identity]
