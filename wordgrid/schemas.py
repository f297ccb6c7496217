from __future__ import annotations
from datetime import datetime, timezone
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

class Tile(BaseModel):
    # letter is None for a blank still on a rack; once played it holds the chosen letter
    letter: Optional[str] = None
    value: int = 0
    isBlank: bool = False

class Placement(BaseModel):
    x: int
    y: int
    tile: Tile
    isBlank: bool = False

ActionKind = Literal['submit_move', 'pass', 'exchange']

class Action(BaseModel):
    kind: ActionKind
    placements: List[Placement] = []
    indices: List[int] = []

class PlayerState(BaseModel):
    id: int
    name: str
    score: int = 0
    rack: List[Tile] = []
    remainingMs: int = 0

GameStatus = Literal['lobby', 'active', 'finished']

class GameSnapshot(BaseModel):
    id: str
    status: GameStatus = 'lobby'
    currentPlayerId: Optional[int] = None
    players: List[PlayerState] = []
    board: List[Placement] = []
    # full bag order so every client draws the same tiles
    bag: List[Tile] = []
    tileBagCount: int = 0

# Relay wire messages

class RosterEntry(BaseModel):
    id: int
    name: str

class Welcome(BaseModel):
    type: Literal['welcome'] = 'welcome'
    playerId: int
    isHost: bool

class Roster(BaseModel):
    type: Literal['roster'] = 'roster'
    players: List[RosterEntry]

class RequestState(BaseModel):
    type: Literal['request_state'] = 'request_state'
    targetPlayerId: int

class HostPromoted(BaseModel):
    type: Literal['you_are_host_now'] = 'you_are_host_now'

class FullStateMessage(BaseModel):
    type: Literal['full_state'] = 'full_state'
    targetPlayerId: Optional[int] = None
    payload: Any = None

class FullStateBroadcast(BaseModel):
    type: Literal['full_state_broadcast'] = 'full_state_broadcast'
    payload: Any = None

class ActionMessage(BaseModel):
    type: Literal['action'] = 'action'
    # opaque to the relay
    action: Any = None
    senderId: Optional[int] = None

ClientMessage = Annotated[
    Union[FullStateMessage, FullStateBroadcast, ActionMessage],
    Field(discriminator='type'),
]
client_message_adapter = TypeAdapter(ClientMessage)

# Matchmaking / REST

class FindGame(BaseModel):
    username: Optional[str] = None

class GameStart(BaseModel):
    roomId: str
    player1: str
    player2: str

class MoveRecord(BaseModel):
    gameId: str
    playerId: Union[int, str]
    placements: List[Placement] = []
    score: int = 0
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
