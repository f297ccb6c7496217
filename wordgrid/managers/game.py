from __future__ import annotations
import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..dictionary import DictionaryService
from ..errors import (
    BagTooSmall, NotYourTurn, OutOfBounds, PlacementsPending, SquareOccupied,
    ValidationError,
)
from ..game_logic import (
    BOARD_SIZE, RACK_SIZE, TOTAL_TILES, Board, Rack, TileBag, build_bag,
    create_board, letter_value,
)
from ..movelog import MoveLog
from ..schemas import Action, GameSnapshot, MoveRecord, Placement, PlayerState, Tile
from ..validator import FULL_RACK_BONUS, HORIZONTAL, VERTICAL, MoveResult, validate_move
from .timer import DEFAULT_ALLOWANCE_MS, TICK_MS, TurnClock

logger = logging.getLogger(__name__)

SEATS = (1, 2)

class TurnPhase(str, Enum):
    SELECTING = 'selecting'
    PLACING = 'placing'

@dataclass
class Player:
    id: int
    name: str
    score: int = 0
    rack: Rack = field(default_factory=Rack)

@dataclass
class MoveOutcome:
    kind: str
    player_id: int
    score: int = 0
    words: List[str] = field(default_factory=list)
    drawn: int = 0
    next_player_id: Optional[int] = None

class Game:
    def __init__(self, game_id: str, is_word: Optional[Callable[[str], bool]] = None,
                 rng: Optional[random.Random] = None, move_log: Optional[MoveLog] = None,
                 allowance_ms: int = DEFAULT_ALLOWANCE_MS, rack_size: int = RACK_SIZE,
                 full_rack_bonus: int = FULL_RACK_BONUS, tick_ms: int = TICK_MS):
        self.id = game_id
        self.is_word = is_word or DictionaryService().is_valid
        self.rng = rng
        self.move_log = move_log
        self.rack_size = rack_size
        self.full_rack_bonus = full_rack_bonus
        self.tick_ms = tick_ms
        self.board: Board = create_board()
        self.bag: TileBag = TileBag()
        self.players: Dict[int, Player] = {}
        self.status: str = 'lobby'
        self.clock = TurnClock(allowance_ms=allowance_ms)
        # staging for the current turn
        self.placements: List[Placement] = []
        self._used_indices: List[int] = []
        self.phase = TurnPhase.SELECTING
        self.cursor: Optional[Tuple[int, int]] = None
        self.direction = HORIZONTAL

    @property
    def current_player_id(self) -> Optional[int]:
        return self.clock.current

    @property
    def current_player(self) -> Optional[Player]:
        if self.current_player_id is None:
            return None
        return self.players.get(self.current_player_id)

    def tile_total(self) -> int:
        return len(self.bag) + sum(len(p.rack) for p in self.players.values()) + self.board.tile_count()

    # Lobby

    def add_player(self, player_id: int, name: str) -> Player:
        if player_id not in SEATS:
            raise ValueError(f"Seat {player_id} is not a playing seat")
        if self.status != 'lobby':
            raise ValueError("Players can only be seated before the game starts")
        player = self.players.get(player_id)
        if player:
            player.name = name
        else:
            player = self.players[player_id] = Player(player_id, name, rack=Rack(capacity=self.rack_size))
        return player

    def start(self):
        if self.status != 'lobby':
            return
        if not self.players:
            raise ValueError("Cannot start a game without players")
        self.bag = build_bag(self.rng)
        for pid in sorted(self.players):
            self.players[pid].rack.refill(self.bag)
        self.clock.seat(self.players)
        self.status = 'active'
        self._reset_staging()
        logger.info("Game %s started with seats %s", self.id, sorted(self.players))

    # Staging

    def _require_active(self):
        if self.status != 'active':
            raise ValidationError("Game is not active")

    def select_square(self, x: int, y: int):
        if self.placements:
            raise PlacementsPending("Finish or clear the current placements first")
        if not self.board.in_bounds(x, y):
            raise OutOfBounds(f"Square ({x}, {y}) is off the board")
        self.cursor = (x, y)

    def toggle_direction(self):
        self.direction = VERTICAL if self.direction == HORIZONTAL else HORIZONTAL

    def _staged_at(self, x: int, y: int) -> bool:
        return any(p.x == x and p.y == y for p in self.placements)

    def place(self, x: int, y: int, rack_index: int, letter: Optional[str] = None) -> Placement:
        self._require_active()
        rack = self.current_player.rack
        if not self.board.in_bounds(x, y):
            raise OutOfBounds(f"Square ({x}, {y}) is off the board")
        if self.board.is_occupied(x, y) or self._staged_at(x, y):
            raise SquareOccupied(f"Square ({x}, {y}) is already taken")
        if rack_index < 0 or rack_index >= len(rack) or rack_index in self._used_indices:
            raise IndexError(f"Rack tile {rack_index} is not available")
        source = rack.tiles[rack_index]
        if source.isBlank:
            if not letter or len(letter) != 1 or not letter.isalpha():
                raise ValueError("A blank needs a single letter to stand for")
            tile = Tile(letter=letter.upper(), value=0, isBlank=True)
        else:
            tile = source.model_copy()
        placement = Placement(x=x, y=y, tile=tile, isBlank=tile.isBlank)
        self.placements.append(placement)
        self._used_indices.append(rack_index)
        self.phase = TurnPhase.PLACING
        return placement

    def place_letter(self, letter: str, is_blank: bool = False) -> Placement:
        """Place a rack tile at the cursor and step the cursor along the direction."""
        self._require_active()
        if self.cursor is None:
            raise ValueError("Select a square first")
        rack = self.current_player.rack
        letter = letter.upper()
        index = next(
            (i for i, t in enumerate(rack.tiles)
             if i not in self._used_indices and (t.isBlank if is_blank else (not t.isBlank and t.letter == letter))),
            None,
        )
        if index is None:
            raise IndexError(f"No {'blank' if is_blank else letter} tile left on the rack")
        x, y = self.cursor
        placement = self.place(x, y, index, letter if is_blank else None)
        dx, dy = self.direction
        x, y = x + dx, y + dy
        while self.board.in_bounds(x, y) and self.board.is_occupied(x, y):
            x, y = x + dx, y + dy
        self.cursor = (min(x, BOARD_SIZE - 1), min(y, BOARD_SIZE - 1))
        return placement

    def backspace(self) -> Optional[Placement]:
        if not self.placements:
            return None
        removed = self.placements.pop()
        self._used_indices.pop()
        self.cursor = (removed.x, removed.y)
        if not self.placements:
            self.phase = TurnPhase.SELECTING
        return removed

    def clear_placements(self):
        self.placements = []
        self._used_indices = []
        self.phase = TurnPhase.SELECTING

    def _reset_staging(self):
        self.clear_placements()
        self.cursor = None

    # Turn actions built locally, applied through apply_action

    def validate(self, placements: Optional[Iterable[Placement]] = None) -> MoveResult:
        return validate_move(
            self.board, list(self.placements if placements is None else placements),
            self.is_word, self.rack_size, self.full_rack_bonus,
        )

    def submit(self) -> Action:
        self._require_active()
        self.validate()
        return Action(kind='submit_move', placements=list(self.placements))

    def pass_action(self) -> Action:
        self._require_active()
        if self.placements:
            raise PlacementsPending("Clear your placements before passing")
        return Action(kind='pass')

    def exchange_action(self, indices: Iterable[int]) -> Action:
        self._require_active()
        if self.placements:
            raise PlacementsPending("Clear your placements before exchanging")
        indices = sorted(set(indices))
        rack = self.current_player.rack
        if not indices or any(i < 0 or i >= len(rack) for i in indices):
            raise ValidationError("Choose at least one tile from your rack to exchange")
        if len(self.bag) < len(indices):
            raise BagTooSmall(f"Only {len(self.bag)} tiles left in the bag")
        return Action(kind='exchange', indices=indices)

    def apply_action(self, action: Action, sender_id: int) -> MoveOutcome:
        """The single path through which committed moves, passes and exchanges change state."""
        self._require_active()
        if sender_id != self.current_player_id:
            raise NotYourTurn(f"It is player {self.current_player_id}'s turn")
        if action.kind == 'submit_move':
            return self._commit(self.current_player, [self._normalize(p) for p in action.placements])
        if action.kind == 'pass':
            logger.info("Game %s: player %s passes", self.id, sender_id)
            return MoveOutcome('pass', sender_id, next_player_id=self._advance_turn())
        if action.kind == 'exchange':
            return self._exchange(self.current_player, action.indices)
        raise ValidationError(f"Unknown action {action.kind}")

    @staticmethod
    def _normalize(p: Placement) -> Placement:
        letter = (p.tile.letter or '').upper()
        if len(letter) != 1 or not letter.isalpha():
            raise ValidationError(f"Placement at ({p.x}, {p.y}) has no letter")
        value = 0 if p.isBlank else letter_value(letter)
        return Placement(x=p.x, y=p.y, tile=Tile(letter=letter, value=value, isBlank=p.isBlank), isBlank=p.isBlank)

    def _commit(self, player: Player, placements: List[Placement]) -> MoveOutcome:
        result = self.validate(placements)
        # raises RackMismatch before anything is mutated
        player.rack.remove_for_placement(placements)
        for p in placements:
            self.board.place(p.x, p.y, p.tile)
        player.score += result.score
        drawn = player.rack.refill(self.bag)
        if self.move_log:
            self.move_log.write(MoveRecord(gameId=self.id, playerId=player.id, placements=placements, score=result.score))
        logger.info("Game %s: player %s plays %s for %d", self.id, player.id, ', '.join(result.words), result.score)
        if not player.rack.tiles and not self.bag.tiles:
            self.status = 'finished'
            self._reset_staging()
            logger.info("Game %s finished", self.id)
            return MoveOutcome('submit_move', player.id, result.score, result.words, len(drawn))
        return MoveOutcome('submit_move', player.id, result.score, result.words, len(drawn), self._advance_turn())

    def _exchange(self, player: Player, indices: List[int]) -> MoveOutcome:
        if len(self.bag) < len(set(indices)):
            raise BagTooSmall(f"Only {len(self.bag)} tiles left in the bag")
        try:
            returned = player.rack.exchange(indices, self.bag)
        except IndexError as e:
            raise ValidationError(str(e)) from e
        logger.info("Game %s: player %s exchanges %d tiles", self.id, player.id, len(returned))
        return MoveOutcome('exchange', player.id, drawn=len(returned), next_player_id=self._advance_turn())

    def _advance_turn(self) -> Optional[int]:
        self._reset_staging()
        return self.clock.advance()

    def tick(self, elapsed_ms: int) -> bool:
        """Run the current player's clock; an expired clock forces a pass."""
        if self.status != 'active':
            return False
        expired_id = self.current_player_id
        if not self.clock.tick(elapsed_ms):
            return False
        logger.info("Game %s: player %s ran out of time", self.id, expired_id)
        self._advance_turn()
        return True

    # Snapshots

    def to_state(self) -> GameSnapshot:
        return GameSnapshot(
            id=self.id,
            status=self.status,  # type: ignore
            currentPlayerId=self.current_player_id,
            players=[
                PlayerState(id=p.id, name=p.name, score=p.score, rack=list(p.rack.tiles),
                            remainingMs=self.clock.remaining_ms(p.id))
                for p in sorted(self.players.values(), key=lambda p: p.id)
            ],
            board=self.board.placed(),
            bag=self.bag.tiles,
            tileBagCount=len(self.bag),
        )

    def _same_turn(self, snapshot: GameSnapshot) -> bool:
        current = self.current_player
        if self.status != 'active' or snapshot.status != 'active' or current is None:
            return False
        if snapshot.currentPlayerId != current.id or snapshot.board != self.board.placed():
            return False
        rack = next((ps.rack for ps in snapshot.players if ps.id == current.id), None)
        return rack == current.rack.tiles

    def load_state(self, snapshot: GameSnapshot):
        """Replace the game with a snapshot. Staged placements survive only if the turn is unchanged."""
        keep_staging = self._same_turn(snapshot)
        board = create_board()
        for p in snapshot.board:
            board.place(p.x, p.y, p.tile)
        self.board = board
        self.bag = TileBag(snapshot.bag)
        self.players = {
            ps.id: Player(ps.id, ps.name, ps.score, Rack(ps.rack, capacity=self.rack_size))
            for ps in snapshot.players
        }
        self.status = snapshot.status
        self.clock.remaining = { ps.id: ps.remainingMs for ps in snapshot.players }
        self.clock.current = snapshot.currentPlayerId
        self.clock.paused = (
            self.status != 'active' or self.clock.current is None or self.clock.is_exhausted(self.clock.current)
        )
        if not keep_staging:
            self._reset_staging()
        if self.status != 'lobby' and self.tile_total() != TOTAL_TILES:
            logger.warning("Game %s: snapshot holds %d tiles, expected %d", self.id, self.tile_total(), TOTAL_TILES)

    @classmethod
    def from_state(cls, snapshot: GameSnapshot, **kwargs) -> 'Game':
        game = cls(snapshot.id, **kwargs)
        game.load_state(snapshot)
        return game

    @classmethod
    def from_config(cls, game_id: str, config, **kwargs) -> 'Game':
        """Build a game using the rule settings of a ``Config`` class."""
        kwargs.setdefault('allowance_ms', config.TIME_ALLOWANCE_MS)
        kwargs.setdefault('rack_size', config.RACK_SIZE)
        kwargs.setdefault('full_rack_bonus', config.FULL_RACK_BONUS)
        kwargs.setdefault('tick_ms', config.TICK_MS)
        return cls(game_id, **kwargs)
