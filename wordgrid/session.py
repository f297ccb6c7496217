"""
Client-side driver for the room relay.

Each client owns a full ``Game`` and keeps it in step with the room by
applying every echoed ``action`` through ``Game.apply_action`` and loading
``full_state`` snapshots from the host. The host answers ``request_state``
for newcomers and deals the game once both playing seats are filled.

Incoming snapshots and actions can be screened with a ``verify`` hook;
the relay itself forwards whatever the host sends.
"""

from __future__ import annotations
import logging
from typing import Any, Callable, List, Optional

from pydantic import ValidationError as SchemaError

from .errors import NotYourTurn, RackMismatch, ValidationError
from .managers.game import SEATS, Game, MoveOutcome
from .managers.timer import ClockTicker
from .schemas import Action, GameSnapshot, RosterEntry

logger = logging.getLogger(__name__)

Verifier = Callable[[str, Any, Optional[int]], bool]

class RelaySession:
    def __init__(self, game: Game, send: Callable[[dict], Any], verify: Optional[Verifier] = None):
        self.game = game
        self.send = send
        self.verify = verify
        self.player_id: Optional[int] = None
        self.is_host = False
        self.roster: List[RosterEntry] = []
        self.last_outcome: Optional[MoveOutcome] = None

    @property
    def is_spectator(self) -> bool:
        return self.player_id is not None and self.player_id not in SEATS

    @property
    def my_turn(self) -> bool:
        return self.player_id is not None and self.player_id == self.game.current_player_id

    def handle(self, message: dict):
        kind = message.get('type') if isinstance(message, dict) else None
        handler = {
            'welcome': self._on_welcome,
            'roster': self._on_roster,
            'request_state': self._on_request_state,
            'full_state': self._on_full_state,
            'action': self._on_action,
            'you_are_host_now': self._on_host_promoted,
        }.get(kind)
        if handler is None:
            logger.debug("Ignoring message of type %r", kind)
            return None
        return handler(message)

    def _allowed(self, kind: str, payload: Any, sender_id: Optional[int]) -> bool:
        if self.verify is None or self.verify(kind, payload, sender_id):
            return True
        logger.warning("Rejected %s from %s", kind, sender_id)
        return False

    def _on_welcome(self, message: dict):
        self.player_id = message.get('playerId')
        self.is_host = bool(message.get('isHost'))

    def _on_roster(self, message: dict):
        try:
            self.roster = [RosterEntry.model_validate(p) for p in message.get('players') or []]
        except SchemaError:
            return
        self.maybe_start()

    def _on_host_promoted(self, message: dict):
        self.is_host = True
        logger.info("Player %s is now host", self.player_id)
        self.maybe_start()

    def _on_request_state(self, message: dict):
        if self.is_host:
            self.send_state(message.get('targetPlayerId'))

    def _on_full_state(self, message: dict):
        payload = message.get('payload')
        if not self._allowed('full_state', payload, None):
            return
        try:
            snapshot = GameSnapshot.model_validate(payload)
        except SchemaError as e:
            logger.warning("Bad snapshot: %s", e)
            return
        self.game.load_state(snapshot)

    def _on_action(self, message: dict) -> Optional[MoveOutcome]:
        sender_id = message.get('senderId')
        if not self._allowed('action', message.get('action'), sender_id):
            return None
        try:
            action = Action.model_validate(message.get('action'))
            outcome = self.game.apply_action(action, sender_id)
        except (SchemaError, ValidationError, RackMismatch) as e:
            logger.warning("Action from %s not applied: %s", sender_id, e)
            return None
        self.last_outcome = outcome
        return outcome

    def maybe_start(self):
        """Host only: deal the game once seats 1 and 2 are both present."""
        if not self.is_host or self.game.status != 'lobby':
            return
        seated = {p.id: p.name for p in self.roster if p.id in SEATS}
        if set(seated) != set(SEATS):
            return
        for seat, name in seated.items():
            self.game.add_player(seat, name)
        self.game.start()
        self.broadcast_state()

    def snapshot_payload(self) -> dict:
        return self.game.to_state().model_dump(mode='json')

    def send_state(self, target_player_id: Optional[int]):
        if target_player_id is None:
            return
        self.send({ 'type': 'full_state', 'targetPlayerId': target_player_id, 'payload': self.snapshot_payload() })

    def broadcast_state(self):
        self.send({ 'type': 'full_state_broadcast', 'payload': self.snapshot_payload() })

    # Local turn actions: checked here, applied when the relay echoes them back

    def _send_action(self, build: Callable[[], Action]) -> Action:
        if not self.my_turn:
            raise NotYourTurn("Wait for your turn")
        action = build()
        self.send({ 'type': 'action', 'action': action.model_dump(mode='json') })
        return action

    def submit_move(self) -> Action:
        return self._send_action(self.game.submit)

    def pass_turn(self) -> Action:
        return self._send_action(self.game.pass_action)

    def exchange(self, indices: List[int]) -> Action:
        return self._send_action(lambda: self.game.exchange_action(indices))

    def tick(self, elapsed_ms: int) -> bool:
        expired = self.game.tick(elapsed_ms)
        # local clocks drift; the host's view of an expiry wins
        if expired and self.is_host:
            self.broadcast_state()
        return expired

    def clock_ticker(self, tick_ms: Optional[int] = None) -> ClockTicker:
        """Each client runs the shared clock locally; start the ticker inside a running loop."""
        return ClockTicker(self.tick, tick_ms or self.game.tick_ms)
