from __future__ import annotations
from typing import Dict, Iterable, List, Optional

from wordgrid.dictionary import DictionaryService
from wordgrid.game_logic import DISTRIBUTION, Board, TileBag, make_tile
from wordgrid.managers.game import Game
from wordgrid.schemas import Placement, Tile


def tile(letter: str, blank: bool = False) -> Tile:
    if blank:
        return Tile(letter=letter, value=0, isBlank=True)
    return make_tile(letter)


def placement(x: int, y: int, letter: str, blank: bool = False) -> Placement:
    return Placement(x=x, y=y, tile=tile(letter, blank), isBlank=blank)


def lay(board: Board, word: str, x: int, y: int, down: bool = False):
    for i, letter in enumerate(word):
        if down:
            board.place(x, y + i, make_tile(letter))
        else:
            board.place(x + i, y, make_tile(letter))


def oracle(*words: str):
    return DictionaryService(words).is_valid


def rigged_game(racks: Dict[int, str], words: Iterable[str] = (), bag: Optional[List[str]] = None,
                **kwargs) -> Game:
    """Active game with fixed racks; the bag holds the rest of the distribution in sorted order."""
    game = Game('g1', is_word=DictionaryService(words).is_valid, **kwargs)
    for pid in sorted(racks):
        game.add_player(pid, f'Player {pid}')
    game.start()
    if bag is None:
        pool = [letter for letter, (count, _) in DISTRIBUTION.items() for _ in range(count)]
        for letters in racks.values():
            for letter in letters:
                pool.remove(letter)
        bag = sorted(pool)
    game.bag = TileBag(make_tile(letter) for letter in bag)
    for pid, letters in racks.items():
        game.players[pid].rack.tiles = [make_tile(letter) for letter in letters]
    return game


class FakeConnection:
    def __init__(self, name: str = 'conn', closed: bool = False):
        self.name = name
        self.closed = closed
        self.sent: List[dict] = []

    async def send_json(self, data: dict):
        if self.closed:
            raise RuntimeError('Cannot send once the connection is closed')
        self.sent.append(data)

    def of_type(self, kind: str) -> List[dict]:
        return [m for m in self.sent if m.get('type') == kind]


class FakeSio:
    def __init__(self):
        self.emitted: List[tuple] = []
        self.rooms: Dict[str, set] = {}
        self.handlers: Dict[str, object] = {}

    def on(self, event, handler=None, namespace=None):
        self.handlers[event] = handler

    async def emit(self, event, data=None, to=None, room=None, **kwargs):
        self.emitted.append((event, data, to if to is not None else room))

    async def enter_room(self, sid, room, **kwargs):
        self.rooms.setdefault(room, set()).add(sid)

    def events(self, name: str) -> List[tuple]:
        return [e for e in self.emitted if e[0] == name]
