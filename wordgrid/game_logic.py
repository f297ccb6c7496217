from __future__ import annotations
import random
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .errors import RackMismatch
from .schemas import Placement, Tile

BOARD_SIZE = 15
CENTER = (7, 7)
RACK_SIZE = 7
BLANK = '?'

# letter -> (count, value)
DISTRIBUTION: Dict[str, Tuple[int, int]] = {
    'A': (9, 1), 'B': (2, 3), 'C': (2, 3), 'D': (4, 2), 'E': (12, 1),
    'F': (2, 4), 'G': (3, 2), 'H': (2, 4), 'I': (9, 1), 'J': (1, 8),
    'K': (1, 5), 'L': (4, 1), 'M': (2, 3), 'N': (6, 1), 'O': (8, 1),
    'P': (2, 3), 'Q': (1, 10), 'R': (6, 1), 'S': (4, 1), 'T': (6, 1),
    'U': (4, 1), 'V': (2, 4), 'W': (2, 4), 'X': (1, 8), 'Y': (2, 4),
    'Z': (1, 10), BLANK: (2, 0),
}
TOTAL_TILES = sum(count for count, _ in DISTRIBUTION.values())

NORMAL = 'normal'
DOUBLE_LETTER = 'double-letter'
TRIPLE_LETTER = 'triple-letter'
DOUBLE_WORD = 'double-word'
TRIPLE_WORD = 'triple-word'
START = 'start'

# Premium squares of the top-left quadrant as (x, y); mirrored onto the other three.
_QUADRANT = {
    TRIPLE_WORD: [(0, 0), (7, 0), (0, 7)],
    DOUBLE_WORD: [(1, 1), (2, 2), (3, 3), (4, 4)],
    TRIPLE_LETTER: [(5, 1), (1, 5), (5, 5)],
    DOUBLE_LETTER: [(3, 0), (0, 3), (6, 2), (2, 6), (6, 6), (7, 3), (3, 7)],
}


def _premium_layout() -> Dict[Tuple[int, int], str]:
    layout: Dict[Tuple[int, int], str] = {}
    last = BOARD_SIZE - 1
    for square_type, coords in _QUADRANT.items():
        for x, y in coords:
            for mx, my in ((x, y), (last - x, y), (x, last - y), (last - x, last - y)):
                layout[(mx, my)] = square_type
    layout[CENTER] = START
    return layout


PREMIUM_LAYOUT = _premium_layout()


def letter_value(letter: Optional[str]) -> int:
    if not letter:
        return 0
    return DISTRIBUTION.get(letter.upper(), (0, 0))[1]


def make_tile(letter: str) -> Tile:
    if letter == BLANK:
        return Tile(letter=None, value=0, isBlank=True)
    return Tile(letter=letter, value=letter_value(letter))


@dataclass
class BoardSquare:
    x: int
    y: int
    square_type: str = NORMAL
    tile: Optional[Tile] = None


class Board:
    def __init__(self):
        self.size = BOARD_SIZE
        self.squares: List[List[BoardSquare]] = [
            [BoardSquare(x, y, PREMIUM_LAYOUT.get((x, y), NORMAL)) for x in range(BOARD_SIZE)]
            for y in range(BOARD_SIZE)
        ]

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.size and 0 <= y < self.size

    def square(self, x: int, y: int) -> BoardSquare:
        return self.squares[y][x]

    def tile_at(self, x: int, y: int) -> Optional[Tile]:
        if not self.in_bounds(x, y):
            return None
        return self.squares[y][x].tile

    def is_occupied(self, x: int, y: int) -> bool:
        return self.tile_at(x, y) is not None

    def is_empty(self) -> bool:
        return all(sq.tile is None for row in self.squares for sq in row)

    def place(self, x: int, y: int, tile: Tile):
        sq = self.squares[y][x]
        if sq.tile is not None:
            raise ValueError(f"Square ({x}, {y}) is already occupied")
        sq.tile = tile

    def tile_count(self) -> int:
        return sum(1 for row in self.squares for sq in row if sq.tile is not None)

    def placed(self) -> List[Placement]:
        return [
            Placement(x=sq.x, y=sq.y, tile=sq.tile, isBlank=sq.tile.isBlank)
            for row in self.squares for sq in row if sq.tile is not None
        ]


def create_board() -> Board:
    return Board()


class TileBag:
    """Shuffled pool of undrawn tiles. Draws pop from the end of the sequence."""

    def __init__(self, tiles: Optional[Iterable[Tile]] = None):
        self._tiles: List[Tile] = list(tiles) if tiles is not None else []

    def __len__(self) -> int:
        return len(self._tiles)

    @property
    def tiles(self) -> List[Tile]:
        return list(self._tiles)

    def draw(self, n: int) -> List[Tile]:
        drawn: List[Tile] = []
        while len(drawn) < n and self._tiles:
            drawn.append(self._tiles.pop())
        return drawn

    def put_back(self, tiles: Iterable[Tile]):
        # Returned tiles go to the bottom so the next draws are unaffected
        self._tiles[0:0] = list(tiles)


def build_bag(rng: Optional[random.Random] = None) -> TileBag:
    tiles = [make_tile(letter) for letter, (count, _) in DISTRIBUTION.items() for _ in range(count)]
    (rng or random).shuffle(tiles)
    return TileBag(tiles)


class Rack:
    def __init__(self, tiles: Optional[Iterable[Tile]] = None, capacity: int = RACK_SIZE):
        self.capacity = capacity
        self.tiles: List[Tile] = list(tiles) if tiles is not None else []

    def __len__(self) -> int:
        return len(self.tiles)

    @staticmethod
    def _matches(tile: Tile, placement: Placement) -> bool:
        if placement.isBlank:
            return tile.isBlank
        return not tile.isBlank and tile.letter == placement.tile.letter

    def remove_for_placement(self, placements: Iterable[Placement]) -> List[Tile]:
        remaining = list(self.tiles)
        removed: List[Tile] = []
        for p in placements:
            idx = next((i for i, t in enumerate(remaining) if self._matches(t, p)), None)
            if idx is None:
                wanted = 'blank' if p.isBlank else p.tile.letter
                raise RackMismatch(f"Rack has no {wanted} tile for ({p.x}, {p.y})")
            removed.append(remaining.pop(idx))
        self.tiles = remaining
        return removed

    def refill(self, bag: TileBag) -> List[Tile]:
        drawn = bag.draw(max(0, self.capacity - len(self.tiles)))
        self.tiles.extend(drawn)
        return drawn

    def exchange(self, indices: Iterable[int], bag: TileBag) -> List[Tile]:
        picked = sorted(set(indices))
        if any(i < 0 or i >= len(self.tiles) for i in picked):
            raise IndexError(f"Exchange indices out of range: {picked}")
        returned = [self.tiles[i] for i in picked]
        self.tiles = [t for i, t in enumerate(self.tiles) if i not in picked]
        self.tiles.extend(bag.draw(len(returned)))
        bag.put_back(returned)
        return returned
