"""
Move legality checking, word extraction and scoring.

A move is a set of pending placements checked against the committed board.
Checks run in a fixed order and the first failure is raised as a
``ValidationError`` subclass; on success the main word, every cross-word of
two or more letters and the move score are returned.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .errors import (
    DuplicateCoordinate, EmptyMove, GapInLine, InvalidWord, MustConnect,
    MustCoverCenter, NotSingleLine, OutOfBounds, SquareOccupied, WordTooShort,
)
from .game_logic import (
    CENTER, DOUBLE_LETTER, DOUBLE_WORD, RACK_SIZE, START, TRIPLE_LETTER,
    TRIPLE_WORD, Board,
)
from .schemas import Placement, Tile

Coord = Tuple[int, int]
WordOracle = Callable[[str], bool]

HORIZONTAL = (1, 0)
VERTICAL = (0, 1)

LETTER_MULTIPLIER = { DOUBLE_LETTER: 2, TRIPLE_LETTER: 3 }
WORD_MULTIPLIER = { DOUBLE_WORD: 2, START: 2, TRIPLE_WORD: 3 }
FULL_RACK_BONUS = 50


@dataclass
class Word:
    text: str
    squares: List[Coord]

    def __len__(self) -> int:
        return len(self.text)


@dataclass
class MoveResult:
    main_word: Word
    cross_words: List[Word] = field(default_factory=list)
    score: int = 0

    @property
    def words(self) -> List[str]:
        return [self.main_word.text] + [w.text for w in self.cross_words]


class _View:
    """Board overlaid with the pending placements."""

    def __init__(self, board: Board, placements: Sequence[Placement]):
        self.board = board
        self.pending: Dict[Coord, Placement] = { (p.x, p.y): p for p in placements }

    def tile_at(self, x: int, y: int) -> Optional[Tile]:
        p = self.pending.get((x, y))
        if p is not None:
            return p.tile
        return self.board.tile_at(x, y)

    def occupied(self, x: int, y: int) -> bool:
        return self.tile_at(x, y) is not None

    def read_word(self, x: int, y: int, direction: Coord) -> Word:
        dx, dy = direction
        while self.occupied(x - dx, y - dy):
            x, y = x - dx, y - dy
        squares: List[Coord] = []
        letters: List[str] = []
        while self.occupied(x, y):
            squares.append((x, y))
            letters.append((self.tile_at(x, y).letter or '').upper())
            x, y = x + dx, y + dy
        return Word(''.join(letters), squares)


def _check_structure(board: Board, placements: Sequence[Placement]) -> Optional[Coord]:
    """Runs the spatial checks; returns the main axis direction (None for a lone tile)."""
    if not placements:
        raise EmptyMove("Place at least one tile")

    coords = [(p.x, p.y) for p in placements]
    if len(set(coords)) != len(coords):
        raise DuplicateCoordinate("Two tiles placed on the same square")
    for x, y in coords:
        if not board.in_bounds(x, y):
            raise OutOfBounds(f"Square ({x}, {y}) is off the board")
        if board.is_occupied(x, y):
            raise SquareOccupied(f"Square ({x}, {y}) is already taken")

    same_row = len({y for _, y in coords}) == 1
    same_col = len({x for x, _ in coords}) == 1
    if not (same_row or same_col):
        raise NotSingleLine("Tiles must be placed in a single row or column")

    if board.is_empty():
        if CENTER not in coords:
            raise MustCoverCenter("The first word must cover the center square")
    elif not any(
        board.is_occupied(x + dx, y + dy)
        for x, y in coords
        for dx, dy in ((1, 0), (-1, 0), (0, 1), (0, -1))
    ):
        raise MustConnect("Tiles must connect to a tile already on the board")

    if len(coords) == 1:
        return None
    direction = HORIZONTAL if same_row else VERTICAL
    pending = set(coords)
    if direction == HORIZONTAL:
        y = coords[0][1]
        span = [(x, y) for x in range(min(x for x, _ in coords), max(x for x, _ in coords) + 1)]
    else:
        x = coords[0][0]
        span = [(x, y) for y in range(min(y for _, y in coords), max(y for _, y in coords) + 1)]
    for cx, cy in span:
        if (cx, cy) not in pending and not board.is_occupied(cx, cy):
            raise GapInLine(f"Gap at ({cx}, {cy})")
    return direction


def extract_words(board: Board, placements: Sequence[Placement],
                  direction: Optional[Coord] = None) -> Tuple[Word, List[Word]]:
    """Main word plus cross-words (length >= 2) formed by ``placements``.

    For a lone tile the axis with the longer word is the main axis; ties go to
    the horizontal word.
    """
    view = _View(board, placements)
    if direction is None and len(placements) > 1:
        direction = HORIZONTAL if len({p.y for p in placements}) == 1 else VERTICAL

    if direction is None:
        p = placements[0]
        across = view.read_word(p.x, p.y, HORIZONTAL)
        down = view.read_word(p.x, p.y, VERTICAL)
        main, other = (across, down) if len(across) >= len(down) else (down, across)
        return main, [other] if len(other) >= 2 else []

    first = placements[0]
    main = view.read_word(first.x, first.y, direction)
    perpendicular = VERTICAL if direction == HORIZONTAL else HORIZONTAL
    crosses = []
    for p in placements:
        word = view.read_word(p.x, p.y, perpendicular)
        if len(word) >= 2:
            crosses.append(word)
    return main, crosses


def score_move(board: Board, placements: Sequence[Placement], words: Sequence[Word],
               rack_size: int = RACK_SIZE, bonus: int = FULL_RACK_BONUS) -> int:
    view = _View(board, placements)
    total = 0
    for word in words:
        word_total = 0
        word_mult = 1
        for x, y in word.squares:
            value = view.tile_at(x, y).value
            if (x, y) in view.pending:
                square_type = board.square(x, y).square_type
                value *= LETTER_MULTIPLIER.get(square_type, 1)
                word_mult *= WORD_MULTIPLIER.get(square_type, 1)
            word_total += value
        total += word_total * word_mult
    if len(placements) == rack_size:
        total += bonus
    return total


def validate_move(board: Board, placements: Sequence[Placement], is_word: WordOracle,
                  rack_size: int = RACK_SIZE, bonus: int = FULL_RACK_BONUS) -> MoveResult:
    placements = list(placements)
    direction = _check_structure(board, placements)
    main, crosses = extract_words(board, placements, direction)
    if len(main) < 2:
        raise WordTooShort("Words must be at least two letters long")
    for word in [main] + crosses:
        if not is_word(word.text):
            raise InvalidWord(word.text)
    score = score_move(board, placements, [main] + crosses, rack_size, bonus)
    return MoveResult(main_word=main, cross_words=crosses, score=score)
