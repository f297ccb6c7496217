import random
from collections import Counter

import pytest

from wordgrid.errors import RackMismatch
from wordgrid.game_logic import (
    BOARD_SIZE, CENTER, DISTRIBUTION, START, TOTAL_TILES, TRIPLE_WORD, Rack,
    TileBag, build_bag, make_tile,
)
from helpers import placement, tile


def _key(t):
    return '?' if t.isBlank else t.letter


def test_distribution_totals_one_hundred():
    assert TOTAL_TILES == 100


@pytest.mark.parametrize('seed', [0, 1, 42])
def test_bag_holds_canonical_multiset(seed):
    bag = build_bag(random.Random(seed))
    assert len(bag) == 100
    assert Counter(_key(t) for t in bag.tiles) == {k: count for k, (count, _) in DISTRIBUTION.items()}


def test_draw_and_remainder_partition_the_bag():
    bag = build_bag(random.Random(7))
    before = Counter(_key(t) for t in bag.tiles)
    drawn = bag.draw(30)
    assert len(drawn) == 30
    assert len(bag) == 70
    assert Counter(_key(t) for t in drawn) + Counter(_key(t) for t in bag.tiles) == before


def test_draw_past_the_end_returns_what_is_left():
    bag = TileBag([make_tile('A'), make_tile('B')])
    assert [t.letter for t in bag.draw(5)] == ['B', 'A']
    assert bag.draw(3) == []


def test_put_back_goes_under_the_next_draws():
    bag = TileBag([make_tile('A'), make_tile('B')])
    bag.put_back([make_tile('Z')])
    assert [t.letter for t in bag.draw(3)] == ['B', 'A', 'Z']


def test_board_layout(board):
    assert board.size == BOARD_SIZE
    starts = [(sq.x, sq.y) for row in board.squares for sq in row if sq.square_type == START]
    assert starts == [CENTER]
    assert board.square(0, 0).square_type == TRIPLE_WORD
    assert board.square(14, 14).square_type == TRIPLE_WORD
    for row in board.squares:
        for sq in row:
            assert board.square(14 - sq.x, sq.y).square_type == sq.square_type
            assert board.square(sq.y, sq.x).square_type == sq.square_type
    assert board.is_empty()


def test_board_squares_fill_once(board):
    board.place(7, 7, make_tile('A'))
    assert board.is_occupied(7, 7)
    with pytest.raises(ValueError):
        board.place(7, 7, make_tile('B'))


def test_blank_values_zero():
    blank = make_tile('?')
    assert blank.isBlank and blank.value == 0 and blank.letter is None
    assert make_tile('Q').value == 10


def test_rack_removes_blank_as_blank():
    rack = Rack([make_tile('Q'), make_tile('?'), make_tile('I')])
    rack.remove_for_placement([placement(7, 7, 'Q', blank=True), placement(8, 7, 'I')])
    assert [t.letter for t in rack.tiles] == ['Q']


def test_rack_mismatch_leaves_rack_untouched():
    rack = Rack([make_tile('C'), make_tile('A')])
    with pytest.raises(RackMismatch):
        rack.remove_for_placement([placement(7, 7, 'C'), placement(8, 7, 'T')])
    assert [t.letter for t in rack.tiles] == ['C', 'A']


def test_rack_mismatch_when_letter_only_available_as_blank():
    rack = Rack([make_tile('?')])
    with pytest.raises(RackMismatch):
        rack.remove_for_placement([placement(7, 7, 'E')])


def test_refill_caps_at_seven_and_stops_when_bag_is_dry():
    bag = TileBag([make_tile('E') for _ in range(3)])
    rack = Rack([make_tile('A'), make_tile('B')])
    drawn = rack.refill(bag)
    assert len(drawn) == 3
    assert len(rack) == 5
    assert len(bag) == 0


def test_exchange_swaps_and_returns_tiles():
    bag = TileBag([make_tile('X'), make_tile('Y')])
    rack = Rack([make_tile(c) for c in 'ABCDEFG'])
    returned = rack.exchange([0, 1], bag)
    assert [t.letter for t in returned] == ['A', 'B']
    assert [t.letter for t in rack.tiles] == ['C', 'D', 'E', 'F', 'G', 'Y', 'X']
    assert [t.letter for t in bag.tiles] == ['A', 'B']


def test_exchange_on_a_short_rack_draws_one_for_one():
    bag = TileBag([make_tile(c) for c in 'VWXYZ'])
    rack = Rack([make_tile(c) for c in 'ABC'])
    rack.exchange([0], bag)
    assert [t.letter for t in rack.tiles] == ['B', 'C', 'Z']
    assert [t.letter for t in bag.tiles] == ['A', 'V', 'W', 'X', 'Y']


def test_exchange_rejects_bad_index():
    rack = Rack([tile('A')])
    with pytest.raises(IndexError):
        rack.exchange([3], TileBag())
