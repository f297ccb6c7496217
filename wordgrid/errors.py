from __future__ import annotations
from typing import Optional


class ValidationError(Exception):
    """A rejected move or turn action. Recoverable; staged placements are kept."""

    reason = 'invalid'

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.reason)

    def to_dict(self) -> dict:
        return { 'reason': self.reason, 'message': str(self) }


class EmptyMove(ValidationError):
    reason = 'empty_move'


class DuplicateCoordinate(ValidationError):
    reason = 'duplicate_coordinate'


class OutOfBounds(ValidationError):
    reason = 'out_of_bounds'


class SquareOccupied(ValidationError):
    reason = 'square_occupied'


class NotSingleLine(ValidationError):
    reason = 'not_single_line'


class MustCoverCenter(ValidationError):
    reason = 'must_cover_center'


class MustConnect(ValidationError):
    reason = 'must_connect'


class GapInLine(ValidationError):
    reason = 'gap_in_line'


class WordTooShort(ValidationError):
    reason = 'word_too_short'


class InvalidWord(ValidationError):
    reason = 'invalid_word'

    def __init__(self, word: str):
        self.word = word
        super().__init__(f"Not a valid word: {word}")

    def to_dict(self) -> dict:
        return { **super().to_dict(), 'word': self.word }


class NotYourTurn(ValidationError):
    reason = 'not_your_turn'


class PlacementsPending(ValidationError):
    reason = 'placements_pending'


class BagTooSmall(ValidationError):
    reason = 'bag_too_small'


class RackMismatch(Exception):
    """A placement referenced a tile the rack does not hold."""


class MatchmakingDenied(Exception):
    MESSAGES = {
        'missing_identity': 'Username is required to play online.',
        'already_active': 'This account is already playing from another connection.',
    }

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(self.MESSAGES.get(reason, reason))

    def to_dict(self) -> dict:
        return { 'reason': self.reason, 'message': str(self) }
