# trois_pieces.py
# Pieces and the shuffled draw stack for the Trois sliding-tile game.
# Python 3.10+

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterator, List, Optional
import random

WILD_THRESHOLD = 48
BASIC_VALUES = (1, 2, 3)
BASIC_COPIES = 4

# ---------------------------
# Piece
# ---------------------------

class Piece:
    """A single tile. Values are 1, 2 or 3 * 2**k."""

    __slots__ = ("value", "_wild")

    def __init__(self, value: Optional[int] = None):
        self.value = value
        self._wild = False

    @staticmethod
    def rank_of(value: int) -> int:
        """rank(3) == 1, rank(6) == 2, rank(12) == 3, ..."""
        if value < 3:
            raise ValueError(f"rank is undefined for value {value}")
        rank = 1
        while value > 3:
            value //= 2
            rank += 1
        return rank

    def can_merge(self, other: Piece) -> bool:
        if self.value == 1:
            return other.value == 2
        if self.value == 2:
            return other.value == 1
        return other.value == self.value

    def merge_with(self, other: Piece) -> bool:
        if not self.can_merge(other):
            return False
        self.value += other.value
        return True

    def make_wild(self) -> None:
        self._wild = True

    @property
    def is_wild(self) -> bool:
        return self._wild

    @property
    def rank(self) -> int:
        return Piece.rank_of(self.value)

    @property
    def points(self) -> int:
        if self.value < 3:
            return 0
        return 3 ** self.rank

    def copy(self) -> Piece:
        twin = Piece(self.value)
        twin._wild = self._wild
        return twin

    def __eq__(self, other) -> bool:
        if other is None:
            return False
        if isinstance(other, (int, float)):
            return self.value == other
        if isinstance(other, Piece):
            return self.value == other.value
        return NotImplemented

    __hash__ = None

    def __repr__(self) -> str:
        return f"Piece({self.value}{', wild' if self._wild else ''})"

# ---------------------------
# Draw stack
# ---------------------------

def possible_wild_values(max_value: int) -> List[int]:
    """Values a wild piece may take: max/8, max/16, ... while above 3."""
    values = []
    value = max_value // 8
    while value > 3:
        values.append(value)
        value //= 2
    return values

@dataclass
class PieceStack:
    """
    Shuffled bag of upcoming pieces. Drawing pops the last element, which is
    random because every refill is shuffled.

    Once the board holds a piece of WILD_THRESHOLD or more, every other refill
    carries one extra wild piece.
    """
    rng: random.Random = field(default_factory=random.Random)
    pieces: List[Piece] = field(default_factory=list)
    include_wild: Optional[bool] = None

    def __len__(self) -> int:
        return len(self.pieces)

    def __iter__(self) -> Iterator[Piece]:
        return iter(self.pieces)

    def refill(self, max_value: int) -> None:
        if max_value >= WILD_THRESHOLD:
            # first time over the threshold stays plain, then alternate
            self.include_wild = self.include_wild is not None and not self.include_wild
        if self.include_wild and max_value >= WILD_THRESHOLD:
            wild = Piece(self.rng.choice(possible_wild_values(max_value)))
            wild.make_wild()
            self.pieces.append(wild)
        for value in BASIC_VALUES:
            self.pieces.extend(Piece(value) for _ in range(BASIC_COPIES))
        self.rng.shuffle(self.pieces)

    def _ensure(self, max_value: int) -> None:
        if len(self.pieces) <= 1:
            self.refill(max_value)

    def peek(self, max_value: int = 0) -> Piece:
        self._ensure(max_value)
        return self.pieces[-1]

    def draw_next(self, max_value: int = 0) -> Piece:
        self._ensure(max_value)
        return self.pieces.pop()
