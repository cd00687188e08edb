# trois_board.py
# Trois board: a cols x rows grid of optional pieces with pure slides,
# committed moves that spawn from the draw stack, and the derived queries
# the search heuristics read.
# Python 3.10+

from __future__ import annotations
from enum import IntEnum
from typing import List, NamedTuple, Optional, Tuple
import random
import numpy as np

from trois_pieces import Piece, PieceStack

SETUP_PIECES = 6

# ---------------------------
# Directions / positions
# ---------------------------

class Direction(IntEnum):
    LEFT = 0
    RIGHT = 1
    UP = 2
    DOWN = 3

    @property
    def offset(self) -> Tuple[int, int]:
        return _OFFSETS[self]

    @property
    def label(self) -> str:
        return self.name.lower()

_OFFSETS = {
    Direction.LEFT: (-1, 0),
    Direction.RIGHT: (1, 0),
    Direction.UP: (0, -1),
    Direction.DOWN: (0, 1),
}

class Pos(NamedTuple):
    x: int
    y: int

# ---------------------------
# Board
# ---------------------------

class Board:
    def __init__(self, cols: int = 4, rows: int = 4, rng: Optional[random.Random] = None,
                 piece_stack: Optional[PieceStack] = None):
        if cols < 1 or rows < 1:
            raise ValueError("board needs at least one column and one row")
        self.cols = cols
        self.rows = rows
        self.rng = rng if rng is not None else random.Random()
        self._piece_stack = piece_stack
        self.pieces: List[List[Optional[Piece]]] = []
        self.clear()

    # ---------- Setup ----------

    def clear(self) -> None:
        self.pieces = [[None] * self.rows for _ in range(self.cols)]

    def setup(self) -> None:
        for _ in range(min(SETUP_PIECES, self.open_spots())):
            self.randomly_add_pieces([self.random_piece()])

    def randomly_add_pieces(self, piece_list: List[Piece]) -> None:
        for piece in piece_list:
            self.add_piece(piece, self.find_empty_spot())

    def copy(self) -> Board:
        twin = Board(self.cols, self.rows, rng=self.rng)
        twin.pieces = [[p.copy() if p else None for p in col] for col in self.pieces]
        return twin

    # ---------- Piece stack ----------

    @property
    def piece_stack(self) -> PieceStack:
        if self._piece_stack is None:
            self._piece_stack = PieceStack(self.rng)
        return self._piece_stack

    def next_piece(self) -> Piece:
        return self.piece_stack.peek(self.max_piece_value())

    def random_piece(self) -> Piece:
        return self.piece_stack.draw_next(self.max_piece_value())

    # ---------- Cells ----------

    def position_in_bounds(self, pos: Pos) -> bool:
        return 0 <= pos[0] < self.cols and 0 <= pos[1] < self.rows

    def piece_at(self, pos: Pos) -> Optional[Piece]:
        if not self.position_in_bounds(pos):
            return None
        return self.pieces[pos[0]][pos[1]]

    def position_taken(self, pos: Pos) -> bool:
        return self.piece_at(pos) is not None

    def add_piece(self, piece: Piece, pos: Pos) -> bool:
        """Place piece at pos, merging into an occupant. False if out of bounds or unmergeable."""
        if not self.position_in_bounds(pos):
            return False
        placed = self.piece_at(pos)
        if placed is not None:
            return placed.merge_with(piece)
        self.pieces[pos[0]][pos[1]] = piece
        return True

    def can_move_to(self, piece: Piece, pos: Pos) -> bool:
        if not self.position_in_bounds(pos):
            return False
        placed = self.piece_at(pos)
        return placed is None or placed.can_merge(piece)

    def random_position(self) -> Pos:
        return Pos(self.rng.randrange(self.cols), self.rng.randrange(self.rows))

    def find_empty_spot(self) -> Pos:
        # Caller guarantees at least one free cell.
        pos = self.random_position()
        while self.position_taken(pos):
            pos = self.random_position()
        return pos

    # ---------- Slides ----------

    def slide(self, direction: Direction) -> Board:
        """
        Pure slide: returns a new board, self is untouched.

        Each piece shifts one cell toward the destination edge when the target
        cell on the new board is free or mergeable. Cells nearest the
        destination edge go first, so a piece that already moved or merged is
        never merged into again.
        """
        dx, dy = direction.offset
        new_board = Board(self.cols, self.rows, rng=self.rng)
        xs = range(self.cols - 1, -1, -1) if dx > 0 else range(self.cols)
        ys = range(self.rows - 1, -1, -1) if dy > 0 else range(self.rows)

        for x in xs:
            for y in ys:
                piece = self.pieces[x][y]
                if piece is None:
                    continue
                moved = piece.copy()
                target = Pos(x + dx, y + dy)
                if not new_board.can_move_to(moved, target):
                    target = Pos(x, y)
                new_board.add_piece(moved, target)

        return new_board

    def slide_left(self) -> Board:
        return self.slide(Direction.LEFT)

    def slide_right(self) -> Board:
        return self.slide(Direction.RIGHT)

    def slide_up(self) -> Board:
        return self.slide(Direction.UP)

    def slide_down(self) -> Board:
        return self.slide(Direction.DOWN)

    def can_move(self, direction: Direction) -> bool:
        return not self.same_layout(self.slide(direction))

    def available_moves(self) -> List[Direction]:
        return [d for d in Direction if self.can_move(d)]

    def playing(self) -> bool:
        return any(self.can_move(d) for d in Direction)

    def moved_columns(self, new_board: Board) -> List[int]:
        return [x for x in range(self.cols)
                if _line_values(self.get_column(x)) != _line_values(new_board.get_column(x))]

    def moved_rows(self, new_board: Board) -> List[int]:
        return [y for y in range(self.rows)
                if _line_values(self.get_row(y)) != _line_values(new_board.get_row(y))]

    def spawn_positions(self, direction: Direction, new_board: Board) -> List[Pos]:
        """Cells on the edge the pieces moved away from, in the lines that changed."""
        if direction == Direction.UP:
            return [Pos(x, self.rows - 1) for x in self.moved_columns(new_board)]
        if direction == Direction.DOWN:
            return [Pos(x, 0) for x in self.moved_columns(new_board)]
        if direction == Direction.LEFT:
            return [Pos(self.cols - 1, y) for y in self.moved_rows(new_board)]
        return [Pos(0, y) for y in self.moved_rows(new_board)]

    def commit_slide(self, direction: Direction) -> bool:
        """Apply a slide to this board and spawn the next piece. No-op if nothing moves."""
        new_board = self.slide(direction)
        spots = self.spawn_positions(direction, new_board)
        if not spots:
            return False
        new_board.add_piece(self.random_piece(), self.rng.choice(spots))
        self.pieces = new_board.pieces
        return True

    # ---------- Queries ----------

    def get_column(self, col: int) -> List[Optional[Piece]]:
        return [self.piece_at(Pos(col, row)) for row in range(self.rows)]

    def get_row(self, row: int) -> List[Optional[Piece]]:
        return [self.piece_at(Pos(col, row)) for col in range(self.cols)]

    def occupied(self):
        for x, col in enumerate(self.pieces):
            for y, piece in enumerate(col):
                if piece is not None:
                    yield Pos(x, y), piece

    def points(self) -> int:
        return sum(piece.points for _, piece in self.occupied())

    def max_piece_value(self) -> int:
        return max((piece.value for _, piece in self.occupied()), default=0)

    def positions_of(self, value: int) -> List[Pos]:
        return [pos for pos, piece in self.occupied() if piece == value]

    def size(self) -> int:
        return sum(1 for _ in self.occupied())

    def open_spots(self) -> int:
        return self.cols * self.rows - self.size()

    def values(self) -> np.ndarray:
        """Piece values as an int64 (cols, rows) array, 0 for empty cells."""
        grid = np.zeros((self.cols, self.rows), dtype=np.int64)
        for (x, y), piece in self.occupied():
            grid[x, y] = piece.value
        return grid

    def signature(self) -> Tuple[int, int, bytes]:
        return (self.cols, self.rows, self.values().tobytes())

    def same_layout(self, other: Board) -> bool:
        return np.array_equal(self.values(), other.values())

    def __repr__(self) -> str:
        return f"Board({self.cols}x{self.rows}, {self.values().T.tolist()})"

def _line_values(line: List[Optional[Piece]]) -> List[int]:
    return [p.value if p else 0 for p in line]

# ---------------------------
# Text rendering
# ---------------------------

SPOT_WIDTH = 4

def format_board(board: Board, show_next: bool = True) -> str:
    separator = "+" + "+".join(["=" * SPOT_WIDTH] * board.cols) + "+"
    lines = []
    if show_next:
        nxt = board.next_piece()
        lines.append(f"Next: {'+' if nxt.value > 3 else nxt.value}")
    lines.append(separator)
    for row in range(board.rows):
        cells = []
        for col in range(board.cols):
            piece = board.piece_at(Pos(col, row))
            cells.append(str(piece.value).center(SPOT_WIDTH) if piece else " " * SPOT_WIDTH)
        lines.append("+" + "+".join(cells) + "+")
        lines.append(separator)
    return "\n".join(lines)
