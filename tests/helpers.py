import random

from trois_board import Board, Pos
from trois_pieces import Piece, PieceStack


def place(board, layout):
    """layout: {(x, y): value}"""
    for (x, y), value in layout.items():
        assert board.add_piece(Piece(value), Pos(x, y))
    return board


def stacked_board(*upcoming, cols=4, rows=4, seed=0):
    """Board whose draw stack hands out `upcoming`, last element first."""
    rng = random.Random(seed)
    stack = PieceStack(rng, pieces=[Piece(v) for v in upcoming])
    return Board(cols, rows, rng=rng, piece_stack=stack)


def checkerboard(cols=4, rows=4):
    board = Board(cols, rows, rng=random.Random(0))
    for x in range(cols):
        for y in range(rows):
            board.add_piece(Piece(3 if (x + y) % 2 else 1), Pos(x, y))
    return board
