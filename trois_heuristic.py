# trois_heuristic.py
# Board scoring for the Trois search: numba kernels over the value grid plus
# the multiplicative factor breakdown and a per-player score cache.
# Python 3.10+

from __future__ import annotations
from typing import Callable, Dict, Hashable
import math
import numpy as np
from numba import njit  # type: ignore

from trois_board import Board, Direction
from trois_pieces import Piece

RIVER_WEIGHT = 0.1
ADJACENT_TIER_WEIGHT = 0.5
ADJACENT_ONE_TWO_BONUS = 1.0
OPENNESS_WEIGHT = 0.5
OPENNESS_FLOOR = 0.5

# ---------------------------
# Numba kernels (grid is int64[cols, rows], 0 = empty)
# ---------------------------

@njit(cache=True)
def count_empty_nb(grid: np.ndarray) -> int:
    cols, rows = grid.shape
    empties = 0
    for x in range(cols):
        for y in range(rows):
            if grid[x, y] == 0:
                empties += 1
    return empties

@njit(cache=True)
def pieces_adjacent_nb(grid: np.ndarray, value1: int, value2: int) -> bool:
    """True if any cell holding value1 has a 4-neighbour holding value2."""
    cols, rows = grid.shape
    for x in range(cols):
        for y in range(rows):
            if grid[x, y] != value1:
                continue
            if x > 0 and grid[x - 1, y] == value2:
                return True
            if x < cols - 1 and grid[x + 1, y] == value2:
                return True
            if y > 0 and grid[x, y - 1] == value2:
                return True
            if y < rows - 1 and grid[x, y + 1] == value2:
                return True
    return False

@njit(cache=True)
def river_length_nb(grid: np.ndarray, max_value: int) -> int:
    """
    Number of tiers in the chain max, max/2, max/4, ... where every tier has a
    piece 4-adjacent to a piece of the tier above. Stops at the first odd tier.
    """
    if max_value <= 0:
        return 0
    cols, rows = grid.shape
    frontier = grid == max_value
    if not frontier.any():
        return 0

    length = 1
    value = max_value
    while value % 2 == 0 and value // 2 >= 1:
        nxt = value // 2
        reached = np.zeros((cols, rows), dtype=np.bool_)
        found = False
        for x in range(cols):
            for y in range(rows):
                if not frontier[x, y]:
                    continue
                if x > 0 and grid[x - 1, y] == nxt:
                    reached[x - 1, y] = True
                    found = True
                if x < cols - 1 and grid[x + 1, y] == nxt:
                    reached[x + 1, y] = True
                    found = True
                if y > 0 and grid[x, y - 1] == nxt:
                    reached[x, y - 1] = True
                    found = True
                if y < rows - 1 and grid[x, y + 1] == nxt:
                    reached[x, y + 1] = True
                    found = True
        if not found:
            break
        frontier = reached
        value = nxt
        length += 1
    return length

def numba_warmup():
    """Touch kernels once so they JIT before timing the real game."""
    g = np.zeros((4, 4), dtype=np.int64)
    g[0, 0] = 6
    g[0, 1] = 3
    _ = count_empty_nb(g)
    _ = pieces_adjacent_nb(g, 6, 3)
    _ = river_length_nb(g, 6)

# ---------------------------
# Factors
# ---------------------------

def adjacency_factor(grid: np.ndarray, max_value: int) -> float:
    score = 1.0
    tier = max_value
    while tier >= 3:
        if pieces_adjacent_nb(grid, tier, tier):
            score *= 1 + ADJACENT_TIER_WEIGHT * Piece.rank_of(tier)
        tier //= 2
    if pieces_adjacent_nb(grid, 2, 1):
        score *= 1 + ADJACENT_ONE_TWO_BONUS
    if pieces_adjacent_nb(grid, 1, 2):
        score *= 1 + ADJACENT_ONE_TWO_BONUS
    return score

def score_factors(previous: Board, board: Board) -> Dict[str, float]:
    """Named multiplicative factors for board, reached by a slide from previous."""
    grid = board.values()
    max_value = board.max_piece_value()
    opened = count_empty_nb(grid) - count_empty_nb(previous.values())
    return {
        "base": float(board.points()),
        "moves": len(board.available_moves()) / len(Direction),
        "river": 1 + RIVER_WEIGHT * river_length_nb(grid, max_value),
        "adjacency": adjacency_factor(grid, max_value),
        "openness": OPENNESS_WEIGHT * max(opened + 1, OPENNESS_FLOOR),
    }

def combine(factors: Dict[str, float]) -> float:
    return math.prod(factors.values())

# ---------------------------
# Cache
# ---------------------------

class ScoreCache:
    """Board signature -> score, owned by a single player."""

    def __init__(self):
        self._scores: Dict[Hashable, float] = {}
        self.computations = 0
        self.hits = 0

    def __len__(self) -> int:
        return len(self._scores)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._scores

    def get_or_compute(self, key: Hashable, compute: Callable[[], float]) -> float:
        score = self._scores.get(key)
        if score is not None:
            self.hits += 1
            return score
        score = compute()
        self.computations += 1
        self._scores[key] = score
        return score
