# trois_player.py
"""
Lookahead player for Trois.

- Builds a search tree `depth` plies deep: direction -> Branch(outcomes, children).
- First ply spawns the real preview piece; deeper plies assume a 1, 2 or 3 is
  equally likely to come next.
- Each resulting board is scored by the multiplicative heuristic in
  trois_heuristic, memoized per player by board signature.
- A direction is worth the better of its own average outcome and the best score
  reachable beneath it; ties between directions are broken at random.
- While the largest piece is still small, a fixed preference order is played
  instead of searching.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple
import logging
import random

from trois_board import Board, Direction, Pos, format_board
from trois_heuristic import ScoreCache, combine, score_factors
from trois_pieces import Piece

log = logging.getLogger(__name__)

ScoreSink = Callable[[Dict[str, float]], None]

# --------------------
# Search tree
# --------------------

@dataclass
class Branch:
    outcomes: List[Tuple[float, Optional[Board]]] = field(default_factory=list)
    children: List["SearchTree"] = field(default_factory=list)

    @classmethod
    def of(cls, scores: List[float], children: Optional[List["SearchTree"]] = None) -> Branch:
        return cls(outcomes=[(s, None) for s in scores], children=list(children or []))

    @property
    def scores(self) -> List[float]:
        return [score for score, _ in self.outcomes]

    def average(self) -> Optional[float]:
        if not self.outcomes:
            return None
        return sum(self.scores) / len(self.outcomes)

SearchTree = Dict[Direction, Branch]

# --------------------
# Params
# --------------------

@dataclass
class PlayerParams:
    depth: int = 3
    shortcut_max_value: int = 48  # play shortcut_order until a bigger piece exists; 0 disables
    shortcut_order: Tuple[Direction, ...] = (Direction.UP, Direction.LEFT, Direction.RIGHT, Direction.DOWN)
    max_steps: int = 100_000
    verbose: bool = False

def log_score_factors(factors: Dict[str, float]) -> None:
    log.debug("score factors: %s", factors)

# --------------------
# Player
# --------------------

class TroisPlayer:
    def __init__(self, board: Board, params: Optional[PlayerParams] = None,
                 rng: Optional[random.Random] = None, score_sink: Optional[ScoreSink] = log_score_factors):
        self.board = board
        self.params = params or PlayerParams()
        self.rng = rng if rng is not None else board.rng
        self.score_sink = score_sink
        self.cache = ScoreCache()
        self.moves_made = 0

    # ---------- Tree building ----------

    def calculate_moves(self, board: Board, depth: int, first_ply: bool = True) -> Optional[SearchTree]:
        if depth <= 0:
            return None

        moves = board.available_moves()
        if board.max_piece_value() <= self.params.shortcut_max_value:
            for direction in self.params.shortcut_order:
                if direction in moves:
                    return {direction: Branch.of([1])}

        tree: SearchTree = {}
        for direction in moves:
            branch = tree[direction] = Branch()
            slid = board.slide(direction)
            spots = board.spawn_positions(direction, slid)
            for piece in self.next_possible_pieces(board, first_ply):
                for pos in spots:
                    next_board, score = self._score_spawn(board, slid, piece, pos)
                    branch.outcomes.append((score, next_board))
                    subtree = self.calculate_moves(next_board, depth - 1, first_ply=False)
                    if subtree:
                        branch.children.append(subtree)
        return tree

    def _score_spawn(self, board: Board, slid: Board, piece: Piece, pos: Pos) -> Tuple[Board, float]:
        next_board = slid.copy()
        next_board.add_piece(piece.copy(), pos)
        return next_board, self.score_board(board, next_board)

    def next_possible_pieces(self, board: Board, first_ply: bool = False) -> List[Piece]:
        if first_ply:
            return [board.next_piece()]
        return [Piece(1), Piece(2), Piece(3)]

    # ---------- Scoring ----------

    def score_board(self, previous: Board, board: Board) -> float:
        return self.cache.get_or_compute(board.signature(), lambda: self._compute_score(previous, board))

    def _compute_score(self, previous: Board, board: Board) -> float:
        factors = score_factors(previous, board)
        if self.score_sink is not None:
            self.score_sink(dict(factors))
        return combine(factors)

    # ---------- Decision ----------

    def find_best_move(self, tree: Optional[SearchTree]) -> Tuple[Optional[Direction], float]:
        if not tree:
            return None, 0

        max_score = 0.0
        candidates: List[Tuple[Direction, float]] = []
        for direction, branch in tree.items():
            avg = branch.average()
            if avg is not None and avg >= max_score:
                max_score = avg
                candidates.append((direction, avg))
            for subtree in branch.children:
                child_move, child_score = self.find_best_move(subtree)
                if child_move is not None and child_score >= max_score:
                    max_score = child_score
                    candidates.append((direction, child_score))

        best = list(dict.fromkeys(d for d, score in candidates if score == max_score))
        if not best:
            return None, 0
        return self.rng.choice(best), max_score

    def best_move(self, depth: Optional[int] = None) -> Optional[Direction]:
        depth = self.params.depth if depth is None else depth
        tree = self.calculate_moves(self.board, depth)
        if log.isEnabledFor(logging.DEBUG):
            log.debug("max scores per direction: %s (%d nodes)",
                      max_scores_per_direction(tree), tree_node_size(tree))
        direction, _ = self.find_best_move(tree)
        return direction

    # ---------- Play ----------

    def make_move(self, direction: Direction) -> bool:
        moved = self.board.commit_slide(direction)
        self.moves_made += 1
        if self.params.verbose:
            print(f"\nMove {self.moves_made}: {direction.label}")
            print(format_board(self.board))
        return moved

    def play(self, depth: Optional[int] = None) -> None:
        while self.moves_made < self.params.max_steps:
            direction = self.best_move(depth)
            if direction is None:
                break
            self.make_move(direction)

    def decide_and_play(self, depth: Optional[int] = None) -> Tuple[int, int]:
        """Search and commit moves until none remain. Returns (moves_made, points)."""
        self.play(depth)
        points = self.board.points()
        if self.params.verbose:
            print("\nGame over.")
            print(format_board(self.board, show_next=False))
            print(f"Final score: {points} pts")
            print(f"Made {self.moves_made} moves")
        log.info("game finished after %d moves with %d points", self.moves_made, points)
        return self.moves_made, points

# --------------------
# Tree diagnostics
# --------------------

def max_scores_per_direction(tree: Optional[SearchTree]) -> Dict[str, float]:
    if not tree:
        return {}
    return {d.label: max(b.scores, default=0) for d, b in tree.items()}

def tree_node_size(tree: Optional[SearchTree]) -> int:
    if not tree:
        return 0
    return sum(len(b.outcomes) + sum(tree_node_size(c) for c in b.children) for b in tree.values())
