"""Tests for the lookahead player: tree building, scoring, decisions and play."""
import random

import numpy as np
import pytest

from trois_board import Board, Direction, Pos
from trois_player import (
    Branch,
    PlayerParams,
    TroisPlayer,
    max_scores_per_direction,
    tree_node_size,
)

from helpers import checkerboard, place, stacked_board

L, R, U, D = Direction.LEFT, Direction.RIGHT, Direction.UP, Direction.DOWN
NO_SHORTCUT = PlayerParams(shortcut_max_value=0)


def make_player(board=None, params=None, seed=0, **kwargs):
    board = board if board is not None else Board(rng=random.Random(seed))
    return TroisPlayer(board, params or PlayerParams(), rng=random.Random(seed), **kwargs)


class TestFindBestMove:
    def test_highest_score(self):
        tree = {L: Branch.of([10]), R: Branch.of([15]), U: Branch.of([7]), D: Branch.of([20])}
        assert make_player().find_best_move(tree) == (D, 20)

    def test_highest_average(self):
        tree = {L: Branch.of([10, 20]), R: Branch.of([25, 29]), U: Branch.of([7, 17]), D: Branch.of([20, 30])}
        assert make_player().find_best_move(tree) == (R, 27)

    def test_child_subtree_can_win(self):
        tree = {
            L: Branch.of([10, 20]),
            R: Branch.of([25, 29]),
            U: Branch.of([7, 17], [{L: Branch.of([50]), R: Branch.of([10])}]),
            D: Branch.of([20, 30]),
        }
        assert make_player().find_best_move(tree) == (U, 50)

    def test_empty_tree(self):
        assert make_player().find_best_move({}) == (None, 0)
        assert make_player().find_best_move(None) == (None, 0)

    def test_all_zero_scores_still_pick_a_move(self):
        direction, score = make_player().find_best_move({L: Branch.of([0]), D: Branch.of([0, 0])})
        assert direction in (L, D)
        assert score == 0

    def test_ties_are_broken_at_random(self):
        player = make_player(seed=42)
        tree = {L: Branch.of([10]), R: Branch.of([10]), U: Branch.of([3])}
        picks = {player.find_best_move(tree)[0] for _ in range(60)}
        assert picks == {L, R}

    def test_direction_tied_with_its_own_child_counts_once(self):
        player = make_player(seed=1)
        tree = {L: Branch.of([10], [{U: Branch.of([10])}]), R: Branch.of([10])}
        picks = [player.find_best_move(tree)[0] for _ in range(400)]
        assert 120 < picks.count(L) < 280


class TestCalculateMoves:
    def test_depth_zero_builds_nothing(self):
        assert make_player().calculate_moves(Board(), 0) is None

    def test_early_game_prefers_up(self):
        board = place(stacked_board(2, 2), {(2, 1): 3, (2, 2): 1})
        player = make_player(board)
        tree = player.calculate_moves(board, 3)
        assert list(tree) == [U]
        assert tree[U].scores == [1]
        assert player.best_move(3) == U
        assert player.cache.computations == 0

    def test_early_game_falls_back_to_left(self):
        board = place(stacked_board(2, 2), {(2, 0): 2, (2, 1): 3, (2, 2): 1})
        assert make_player(board).best_move(2) == L

    def test_one_outcome_per_spawn_position(self):
        board = place(stacked_board(2, 2, 2), {(2, 1): 3, (2, 2): 1, (1, 1): 3})
        player = make_player(board, NO_SHORTCUT)
        tree = player.calculate_moves(board, 1)

        assert set(tree) == {L, R, U, D}
        assert len(tree[U].outcomes) == len(board.moved_columns(board.slide_up()))
        assert len(tree[L].outcomes) == len(board.moved_rows(board.slide_left()))
        assert all(not branch.children for branch in tree.values())

    def test_first_ply_spawns_the_preview_piece(self):
        board = place(stacked_board(2, 2, 2), {(1, 1): 3})
        tree = make_player(board, NO_SHORTCUT).calculate_moves(board, 1)
        _, spawned = tree[U].outcomes[0]
        assert spawned.piece_at(Pos(1, 3)) == 2
        assert spawned.piece_at(Pos(1, 0)) == 3

    def test_deeper_plies_try_one_two_and_three(self):
        board = place(stacked_board(2, 2, 2), {(1, 1): 3})
        tree = make_player(board, NO_SHORTCUT).calculate_moves(board, 2)
        child = tree[U].children[0]
        # after up: 3 at (1, 0), 2 at (1, 3); down moves only column 1
        assert len(child[D].outcomes) == 3

    def test_children_per_outcome(self):
        board = place(stacked_board(2, 2, 2), {(2, 1): 3, (2, 2): 1})
        tree = make_player(board, NO_SHORTCUT).calculate_moves(board, 2)
        for branch in tree.values():
            assert len(branch.children) == len(branch.outcomes)

    def test_search_never_touches_the_live_board(self):
        board = place(stacked_board(2, 2, 2), {(2, 1): 3, (2, 2): 1, (0, 3): 6})
        before = board.values()
        live = {id(p) for _, p in board.occupied()}

        tree = make_player(board, NO_SHORTCUT).calculate_moves(board, 2)

        assert np.array_equal(board.values(), before)
        assert len(board.piece_stack) == 3
        for branch in tree.values():
            for _, outcome in branch.outcomes:
                assert outcome is not board
                assert not live & {id(p) for _, p in outcome.occupied()}

    def test_next_possible_pieces(self):
        board = stacked_board(1, 3)
        player = make_player(board)
        assert [p.value for p in player.next_possible_pieces(board, first_ply=True)] == [3]
        assert [p.value for p in player.next_possible_pieces(board)] == [1, 2, 3]


class TestScoreBoard:
    def test_cached_by_signature(self):
        previous = place(Board(rng=random.Random(0)), {(0, 0): 3, (1, 0): 3})
        board = previous.slide_left()
        player = make_player()

        first = player.score_board(previous, board)
        second = player.score_board(previous, board.copy())

        assert first == second == pytest.approx(9 * 0.5 * 1.1)
        assert player.cache.computations == 1
        assert player.cache.hits == 1

    def test_sink_receives_each_fresh_breakdown(self):
        seen = []
        previous = place(Board(rng=random.Random(0)), {(0, 0): 3, (1, 0): 3})
        player = make_player(score_sink=seen.append)

        player.score_board(previous, previous.slide_left())
        player.score_board(previous, previous.slide_left())
        player.score_board(previous, previous.slide_down())

        assert len(seen) == 2
        assert set(seen[0]) == {"base", "moves", "river", "adjacency", "openness"}

    def test_sink_can_be_disabled(self):
        previous = place(Board(rng=random.Random(0)), {(0, 0): 3})
        player = make_player(score_sink=None)
        assert player.score_board(previous, previous.slide_right()) >= 0


class TestPlay:
    def test_only_direction_is_chosen(self):
        board = place(stacked_board(3, 3, cols=2, rows=1), {(0, 0): 3})
        player = make_player(board, NO_SHORTCUT)
        assert board.available_moves() == [R]
        assert player.best_move(1) == R

    def test_no_move_on_a_dead_board(self):
        player = make_player(checkerboard(), NO_SHORTCUT)
        assert player.best_move(2) is None

    def test_decide_and_play_on_a_dead_board(self):
        player = make_player(checkerboard())
        assert player.decide_and_play(2) == (0, 24)

    def test_make_move_commits_and_counts(self):
        board = place(stacked_board(2, 2, 2), {(2, 1): 3, (2, 2): 1})
        player = make_player(board)
        assert player.make_move(D)
        assert player.moves_made == 1
        assert board.piece_at(Pos(2, 0)) == 2

    def test_full_game(self):
        rng = random.Random(7)
        board = Board(rng=rng)
        board.setup()
        player = TroisPlayer(board, PlayerParams(depth=1, max_steps=3000), rng=rng)

        moves, points = player.decide_and_play()

        assert moves == player.moves_made > 0
        assert points == board.points()
        assert not board.playing() or moves == 3000

    def test_verbose_play_prints_moves(self, capsys):
        board = place(stacked_board(3, 3, cols=2, rows=1), {(0, 0): 3})
        player = make_player(board, PlayerParams(shortcut_max_value=0, verbose=True))
        player.decide_and_play(1)
        out = capsys.readouterr().out
        assert "Move 1: right" in out
        assert "Game over." in out


def test_tree_diagnostics():
    tree = {L: Branch.of([10, 20], [{U: Branch.of([5])}]), R: Branch.of([3])}
    assert max_scores_per_direction(tree) == {"left": 20, "right": 3}
    assert tree_node_size(tree) == 4
    assert tree_node_size(None) == 0
