# trois_bot.py
"""
Batch runner for the Trois lookahead player.

Plays one or more games with TroisPlayer, prints a low/median/high summary with
max-tile threshold hit rates, and optionally plots the score distribution.
Per-board score factors can be written to a log file for offline analysis
(--log-file with --log-level DEBUG).
"""

from __future__ import annotations
import argparse
import logging
import os
import random
import statistics
import time
from typing import Dict, List, Optional, Tuple

import numpy as np
import matplotlib.pyplot as plt

from trois_board import Board, format_board
from trois_heuristic import numba_warmup
from trois_player import PlayerParams, TroisPlayer

log = logging.getLogger("trois")

# ---- Small helpers ----

def _format_total_time(seconds: float) -> str:
    """Format as HH:MM:SS.fff"""
    t = seconds
    h = int(t // 3600); t -= 3600 * h
    m = int(t // 60);   t -= 60 * m
    s = int(t);         t -= s
    return f"{h:02d}:{m:02d}:{s:02d}.{int(round(t * 1000)):03d}"

def configure_logging(level: str = "WARNING", log_file: Optional[str] = None) -> None:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(level=getattr(logging, level.upper()),
                        format="%(asctime)s | %(name)s | %(message)s",
                        handlers=handlers, force=True)
    # numba compiler internals are chatty at DEBUG
    logging.getLogger("numba").setLevel(logging.WARNING)

# ---- Play a single game ----

def run_game(seed: Optional[int], params: PlayerParams, cols: int = 4, rows: int = 4) -> Tuple[int, int, int]:
    """Returns (max_tile, points, moves_made)."""
    rng = random.Random(seed)
    board = Board(cols, rows, rng=rng)
    board.setup()
    if params.verbose:
        print("Starting board:")
        print(format_board(board))

    player = TroisPlayer(board, params, rng=rng)
    moves, points = player.decide_and_play()
    log.info("cache: %d boards scored, %d hits", player.cache.computations, player.cache.hits)
    return board.max_piece_value(), points, moves

# ---- Summary helpers ----

_TILE_THRESHOLDS = [48, 96, 192, 384, 768, 1536]

def threshold_rates(max_tiles: List[int]) -> Dict[int, float]:
    """Percent of games whose largest piece reached each threshold."""
    if not max_tiles:
        return {t: 0.0 for t in _TILE_THRESHOLDS}
    tiles = np.asarray(max_tiles)
    return {t: 100.0 * np.count_nonzero(tiles >= t) / tiles.size for t in _TILE_THRESHOLDS}

def print_summary(scores: List[int], max_tiles: List[int], moves: List[int], total_seconds: float):
    print(f"Played {len(scores)} game(s) in {_format_total_time(total_seconds)}")
    if scores:
        print(f"Points: low {min(scores)} | median {statistics.median(scores):g} | high {max(scores)}")
        print(f"Moves per game: {statistics.mean(moves):.1f} on average, {max(moves)} at most")
    for t, rate in threshold_rates(max_tiles).items():
        print(f"  reached {t:>5}: {rate:5.1f}%")

# ---- Plotting helpers ----

def plot_results(scores, max_tiles, show=True, outdir=None):
    """Score histogram and threshold hit-rate bars; written as PNGs when outdir is set."""
    if not scores:
        print("No scores to plot.")
        return

    figures = {}

    fig, ax = plt.subplots()
    points = np.asarray(scores, dtype=float)
    ax.hist(points, bins="auto", color="tab:blue", alpha=0.8)
    for stat, style in ((np.mean, "--"), (np.median, ":")):
        ax.axvline(stat(points), color="black", linestyle=style,
                   label=f"{stat.__name__} {stat(points):.0f}")
    ax.set(title="Points per game", xlabel="points", ylabel="games")
    ax.legend()
    figures["scores_hist.png"] = fig

    fig, ax = plt.subplots()
    rates = threshold_rates(max_tiles)
    ax.bar([str(t) for t in rates], list(rates.values()), color="tab:green")
    ax.set(title="Largest piece reached", xlabel="piece value", ylabel="% of games", ylim=(0, 100))
    figures["threshold_hit_rates.png"] = fig

    for fig in figures.values():
        fig.tight_layout()

    if outdir:
        os.makedirs(outdir, exist_ok=True)
        for name, fig in figures.items():
            path = os.path.join(outdir, name)
            fig.savefig(path, dpi=150)
            log.info("saved %s", path)
            print(f"Saved {path}")

    if show:
        plt.show()
    for fig in figures.values():
        plt.close(fig)

# ---- CLI ----

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Trois lookahead player (serial batch runs)")
    ap.add_argument("--seed", type=int, default=None, help="Seed of the first game; incremented per game")
    ap.add_argument("--games", type=int, default=1, help="Number of games to run")
    ap.add_argument("--depth", type=int, default=3, help="Search depth (plies)")
    ap.add_argument("--steps", type=int, default=100_000, help="Safety cap on moves per game")
    ap.add_argument("--cols", type=int, default=4)
    ap.add_argument("--rows", type=int, default=4)
    ap.add_argument("--shortcut-max", type=int, default=48,
                    help="Play the fixed up/left/right/down order while the max piece is at most this (0 disables)")
    ap.add_argument("--quiet", action="store_true", help="Suppress per-move boards")
    ap.add_argument("--log-level", default="WARNING", help="DEBUG logs every score breakdown")
    ap.add_argument("--log-file", default=None, help="Also write log records to this file")

    ap.add_argument("--plot", action="store_true", help="Show result plots after runs")
    ap.add_argument("--save-plots", metavar="DIR", default=None, help="Save plots to DIR")
    ap.add_argument("--no-show", action="store_true", help="Create/save plots without opening a window")
    return ap

def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, args.log_file)

    params = PlayerParams(depth=args.depth, shortcut_max_value=args.shortcut_max,
                          max_steps=args.steps, verbose=not args.quiet)

    scores: List[int] = []
    max_tiles: List[int] = []
    moves: List[int] = []
    t0 = time.perf_counter()

    # Warm up Numba once to avoid first-move stalls
    numba_warmup()
    seed = args.seed
    for i in range(args.games):
        max_val, points, made = run_game(seed, params, args.cols, args.rows)
        if seed is not None:
            seed += 1
        scores.append(points)
        max_tiles.append(max_val)
        moves.append(made)
        print(f"{i + 1} / {args.games} games played ({points} pts, max {max_val}, {made} moves)")

    print_summary(scores, max_tiles, moves, time.perf_counter() - t0)

    if args.plot or args.save_plots is not None:
        plot_results(scores, max_tiles, show=not args.no_show, outdir=args.save_plots)
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
