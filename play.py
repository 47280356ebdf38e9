#!/usr/bin/env python3
"""Let the 2-ply heuristic AI play headless games and report rows cleared.

Usage:
  python play.py
  python play.py --weights best_weights.json --seed 3 --games 5
  python play.py --max-pieces 2000 --verbose
"""
import argparse
import logging
import time

import numpy as np

from ai import HeuristicAI, load_weights
from game import TetrisGame

logger = logging.getLogger("play")


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    ap.add_argument("--weights", default="best_weights.json",
                    help="JSON weight file (default weights if missing)")
    ap.add_argument("--seed", type=int, default=None,
                    help="seed of the first game; later games use seed+1, seed+2, ...")
    ap.add_argument("--games", type=int, default=1)
    ap.add_argument("--max-pieces", type=int, default=None,
                    help="stop a game after this many pieces")
    ap.add_argument("--verbose", action="store_true")
    return ap.parse_args(argv)


def play_games(ai, games=1, seed=None, max_pieces=None):
    """Play ``games`` games; return rows cleared per game."""
    results = []
    for g in range(games):
        s = None if seed is None else seed + g
        start = time.time()
        rows = ai.run(TetrisGame(s), max_pieces=max_pieces)
        logger.info("game %d (seed=%s): %d rows in %.1f sec",
                    g, s, rows, time.time() - start)
        print(f"You have completed {rows} rows.")
        results.append(rows)
    return results


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(name)s %(message)s")
    logging.getLogger("numba").setLevel(logging.WARNING)

    ai = HeuristicAI(load_weights(args.weights))
    logger.info("weights: %s", [round(w, 4) for w in ai.weights])

    results = play_games(ai, args.games, args.seed, args.max_pieces)
    if len(results) > 1:
        print(f"mean {np.mean(results):.1f} rows over {len(results)} games")


if __name__ == "__main__":
    main()
