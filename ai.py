# ai.py – 2-ply 先読みヒューリスティック AI
from __future__ import annotations
import json
import logging
import pathlib
from typing import Dict, Iterable, Optional, Sequence, Union

import numpy as np

from core import (PIECE_NAMES, BoardState, DEFAULT_W, FEATURES, Weights,
                  as_move_array, legal_move_table)
from game import TetrisGame
from numba_core import best_index, search_values

logger = logging.getLogger(__name__)

WeightsLike = Union[Weights, Sequence[float], Dict[str, float]]


# ────────── 重み読込 ──────────
def load_weights(path: Union[str, pathlib.Path] = 'best_weights.json') -> Weights:
    """Read a weight vector (JSON list, or object keyed by FEATURES).

    A missing file yields DEFAULT_W.
    """
    p = pathlib.Path(path)
    if not p.exists():
        logger.info('%s not found, using default weights', p)
        return DEFAULT_W
    try:
        data = json.loads(p.read_text())
        return Weights.coerce(data)
    except (json.JSONDecodeError, TypeError, ValueError) as e:
        raise ValueError(f'{p}: bad weight file ({e})') from e


# ────────── ヒューリスティック AI ──────────
class HeuristicAI:
    """Picks a move by 2-ply lookahead with a fixed weight vector.

    The first ply tries every candidate for the falling piece; every
    surviving board is then scored by the mean, over all 7 kinds, of the best
    single drop of that kind.
    """

    def __init__(self, w: WeightsLike = DEFAULT_W):
        self._weights = Weights.coerce(w)
        self._w_arr = self._weights.as_array()

    @property
    def weights(self) -> Weights:
        return self._weights

    def move_values(self, state: Union[TetrisGame, BoardState], legal,
                    kind: Optional[int] = None) -> np.ndarray:
        """Search value of every candidate in ``legal``."""
        if isinstance(state, TetrisGame):
            board = state.board
            if kind is None:
                kind = state.next_piece
        else:
            board = state
        if kind is None:
            raise ValueError('piece kind is required when passing a BoardState')
        moves = as_move_array(legal, kind, board.cols)
        all_moves, all_counts = legal_move_table(board.cols)
        return search_values(board.field, board.top, board.turn,
                             board.rows_cleared, kind, moves, self._w_arr,
                             all_moves, all_counts)

    def pick_move(self, state: Union[TetrisGame, BoardState], legal,
                  kind: Optional[int] = None) -> int:
        """Index into ``legal`` of the best candidate; ties go to the earliest."""
        values = self.move_values(state, legal, kind)
        best = int(best_index(values))
        logger.debug('pick %d/%d value=%.4f', best, len(values), values[best])
        return best

    def run(self, game: Optional[TetrisGame] = None, seed: Optional[int] = None,
            max_pieces: Optional[int] = None) -> int:
        """Play until the game is lost (or ``max_pieces``); return rows cleared."""
        if game is None:
            game = TetrisGame(seed)
        pieces = 0
        while not game.lost and (max_pieces is None or pieces < max_pieces):
            legal = game.legal_moves()
            game.make_move(self.pick_move(game, legal))
            pieces += 1
            if pieces % 1000 == 0:
                logger.debug('%d pieces, %d rows', pieces, game.rows_cleared)
        logger.info('game over=%s after %d pieces (%s next): %d rows',
                    game.lost, pieces, PIECE_NAMES[game.next_piece], game.rows_cleared)
        return game.rows_cleared


def fitness(w: WeightsLike, seeds: Iterable[int] = (0, 1, 2),
            max_pieces: Optional[int] = None) -> float:
    """Mean rows cleared over one game per seed."""
    seeds = list(seeds)
    if not seeds:
        raise ValueError('fitness needs at least one seed')
    ai = HeuristicAI(w)
    return float(np.mean([ai.run(seed=s, max_pieces=max_pieces) for s in seeds]))


__all__ = ['FEATURES', 'HeuristicAI', 'fitness', 'load_weights']
