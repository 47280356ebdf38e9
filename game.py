# game.py – ヘッドレス Tetris (正規ゲーム状態)
from __future__ import annotations
import logging
import random
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from core import (ROWS, COLS, N_PIECES, PIECE_NAMES, BoardState,
                  legal_moves, is_integral)

logger = logging.getLogger(__name__)


class GameOver(RuntimeError):
    """Raised when a move is requested after the game was lost."""


class TetrisGame:
    """Authoritative game: one board, a uniformly random falling piece.

    ``make_move`` accepts either an index into ``legal_moves()`` or an
    explicit ``(orient, slot)`` pair.
    """

    def __init__(self, seed: Optional[int] = None, rows: int = ROWS, cols: int = COLS):
        if cols < 2:
            raise ValueError(f'a board needs at least 2 columns, got {cols}')
        self.rnd = random.Random(seed)
        self.board = BoardState.empty(rows, cols)
        self.next_piece = self._random_piece()

    def _random_piece(self) -> int:
        return self.rnd.randrange(N_PIECES)

    # ─ read-only views ─
    @property
    def field(self) -> np.ndarray:
        return self.board.field

    @property
    def top(self) -> np.ndarray:
        return self.board.top

    @property
    def turn(self) -> int:
        return self.board.turn

    @property
    def rows_cleared(self) -> int:
        return self.board.rows_cleared

    @property
    def lost(self) -> bool:
        return self.board.lost

    def legal_moves(self) -> Tuple[Tuple[int, int], ...]:
        return legal_moves(self.next_piece, self.board.cols)

    def snapshot(self) -> BoardState:
        return self.board.clone()

    # ─ 着手 ─
    def make_move(self, move: Union[int, Sequence[int]]) -> bool:
        """Drop the falling piece; returns False once the game is lost."""
        if self.lost:
            raise GameOver(f'game already lost after {self.turn} turns')
        if is_integral(move):
            moves = self.legal_moves()
            if not 0 <= move < len(moves):
                raise ValueError(f'move index {move} out of range (0..{len(moves) - 1})')
            orient, slot = moves[move]
        else:
            orient, slot = move
        kind = self.next_piece
        if not self.board.make_move(kind, int(orient), int(slot)):
            logger.debug('top-out: %s orient=%d slot=%d at turn %d',
                         PIECE_NAMES[kind], orient, slot, self.turn)
            return False
        self.next_piece = self._random_piece()
        return True

    def __repr__(self):
        return (f'TetrisGame(turn={self.turn}, rows_cleared={self.rows_cleared}, '
                f'next={PIECE_NAMES[self.next_piece]}, lost={self.lost})')
