# core.py – 盤面シミュレーション・特徴量・重み (共有ロジック)
from __future__ import annotations
import math
from functools import lru_cache
from numbers import Integral
from typing import Dict, List, NamedTuple, Sequence, Tuple, Union

import numpy as np

import numba_features as nf
from numba_core import (N_PIECES, P_ORIENTS, P_WIDTH, P_HEIGHT,
                        P_BOTTOM, P_TOP, make_move as nb_make_move)

# ────────── 定数 ──────────
# Reference board used by the bundled game; BoardState itself works with
# whatever grid it is given.
ROWS, COLS = 21, 10
ORIENT, SLOT = 0, 1                      # legal move tuple index
PIECE_NAMES = ('O', 'I', 'L', 'J', 'T', 'S', 'Z')

Move = Tuple[int, int]                   # (orient, slot)


# ───────────── Piece geometry ─────────────
def n_orients(kind: int) -> int:
    return P_ORIENTS[kind]


def piece_width(kind: int, orient: int) -> int:
    return P_WIDTH[kind][orient]


def piece_height(kind: int, orient: int) -> int:
    return P_HEIGHT[kind][orient]


def bottom_profile(kind: int, orient: int) -> Tuple[int, ...]:
    return P_BOTTOM[kind][orient]


def top_profile(kind: int, orient: int) -> Tuple[int, ...]:
    return P_TOP[kind][orient]


def check_move(kind: int, orient: int, slot: int, cols: int = COLS):
    """Raise ValueError unless (kind, orient, slot) fits the board width."""
    if not 0 <= kind < N_PIECES:
        raise ValueError(f'unknown piece kind {kind}')
    if not 0 <= orient < P_ORIENTS[kind]:
        raise ValueError(f'piece {PIECE_NAMES[kind]} has no orientation {orient}')
    if not 0 <= slot <= cols - P_WIDTH[kind][orient]:
        raise ValueError(f'slot {slot} out of range for '
                         f'{PIECE_NAMES[kind]}/{orient} on {cols} columns')


@lru_cache(maxsize=None)
def _legal_moves_all(cols: int) -> Tuple[Tuple[Move, ...], ...]:
    table = []
    for k in range(N_PIECES):
        moves = [(r, s)
                 for r in range(P_ORIENTS[k])
                 for s in range(cols + 1 - P_WIDTH[k][r])]
        table.append(tuple(moves))
    return tuple(table)


def legal_moves(kind: int, cols: int = COLS) -> Tuple[Move, ...]:
    """Every (orient, slot) that fits ``cols`` columns, independent of occupancy."""
    if not 0 <= kind < N_PIECES:
        raise ValueError(f'unknown piece kind {kind}')
    return _legal_moves_all(cols)[kind]


@lru_cache(maxsize=None)
def legal_move_table(cols: int = COLS) -> Tuple[np.ndarray, np.ndarray]:
    """Padded (moves[N_PIECES, max_n, 2], counts[N_PIECES]) for the JIT search."""
    table = _legal_moves_all(cols)
    counts = np.array([len(m) for m in table], dtype=np.int64)
    moves = np.zeros((N_PIECES, int(counts.max()), 2), dtype=np.int64)
    for k, ms in enumerate(table):
        if ms:
            moves[k, :len(ms)] = ms
    return moves, counts


# ────────── 重み ──────────
FEATURES: List[str] = [
    'holes', 'rows_cleared', 'height_var', 'lost',
    'max_height', 'pit_depth', 'mean_height_diff',
]


class Weights(NamedTuple):
    holes: float
    rows_cleared: float
    height_var: float
    lost: float
    max_height: float
    pit_depth: float
    mean_height_diff: float

    @classmethod
    def coerce(cls, w: Union['Weights', Sequence[float], Dict[str, float]]) -> 'Weights':
        """Accept a Weights, a 7-sequence or a dict keyed by FEATURES."""
        if isinstance(w, cls):
            return w
        if isinstance(w, dict):
            missing = [f for f in FEATURES if f not in w]
            if missing:
                raise ValueError(f'missing weights: {missing}')
            unknown = [k for k in w if k not in FEATURES]
            if unknown:
                raise ValueError(f'unknown weights: {unknown}')
            values = [w[f] for f in FEATURES]
        else:
            values = list(w)
            if len(values) != len(FEATURES):
                raise ValueError(f'expected {len(FEATURES)} weights, got {len(values)}')
        values = [float(v) for v in values]
        for name, v in zip(FEATURES, values):
            if not math.isfinite(v) or v < 0:
                raise ValueError(f'weight {name} must be a finite non-negative number, got {v}')
        return cls(*values)

    def as_array(self) -> np.ndarray:
        return np.array(self, dtype=np.float64)


# GA で 20 世代回したときのベスト個体
DEFAULT_W = Weights(
    holes=1.7851855342334024,
    rows_cleared=1.4138726176225629,
    height_var=0.3567297944529728,
    lost=0.6249287636118577,
    max_height=0.051962392158941606,
    pit_depth=0.52385888919136,
    mean_height_diff=0.12090744319379954,
)


# ────────── Board State ──────────
class BoardState:
    """Simulated board: field[row, col] (row 0 = floor) + column tops.

    Cells hold 0 for empty or the turn number that filled them.
    """
    __slots__ = ('field', 'top', 'turn', 'rows_cleared', 'lost')

    def __init__(self, field: np.ndarray, top: np.ndarray, turn: int = 0,
                 rows_cleared: int = 0, lost: bool = False):
        # pit_depth は左右の隣列を読むので 2 列以上
        if field.ndim != 2 or field.shape[1] < 2:
            raise ValueError(f'field must be a 2-D grid with at least 2 columns, got shape {field.shape}')
        if top.shape != (field.shape[1],):
            raise ValueError(f'top must have {field.shape[1]} entries, got {top.shape}')
        self.field = field
        self.top = top
        self.turn = turn
        self.rows_cleared = rows_cleared
        self.lost = lost

    # ─ constructors ─
    @staticmethod
    def empty(rows: int = ROWS, cols: int = COLS) -> 'BoardState':
        return BoardState(np.zeros((rows, cols), dtype=np.int32),
                          np.zeros(cols, dtype=np.int32))

    @staticmethod
    def from_arrays(field, top=None, turn: int = 0, rows_cleared: int = 0,
                    lost: bool = False) -> 'BoardState':
        """Deep-copy an external grid. ``top`` is derived from the grid if omitted."""
        field = np.array(field, dtype=np.int32)
        if field.ndim != 2:
            raise ValueError(f'field must be a 2-D grid, got shape {field.shape}')
        if top is None:
            occupied = field != 0
            top = np.where(occupied.any(axis=0),
                           field.shape[0] - np.argmax(occupied[::-1], axis=0), 0)
        top = np.array(top, dtype=np.int32)
        return BoardState(field, top, turn, rows_cleared, lost)

    # ─ clone ─
    def clone(self) -> 'BoardState':
        return BoardState(self.field.copy(), self.top.copy(), self.turn,
                          self.rows_cleared, self.lost)

    @property
    def rows(self) -> int:
        return self.field.shape[0]

    @property
    def cols(self) -> int:
        return self.field.shape[1]

    def cell(self, row: int, col: int) -> bool:
        return self.field[row, col] != 0

    # ─ drop ─
    def make_move(self, kind: int, orient: int, slot: int) -> bool:
        """Drop a piece; False (and ``lost``) if it would overflow the board."""
        check_move(kind, orient, slot, self.cols)
        self.turn += 1
        cleared = nb_make_move(self.field, self.top, kind, orient, slot, self.turn)
        if cleared < 0:
            self.lost = True
            return False
        self.rows_cleared += cleared
        return True

    # ─ 特徴量 ─
    def features(self) -> Dict[str, float]:
        return {
            'holes': nf.holes(self.field, self.top),
            'rows_cleared': self.rows_cleared,
            'height_var': nf.height_var(self.top),
            'lost': self.lost,
            'max_height': nf.max_height(self.top),
            'pit_depth': nf.pit_depth(self.top),
            'mean_height_diff': nf.mean_height_diff(self.top),
        }

    def __repr__(self):
        return (f'BoardState({self.rows}x{self.cols}, turn={self.turn}, '
                f'rows_cleared={self.rows_cleared}, lost={self.lost})')


def utility(state: BoardState, weights: Union[Weights, Sequence[float], Dict[str, float]]) -> float:
    """Heuristic score of ``state`` (higher is better)."""
    w = Weights.coerce(weights)
    return float(nf.utility(state.field, state.top, state.rows_cleared,
                            bool(state.lost), w.as_array()))


def as_move_array(moves: Sequence[Move], kind: int, cols: int) -> np.ndarray:
    """Validate an (orient, slot) list and pack it for the search kernel."""
    arr = np.asarray(moves, dtype=np.int64)
    if arr.size == 0:
        raise ValueError('legal_moves must not be empty')
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValueError(f'legal_moves must be (orient, slot) pairs, got shape {arr.shape}')
    for orient, slot in arr:
        check_move(kind, int(orient), int(slot), cols)
    return arr


def is_integral(x) -> bool:
    return isinstance(x, Integral) and not isinstance(x, bool)


__all__ = [
    'ROWS', 'COLS', 'N_PIECES', 'ORIENT', 'SLOT', 'PIECE_NAMES',
    'P_ORIENTS', 'P_WIDTH', 'P_HEIGHT', 'P_BOTTOM', 'P_TOP',
    'n_orients', 'piece_width', 'piece_height', 'bottom_profile', 'top_profile',
    'check_move', 'legal_moves', 'legal_move_table',
    'FEATURES', 'Weights', 'DEFAULT_W', 'BoardState', 'utility',
    'as_move_array', 'is_integral',
]
