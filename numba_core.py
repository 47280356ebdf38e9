"""
numba_core.py – Numba-accelerated simulation and 2-ply search
-------------------------------------------------------------

All heavy per-cell work lives here so that ``core.py`` can stay plain
Python.  The board is a ``field[row, col]`` integer grid (row 0 = floor,
0 = empty) plus a ``top`` array holding one-above-the-highest-block for every
column.  Board dimensions are always read from the arrays themselves.

Public API
~~~~~~~~~~
    >>> from numba_core import make_move, search_values, best_index

* **make_move(field, top, kind, orient, slot, tag) → cleared | -1**
* **search_values(field, top, turn, rows_cleared, kind, legal, weights,
  all_moves, all_counts) → float64[len(legal)]**
* **best_index(values) → int**
"""
from __future__ import annotations
from typing import Tuple

import numpy as np
from numba import njit, prange

from numba_features import utility

# ---------------------------------------------------------------------
# Piece vocabulary – 7 kinds, reference order O, I, L, J, T, S, Z ------
N_PIECES = 7
P_ORIENTS: Tuple[int, ...] = (1, 2, 4, 4, 4, 2, 2)

# width / height [kind][orient]
P_WIDTH: Tuple[Tuple[int, ...], ...] = (
    (2,), (1, 4), (2, 3, 2, 3), (2, 3, 2, 3), (2, 3, 2, 3), (3, 2), (3, 2),
)
P_HEIGHT: Tuple[Tuple[int, ...], ...] = (
    (2,),            # O
    (4, 1),          # I
    (3, 2, 3, 2),    # L
    (3, 2, 3, 2),    # J
    (3, 2, 3, 2),    # T
    (2, 3),          # S
    (2, 3),          # Z
)
# lowest / one-above-highest filled cell per column [kind][orient][col]
P_BOTTOM: Tuple[Tuple[Tuple[int, ...], ...], ...] = (
    ((0, 0),),
    ((0,), (0, 0, 0, 0)),
    ((0, 0), (0, 1, 1), (2, 0), (0, 0, 0)),
    ((0, 0), (0, 0, 0), (0, 2), (1, 1, 0)),
    ((0, 1), (1, 0, 1), (1, 0), (0, 0, 0)),
    ((0, 0, 1), (1, 0)),
    ((1, 0, 0), (0, 1)),
)
P_TOP: Tuple[Tuple[Tuple[int, ...], ...], ...] = (
    ((2, 2),),
    ((4,), (1, 1, 1, 1)),
    ((3, 1), (2, 2, 2), (3, 3), (1, 1, 2)),
    ((1, 3), (2, 1, 1), (3, 3), (2, 2, 2)),
    ((3, 2), (2, 2, 2), (2, 3), (1, 2, 1)),
    ((1, 2, 2), (3, 2)),
    ((2, 2, 1), (2, 3)),
)

# ---------------------------------------------------------------------
# Padded numpy copies (JIT からはこちらを参照) --------------------------
MAX_ORIENTS = 4
MAX_WIDTH = 4


def _pad_tables():
    width = np.zeros((N_PIECES, MAX_ORIENTS), dtype=np.int64)
    height = np.zeros((N_PIECES, MAX_ORIENTS), dtype=np.int64)
    bottom = np.zeros((N_PIECES, MAX_ORIENTS, MAX_WIDTH), dtype=np.int64)
    top = np.zeros((N_PIECES, MAX_ORIENTS, MAX_WIDTH), dtype=np.int64)
    for k in range(N_PIECES):
        for r in range(P_ORIENTS[k]):
            width[k, r] = P_WIDTH[k][r]
            height[k, r] = P_HEIGHT[k][r]
            for c in range(P_WIDTH[k][r]):
                bottom[k, r, c] = P_BOTTOM[k][r][c]
                top[k, r, c] = P_TOP[k][r][c]
    return width, height, bottom, top


WIDTH_ARR, HEIGHT_ARR, BOTTOM_ARR, TOP_ARR = _pad_tables()

# ---------------------------------------------------------------------
# Drop + line clear ----------------------------------------------------
@njit(cache=True)
def make_move(field, top, kind, orient, slot, tag):
    """Drop one piece in place; return rows cleared, or -1 on top-out.

    On top-out nothing is written.
    """
    rows = field.shape[0]
    ncols = field.shape[1]
    width = WIDTH_ARR[kind, orient]
    height = HEIGHT_ARR[kind, orient]

    # landing row ------------------------------------------------------
    landing = top[slot] - BOTTOM_ARR[kind, orient, 0]
    for c in range(1, width):
        v = top[slot + c] - BOTTOM_ARR[kind, orient, c]
        if v > landing:
            landing = v

    if landing + height >= rows:
        return -1

    # place blocks -----------------------------------------------------
    for c in range(width):
        lo = landing + BOTTOM_ARR[kind, orient, c]
        hi = landing + TOP_ARR[kind, orient, c]
        for r in range(lo, hi):
            field[r, slot + c] = tag
        top[slot + c] = hi

    # full rows, top of the piece first --------------------------------
    cleared = 0
    for r in range(landing + height - 1, landing - 1, -1):
        full = True
        for c in range(ncols):
            if field[r, c] == 0:
                full = False
                break
        if not full:
            continue
        cleared += 1
        for c in range(ncols):
            # top[c] は直前の消去で変わっているので毎回読む
            for i in range(r, top[c]):
                field[i, c] = field[i + 1, c] if i + 1 < rows else 0
            top[c] -= 1
            while top[c] >= 1 and field[top[c] - 1, c] == 0:
                top[c] -= 1
    return cleared

# ---------------------------------------------------------------------
# 2-ply search ---------------------------------------------------------
@njit(cache=True)
def _best_response(field, top, tag, rows_cleared, weights,
                   all_moves, all_counts):
    """Mean over every kind of the best single-drop utility."""
    f = np.empty_like(field)
    t = np.empty_like(top)
    n_kinds = all_counts.shape[0]
    total = 0.0
    for k in range(n_kinds):
        best = -np.inf
        for j in range(all_counts[k]):
            f[:, :] = field
            t[:] = top
            cl = make_move(f, t, k, all_moves[k, j, 0], all_moves[k, j, 1], tag)
            if cl < 0:
                v = utility(f, t, rows_cleared, True, weights)
            else:
                v = utility(f, t, rows_cleared + cl, False, weights)
            if v > best:
                best = v
        total += best
    return total / n_kinds


@njit(parallel=True, cache=True)
def search_values(field, top, turn, rows_cleared, kind, legal, weights,
                  all_moves, all_counts):
    """Value of every candidate in ``legal`` (shape (M, 2))."""
    m = legal.shape[0]
    values = np.empty(m, dtype=np.float64)
    for i in prange(m):
        f = field.copy()
        t = top.copy()
        cl = make_move(f, t, kind, legal[i, 0], legal[i, 1], turn + 1)
        if cl < 0:
            values[i] = utility(f, t, rows_cleared, True, weights)
        else:
            values[i] = _best_response(f, t, turn + 2, rows_cleared + cl,
                                       weights, all_moves, all_counts)
    return values


@njit(cache=True)
def best_index(values):
    """First index of the maximum (strictly greater replaces)."""
    best = 0
    for i in range(1, values.shape[0]):
        if values[i] > values[best]:
            best = i
    return best


__all__ = [
    'N_PIECES', 'P_ORIENTS', 'P_WIDTH', 'P_HEIGHT', 'P_BOTTOM', 'P_TOP',
    'make_move', 'search_values', 'best_index',
]
