"""numba_features.py – 盤面特徴量と評価関数 (Numba JIT)

Every function takes the raw ``field[row, col]`` grid (row 0 = floor) and/or
the ``top`` column-height array, so the search kernels can score scratch
buffers without building a ``BoardState``.
"""
from __future__ import annotations
from numba import njit

LOST_VALUE = -10.0      # lost 特徴量の値


# ■ 穴: top の 1 段下より下にある空きマス
@njit(cache=True)
def holes(field, top):
    n = 0
    for c in range(top.shape[0]):
        for r in range(top[c] - 1):
            if field[r, c] == 0:
                n += 1
    return n


@njit(cache=True)
def max_height(top):
    m = 0
    for c in range(top.shape[0]):
        if top[c] > m:
            m = top[c]
    return m


# ■ 隣接列の高さ差の総和
@njit(cache=True)
def height_var(top):
    s = 0
    for c in range(top.shape[0] - 1):
        s += abs(top[c] - top[c + 1])
    return s


@njit(cache=True)
def pit_depth(top):
    """Sum of pit depths deeper than 2.

    The two edge columns only look at their single inner neighbour; interior
    columns use the shallower side.  Trained weights depend on this exact
    shape, keep it.
    """
    n = top.shape[0]
    s = 0
    d = top[1] - top[0]
    if d > 2:
        s += d
    for c in range(1, n - 1):
        d = min(top[c - 1] - top[c], top[c + 1] - top[c])
        if d > 2:
            s += d
    d = top[n - 2] - top[n - 1]
    if d > 2:
        s += d
    return s


# ■ 平均高さからの平均絶対偏差
@njit(cache=True)
def mean_height_diff(top):
    n = top.shape[0]
    total = 0.0
    for c in range(n):
        total += top[c]
    mean = total / n
    dev = 0.0
    for c in range(n):
        dev += abs(mean - top[c])
    return dev / n


@njit(cache=True)
def utility(field, top, rows_cleared, lost, weights):
    """Weighted score; weights are magnitudes, signs live here.

    weights = [holes, rows_cleared, height_var, lost, max_height,
               pit_depth, mean_height_diff]
    """
    lost_value = LOST_VALUE if lost else 0.0
    return (-weights[0] * holes(field, top)
            + weights[1] * rows_cleared
            - weights[2] * height_var(top)
            + weights[3] * lost_value
            - weights[4] * max_height(top)
            - weights[5] * pit_depth(top)
            - weights[6] * mean_height_diff(top))
