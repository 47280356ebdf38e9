import numpy as np

from core import ROWS, COLS, BoardState

O, I, L, J, T, S, Z = range(7)


def from_heights(heights, rows=ROWS):
    """Solid columns of the given heights."""
    field = np.zeros((rows, len(heights)), dtype=np.int32)
    for c, h in enumerate(heights):
        field[:h, c] = 1
    return BoardState.from_arrays(field)


def from_rows(rows_bottom_up, rows=ROWS, cols=COLS):
    """Rows given bottom-up as strings, '#' filled, '.' empty."""
    field = np.zeros((rows, cols), dtype=np.int32)
    for r, line in enumerate(rows_bottom_up):
        for c, ch in enumerate(line):
            if ch == '#':
                field[r, c] = 1
    return BoardState.from_arrays(field)


def assert_top_invariant(tc, state):
    for c in range(state.cols):
        t = state.top[c]
        if t > 0:
            tc.assertNotEqual(state.field[t - 1, c], 0, f'column {c} below top empty')
        tc.assertTrue((state.field[t:, c] == 0).all(), f'column {c} has cells above top')
