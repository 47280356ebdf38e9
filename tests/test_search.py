import unittest

from ai import HeuristicAI
from core import DEFAULT_W, N_PIECES, BoardState, legal_moves, utility
from game import TetrisGame
from tests.helpers import I, O, T, from_heights, from_rows


def reference_value(state, kind, move, weights):
    """Plain-Python 2-ply value of one candidate."""
    st = state.clone()
    if not st.make_move(kind, *move):
        return utility(st, weights)
    total = 0.0
    for k in range(N_PIECES):
        best = float('-inf')
        for m in legal_moves(k, st.cols):
            child = st.clone()
            child.make_move(k, *m)
            best = max(best, utility(child, weights))
        total += best
    return total / N_PIECES


class TestSearch(unittest.TestCase):

    def setUp(self):
        self.ai = HeuristicAI(DEFAULT_W)

    def test_empty_legal_moves_rejected(self):
        with self.assertRaises(ValueError):
            self.ai.pick_move(BoardState.empty(), [], kind=O)

    def test_kind_required_for_board_state(self):
        with self.assertRaises(ValueError):
            self.ai.pick_move(BoardState.empty(), [(0, 0)])

    def test_illegal_candidate_rejected(self):
        with self.assertRaises(ValueError):
            self.ai.pick_move(BoardState.empty(), [(0, 9)], kind=O)

    def test_flat_move_list_rejected(self):
        with self.assertRaises(ValueError):
            self.ai.pick_move(BoardState.empty(), [0, 4, 0, 0], kind=O)
        with self.assertRaises(ValueError):
            self.ai.pick_move(BoardState.empty(), [(0, 4, 0)], kind=O)

    def test_values_match_reference(self):
        st = from_rows(['##.####.##', '##..##..##'])
        moves = [(0, 0), (1, 3), (3, 6)]
        values = self.ai.move_values(st, moves, kind=T)
        for v, m in zip(values, moves):
            self.assertAlmostEqual(v, reference_value(st, T, m, DEFAULT_W), places=9)

    def test_terminal_candidate_is_scored_directly(self):
        st = from_heights([19] + [0] * 9)
        values = self.ai.move_values(st, [(0, 0)], kind=O)
        lost = st.clone()
        lost.lost = True
        self.assertAlmostEqual(values[0], utility(lost, DEFAULT_W), places=9)

    def test_prefers_line_clear(self):
        st = from_rows(['#########.'])
        self.assertEqual(self.ai.pick_move(st, [(0, 0), (0, 9)], kind=I), 1)

    def test_tie_goes_to_earliest(self):
        st = from_heights([2, 0, 0, 1, 1, 0, 0, 0, 3, 0])
        self.assertEqual(self.ai.pick_move(st, [(0, 4), (0, 4)], kind=O), 0)
        self.assertEqual(self.ai.pick_move(st, [(0, 1), (0, 4), (0, 4)], kind=O),
                         self.ai.pick_move(st, [(0, 1), (0, 4)], kind=O))

    def test_zero_weights_pick_first(self):
        ai = HeuristicAI([0.0] * 7)
        self.assertEqual(ai.pick_move(BoardState.empty(), legal_moves(T), kind=T), 0)

    def test_all_terminal_picks_first(self):
        st = from_heights([19] * 10)
        self.assertEqual(self.ai.pick_move(st, legal_moves(O), kind=O), 0)

    def test_deterministic(self):
        game = TetrisGame(seed=11)
        for _ in range(5):
            game.make_move(self.ai.pick_move(game, game.legal_moves()))
        snap = game.snapshot()
        moves = game.legal_moves()
        a = HeuristicAI(DEFAULT_W).pick_move(game, moves)
        b = HeuristicAI(list(DEFAULT_W)).pick_move(snap, moves, kind=game.next_piece)
        self.assertEqual(a, b)
        self.assertEqual(a, self.ai.pick_move(game, moves))

    def test_search_does_not_touch_state(self):
        st = from_rows(['#########.', '####.#####'])
        before = st.clone()
        self.ai.pick_move(st, legal_moves(I), kind=I)
        self.assertTrue((st.field == before.field).all())
        self.assertTrue((st.top == before.top).all())
        self.assertEqual(st.turn, before.turn)
        self.assertEqual(st.rows_cleared, before.rows_cleared)


if __name__ == '__main__':
    unittest.main()
