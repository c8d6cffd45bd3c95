import unittest

import numpy as np
from sc2.position import Point2

from econbot.engine.influence_map import Falloff, InfluenceMap


class TestInfluenceMap(unittest.TestCase):
    def setUp(self):
        self.m = InfluenceMap(32, 32, 4.0)

    def test_add_then_subtract_restores_every_cell(self):
        """Removing a contribution gives back the exact previous grid."""
        self.m.add_influence(12, 9, 13, 13, Falloff.LINEAR)
        self.m.add_influence(15, 11, 10, 7.3, Falloff.LINEAR)
        before = self.m.grid.copy()

        self.m.add_influence(14, 10, 13, 13.7, Falloff.LINEAR)
        self.m.add_influence(3, 30, 10, 50, Falloff.QUADRATIC)
        self.m.add_influence(14, 10, 13, -13.7, Falloff.LINEAR)
        self.m.add_influence(3, 30, 10, -50, Falloff.QUADRATIC)

        self.assertTrue(np.array_equal(self.m.grid, before))

    def test_linear_falloff_and_edge_clipping(self):
        self.m.add_influence(0, 0, 3, 9, Falloff.LINEAR)
        self.assertEqual(self.m.value_at(0, 0), 9.0)
        self.assertEqual(self.m.value_at(1, 0), 6.0)
        self.assertEqual(self.m.value_at(3, 0), 0.0)

    def test_fully_outside_is_ignored(self):
        self.m.add_influence(-20, -20, 3, 9)
        self.assertEqual(self.m.total(), 0.0)

    def test_constant_falloff_fills_disc(self):
        self.m.add_influence(5, 5, 2, 4, Falloff.CONSTANT)
        # dx^2 + dz^2 < 4: the centre, its 4 neighbours and 4 diagonals
        self.assertEqual(self.m.total(), 36.0)
        self.assertEqual(self.m.value_at(7, 5), 0.0)

    def test_invalid_radius_raises(self):
        with self.assertRaises(ValueError):
            self.m.add_influence(5, 5, 0, 4)

    def test_sum_influence(self):
        self.m.add_influence(5, 5, 2, 4, Falloff.CONSTANT)
        self.assertEqual(self.m.sum_influence(5, 5, 2), 36.0)
        self.assertEqual(self.m.sum_influence(5, 5, 1), 4.0)
        self.assertEqual(self.m.sum_influence(5, 5, 0), 0.0)

    def test_multiply(self):
        self.m.grid[2, 3] = 4.0
        other = self.m.like()
        other.grid[2, 3] = 0.5
        self.m.multiply(other)
        self.assertEqual(self.m.value_at(3, 2), 2.0)

        with self.assertRaises(ValueError):
            self.m.multiply(InfluenceMap(16, 32, 4.0))

    def test_expand_influences(self):
        m = InfluenceMap(21, 21, 4.0)
        m.grid[10, 10] = 5.0
        m.expand_influences()
        self.assertEqual(m.value_at(10, 10), 5.0)
        self.assertEqual(m.value_at(12, 10), 3.0)
        self.assertEqual(m.value_at(11, 11), 3.0)
        self.assertEqual(m.value_at(13, 11), 1.0)
        self.assertEqual(m.value_at(10, 15), 0.0)
        self.assertEqual(m.value_at(0, 0), 0.0)

    def test_find_best_tile_empty_is_none(self):
        self.assertIsNone(self.m.find_best_tile(4, self.m.like()))

    def test_find_best_tile_tie_takes_first_in_scan_order(self):
        self.m.grid[2, 3] = 5.0
        self.m.grid[1, 7] = 5.0
        idx, value = self.m.find_best_tile(0, self.m.like())
        self.assertEqual(idx, self.m.index_of(7, 1))
        self.assertEqual(value, 5.0)

    def test_find_best_tile_respects_separation(self):
        self.m.grid[10, 10] = 9.0
        self.m.grid[20, 20] = 4.0
        obstruction = self.m.like()
        obstruction.grid[12, 12] = 1.0

        idx, _ = self.m.find_best_tile(1, obstruction)
        self.assertEqual(idx, self.m.index_of(10, 10))

        idx, value = self.m.find_best_tile(2, obstruction)
        self.assertEqual(idx, self.m.index_of(20, 20))
        self.assertEqual(value, 4.0)

    def test_find_best_tile_shape_mismatch(self):
        with self.assertRaises(ValueError):
            self.m.find_best_tile(1, InfluenceMap(8, 8, 4.0))

    def test_coordinates(self):
        # 10 / 4 = 2.5 rounds half up
        self.assertEqual(self.m.cell_of(Point2((10.0, 9.9))), (3, 2))
        self.assertEqual(self.m.index_to_cell(self.m.index_of(3, 2)), (3, 2))
        self.assertEqual(self.m.index_to_world(self.m.index_of(3, 2)), Point2((14.0, 10.0)))

    def test_from_obstruction(self):
        blocked = np.zeros((4, 6), dtype=bool)
        blocked[1, 2] = True
        m = InfluenceMap.from_obstruction(blocked, 4.0, strength=2.0)
        self.assertEqual(m.shape, (4, 6))
        self.assertEqual(m.value_at(2, 1), 2.0)
        self.assertEqual(m.total(), 2.0)


if __name__ == '__main__':
    unittest.main()
