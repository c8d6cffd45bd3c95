import unittest
from unittest.mock import MagicMock

from sc2.position import Point2

from econbot.consts import ResourceType
from econbot.engine.placement import SitePlacementPlanner
from econbot.engine.resource_maps import ResourceDensityTracker
from econbot.sim.world import SimWorld


class TestSitePlacementPlanner(unittest.TestCase):
    def setUp(self):
        self.world = SimWorld()
        self.maps = ResourceDensityTracker()
        self.logger = MagicMock()
        self.planner = SitePlacementPlanner(self.maps, logger=self.logger)

    def _forest(self, cx, cy):
        for dx in (-8.0, 0.0, 8.0):
            for dy in (-8.0, 0.0, 8.0):
                self.world.spawn_supply(ResourceType.WOOD, (cx + dx, cy + dy), 200.0)

    def test_spot_near_forest_and_cc(self):
        self.world.spawn_civ_centre((256.0, 256.0))
        self._forest(352.0, 256.0)

        spot = self.planner.best_resource_build_spot(self.world, ResourceType.WOOD)
        self.assertIsNotNone(spot)
        self.assertLess(spot.distance_to(Point2((352.0, 256.0))), 13 * 4.0)
        # cell centre
        self.assertEqual((spot.x / 4.0 - 0.5) % 1.0, 0.0)
        self.assertEqual(self.logger.emit.call_args[0][0], "placement_ok")

    def test_no_resource_no_spot(self):
        self.world.spawn_civ_centre((256.0, 256.0))
        self.assertIsNone(self.planner.best_resource_build_spot(self.world, ResourceType.METAL))
        self.assertEqual(self.logger.emit.call_args[0][0], "placement_no_spot")

    def test_all_obstructed_no_spot(self):
        self.world.spawn_civ_centre((256.0, 256.0))
        self._forest(352.0, 256.0)
        self.world.block(0, 0, 128, 128)
        self.assertIsNone(self.planner.best_resource_build_spot(self.world, ResourceType.WOOD))

    def test_existing_dropsite_repels(self):
        self.world.spawn_civ_centre((100.0, 256.0))
        self._forest(180.0, 256.0)
        first = self.planner.best_resource_build_spot(self.world, ResourceType.WOOD)
        self.world.spawn_dropsite(first, [ResourceType.WOOD])

        second = self.planner.best_resource_build_spot(self.world, ResourceType.WOOD)
        if second is not None:
            self.assertGreaterEqual(second.distance_to(first), 20 * 4.0)

    def test_overlapping_obstructions_spread_like_one(self):
        # two structures on the same cell, on blocked terrain
        self.world.spawn_civ_centre((200.0, 200.0))
        self.world.spawn_dropsite((200.0, 200.0), [ResourceType.WOOD])
        self.world.block(50, 50, 51, 51)

        like = self.maps.get(self.world, ResourceType.WOOD)
        obstructions = self.planner.obstruction_map(self.world, like)
        self.assertEqual(float(obstructions.grid.max()), 2.0)
        # footprint reaches 2 cells, dilation one more
        self.assertEqual(obstructions.value_at(52, 50), 2.0)
        self.assertEqual(obstructions.value_at(53, 50), 1.0)
        self.assertEqual(obstructions.value_at(54, 50), 0.0)

    def test_obstruction_grid_shape_must_match(self):
        self.world.blocked = self.world.blocked[:10, :10]
        self._forest(352.0, 256.0)
        with self.assertRaises(ValueError):
            self.planner.best_resource_build_spot(self.world, ResourceType.WOOD)

    def test_small_stone_pile_is_not_coverage(self):
        self.world.spawn_dropsite((200.0, 200.0), [ResourceType.STONE])
        # strength round(200 / 100) = 2 over a radius-10 linear kernel
        self.world.spawn_supply(ResourceType.STONE, (200.0, 200.0), 200.0)

        density = self.maps.get(self.world, ResourceType.STONE)
        x, z = density.cell_of(Point2((200.0, 200.0)))
        total = density.sum_influence(x, z, 14)
        self.assertGreater(total, 0.0)
        self.assertLess(total, 300.0)
        self.assertEqual(self.planner.check_resource_concentrations(self.world, ResourceType.STONE), 0)

    def test_big_stone_pile_is_coverage(self):
        self.world.spawn_dropsite((200.0, 200.0), [ResourceType.STONE])
        self.world.spawn_supply(ResourceType.STONE, (204.0, 200.0), 5000.0)
        self.assertEqual(self.planner.check_resource_concentrations(self.world, ResourceType.STONE), 1)

    def test_dropsite_for_other_resource_is_ignored(self):
        self.world.spawn_dropsite((200.0, 200.0), [ResourceType.WOOD])
        self.world.spawn_supply(ResourceType.STONE, (204.0, 200.0), 5000.0)
        self.assertEqual(self.planner.check_resource_concentrations(self.world, ResourceType.STONE), 0)


if __name__ == '__main__':
    unittest.main()
