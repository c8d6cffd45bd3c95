import unittest
from unittest.mock import MagicMock

from econbot.consts import FoundationPolicy, ResourceType, Role, Subrole
from econbot.core.state import EconomyState
from econbot.engine.workforce import WorkforceAllocator
from econbot.infra.worker_tags import WorkerRegistry
from econbot.sim.world import SimWorld, StaticDemand
from econbot.strategy.schema import WorkforceCfg


class TestWorkforceAllocator(unittest.TestCase):
    def setUp(self):
        self.world = SimWorld()
        self.registry = WorkerRegistry()
        self.state = EconomyState()
        self.demand = StaticDemand({ResourceType.WOOD: 3.0, ResourceType.STONE: 1.0, ResourceType.METAL: 1.0})
        self.alloc = self._allocator()

    def _allocator(self, cfg=WorkforceCfg()):
        return WorkforceAllocator(registry=self.registry, demand=self.demand, state=self.state, cfg=cfg)

    def _spawn_workers(self, n, x=100.0, y=100.0, step=0.0):
        return [self.world.spawn_worker((x + step * i, y)) for i in range(n)]

    # ---------------- Triage ----------------

    def test_triage_is_one_time(self):
        worker = self.world.spawn_worker((10.0, 10.0))
        soldier = self.world.spawn("units/{civ}_infantry_spearman", (12.0, 10.0), classes=frozenset({"Unit", "CitizenSoldier"}))
        champion = self.world.spawn("units/{civ}_champion", (14.0, 10.0), classes=frozenset({"Unit", "Super"}))
        cc = self.world.spawn_civ_centre((50.0, 50.0))

        self.assertEqual(self.alloc.reassign_roleless_units(self.world), 4)
        self.assertEqual(self.alloc.reassign_roleless_units(self.world), 0)

        self.assertIs(self.registry.role_of(worker.id), Role.WORKER)
        self.assertIs(self.registry.role_of(soldier.id), Role.SOLDIER)
        self.assertIs(self.registry.role_of(champion.id), Role.SOLDIER)
        self.assertIs(self.registry.role_of(cc.id), Role.UNKNOWN)

    # ---------------- Ranking ----------------

    def test_ranking_prefers_least_served(self):
        workers = self._spawn_workers(3)
        self.alloc.reassign_roleless_units(self.world)
        self.registry.set_subrole(workers[0].id, Subrole.GATHERER, gather_type=ResourceType.WOOD)
        self.registry.set_subrole(workers[1].id, Subrole.GATHERER, gather_type=ResourceType.STONE)

        # wood 1/4, stone 1/2, metal 0/2
        self.assertEqual(
            self.alloc.pick_most_needed_resources(self.world),
            [ResourceType.METAL, ResourceType.WOOD, ResourceType.STONE],
        )

    def test_ranking_ties_keep_fixed_order(self):
        self.demand = StaticDemand({ResourceType.METAL: 1.0, ResourceType.FOOD: 1.0, ResourceType.WOOD: 1.0})
        alloc = self._allocator()
        self.assertEqual(
            alloc.pick_most_needed_resources(self.world),
            [ResourceType.FOOD, ResourceType.WOOD, ResourceType.METAL],
        )

    def test_bad_weights_count_as_zero(self):
        self.demand = StaticDemand({ResourceType.FOOD: -4.0, ResourceType.WOOD: float("nan")})
        weights = self._allocator().gather_weights(self.world)
        self.assertEqual(weights, {ResourceType.FOOD: 0.0, ResourceType.WOOD: 0.0})

    # ---------------- Idle reassignment ----------------

    def test_five_idle_workers_split_by_demand(self):
        """wood 3 / stone 1 / metal 1, no metal on the map."""
        workers = self._spawn_workers(5)
        wood = self.world.spawn_supply(ResourceType.WOOD, (150.0, 100.0), 200.0)
        stone = self.world.spawn_supply(ResourceType.STONE, (200.0, 100.0), 5000.0)
        self.alloc.reassign_roleless_units(self.world)

        self.assertEqual(self.alloc.reassign_idle_workers(self.world), 5)
        counts = self.registry.gatherer_counts()
        self.assertEqual(counts[ResourceType.WOOD], 3)
        self.assertEqual(counts[ResourceType.STONE], 2)
        self.assertEqual(counts[ResourceType.METAL], 0)
        self.assertEqual(workers[0].orders, [("gather", wood.id)])
        self.assertEqual(workers[1].orders, [("gather", stone.id)])

        # floor(5 * 1/5) = 1 stone gatherer wanted; the lowest id goes idle
        self.assertEqual(self.alloc.set_workers_idle_by_priority(self.world), 1)
        self.assertIs(self.registry.subrole_of(workers[1].id), Subrole.IDLE)
        self.assertEqual(self.registry.gatherer_counts()[ResourceType.STONE], 1)

    def test_nearest_supply_wins(self):
        worker = self.world.spawn_worker((100.0, 100.0))
        self.world.spawn_supply(ResourceType.WOOD, (300.0, 100.0), 200.0)
        near = self.world.spawn_supply(ResourceType.WOOD, (130.0, 100.0), 200.0)
        self.alloc.reassign_roleless_units(self.world)

        self.alloc.reassign_idle_workers(self.world)
        self.assertEqual(worker.orders, [("gather", near.id)])

    def test_distance_bound(self):
        far = self.world.spawn_worker((600.0, 10.0))
        edge = self.world.spawn_worker((522.0, 10.0))
        tree = self.world.spawn_supply(ResourceType.WOOD, (10.0, 10.0), 200.0)
        self.alloc.reassign_roleless_units(self.world)

        self.assertEqual(self.alloc.reassign_idle_workers(self.world), 1)
        self.assertEqual(edge.orders, [("gather", tree.id)])
        self.assertTrue(far.is_idle())
        self.assertIs(self.registry.subrole_of(far.id), Subrole.IDLE)

    def test_skips_fish_and_unhuntable(self):
        self.demand = StaticDemand({ResourceType.FOOD: 1.0})
        alloc = self._allocator()
        worker = self.world.spawn_worker((100.0, 100.0))
        self.world.spawn_supply(ResourceType.FOOD, (110.0, 100.0), 100.0, classes={"SeaCreature"})
        self.world.spawn_supply(ResourceType.FOOD, (112.0, 100.0), 100.0, is_unhuntable=True)
        alloc.reassign_roleless_units(self.world)

        self.assertEqual(alloc.reassign_idle_workers(self.world), 0)
        self.assertTrue(worker.is_idle())

    def test_rebalance_needs_weight(self):
        self.demand = StaticDemand({ResourceType.WOOD: 0.0})
        alloc = self._allocator()
        worker = self.world.spawn_worker((100.0, 100.0))
        alloc.reassign_roleless_units(self.world)
        self.registry.set_subrole(worker.id, Subrole.GATHERER, gather_type=ResourceType.WOOD)

        self.assertEqual(alloc.set_workers_idle_by_priority(self.world), 0)
        self.assertIs(self.registry.subrole_of(worker.id), Subrole.GATHERER)

    # ---------------- Builders ----------------

    def test_builder_target_grows_late(self):
        self._spawn_workers(51)
        self.assertEqual(self.alloc.update_builder_target(self.world), 10)
        self.assertEqual(self.state.target_num_builders, 10)

    def test_builders_nearest_and_capped(self):
        workers = self._spawn_workers(8, step=10.0)
        mill = self.world.spawn_dropsite((95.0, 100.0), [ResourceType.WOOD], foundation=True)
        self.alloc.reassign_roleless_units(self.world)

        self.assertEqual(self.alloc.assign_to_foundations(self.world), 5)
        self.assertEqual(self.registry.count_subrole(Subrole.BUILDER), 5)
        for w in workers[:5]:
            self.assertEqual(w.orders, [("repair", mill.id)])
        for w in workers[5:]:
            self.assertTrue(w.is_idle())

        # already at target
        self.assertEqual(self.alloc.assign_to_foundations(self.world), 0)

        self.state.target_num_builders = 2
        self.alloc.assign_to_foundations(self.world)
        self.assertEqual(self.registry.count_subrole(Subrole.BUILDER), 2)
        self.assertEqual(self.registry.count_subrole(Subrole.IDLE), 3)

    def test_builder_cap_after_last_foundation_is_gone(self):
        workers = self._spawn_workers(51)
        mill = self.world.spawn_dropsite((95.0, 100.0), [ResourceType.WOOD], foundation=True)
        self.alloc.reassign_roleless_units(self.world)
        self.alloc.update_builder_target(self.world)
        self.assertEqual(self.alloc.assign_to_foundations(self.world), 10)

        # foundation gone and citizens back to 50 on the same tick; orders still set
        self.world.entities.pop(mill.id)
        self.world.entities.pop(workers[-1].id)
        self.assertEqual(self.alloc.update_builder_target(self.world), 5)

        self.assertEqual(self.alloc.assign_to_foundations(self.world), 0)
        self.assertEqual(self.registry.count_subrole(Subrole.BUILDER), 5)
        self.assertEqual(self.registry.count_subrole(Subrole.IDLE), 5)

    def test_no_foundation_no_builders(self):
        self._spawn_workers(3)
        self.alloc.reassign_roleless_units(self.world)
        self.assertEqual(self.alloc.assign_to_foundations(self.world), 0)
        self.assertEqual(self.registry.count_subrole(Subrole.BUILDER), 0)

    def test_foundation_policy(self):
        worker = self.world.spawn_worker((100.0, 100.0))
        older = self.world.spawn_dropsite((120.0, 100.0), [ResourceType.WOOD], foundation=True)
        newer = self.world.spawn_dropsite((140.0, 100.0), [ResourceType.STONE], foundation=True)
        self.world.foundations = MagicMock(return_value=[newer, older])
        self.alloc.reassign_roleless_units(self.world)

        self.state.target_num_builders = 1
        self.alloc.assign_to_foundations(self.world)
        self.assertEqual(worker.orders, [("repair", newer.id)])

        self.registry.set_subrole(worker.id, None)
        oldest = self._allocator(WorkforceCfg(foundation_policy=FoundationPolicy.OLDEST))
        oldest.assign_to_foundations(self.world)
        self.assertEqual(worker.orders, [("repair", older.id)])


if __name__ == '__main__':
    unittest.main()
