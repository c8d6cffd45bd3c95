import unittest

from econbot.consts import ResourceType, Role, Subrole
from econbot.core.state import EconomyState
from econbot.infra.worker_tags import WorkerRegistry, WorkerTags


class TestWorkerRegistry(unittest.TestCase):
    def setUp(self):
        self.registry = WorkerRegistry()
        self.registry.assign_role(1, Role.WORKER)
        self.registry.assign_role(2, Role.WORKER)
        self.registry.assign_role(3, Role.SOLDIER)

    def test_role_is_assigned_once(self):
        self.assertFalse(self.registry.assign_role(1, Role.SOLDIER))
        self.assertIs(self.registry.role_of(1), Role.WORKER)
        self.assertEqual(self.registry.ids_with_role(Role.WORKER), [1, 2])
        self.assertEqual(len(self.registry), 3)

    def test_gatherer_needs_type(self):
        with self.assertRaises(ValueError):
            self.registry.set_subrole(1, Subrole.GATHERER)
        with self.assertRaises(ValueError):
            self.registry.set_subrole(1, Subrole.BUILDER, gather_type=ResourceType.WOOD)

    def test_untagged_entity(self):
        with self.assertRaises(KeyError):
            self.registry.set_subrole(99, Subrole.IDLE)
        self.assertIsNone(self.registry.role_of(99))

    def test_counts(self):
        self.registry.set_subrole(1, Subrole.GATHERER, gather_type=ResourceType.STONE)
        self.registry.set_subrole(2, Subrole.BUILDER)
        counts = self.registry.gatherer_counts()
        self.assertEqual(counts[ResourceType.STONE], 1)
        self.assertEqual(counts[ResourceType.WOOD], 0)
        self.assertEqual(self.registry.count_subrole(Subrole.BUILDER), 1)

        # leaving the gatherer subrole drops the resource
        self.registry.set_subrole(1, Subrole.IDLE)
        self.assertIsNone(self.registry.tags_of(1).gather_type)

    def test_prune(self):
        self.assertEqual(self.registry.prune([2]), [1, 3])
        self.assertNotIn(1, self.registry)
        self.assertEqual(self.registry.count_role(Role.SOLDIER), 0)
        self.assertEqual(self.registry.snapshot()["by_role"], {"worker": 1})

    def test_tags_validate(self):
        with self.assertRaises(TypeError):
            WorkerTags(role="worker").validate()


class TestEconomyState(unittest.TestCase):
    def test_rebalance_every_n_ticks(self):
        state = EconomyState()
        due = [state.rebalance_due(20) for _ in range(40)]
        self.assertEqual([i + 1 for i, d in enumerate(due) if d], [20, 40])


if __name__ == '__main__':
    unittest.main()
