# econbot/sim/host.py
from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from typing import List, Optional

from sc2.position import Point2

from econbot.consts import CLASS_CIV_CENTRE, ResourceType
from econbot.core.world import QueueSet, WorldEvent
from econbot.planners.plans import ConstructionPlan, TrainingPlan
from econbot.sim.world import SimEntity, SimWorld


@dataclass
class SimHost:
    """
    Toy host loop: consumes queues, executes gather/repair orders, reports
    Destroy events. Just enough world to exercise the economy end to end.
    """
    world: SimWorld
    queues: QueueSet
    seconds_per_tick: float = 1.0
    gather_rate: float = 10.0
    build_time: float = 10.0
    _events: List[WorldEvent] = field(default_factory=list)

    def _anchor(self) -> Point2:
        ccs = sorted((e for e in self.world.own_entities() if e.has_class(CLASS_CIV_CENTRE)), key=lambda e: e.id)
        if ccs:
            return ccs[0].position
        half = self.world.map_size / 2.0
        return Point2((half, half))

    def _produce(self) -> None:
        q = self.queues
        plan = q.villager.pop()
        if isinstance(plan, TrainingPlan):
            ent = self.world.spawn_worker(self._anchor().offset(Point2((6.0, 6.0))))
            ent.metadata.update(plan.metadata)

        for queue in (q.field, q.civil_centre, q.economic_building):
            plan = queue.pop()
            if not isinstance(plan, ConstructionPlan):
                continue
            pos = plan.position if plan.position is not None else self._anchor().offset(Point2((20.0, -20.0)))
            classes = {"Structure"}
            drop: frozenset = frozenset()
            if plan.template.endswith("_civil_centre"):
                classes.add(CLASS_CIV_CENTRE)
                drop = frozenset(ResourceType)
            elif plan.template.endswith("_mill"):
                drop = frozenset({ResourceType.WOOD, ResourceType.STONE, ResourceType.METAL})
            elif plan.template.endswith("_field"):
                classes.add("Field")
            self.world.spawn(
                plan.template,
                pos,
                classes=frozenset(classes),
                owner=self.world.player,
                resource_dropsite_types=drop,
                foundation=True,
            )

    def _work(self) -> None:
        for ent in sorted(self.world.entities.values(), key=lambda e: e.id):
            if not ent.orders:
                continue
            verb, target_id = ent.orders[0]
            target: Optional[SimEntity] = self.world.get(target_id)
            if target is None:
                ent.orders = []
                continue
            if verb == "gather":
                target.resource_amount -= self.gather_rate
                if target.resource_amount <= 0.0:
                    self._events.append(self.world.destroy(target.id))
            elif verb == "repair":
                if not target.foundation:
                    ent.orders = []
                    continue
                target.build_progress += 1.0
                if target.build_progress >= self.build_time:
                    target.foundation = False

    def step(self) -> List[WorldEvent]:
        """Advances one tick; returns the events the economy should see."""
        self._produce()
        self._work()
        self.world.advance(self.seconds_per_tick)
        events, self._events = self._events, []
        return events


def populate_demo_world(world: SimWorld, *, seed: int = 0, workers: int = 8) -> None:
    """A CC in the middle, some citizens, forests, stone and metal around it."""
    rng = random.Random(seed)
    half = world.map_size / 2.0
    cc = world.spawn_civ_centre((half, half))

    for i in range(workers):
        world.spawn_worker((cc.position.x + 8.0 + 2.0 * i, cc.position.y - 10.0))

    def around(lo: float, hi: float) -> Point2:
        d = rng.uniform(lo, hi)
        a = rng.uniform(0.0, 2.0 * math.pi)
        return cc.position.offset(Point2((d * math.cos(a), d * math.sin(a))))

    for _ in range(40):
        p = around(40.0, 200.0)
        world.spawn_supply(ResourceType.WOOD, p, 200.0, template="gaia/flora_tree_oak")
    for _ in range(4):
        world.spawn_supply(ResourceType.STONE, around(60.0, 180.0), 5000.0, template="gaia/geology_stone")
        world.spawn_supply(ResourceType.METAL, around(60.0, 180.0), 5000.0, template="gaia/geology_metal")
    for _ in range(6):
        world.spawn_supply(ResourceType.FOOD, around(30.0, 90.0), 100.0, template="gaia/fauna_sheep")
    world.spawn_supply(ResourceType.FOOD, around(30.0, 60.0), 100.0, template="gaia/fauna_fish", classes={"SeaCreature"})
