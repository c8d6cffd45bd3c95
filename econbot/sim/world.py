# econbot/sim/world.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

import numpy as np
from sc2.position import Point2

from econbot.consts import ResourceType, Role
from econbot.core.world import DestroyedEntity, QueueSet, WorldEvent
from econbot.utils import as_point


@dataclass(eq=False)
class SimEntity:
    """
    In-memory entity. Orders are (verb, target_id) tuples; no order = idle.
    """
    id: int
    template: str
    position: Point2
    classes: FrozenSet[str] = frozenset()
    owner: int = 1
    resource_supply_type: Optional[ResourceType] = None
    resource_supply_max: float = 0.0
    resource_amount: float = 0.0
    is_unhuntable: bool = False
    resource_dropsite_types: FrozenSet[ResourceType] = frozenset()
    foundation: bool = False
    build_progress: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)
    orders: List[Tuple[str, int]] = field(default_factory=list)

    def has_class(self, name: str) -> bool:
        return name in self.classes

    def is_idle(self) -> bool:
        return not self.orders

    def gather(self, target: Any) -> None:
        self.orders = [("gather", int(target.id))]

    def repair(self, target: Any) -> None:
        self.orders = [("repair", int(target.id))]

    @property
    def is_structure(self) -> bool:
        return "Structure" in self.classes

    def snapshot(self) -> DestroyedEntity:
        return DestroyedEntity(
            id=int(self.id),
            template=self.template,
            position=self.position,
            resource_supply_type=self.resource_supply_type,
            resource_supply_max=float(self.resource_supply_max),
        )


class SimQueue:
    """Production queue that just holds plans until the host consumes them."""

    def __init__(self, name: str = "queue"):
        self.name = name
        self.items: List[Any] = []

    def add_item(self, plan: Any) -> None:
        self.items.append(plan)

    def total_length(self) -> int:
        return len(self.items)

    def count_total_queued_units(self) -> int:
        return sum(int(getattr(p, "count", 1)) for p in self.items if getattr(p, "is_unit", False))

    def pop(self) -> Optional[Any]:
        return self.items.pop(0) if self.items else None


def sim_queues() -> QueueSet:
    return QueueSet(
        villager=SimQueue("villager"),
        field=SimQueue("field"),
        civil_centre=SimQueue("civil_centre"),
        economic_building=SimQueue("economic_building"),
    )


@dataclass
class StaticDemand:
    """Fixed demand weights (stand-in for a queue manager's future needs)."""
    weights: Mapping[ResourceType, float]

    def future_needs(self, world: Any) -> Mapping[ResourceType, float]:
        return dict(self.weights)


class SimWorld:
    """
    Minimal world implementing WorldView for the demo runner and tests.
    Player 1 is "us"; owner 0 is gaia (resources).
    """

    def __init__(
        self,
        *,
        map_size: float = 512.0,
        cell_size: float = 4.0,
        pop_max: int = 60,
        civ: str = "athen",
        player: int = 1,
    ):
        self.map_size = float(map_size)
        self.cell_size = float(cell_size)
        self.pop_max = int(pop_max)
        self.civ = civ
        self.player = int(player)
        self.time = 0.0

        self.entities: Dict[int, SimEntity] = {}
        self._next_id = 1
        n = int(np.ceil(self.map_size / self.cell_size))
        self.blocked = np.zeros((n, n), dtype=bool)

    # -----------------------
    # Building the world
    # -----------------------
    def spawn(self, template: str, position: Any, **kwargs: Any) -> SimEntity:
        ent = SimEntity(id=self._next_id, template=self.apply_civ(template), position=as_point(position), **kwargs)
        self._next_id += 1
        self.entities[ent.id] = ent
        return ent

    def spawn_worker(self, position: Any, **kwargs: Any) -> SimEntity:
        classes = kwargs.pop("classes", frozenset({"Unit", "Worker", "FemaleCitizen"}))
        return self.spawn("units/{civ}_support_female_citizen", position, classes=frozenset(classes), owner=self.player, **kwargs)

    def spawn_civ_centre(self, position: Any, *, foundation: bool = False) -> SimEntity:
        return self.spawn(
            "structures/{civ}_civil_centre",
            position,
            classes=frozenset({"Structure", "CivCentre"}),
            owner=self.player,
            resource_dropsite_types=frozenset(ResourceType),
            foundation=foundation,
        )

    def spawn_dropsite(self, position: Any, types: Iterable[ResourceType], *, foundation: bool = False) -> SimEntity:
        return self.spawn(
            "structures/{civ}_mill",
            position,
            classes=frozenset({"Structure", "DropsiteWood"}),
            owner=self.player,
            resource_dropsite_types=frozenset(types),
            foundation=foundation,
        )

    def spawn_supply(self, resource: ResourceType, position: Any, amount: float, **kwargs: Any) -> SimEntity:
        template = kwargs.pop("template", f"gaia/{resource.value}")
        classes = kwargs.pop("classes", frozenset())
        return self.spawn(
            template,
            position,
            classes=frozenset(classes),
            owner=0,
            resource_supply_type=resource,
            resource_supply_max=float(amount),
            resource_amount=float(amount),
            **kwargs,
        )

    def destroy(self, entity_id: int) -> WorldEvent:
        ent = self.entities.pop(int(entity_id))
        return WorldEvent.destroy(ent.snapshot())

    def block(self, x0: int, z0: int, x1: int, z1: int) -> None:
        """Marks cells [x0, x1) x [z0, z1) unbuildable."""
        self.blocked[z0:z1, x0:x1] = True

    def advance(self, seconds: float) -> None:
        self.time += float(seconds)

    # -----------------------
    # WorldView
    # -----------------------
    def time_elapsed(self) -> float:
        return float(self.time)

    def population_max(self) -> int:
        return self.pop_max

    def own_entities(self) -> List[SimEntity]:
        return [e for e in self.entities.values() if e.owner == self.player and not e.foundation]

    def resource_supplies(self) -> List[SimEntity]:
        return [e for e in self.entities.values() if e.resource_supply_type is not None]

    def foundations(self) -> List[SimEntity]:
        return [e for e in self.entities.values() if e.owner == self.player and e.foundation]

    def structures(self) -> List[SimEntity]:
        return [e for e in self.entities.values() if e.is_structure]

    def count_entities_with_type(self, template: str) -> int:
        return sum(1 for e in self.own_entities() if e.template == template)

    def count_foundations_with_type(self, template: str) -> int:
        return sum(1 for e in self.foundations() if e.template == template)

    def count_training_with_role(self, role: Role) -> int:
        return 0

    def obstruction_grid(self) -> np.ndarray:
        return self.blocked

    def apply_civ(self, template: str) -> str:
        return template.replace("{civ}", self.civ)

    def get(self, entity_id: int) -> Optional[SimEntity]:
        return self.entities.get(int(entity_id))
