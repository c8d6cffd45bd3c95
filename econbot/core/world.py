# econbot/core/world.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, FrozenSet, Iterable, Mapping, Optional, Protocol, runtime_checkable

import numpy as np
from sc2.position import Point2

from econbot.consts import EVENT_DESTROY, ResourceType, Role


@runtime_checkable
class Entity(Protocol):
    """
    Contract for a world entity as seen by the economy.

    Notes:
    - resource_supply_type is None for anything that is not a resource supply
    - resource_dropsite_types is empty for anything that is not a dropsite
    - gather/repair issue orders; they never block
    """
    id: int
    template: str
    position: Point2
    resource_supply_type: Optional[ResourceType]
    resource_supply_max: float
    is_unhuntable: bool
    resource_dropsite_types: FrozenSet[ResourceType]

    def has_class(self, name: str) -> bool: ...
    def is_idle(self) -> bool: ...

    def gather(self, target: "Entity") -> None: ...
    def repair(self, target: "Entity") -> None: ...


@runtime_checkable
class ProductionQueue(Protocol):
    def add_item(self, plan: Any) -> None: ...
    def total_length(self) -> int: ...
    def count_total_queued_units(self) -> int: ...


@runtime_checkable
class WorldView(Protocol):
    """
    Synchronous snapshot reads for the current tick.

    Positions are world units; cell_size converts them to influence-map cells.
    """
    cell_size: float
    map_size: float

    def time_elapsed(self) -> float: ...          # seconds
    def population_max(self) -> int: ...

    def own_entities(self) -> Iterable[Entity]: ...
    def resource_supplies(self) -> Iterable[Entity]: ...
    def foundations(self) -> Iterable[Entity]: ...  # own structures under construction
    def structures(self) -> Iterable[Entity]: ...   # every structure (any owner)

    def count_entities_with_type(self, template: str) -> int: ...
    def count_foundations_with_type(self, template: str) -> int: ...
    def count_training_with_role(self, role: Role) -> int: ...

    def obstruction_grid(self) -> Optional[np.ndarray]: ...  # (height, width) bool, True = unbuildable
    def apply_civ(self, template: str) -> str: ...


@runtime_checkable
class DemandSource(Protocol):
    """Projected future need per resource (e.g. the queue manager)."""

    def future_needs(self, world: WorldView) -> Mapping[ResourceType, float]: ...


@dataclass(frozen=True)
class DestroyedEntity:
    """
    What a Destroy event still knows about an entity after it left the world.
    resource_supply_max is the ORIGINAL capacity (not the remaining amount).
    """
    id: int
    template: str = ""
    position: Optional[Point2] = None
    resource_supply_type: Optional[ResourceType] = None
    resource_supply_max: float = 0.0


@dataclass(frozen=True)
class WorldEvent:
    type: str
    entity: Optional[DestroyedEntity] = None

    @staticmethod
    def destroy(entity: DestroyedEntity) -> "WorldEvent":
        return WorldEvent(type=EVENT_DESTROY, entity=entity)

    @property
    def is_destroy(self) -> bool:
        return self.type == EVENT_DESTROY


@dataclass(frozen=True)
class QueueSet:
    """The production queues the economy writes to."""
    villager: ProductionQueue
    field: ProductionQueue
    civil_centre: ProductionQueue
    economic_building: ProductionQueue
