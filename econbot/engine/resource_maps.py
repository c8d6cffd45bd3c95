#econbot/engine/resource_maps.py
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from sc2.position import Point2

from econbot.consts import DENSITY_RESOURCES, ResourceType
from econbot.core.world import WorldEvent, WorldView
from econbot.devlog import DevLogger, emitter
from econbot.engine.influence_map import Falloff, InfluenceMap
from econbot.strategy.schema import DensityCfg
from econbot.utils import round_half_up


class ResourceDensityTracker:
    """
    One persistent density map per resource (wood, stone, metal).

    Maps are created on first access from the supplies the world knows about,
    then only patched: a destroyed supply subtracts exactly what it added.
    Nothing is ever rebuilt from scratch.
    """

    def __init__(self, *, cfg: DensityCfg = DensityCfg(), state: Any | None = None, logger: DevLogger | None = None):
        self.cfg = cfg
        self._emit = emitter(logger, state)
        self._maps: Dict[ResourceType, InfluenceMap] = {}

    def has(self, resource: ResourceType) -> bool:
        return resource in self._maps

    def contribution(self, resource: ResourceType, supply_max: float) -> Tuple[int, int]:
        """(radius, strength) a supply of this size adds to its map."""
        radius = int(self.cfg.radius[resource])
        strength = round_half_up(float(supply_max) / float(self.cfg.decrease_factor[resource]))
        return radius, strength

    def _stamp(self, m: InfluenceMap, resource: ResourceType, pos: Point2, supply_max: float, sign: int) -> bool:
        radius, strength = self.contribution(resource, supply_max)
        if strength == 0:
            return False
        x, z = m.cell_of(pos)
        m.add_influence(x, z, radius, sign * strength, Falloff.LINEAR)
        return True

    def _build(self, world: WorldView, resource: ResourceType) -> InfluenceMap:
        m = InfluenceMap.for_world(world.map_size, world.cell_size)
        supplies = sorted(
            (s for s in world.resource_supplies() if s.resource_supply_type is resource),
            key=lambda s: int(s.id),
        )
        stamped = 0
        for s in supplies:
            if self._stamp(m, resource, s.position, s.resource_supply_max, +1):
                stamped += 1
        self._emit(
            "density_map_init",
            {"resource": resource.value, "supplies": len(supplies), "stamped": stamped, "total": round(m.total(), 2)},
        )
        return m

    def get(self, world: WorldView, resource: ResourceType) -> InfluenceMap:
        """Density map for `resource`, created on first use."""
        if resource not in DENSITY_RESOURCES:
            raise KeyError(f"no density map for {resource!r}")
        m = self._maps.get(resource)
        if m is None:
            m = self._build(world, resource)
            self._maps[resource] = m
        return m

    def ensure_all(self, world: WorldView) -> List[ResourceType]:
        """Creates any missing map; returns the resources created now."""
        created: List[ResourceType] = []
        for resource in DENSITY_RESOURCES:
            if resource not in self._maps:
                self.get(world, resource)
                created.append(resource)
        return created

    def update(self, world: WorldView, events: Iterable[WorldEvent]) -> int:
        """
        Applies this tick's Destroy events. Returns the number of patches.

        A map created during this call already reflects the current world, so
        events of that resource are not subtracted again.
        """
        fresh: Set[ResourceType] = set(self.ensure_all(world))

        patched = 0
        for e in events:
            if not e.is_destroy or e.entity is None:
                continue
            ent = e.entity
            resource: Optional[ResourceType] = ent.resource_supply_type
            if resource not in self._maps or resource in fresh:
                continue
            if ent.position is None or float(ent.resource_supply_max) <= 0.0:
                continue
            if self._stamp(self._maps[resource], resource, ent.position, ent.resource_supply_max, -1):
                patched += 1
                self._emit(
                    "density_supply_removed",
                    {
                        "resource": resource.value,
                        "entity": int(ent.id),
                        "pos": [float(ent.position.x), float(ent.position.y)],
                        "supply_max": float(ent.resource_supply_max),
                    },
                )
        return patched

    def snapshot(self) -> dict:
        return {r.value: round(m.total(), 2) for r, m in self._maps.items()}
