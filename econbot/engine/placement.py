#econbot/engine/placement.py
from __future__ import annotations

from typing import Any, List, Optional

import numpy as np
from sc2.position import Point2

from econbot.consts import CLASS_CIV_CENTRE, ResourceType
from econbot.core.world import Entity, WorldView
from econbot.devlog import DevLogger, emitter
from econbot.engine.influence_map import Falloff, InfluenceMap
from econbot.engine.resource_maps import ResourceDensityTracker
from econbot.strategy.schema import PlacementCfg
from econbot.utils import pos_list


class SitePlacementPlanner:
    """
    Picks where to put a new resource dropsite.

    Rule:
      - suitability: positive around our civ centres, strongly negative around
        dropsites that already take this resource (no stacking)
      - suitability x density: no resource nearby means no score at all
      - obstructed terrain/buildings (dilated) are never picked
      - nothing acceptable -> None (caller skips that resource this tick)
    """

    def __init__(
        self,
        resource_maps: ResourceDensityTracker,
        *,
        cfg: PlacementCfg = PlacementCfg(),
        state: Any | None = None,
        logger: DevLogger | None = None,
    ):
        self.resource_maps = resource_maps
        self.cfg = cfg
        self._emit = emitter(logger, state)

    # -----------------------
    # Helpers
    # -----------------------
    @staticmethod
    def _own_civ_centres(world: WorldView) -> List[Entity]:
        return sorted((e for e in world.own_entities() if e.has_class(CLASS_CIV_CENTRE)), key=lambda e: int(e.id))

    @staticmethod
    def _own_dropsites(world: WorldView, resource: ResourceType) -> List[Entity]:
        return sorted(
            (e for e in world.own_entities() if resource in (e.resource_dropsite_types or ())),
            key=lambda e: int(e.id),
        )

    def suitability_map(self, world: WorldView, resource: ResourceType) -> InfluenceMap:
        density = self.resource_maps.get(world, resource)
        friendly = density.like()
        cfg = self.cfg

        # we want to build near a CC of ours
        for cc in self._own_civ_centres(world):
            x, z = friendly.cell_of(cc.position)
            r = int(cfg.cc_influence_radius)
            friendly.add_influence(x, z, r, float(cfg.cc_influence_factor) * r, Falloff.LINEAR)

        # we don't want multiple dropsites at one spot
        for ds in self._own_dropsites(world, resource):
            x, z = friendly.cell_of(ds.position)
            friendly.add_influence(
                x, z, int(cfg.dropsite_repel_radius), float(cfg.dropsite_repel_strength), Falloff.CONSTANT
            )

        friendly.multiply(density)
        return friendly

    def obstruction_map(self, world: WorldView, like: InfluenceMap) -> InfluenceMap:
        """Terrain + every structure footprint, dilated so near-obstruction cells count too."""
        strength = float(self.cfg.obstruction_strength)
        blocked = world.obstruction_grid()
        if blocked is None:
            obstructions = like.like()
        else:
            obstructions = InfluenceMap.from_obstruction(blocked, like.cell_size, strength)
            if obstructions.shape != like.shape:
                raise ValueError(f"obstruction grid shape {obstructions.shape} != map shape {like.shape}")

        for s in sorted(world.structures(), key=lambda e: int(e.id)):
            x, z = obstructions.cell_of(s.position)
            obstructions.add_influence(x, z, int(self.cfg.structure_footprint), strength, Falloff.CONSTANT)

        # overlapping footprints and terrain count once
        np.minimum(obstructions.grid, strength, out=obstructions.grid)
        obstructions.expand_influences()
        return obstructions

    # -----------------------
    # API
    # -----------------------
    def best_resource_build_spot(self, world: WorldView, resource: ResourceType) -> Optional[Point2]:
        """World position (cell centre) of the best new dropsite for `resource`, or None."""
        scores = self.suitability_map(world, resource)
        obstructions = self.obstruction_map(world, scores)

        best = scores.find_best_tile(int(self.cfg.min_separation), obstructions)
        if best is None:
            self._emit("placement_no_spot", {"resource": resource.value})
            return None

        idx, value = best
        spot = scores.index_to_world(idx)
        self._emit(
            "placement_ok",
            {"resource": resource.value, "index": int(idx), "score": round(float(value), 3), "pos": pos_list(spot)},
        )
        return spot

    def check_resource_concentrations(self, world: WorldView, resource: ResourceType) -> int:
        """Number of our dropsites for `resource` with enough of it nearby."""
        density = self.resource_maps.get(world, resource)
        required = float(self.cfg.concentration_threshold[resource])
        radius = int(self.cfg.concentration_radius)

        count = 0
        for ds in self._own_dropsites(world, resource):
            x, z = density.cell_of(ds.position)
            if density.sum_influence(x, z, radius) > required:
                count += 1
        return count
