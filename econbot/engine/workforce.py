# econbot/engine/workforce.py
from __future__ import annotations

import math
from functools import cmp_to_key
from typing import Any, Dict, List, Optional, Tuple

from econbot.consts import (
    CLASS_CITIZEN_SOLDIER,
    CLASS_SEA_CREATURE,
    CLASS_SUPER,
    CLASS_WORKER,
    RESOURCE_ORDER,
    FoundationPolicy,
    ResourceType,
    Role,
    Subrole,
)
from econbot.core.state import EconomyState
from econbot.core.world import DemandSource, Entity, WorldView
from econbot.devlog import DevLogger, emitter
from econbot.infra.worker_tags import WorkerRegistry
from econbot.strategy.schema import TemplatesCfg, WorkforceCfg
from econbot.utils import dist2


def _by_distance(a: Tuple[float, Entity], b: Tuple[float, Entity]) -> int:
    # prefer smaller distances; equal distances keep their order
    if a[0] < b[0]:
        return -1
    if a[0] > b[0]:
        return 1
    return 0


class WorkforceAllocator:
    """
    Who does what.

    Policy:
      1) Triage: every untagged unit gets a role once (worker / soldier / unknown).
      2) Idle workers go to the most underserved resource they can reach.
      3) Every N ticks, over-served resources give their excess back as idle
         (they are redistributed by 2 on the next tick).
      4) Foundations pull the nearest non-builders until the builder target is met.
    """

    def __init__(
        self,
        *,
        registry: WorkerRegistry,
        demand: DemandSource,
        state: EconomyState,
        cfg: WorkforceCfg = WorkforceCfg(),
        templates: TemplatesCfg = TemplatesCfg(),
        logger: DevLogger | None = None,
    ):
        self.registry = registry
        self.demand = demand
        self.state = state
        self.cfg = cfg
        self.templates = templates
        self._emit = emitter(logger, state)

    # -----------------------
    # Helpers
    # -----------------------
    def _workers(self, world: WorldView) -> List[Entity]:
        return sorted(
            (e for e in world.own_entities() if self.registry.role_of(e.id) is Role.WORKER),
            key=lambda e: int(e.id),
        )

    def gather_weights(self, world: WorldView) -> Dict[ResourceType, float]:
        """Demand weights in fixed resource order; negatives/garbage become 0."""
        raw = self.demand.future_needs(world) or {}
        weights: Dict[ResourceType, float] = {}
        for t in RESOURCE_ORDER:
            if t not in raw:
                continue
            try:
                w = float(raw[t])
            except (TypeError, ValueError):
                w = 0.0
            weights[t] = w if w > 0.0 and math.isfinite(w) else 0.0
        return weights

    def _supplies_by_type(self, world: WorldView) -> Dict[ResourceType, List[Entity]]:
        out: Dict[ResourceType, List[Entity]] = {}
        for s in sorted(world.resource_supplies(), key=lambda e: int(e.id)):
            t = s.resource_supply_type
            if t is None:
                continue
            out.setdefault(t, []).append(s)
        return out

    # -----------------------
    # 1) Role triage
    # -----------------------
    def reassign_roleless_units(self, world: WorldView) -> int:
        assigned = 0
        for ent in sorted(world.own_entities(), key=lambda e: int(e.id)):
            if ent.id in self.registry:
                continue
            if ent.has_class(CLASS_WORKER):
                role = Role.WORKER
            elif ent.has_class(CLASS_CITIZEN_SOLDIER) or ent.has_class(CLASS_SUPER):
                role = Role.SOLDIER
            else:
                role = Role.UNKNOWN
            if self.registry.assign_role(ent.id, role):
                assigned += 1
        if assigned:
            self._emit("workforce_triage", {"assigned": assigned, "registry": self.registry.snapshot()})
        return assigned

    # -----------------------
    # 2) Demand ranking + idle reassignment
    # -----------------------
    def pick_most_needed_resources(
        self, world: WorldView, weights: Optional[Dict[ResourceType, float]] = None
    ) -> List[ResourceType]:
        """Resource types from most to least underserved: gatherers / (weight + 1), ascending."""
        if weights is None:
            weights = self.gather_weights(world)
        counts = self.registry.gatherer_counts(weights.keys())
        types = list(weights.keys())
        # stable sort: ties keep the fixed resource order
        types.sort(key=lambda t: counts[t] / (weights[t] + 1.0))
        return types

    def _nearest_supply(self, worker: Entity, supplies: List[Entity]) -> Optional[Entity]:
        wpos = worker.position
        max_d2 = float(self.cfg.max_gather_distance) ** 2
        candidates: List[Tuple[float, Entity]] = []
        for s in supplies:
            # skip targets that are too hard to hunt, and don't go for the fish
            if s.is_unhuntable or s.has_class(CLASS_SEA_CREATURE):
                continue
            d2 = dist2(s.position, wpos)
            # far too far away (e.g. in the enemy base)
            if d2 > max_d2:
                continue
            candidates.append((d2, s))
        if not candidates:
            return None
        candidates.sort(key=cmp_to_key(_by_distance))
        return candidates[0][1]

    def reassign_idle_workers(self, world: WorldView) -> int:
        """Sends idle (or idle-tagged) workers to gather. Returns how many got an order."""
        idle = [
            w for w in self._workers(world)
            if w.is_idle() or self.registry.subrole_of(w.id) is Subrole.IDLE
        ]
        if not idle:
            return 0

        supplies = self._supplies_by_type(world)
        weights = self.gather_weights(world)

        assigned = 0
        stranded = 0
        for w in idle:
            target: Optional[Entity] = None
            chosen: Optional[ResourceType] = None
            # ranking is recomputed per worker: earlier assignments count
            for t in self.pick_most_needed_resources(world, weights):
                if not supplies.get(t):
                    continue
                target = self._nearest_supply(w, supplies[t])
                if target is not None:
                    chosen = t
                    break

            if target is None or chosen is None:
                # nothing reachable: stay idle, retried next tick
                self.registry.set_subrole(w.id, Subrole.IDLE)
                stranded += 1
                continue

            w.gather(target)
            self.registry.set_subrole(w.id, Subrole.GATHERER, gather_type=chosen)
            assigned += 1

        self._emit("workforce_idle_reassigned", {"idle": len(idle), "assigned": assigned, "stranded": stranded})
        return assigned

    # -----------------------
    # 3) Periodic rebalance
    # -----------------------
    def set_workers_idle_by_priority(self, world: WorldView) -> int:
        """
        Over-served resources release their excess gatherers as idle.
        Returns how many were released.
        """
        weights = self.gather_weights(world)
        total_weight = sum(weights.values())
        if total_weight <= 0.0:
            return 0

        workers = self._workers(world)
        counts = self.registry.gatherer_counts(weights.keys())
        total_gatherers = sum(counts.values())

        released = 0
        allocation: Dict[str, int] = {}
        for t in weights:
            target = int(math.floor(total_gatherers * (weights[t] / total_weight)))
            allocation[t.value] = target
            to_take = counts[t] - target
            if to_take <= 0:
                continue
            for w in workers:
                if to_take <= 0:
                    break
                tags = self.registry.tags_of(w.id)
                if tags.subrole is Subrole.GATHERER and tags.gather_type is t:
                    self.registry.set_subrole(w.id, Subrole.IDLE)
                    to_take -= 1
                    released += 1

        self._emit(
            "workforce_rebalance",
            {"gatherers": {t.value: n for t, n in counts.items()}, "allocation": allocation, "released": released},
        )
        return released

    # -----------------------
    # 4) Builders
    # -----------------------
    def update_builder_target(self, world: WorldView) -> int:
        citizens = int(world.count_entities_with_type(world.apply_civ(self.templates.worker)))
        if citizens > int(self.cfg.late_game_citizens):
            self.state.target_num_builders = int(self.cfg.builders_late)
        else:
            self.state.target_num_builders = int(self.cfg.builders)
        return self.state.target_num_builders

    def _pick_foundation(self, foundations: List[Entity]) -> Entity:
        if self.cfg.foundation_policy is FoundationPolicy.OLDEST:
            return min(foundations, key=lambda f: int(f.id))
        return foundations[0]

    def assign_to_foundations(self, world: WorldView) -> int:
        """
        Pulls the workers nearest to the chosen foundation onto it until the
        builder target is met. Returns how many were (re)assigned.
        """
        workers = self._workers(world)
        builders = [w for w in workers if self.registry.subrole_of(w.id) is Subrole.BUILDER]
        target_builders = int(self.state.target_num_builders)
        extra_needed = target_builders - len(builders)

        # the cap holds with or without foundations
        if extra_needed < 0:
            # target dropped: hand the surplus back to the idle pool
            for w in builders[target_builders:]:
                self.registry.set_subrole(w.id, Subrole.IDLE)
            self._emit("workforce_builders_released", {"released": -extra_needed, "target": target_builders})
            return 0

        foundations = list(world.foundations())
        # nothing to build
        if extra_needed == 0 or not foundations:
            return 0

        target = self._pick_foundation(foundations)
        tpos = target.position
        non_builders = [w for w in workers if self.registry.subrole_of(w.id) is not Subrole.BUILDER]
        nearest = sorted(non_builders, key=lambda w: (dist2(w.position, tpos), int(w.id)))[:extra_needed]

        # order each builder individually
        for w in nearest:
            w.repair(target)
            self.registry.set_subrole(w.id, Subrole.BUILDER)

        if nearest:
            self._emit(
                "workforce_builders_assigned",
                {"foundation": int(target.id), "assigned": len(nearest), "builders": len(builders) + len(nearest)},
            )
        return len(nearest)
