# econbot/planners/demand_planner.py
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from econbot.consts import CLASS_CIV_CENTRE, DENSITY_RESOURCES, ResourceType, Role
from econbot.core.state import EconomyState
from econbot.core.world import QueueSet, WorldView
from econbot.devlog import DevLogger, emitter
from econbot.engine.placement import SitePlacementPlanner
from econbot.infra.worker_tags import WorkerRegistry
from econbot.planners.plans import ConstructionPlan, TrainingPlan
from econbot.strategy.schema import BuildCfg, PlacementCfg, TemplatesCfg
from econbot.utils import dist2, pos_list


@dataclass
class DemandPlanner:
    """
    Keeps the baseline alive: workers, a civ centre, fields, and one economic
    building at a time where dropsite coverage is weakest.

    Only reads counts and writes queue items; never touches worker tags.
    """
    placement: SitePlacementPlanner
    registry: WorkerRegistry
    state: EconomyState
    cfg: BuildCfg = BuildCfg()
    templates: TemplatesCfg = TemplatesCfg()
    placement_cfg: PlacementCfg = PlacementCfg()
    log: DevLogger | None = None

    def __post_init__(self) -> None:
        self._emit = emitter(self.log, self.state)

    # -----------------------
    # Workers
    # -----------------------
    def train_more_workers(self, world: WorldView, queues: QueueSet) -> int:
        # in the world (tagged) + in training + waiting in our queue
        num_workers = self.registry.count_role(Role.WORKER)
        num_workers += int(world.count_training_with_role(Role.WORKER))
        num_workers += int(queues.villager.count_total_queued_units())

        missing = int(self.state.target_num_workers) - num_workers
        if missing <= 0:
            return 0

        template = world.apply_civ(self.templates.worker)
        for _ in range(missing):
            queues.villager.add_item(TrainingPlan(template=template, metadata={"role": Role.WORKER.value}))
        self._emit("demand_train_workers", {"target": int(self.state.target_num_workers), "queued": missing})
        return missing

    # -----------------------
    # Structures
    # -----------------------
    def build_new_cc(self, world: WorldView, queues: QueueSet) -> int:
        """If all the CCs are gone, build a new one."""
        template = world.apply_civ(self.templates.civil_centre)
        num = int(world.count_entities_with_type(template)) + int(world.count_foundations_with_type(template))
        num += int(queues.civil_centre.total_length())
        if num >= 1:
            return 0
        queues.civil_centre.add_item(ConstructionPlan(template=template))
        self._emit("demand_civil_centre", {"template": template})
        return 1

    def build_more_fields(self, world: WorldView, queues: QueueSet) -> int:
        # grace period for early economy
        if float(world.time_elapsed()) < float(self.cfg.grace_period_s):
            return 0
        template = world.apply_civ(self.templates.field)
        num = int(world.count_entities_with_type(template)) + int(world.count_foundations_with_type(template))
        num += int(queues.field.total_length())

        added = 0
        for _ in range(num, int(self.state.target_num_fields)):
            queues.field.add_item(ConstructionPlan(template=template))
            added += 1
        if added:
            self._emit("demand_fields", {"existing": num, "queued": added})
        return added

    def _economic_building_busy(self, world: WorldView, queues: QueueSet) -> bool:
        # only ever one dropsite/CC at a time
        if int(queues.economic_building.total_length()) > 0:
            return True
        if int(world.count_foundations_with_type(world.apply_civ(self.templates.dropsite))) > 0:
            return True
        if int(world.count_foundations_with_type(world.apply_civ(self.templates.civil_centre))) > 0:
            return True
        return False

    def coverage_candidates(self, world: WorldView) -> List[ResourceType]:
        """Density resources below their dropsite target, weakest coverage first."""
        scored = []
        for order, resource in enumerate(DENSITY_RESOURCES):
            wanted = int(self.cfg.dropsite_targets.get(resource, 0))
            if wanted <= 0:
                continue
            have = self.placement.check_resource_concentrations(world, resource)
            if have < wanted:
                scored.append((have / wanted, order, resource))
        scored.sort()
        return [r for _, _, r in scored]

    def build_economic_building(self, world: WorldView, queues: QueueSet) -> Optional[ConstructionPlan]:
        if self._economic_building_busy(world, queues):
            return None
        if float(world.time_elapsed()) <= float(self.cfg.grace_period_s):
            return None

        for resource in self.coverage_candidates(world):
            spot = self.placement.best_resource_build_spot(world, resource)
            if spot is None:
                self._emit("demand_dropsite_skipped", {"resource": resource.value, "reason": "no_spot"})
                continue

            max_d2 = float(self.placement_cfg.cc_proximity) ** 2
            near_cc = any(
                e.has_class(CLASS_CIV_CENTRE) and dist2(spot, e.position) < max_d2
                for e in world.own_entities()
            )
            template = self.templates.dropsite if near_cc else self.templates.civil_centre
            plan = ConstructionPlan(template=world.apply_civ(template), position=spot)
            queues.economic_building.add_item(plan)
            self._emit(
                "demand_economic_building",
                {"resource": resource.value, "template": plan.template, "pos": pos_list(spot), "near_cc": near_cc},
            )
            return plan
        return None
