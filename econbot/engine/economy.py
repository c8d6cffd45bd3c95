# economy.py
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Dict, Iterable, Tuple

from econbot.consts import RESOURCE_ORDER, Role, Subrole
from econbot.core.state import EconomyState
from econbot.core.world import DemandSource, QueueSet, WorldEvent, WorldView
from econbot.devlog import DevLogger
from econbot.engine.placement import SitePlacementPlanner
from econbot.engine.resource_maps import ResourceDensityTracker
from econbot.engine.workforce import WorkforceAllocator
from econbot.infra.worker_tags import WorkerRegistry
from econbot.planners.demand_planner import DemandPlanner
from econbot.strategy.schema import EconomyConfig


@dataclass(frozen=True)
class EconomyReport:
    """What one tick did (telemetry only)."""
    tick: int
    gatherers: Dict[str, int]
    builders: int
    idle: int
    trained: int = 0
    reassigned: int = 0
    released: int = 0
    assigned_builders: int = 0
    density_patches: int = 0
    requests: Tuple[str, ...] = field(default_factory=tuple)


class EconomyManager:
    """
    Economic homeostasis, one call per tick:
    - tags new units, keeps density maps in sync with the world
    - trains workers up to target, balances gatherers by demand
    - pulls builders onto foundations
    - requests CC / fields / dropsites (with placement)
    Does not decide strategy; the demand weights come from outside.
    """

    def __init__(self, *, demand: DemandSource, cfg: EconomyConfig = EconomyConfig(), logger: DevLogger | None = None):
        self.cfg = cfg
        self.log = logger
        self.state = EconomyState(
            target_num_builders=int(cfg.workforce.builders),
            target_num_fields=int(cfg.workforce.fields),
        )
        self.registry = WorkerRegistry()
        self.resource_maps = ResourceDensityTracker(cfg=cfg.density, state=self.state, logger=logger)
        self.placement = SitePlacementPlanner(self.resource_maps, cfg=cfg.placement, state=self.state, logger=logger)
        self.workforce = WorkforceAllocator(
            registry=self.registry,
            demand=demand,
            state=self.state,
            cfg=cfg.workforce,
            templates=cfg.templates,
            logger=logger,
        )
        self.planner = DemandPlanner(
            placement=self.placement,
            registry=self.registry,
            state=self.state,
            cfg=cfg.build,
            templates=cfg.templates,
            placement_cfg=cfg.placement,
            log=logger,
        )

    # more initialisation for stuff that needs the world
    def init(self, world: WorldView) -> None:
        self.state.target_num_workers = int(world.population_max()) // int(self.cfg.workforce.workers_pop_divisor)
        self.state.initialized = True
        if self.log:
            self.log.emit(
                "econ_init",
                {"target_workers": self.state.target_num_workers, "profile": self.cfg.name},
                meta={"tick": int(self.state.tick)},
            )

    def update(self, world: WorldView, queues: QueueSet, events: Iterable[WorldEvent] = ()) -> EconomyReport:
        if not self.state.initialized:
            self.init(world)
        self.state.next_tick()
        events = list(events)

        # tags of units that left the world
        for e in events:
            if e.is_destroy and e.entity is not None:
                self.registry.forget(e.entity.id)
        self.registry.prune(e.id for e in world.own_entities())

        # 1) role triage
        self.workforce.reassign_roleless_units(world)

        # world deltas -> density maps
        patches = self.resource_maps.update(world, events)

        # 2) population
        trained = self.planner.train_more_workers(world, queues)

        # 3-4) demand ranking + idle reassignment
        reassigned = self.workforce.reassign_idle_workers(world)

        # 5) periodic rebalance (lagged: idled now, reassigned next tick)
        released = 0
        if self.state.rebalance_due(self.cfg.workforce.rebalance_every_ticks):
            released = self.workforce.set_workers_idle_by_priority(world)

        # 6) builders
        self.workforce.update_builder_target(world)
        assigned_builders = self.workforce.assign_to_foundations(world)

        # 7) construction demand
        requests = []
        if self.planner.build_new_cc(world, queues):
            requests.append("civil_centre")
        if self.planner.build_more_fields(world, queues):
            requests.append("field")
        plan = self.planner.build_economic_building(world, queues)
        if plan is not None:
            requests.append(plan.template)

        report = EconomyReport(
            tick=int(self.state.tick),
            gatherers={t.value: n for t, n in self.registry.gatherer_counts(RESOURCE_ORDER).items()},
            builders=self.registry.count_subrole(Subrole.BUILDER),
            idle=self.registry.count_subrole(Subrole.IDLE),
            trained=trained,
            reassigned=reassigned,
            released=released,
            assigned_builders=assigned_builders,
            density_patches=patches,
            requests=tuple(requests),
        )
        if self.log:
            payload = asdict(report)
            payload["workers"] = self.registry.count_role(Role.WORKER)
            self.log.emit("econ_tick", payload, meta={"tick": int(self.state.tick)})
        return report
