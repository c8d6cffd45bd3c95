#econbot/strategy/schema.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from econbot.consts import FoundationPolicy, ResourceType


def _per_resource(wood, stone, metal) -> Dict[ResourceType, float]:
    return {ResourceType.WOOD: wood, ResourceType.STONE: stone, ResourceType.METAL: metal}


@dataclass(frozen=True)
class TemplatesCfg:
    # "{civ}" is resolved by the world (WorldView.apply_civ)
    worker: str = "units/{civ}_support_female_citizen"
    field: str = "structures/{civ}_field"
    civil_centre: str = "structures/{civ}_civil_centre"
    dropsite: str = "structures/{civ}_mill"


@dataclass(frozen=True)
class WorkforceCfg:
    workers_pop_divisor: int = 3
    builders: int = 5
    builders_late: int = 10
    # later in the game we want to build stuff faster
    late_game_citizens: int = 50
    fields: int = 5
    rebalance_every_ticks: int = 20
    max_gather_distance: float = 512.0
    foundation_policy: FoundationPolicy = FoundationPolicy.FIRST


@dataclass(frozen=True)
class DensityCfg:
    """
    Influence per supply: strength = round(supply_max / decrease_factor),
    linear falloff to 0 at radius (cells).
    """
    radius: Dict[ResourceType, int] = field(default_factory=lambda: _per_resource(13, 10, 10))
    decrease_factor: Dict[ResourceType, float] = field(default_factory=lambda: _per_resource(15.0, 100.0, 100.0))


@dataclass(frozen=True)
class PlacementCfg:
    cc_influence_radius: int = 90
    cc_influence_factor: float = 0.3
    dropsite_repel_radius: int = 20
    dropsite_repel_strength: float = -100.0
    min_separation: int = 4

    structure_footprint: int = 3
    obstruction_strength: float = 2.0

    concentration_radius: int = 14
    concentration_threshold: Dict[ResourceType, float] = field(
        default_factory=lambda: _per_resource(16000.0, 300.0, 300.0)
    )

    # world units; no own CC this close to the spot -> build a CC instead of a dropsite
    cc_proximity: float = 190.0


@dataclass(frozen=True)
class BuildCfg:
    # give time for treasures to be gathered
    grace_period_s: float = 30.0
    dropsite_targets: Dict[ResourceType, int] = field(
        default_factory=lambda: {ResourceType.WOOD: 2, ResourceType.STONE: 1, ResourceType.METAL: 1}
    )


@dataclass(frozen=True)
class EconomyConfig:
    name: str = "default"

    templates: TemplatesCfg = TemplatesCfg()
    workforce: WorkforceCfg = WorkforceCfg()
    density: DensityCfg = DensityCfg()
    placement: PlacementCfg = PlacementCfg()
    build: BuildCfg = BuildCfg()
