# econbot/consts.py
from __future__ import annotations

from enum import Enum


class ResourceType(str, Enum):
    """
    Resource categories. Keep values stable: logs and profiles use them as keys.
    """
    FOOD = "food"
    WOOD = "wood"
    STONE = "stone"
    METAL = "metal"


# Fixed iteration order (ranking ties, reports, map initialisation).
RESOURCE_ORDER: tuple[ResourceType, ...] = (
    ResourceType.FOOD,
    ResourceType.WOOD,
    ResourceType.STONE,
    ResourceType.METAL,
)

# Resources that get a persistent density map and dropsite coverage checks.
DENSITY_RESOURCES: tuple[ResourceType, ...] = (
    ResourceType.WOOD,
    ResourceType.STONE,
    ResourceType.METAL,
)


class Role(str, Enum):
    WORKER = "worker"
    SOLDIER = "soldier"
    UNKNOWN = "unknown"


class Subrole(str, Enum):
    GATHERER = "gatherer"
    BUILDER = "builder"
    IDLE = "idle"


class FoundationPolicy(str, Enum):
    """Which foundation receives builders when several exist."""
    FIRST = "first"
    OLDEST = "oldest"


# entity classes queried through Entity.has_class
CLASS_WORKER = "Worker"
CLASS_CITIZEN_SOLDIER = "CitizenSoldier"
CLASS_SUPER = "Super"
CLASS_CIV_CENTRE = "CivCentre"
CLASS_SEA_CREATURE = "SeaCreature"

EVENT_DESTROY = "Destroy"
