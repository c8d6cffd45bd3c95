# __init__.py
from __future__ import annotations

from .consts import ResourceType, Role, Subrole
from .devlog import DevLogger
from .engine.economy import EconomyManager, EconomyReport
from .strategy.loader import load_profile
from .strategy.schema import EconomyConfig

__all__ = [
    "DevLogger",
    "EconomyConfig",
    "EconomyManager",
    "EconomyReport",
    "ResourceType",
    "Role",
    "Subrole",
    "load_profile",
]
