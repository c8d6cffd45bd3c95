# econbot/planners/plans.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from sc2.position import Point2


@dataclass(frozen=True)
class TrainingPlan:
    """
    One unit to train.

    Contract (strict):
      - template: non-empty string (civ already resolved)
      - metadata: tags the produced unit starts with (e.g. role=worker)
      - count: > 0
    """
    template: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    count: int = 1

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if not isinstance(self.template, str) or not self.template.strip():
            raise ValueError("TrainingPlan.template must be a non-empty string")
        if not isinstance(self.metadata, dict):
            raise TypeError(f"TrainingPlan.metadata must be dict, got {type(self.metadata)!r}")
        if not isinstance(self.count, int):
            raise TypeError(f"TrainingPlan.count must be int, got {type(self.count)!r}")
        if self.count <= 0:
            raise ValueError("TrainingPlan.count must be > 0")

    @property
    def is_unit(self) -> bool:
        return True


@dataclass(frozen=True)
class ConstructionPlan:
    """One building; position None lets the production side place it."""
    template: str
    position: Optional[Point2] = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if not isinstance(self.template, str) or not self.template.strip():
            raise ValueError("ConstructionPlan.template must be a non-empty string")
        if self.position is not None and not isinstance(self.position, Point2):
            raise TypeError(f"ConstructionPlan.position must be Point2, got {type(self.position)!r}")

    @property
    def is_unit(self) -> bool:
        return False
