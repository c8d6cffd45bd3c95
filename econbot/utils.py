#utils.py
from __future__ import annotations

import math
from typing import Any

from sc2.position import Point2


def round_half_up(v: float) -> int:
    # Math.round semantics (0.5 -> 1, -0.5 -> 0); builtin round() is banker's rounding
    return int(math.floor(float(v) + 0.5))


def world_to_cell(v: float, cell_size: float) -> int:
    return round_half_up(float(v) / float(cell_size))


def cell_to_world(i: int, cell_size: float) -> float:
    # cell centre
    return (int(i) + 0.5) * float(cell_size)


def as_point(p: Any) -> Point2:
    if isinstance(p, Point2):
        return p
    x, y = p[0], p[1]
    return Point2((float(x), float(y)))


def dist2(a: Point2, b: Point2) -> float:
    dx = float(a.x) - float(b.x)
    dy = float(a.y) - float(b.y)
    return dx * dx + dy * dy


def pos_list(p: Point2 | None) -> list[float] | None:
    """JSON friendly position for devlog payloads."""
    if p is None:
        return None
    return [round(float(p.x), 2), round(float(p.y), 2)]
