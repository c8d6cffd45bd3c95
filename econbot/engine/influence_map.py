#econbot/engine/influence_map.py
from __future__ import annotations

import math
from enum import Enum
from functools import lru_cache
from typing import Optional, Tuple

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from sc2.position import Point2

from econbot.utils import cell_to_world, world_to_cell

# Every contribution is snapped to a multiple of 1/QUANTUM. Dyadic values of
# bounded magnitude add and subtract exactly in float64, so removing a
# contribution restores the previous cell values bit for bit.
QUANTUM = 1024.0


class Falloff(str, Enum):
    LINEAR = "linear"
    QUADRATIC = "quadratic"
    CONSTANT = "constant"


@lru_cache(maxsize=64)
def _disc(radius: int) -> np.ndarray:
    """(2r+1)^2 mask of offsets with dx^2 + dz^2 < r^2."""
    d = np.arange(-radius, radius + 1, dtype=np.float64)
    r2 = d[None, :] ** 2 + d[:, None] ** 2
    mask = r2 < float(radius * radius)
    mask.setflags(write=False)
    return mask


@lru_cache(maxsize=256)
def _kernel(radius: int, strength: float, falloff: Falloff) -> np.ndarray:
    d = np.arange(-radius, radius + 1, dtype=np.float64)
    r2 = d[None, :] ** 2 + d[:, None] ** 2
    if falloff is Falloff.LINEAR:
        q = strength * (radius - np.sqrt(r2)) / radius
    elif falloff is Falloff.QUADRATIC:
        q = strength * (radius * radius - r2) / (radius * radius)
    else:
        q = np.full_like(r2, strength)
    q = np.where(_disc(radius), q, 0.0)
    # np.round is symmetric: kernel(-s) == -kernel(s)
    q = np.round(q * QUANTUM) / QUANTUM
    q.setflags(write=False)
    return q


class InfluenceMap:
    """
    2-D scalar field over the playable area.

    - grid is (height, width), row = z, column = x
    - flat index = z * width + x
    - values may be negative (repulsion, or a removed contribution)
    """

    def __init__(self, width: int, height: int, cell_size: float = 4.0):
        if int(width) <= 0 or int(height) <= 0:
            raise ValueError(f"InfluenceMap needs a positive size, got {width}x{height}")
        if float(cell_size) <= 0.0:
            raise ValueError("InfluenceMap.cell_size must be > 0")
        self.width = int(width)
        self.height = int(height)
        self.cell_size = float(cell_size)
        self.grid = np.zeros((self.height, self.width), dtype=np.float64)

    @classmethod
    def for_world(cls, map_size: float, cell_size: float) -> "InfluenceMap":
        n = int(math.ceil(float(map_size) / float(cell_size)))
        return cls(n, n, cell_size)

    @classmethod
    def from_obstruction(cls, blocked: np.ndarray, cell_size: float, strength: float = 1.0) -> "InfluenceMap":
        """Obstruction map: `strength` on blocked cells, 0 elsewhere."""
        blocked = np.asarray(blocked, dtype=bool)
        if blocked.ndim != 2:
            raise ValueError(f"obstruction grid must be 2-D, got shape {blocked.shape}")
        m = cls(blocked.shape[1], blocked.shape[0], cell_size)
        m.grid[blocked] = float(strength)
        return m

    def like(self) -> "InfluenceMap":
        """Empty map with the same geometry."""
        return InfluenceMap(self.width, self.height, self.cell_size)

    @property
    def shape(self) -> Tuple[int, int]:
        return self.grid.shape

    # -----------------------
    # Coordinates
    # -----------------------
    def cell_of(self, p: Point2) -> Tuple[int, int]:
        return world_to_cell(p.x, self.cell_size), world_to_cell(p.y, self.cell_size)

    def index_of(self, x: int, z: int) -> int:
        return int(z) * self.width + int(x)

    def index_to_cell(self, index: int) -> Tuple[int, int]:
        return int(index) % self.width, int(index) // self.width

    def index_to_world(self, index: int) -> Point2:
        x, z = self.index_to_cell(index)
        return Point2((cell_to_world(x, self.cell_size), cell_to_world(z, self.cell_size)))

    def value_at(self, x: int, z: int) -> float:
        return float(self.grid[int(z), int(x)])

    def _window(self, cx: int, cz: int, radius: int):
        """Grid slice and kernel slice of the (2r+1)^2 square around (cx, cz), clipped."""
        x0, x1 = max(0, cx - radius), min(self.width, cx + radius + 1)
        z0, z1 = max(0, cz - radius), min(self.height, cz + radius + 1)
        if x1 <= x0 or z1 <= z0:
            return None
        kx0, kz0 = x0 - (cx - radius), z0 - (cz - radius)
        grid_sl = (slice(z0, z1), slice(x0, x1))
        kern_sl = (slice(kz0, kz0 + (z1 - z0)), slice(kx0, kx0 + (x1 - x0)))
        return grid_sl, kern_sl

    # -----------------------
    # Operations
    # -----------------------
    def add_influence(
        self,
        x: int,
        z: int,
        radius: int,
        strength: float,
        falloff: Falloff = Falloff.LINEAR,
    ) -> None:
        """
        Adds `strength` at cell (x, z), decaying to 0 at `radius` (linear /
        quadratic) or flat inside `radius` (constant). Negative strength
        subtracts.
        """
        radius = int(radius)
        if radius <= 0:
            raise ValueError(f"influence radius must be > 0, got {radius}")
        win = self._window(int(x), int(z), radius)
        if win is None:
            return
        grid_sl, kern_sl = win
        self.grid[grid_sl] += _kernel(radius, float(strength), Falloff(falloff))[kern_sl]

    def multiply(self, other: "InfluenceMap") -> None:
        if other.shape != self.shape:
            raise ValueError(f"cannot multiply maps of shape {self.shape} and {other.shape}")
        self.grid *= other.grid

    def sum_influence(self, x: int, z: int, radius: int) -> float:
        radius = int(radius)
        if radius <= 0:
            return 0.0
        win = self._window(int(x), int(z), radius)
        if win is None:
            return 0.0
        grid_sl, kern_sl = win
        return float(self.grid[grid_sl][_disc(radius)[kern_sl]].sum())

    def expand_influences(self) -> None:
        """
        Dilation: every cell becomes max(own, neighbour - 1), propagated across
        the whole grid (rows, then columns). A value v reaches v - 1 cells out
        in Manhattan distance.
        """
        g = self.grid
        xs = np.arange(self.width, dtype=np.float64)[None, :]
        fwd = np.maximum.accumulate(g + xs, axis=1) - xs
        bwd = (np.maximum.accumulate((g - xs)[:, ::-1], axis=1) + xs[:, ::-1])[:, ::-1]
        g = np.maximum(g, np.maximum(fwd, bwd))

        zs = np.arange(self.height, dtype=np.float64)[:, None]
        fwd = np.maximum.accumulate(g + zs, axis=0) - zs
        bwd = (np.maximum.accumulate((g - zs)[::-1, :], axis=0) + zs[::-1, :])[::-1, :]
        self.grid = np.maximum(g, np.maximum(fwd, bwd))

    def find_best_tile(self, min_separation: int, obstruction: "InfluenceMap") -> Optional[Tuple[int, float]]:
        """
        (index, value) of the highest cell with no obstructed cell (value > 0
        in `obstruction`) within `min_separation` cells. Ties go to the first
        cell in scan order. None if no such cell has a positive value.
        """
        if obstruction.shape != self.shape:
            raise ValueError(f"obstruction shape {obstruction.shape} != map shape {self.shape}")

        blocked = obstruction.grid > 0
        r = max(0, int(min_separation))
        if r > 0:
            padded = np.pad(blocked, r, mode="constant", constant_values=False)
            blocked = sliding_window_view(padded, (2 * r + 1, 2 * r + 1)).any(axis=(-2, -1))

        scores = np.where(blocked, -np.inf, self.grid).ravel()
        idx = int(np.argmax(scores))
        best = float(scores[idx])
        if not best > 0.0:
            return None
        return idx, best

    def total(self) -> float:
        return float(self.grid.sum())
