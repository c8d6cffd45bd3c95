# econbot/core/state.py
from __future__ import annotations

from dataclasses import dataclass


@dataclass
class EconomyState:
    """
    Everything the economy carries from one tick to the next (besides the
    density maps and worker tags, which have their own owners).
    """
    tick: int = 0
    initialized: bool = False

    # ---- targets ----
    target_num_workers: int = 0
    target_num_builders: int = 5
    target_num_fields: int = 5

    # stops workers being reassigned to other resources too frequently
    rebalance_counter: int = 0

    def next_tick(self) -> int:
        self.tick += 1
        return self.tick

    def rebalance_due(self, every: int) -> bool:
        """Advances the rebalance counter; True (and reset) once it reaches `every`."""
        self.rebalance_counter += 1
        if self.rebalance_counter >= int(every):
            self.rebalance_counter = 0
            return True
        return False
