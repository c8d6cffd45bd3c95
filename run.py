#run.py
from __future__ import annotations

import argparse
from datetime import datetime

from econbot.consts import ResourceType
from econbot.devlog import DevLogger
from econbot.engine.economy import EconomyManager
from econbot.sim.host import SimHost, populate_demo_world
from econbot.sim.world import SimWorld, StaticDemand, sim_queues
from econbot.strategy.loader import load_profile


def _parse_args():
    p = argparse.ArgumentParser(description="Run the economy against the in-memory world.")
    p.add_argument("--ticks", type=int, default=200, help="Number of economy ticks to run")
    p.add_argument("--seed", type=int, default=0, help="Seed for the demo map layout")
    p.add_argument("--profile", default=None, help="Name of economy profile JSON in strats/<name>.json")
    p.add_argument("--log-dir", default="logs", help="Directory for the JSONL devlog")
    p.add_argument("--no-log", action="store_true", help="Disable the devlog")
    return p.parse_args()


def main() -> None:
    args = _parse_args()
    cfg = load_profile(args.profile)

    logger = DevLogger(
        log_dir=args.log_dir,
        filename=f"econ_{datetime.now().strftime('%Y%m%d_%H%M%S')}.jsonl",
        enabled=not args.no_log,
    )

    world = SimWorld()
    populate_demo_world(world, seed=args.seed)
    queues = sim_queues()
    host = SimHost(world, queues)

    demand = StaticDemand({ResourceType.FOOD: 2.0, ResourceType.WOOD: 3.0, ResourceType.STONE: 1.0, ResourceType.METAL: 1.0})
    econ = EconomyManager(demand=demand, cfg=cfg, logger=logger)
    logger.emit("run_start", {"profile": cfg.name, "ticks": args.ticks, "seed": args.seed})

    report = None
    for _ in range(max(0, int(args.ticks))):
        events = host.step()
        report = econ.update(world, queues, events)

    logger.emit("run_end", {"ticks": args.ticks, "supplies_left": len(world.resource_supplies())})

    if report is None:
        print("no ticks run")
        return
    print(f"tick={report.tick} time={world.time_elapsed():.0f}s")
    print("gatherers:", ", ".join(f"{k}={v}" for k, v in report.gatherers.items()))
    print(f"builders={report.builders} idle={report.idle}")
    print("density:", econ.resource_maps.snapshot())
    if logger.enabled:
        print("devlog:", f"{args.log_dir}/{logger.filename}")


if __name__ == "__main__":
    main()
