# econbot/devlog.py
from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, is_dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def _json_default(o: Any):
    if is_dataclass(o):
        return asdict(o)
    # enums and other named objects
    value = getattr(o, "value", None)
    if isinstance(value, (str, int, float)):
        return value
    return str(o)


@dataclass
class DevLogger:
    """
    JSONL logger (1 event per line).

    Output layout:
    - consolidated: <log_dir>/<filename>
    - per module: <log_dir>/<run_stem>/<module>.jsonl
    - ticks per module: <log_dir>/<run_stem>/ticks/<module>.jsonl
    """

    log_dir: str = "logs"
    filename: Optional[str] = None
    enabled: bool = True
    split_by_module: bool = True

    def _ensure_dir(self) -> None:
        os.makedirs(self.log_dir, exist_ok=True)

    @staticmethod
    def _module_from_event(event: str, meta: Optional[Dict[str, Any]] = None) -> str:
        if isinstance(meta, dict):
            mod = meta.get("module")
            if isinstance(mod, str) and mod.strip():
                return mod.strip().lower()

        ev = str(event or "").strip().lower()
        if ev.startswith("econ_"):
            return "economy"
        if ev.startswith("workforce_"):
            return "workforce"
        if ev.startswith("density_"):
            return "density"
        if ev.startswith("placement_"):
            return "placement"
        if ev.startswith("demand_"):
            return "demand"
        if ev.startswith("sim_") or ev.startswith("run_"):
            return "runtime"
        return "misc"

    @staticmethod
    def _safe_stem(filename: str) -> str:
        stem, _ = os.path.splitext(str(filename))
        return stem or "devlog"

    @staticmethod
    def _write_jsonl(path: str, row: Dict[str, Any]) -> None:
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(row, ensure_ascii=False, default=_json_default) + "\n")

    def emit(
        self,
        event: str,
        payload: Optional[Dict[str, Any]] = None,
        *,
        meta: Optional[Dict[str, Any]] = None,
    ) -> None:
        if not self.enabled:
            return
        if not self.filename:
            # no file configured: silently skip, the tick must go on
            return

        self._ensure_dir()

        module = self._module_from_event(event, meta)
        row = {
            "ts_utc": datetime.now(timezone.utc).isoformat(),
            "event": event,
            "module": module,
            "payload": payload or {},
            "meta": meta or {},
        }

        consolidated_path = os.path.join(self.log_dir, self.filename)
        try:
            self._write_jsonl(consolidated_path, row)

            if self.split_by_module:
                run_stem = self._safe_stem(self.filename)
                split_dir = os.path.join(self.log_dir, run_stem)
                os.makedirs(split_dir, exist_ok=True)
                self._write_jsonl(os.path.join(split_dir, f"{module}.jsonl"), row)

                if str(event).lower().endswith("_tick"):
                    ticks_dir = os.path.join(split_dir, "ticks")
                    os.makedirs(ticks_dir, exist_ok=True)
                    self._write_jsonl(os.path.join(ticks_dir, f"{module}.jsonl"), row)
        except OSError:
            # logging never kills the agent
            pass


def emitter(logger: DevLogger | None, state: Any | None = None):
    """
    Small closure used by the engine components: emit(event, payload) with the
    current tick attached as meta.
    """

    def _emit(event: str, payload: dict) -> None:
        if logger is None:
            return
        tick = int(getattr(state, "tick", 0) if state is not None else 0)
        logger.emit(event, payload, meta={"tick": tick})

    return _emit
