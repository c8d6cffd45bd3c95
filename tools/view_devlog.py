# tools/view_devlog.py
from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd


def read_jsonl(path: Path) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    with path.open("r", encoding="utf-8") as f:
        for i, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                obj = json.loads(line)
                if isinstance(obj, dict):
                    obj["_line"] = i
                rows.append(obj)
            except json.JSONDecodeError as e:
                rows.append({"_parse_error": str(e), "_line": i, "_raw": line})
    return rows


def build_dataframe(rows: List[Dict[str, Any]]) -> pd.DataFrame:
    """
    One row per event:
      - base columns: ts_utc, event, module, tick, _line, _parse_error
      - payload__* / meta__*: flattened payload and meta
    """
    base: List[Dict[str, Any]] = []
    payload_list: List[Dict[str, Any]] = []
    meta_list: List[Dict[str, Any]] = []

    for r in rows:
        payload = r.get("payload", {})
        meta = r.get("meta", {})
        if not isinstance(payload, dict):
            payload = {"_non_dict_payload": str(payload)}
        if not isinstance(meta, dict):
            meta = {"_non_dict_meta": str(meta)}

        tick = meta.get("tick")
        base.append(
            {
                "ts_utc": r.get("ts_utc"),
                "event": r.get("event"),
                "module": r.get("module"),
                "tick": int(tick) if isinstance(tick, (int, float)) else None,
                "_line": r.get("_line"),
                "_parse_error": r.get("_parse_error"),
            }
        )
        payload_list.append(payload)
        meta_list.append(meta)

    df_base = pd.DataFrame(base)
    df_payload = pd.json_normalize(payload_list).add_prefix("payload__")
    df_meta = pd.json_normalize(meta_list).add_prefix("meta__")

    df = pd.concat([df_base, df_payload, df_meta], axis=1)
    df = df.sort_values(by=["tick", "_line"], na_position="first", kind="stable")
    return df.reset_index(drop=True)


def gatherers_per_tick(df: pd.DataFrame) -> pd.DataFrame:
    """econ_tick rows as tick x resource gatherer counts (+ builders, idle)."""
    ticks = df[df["event"] == "econ_tick"]
    if ticks.empty:
        return pd.DataFrame()
    cols = [c for c in ticks.columns if c.startswith("payload__gatherers.")]
    out = ticks[["tick"] + cols + ["payload__builders", "payload__idle"]].copy()
    out.columns = ["tick"] + [c.split(".", 1)[1] for c in cols] + ["builders", "idle"]
    return out.set_index("tick")


def summarize(df: pd.DataFrame) -> None:
    print("\n================ SUMMARY ================")
    print(f"Rows: {len(df)}")
    if df["_parse_error"].notna().any():
        print(f"Parse errors: {int(df['_parse_error'].notna().sum())}")

    print("\nEvents per module:")
    print(df.groupby(["module", "event"]).size().to_string())

    if df["tick"].notna().any():
        print(f"\nTicks: {int(df['tick'].min())} -> {int(df['tick'].max())}")

    per_tick = gatherers_per_tick(df)
    if not per_tick.empty:
        print("\nWorkforce (last 10 ticks):")
        print(per_tick.tail(10).to_string())


def maybe_filter(df: pd.DataFrame, contains: Optional[str]) -> pd.DataFrame:
    if not contains:
        return df
    c = contains.lower()
    return df[df["event"].astype(str).str.lower().str.contains(c, na=False)].reset_index(drop=True)


def main() -> None:
    p = argparse.ArgumentParser(description="Summarise an economy devlog.")
    p.add_argument("path", help="logs/econ_xxx.jsonl")
    p.add_argument("--filter", default=None, help="Keep events whose name contains this text")
    p.add_argument("--csv", default=None, help="Export the (filtered) table to CSV")
    args = p.parse_args()

    path = Path(args.path)
    if not path.exists():
        raise SystemExit(f"File not found: {path}")

    df = maybe_filter(build_dataframe(read_jsonl(path)), args.filter)
    summarize(df)

    if args.csv:
        df.to_csv(args.csv, index=False, encoding="utf-8")
        print(f"\nCSV exported to: {args.csv}")


if __name__ == "__main__":
    main()
