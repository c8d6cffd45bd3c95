#econbot/strategy/loader.py
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from econbot.consts import DENSITY_RESOURCES, FoundationPolicy, ResourceType
from .schema import BuildCfg, DensityCfg, EconomyConfig, PlacementCfg, TemplatesCfg, WorkforceCfg


def _as_str(x: Any, *, path: str) -> str:
    if not isinstance(x, str):
        raise TypeError(f"{path}: expected str, got {type(x).__name__}")
    return x


def _as_int(x: Any, *, path: str) -> int:
    if isinstance(x, bool) or not isinstance(x, (int, float)):
        raise TypeError(f"{path}: expected int, got {type(x).__name__}")
    return int(x)


def _as_float(x: Any, *, path: str) -> float:
    if isinstance(x, bool) or not isinstance(x, (int, float)):
        raise TypeError(f"{path}: expected float, got {type(x).__name__}")
    return float(x)


def _opt_obj(d: Dict[str, Any], key: str, *, path: str) -> Dict[str, Any]:
    v = d.get(key)
    if v is None:
        return {}
    if not isinstance(v, dict):
        raise TypeError(f"{path}.{key}: must be object")
    return v


def _per_resource(raw: Any, default: Dict[ResourceType, Any], *, path: str, cast) -> Dict[ResourceType, Any]:
    """{"wood": .., "stone": .., "metal": ..}; missing keys keep the default."""
    if raw is None:
        return dict(default)
    if not isinstance(raw, dict):
        raise TypeError(f"{path}: must be object")
    out = dict(default)
    for k, v in raw.items():
        try:
            resource = ResourceType(str(k).strip().lower())
        except ValueError:
            raise KeyError(f"{path}: unknown resource '{k}'") from None
        if resource not in DENSITY_RESOURCES:
            raise KeyError(f"{path}: '{k}' has no density map")
        out[resource] = cast(v, path=f"{path}.{k}")
    return out


def _parse_templates(raw: Dict[str, Any], *, path: str) -> TemplatesCfg:
    d = TemplatesCfg()
    return TemplatesCfg(
        worker=_as_str(raw.get("worker", d.worker), path=f"{path}.worker"),
        field=_as_str(raw.get("field", d.field), path=f"{path}.field"),
        civil_centre=_as_str(raw.get("civil_centre", d.civil_centre), path=f"{path}.civil_centre"),
        dropsite=_as_str(raw.get("dropsite", d.dropsite), path=f"{path}.dropsite"),
    )


def _parse_workforce(raw: Dict[str, Any], *, path: str) -> WorkforceCfg:
    d = WorkforceCfg()
    policy = _as_str(raw.get("foundation_policy", d.foundation_policy.value), path=f"{path}.foundation_policy")
    try:
        foundation_policy = FoundationPolicy(policy.strip().lower())
    except ValueError:
        allowed = sorted(p.value for p in FoundationPolicy)
        raise ValueError(f"{path}.foundation_policy invalid: {policy} (allowed={allowed})") from None

    cfg = WorkforceCfg(
        workers_pop_divisor=_as_int(raw.get("workers_pop_divisor", d.workers_pop_divisor), path=f"{path}.workers_pop_divisor"),
        builders=_as_int(raw.get("builders", d.builders), path=f"{path}.builders"),
        builders_late=_as_int(raw.get("builders_late", d.builders_late), path=f"{path}.builders_late"),
        late_game_citizens=_as_int(raw.get("late_game_citizens", d.late_game_citizens), path=f"{path}.late_game_citizens"),
        fields=_as_int(raw.get("fields", d.fields), path=f"{path}.fields"),
        rebalance_every_ticks=_as_int(raw.get("rebalance_every_ticks", d.rebalance_every_ticks), path=f"{path}.rebalance_every_ticks"),
        max_gather_distance=_as_float(raw.get("max_gather_distance", d.max_gather_distance), path=f"{path}.max_gather_distance"),
        foundation_policy=foundation_policy,
    )
    if cfg.workers_pop_divisor <= 0:
        raise ValueError(f"{path}.workers_pop_divisor must be > 0")
    if cfg.rebalance_every_ticks <= 0:
        raise ValueError(f"{path}.rebalance_every_ticks must be > 0")
    return cfg


def _parse_density(raw: Dict[str, Any], *, path: str) -> DensityCfg:
    d = DensityCfg()
    cfg = DensityCfg(
        radius=_per_resource(raw.get("radius"), d.radius, path=f"{path}.radius", cast=_as_int),
        decrease_factor=_per_resource(raw.get("decrease_factor"), d.decrease_factor, path=f"{path}.decrease_factor", cast=_as_float),
    )
    for r in DENSITY_RESOURCES:
        if cfg.radius[r] <= 0:
            raise ValueError(f"{path}.radius.{r.value} must be > 0")
        if cfg.decrease_factor[r] <= 0:
            raise ValueError(f"{path}.decrease_factor.{r.value} must be > 0")
    return cfg


def _parse_placement(raw: Dict[str, Any], *, path: str) -> PlacementCfg:
    d = PlacementCfg()
    return PlacementCfg(
        cc_influence_radius=_as_int(raw.get("cc_influence_radius", d.cc_influence_radius), path=f"{path}.cc_influence_radius"),
        cc_influence_factor=_as_float(raw.get("cc_influence_factor", d.cc_influence_factor), path=f"{path}.cc_influence_factor"),
        dropsite_repel_radius=_as_int(raw.get("dropsite_repel_radius", d.dropsite_repel_radius), path=f"{path}.dropsite_repel_radius"),
        dropsite_repel_strength=_as_float(raw.get("dropsite_repel_strength", d.dropsite_repel_strength), path=f"{path}.dropsite_repel_strength"),
        min_separation=_as_int(raw.get("min_separation", d.min_separation), path=f"{path}.min_separation"),
        structure_footprint=_as_int(raw.get("structure_footprint", d.structure_footprint), path=f"{path}.structure_footprint"),
        obstruction_strength=_as_float(raw.get("obstruction_strength", d.obstruction_strength), path=f"{path}.obstruction_strength"),
        concentration_radius=_as_int(raw.get("concentration_radius", d.concentration_radius), path=f"{path}.concentration_radius"),
        concentration_threshold=_per_resource(
            raw.get("concentration_threshold"), d.concentration_threshold, path=f"{path}.concentration_threshold", cast=_as_float
        ),
        cc_proximity=_as_float(raw.get("cc_proximity", d.cc_proximity), path=f"{path}.cc_proximity"),
    )


def _parse_build(raw: Dict[str, Any], *, path: str) -> BuildCfg:
    d = BuildCfg()
    return BuildCfg(
        grace_period_s=_as_float(raw.get("grace_period_s", d.grace_period_s), path=f"{path}.grace_period_s"),
        dropsite_targets=_per_resource(raw.get("dropsite_targets"), d.dropsite_targets, path=f"{path}.dropsite_targets", cast=_as_int),
    )


def parse_profile(data: Dict[str, Any], *, name: str = "default", path: str = "profile") -> EconomyConfig:
    if not isinstance(data, dict):
        raise ValueError(f"{path}: profile root must be JSON object")
    return EconomyConfig(
        name=_as_str(data.get("name", name), path=f"{path}.name"),
        templates=_parse_templates(_opt_obj(data, "templates", path=path), path=f"{path}.templates"),
        workforce=_parse_workforce(_opt_obj(data, "workforce", path=path), path=f"{path}.workforce"),
        density=_parse_density(_opt_obj(data, "density", path=path), path=f"{path}.density"),
        placement=_parse_placement(_opt_obj(data, "placement", path=path), path=f"{path}.placement"),
        build=_parse_build(_opt_obj(data, "build", path=path), path=f"{path}.build"),
    )


def load_profile(name: Optional[str] = None, *, base_dir: str | Path | None = None) -> EconomyConfig:
    """
    Loads strats/<name>.json (name from argument, ECONBOT_PROFILE, or "default").
    """
    base = Path(base_dir) if base_dir is not None else Path(__file__).resolve().parents[1] / "strats"
    name = (name or os.getenv("ECONBOT_PROFILE") or "default").strip()
    path = base / f"{name}.json"

    if not path.exists():
        raise FileNotFoundError(f"Economy profile not found: {path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8-sig"))
    except json.JSONDecodeError as e:
        raise RuntimeError(f"Failed to parse JSON profile: {path}") from e

    return parse_profile(data, name=name, path=str(path))
