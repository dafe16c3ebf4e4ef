# dda/dda_io.py
from __future__ import annotations

import copy
import dataclasses
import json
from typing import Any, Dict, Optional

from .dda_bounds import ParameterSpace
from .dda_types import ControllerConfig, FitnessParams, GeneticParams, PackParams, SwarmParams

_SECTIONS = {
    "space": ParameterSpace,
    "fitness": FitnessParams,
    "swarm": SwarmParams,
    "pack": PackParams,
    "genetic": GeneticParams,
}


def config_to_dict(cfg: ControllerConfig) -> Dict[str, Any]:
    return dataclasses.asdict(cfg)


# ---- Default config (every knob, as JSON-able values) ----
DEFAULT_CONFIG: Dict[str, Any] = config_to_dict(ControllerConfig())


def _deep_merge(dst: Dict[str, Any], src: Dict[str, Any]) -> Dict[str, Any]:
    """dst <- merge(src) without mutating src; src keys override dst."""
    out = copy.deepcopy(dst)
    for k, v in src.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)  # type: ignore
        else:
            out[k] = v
    return out


def _check_keys(where: str, data: Dict[str, Any], allowed: Dict[str, Any]) -> None:
    unknown = sorted(set(data) - set(allowed))
    if unknown:
        raise ValueError(f"config: unknown key(s) in {where}: {', '.join(unknown)}")


def config_from_dict(data: Dict[str, Any]) -> ControllerConfig:
    """
    Build a validated ControllerConfig from a (possibly partial) dict.
    Missing fields fall back to DEFAULT_CONFIG; unknown keys are an error.
    """
    if not isinstance(data, dict):
        raise ValueError(f"config: expected a JSON object at top level (got {type(data).__name__})")
    _check_keys("config", data, DEFAULT_CONFIG)
    merged = _deep_merge(DEFAULT_CONFIG, data)

    kwargs: Dict[str, Any] = {}
    for key, val in merged.items():
        if key in _SECTIONS:
            if not isinstance(val, dict):
                raise ValueError(f"config: section '{key}' must be an object")
            _check_keys(key, val, DEFAULT_CONFIG[key])
            kwargs[key] = _SECTIONS[key](**val)
        else:
            kwargs[key] = val
    return ControllerConfig(**kwargs)


def load_config(path: Optional[str]) -> ControllerConfig:
    """
    Load a config JSON file and fill any missing fields with defaults.
    If path is None, return the default config.
    """
    if not path:
        return ControllerConfig()
    with open(path, "r", encoding="utf-8") as f:
        user = json.load(f)
    return config_from_dict(user)


def save_config(path: str, cfg: ControllerConfig) -> None:
    """Save config to JSON (pretty)."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config_to_dict(cfg), f, indent=2, ensure_ascii=False)
