#!/usr/bin/env python3
"""
Tracking-engine configuration: per-panel presets plus environment overrides.

Supported env vars (all optional, validated):
  TACMAP_TICK_MS, TACMAP_MIN_ZOOM, TACMAP_MAX_ZOOM, TACMAP_HIT_THRESHOLD_PX
  TACMAP_MIN_TRANSIENT, TACMAP_MAX_TRANSIENT
  TACMAP_REGION       "N,S,E,W" degrees
  TACMAP_SEED
  TACMAP_LOG_LEVEL    DEBUG / INFO / WARNING ...
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from typing import Dict, Optional

from tacmap.geo.coords import Coordinate, RegionBounds

EGYPT_REGION = RegionBounds(north=32.0, south=22.0, east=36.0, west=24.0)
CAIRO = Coordinate(29.9773, 31.1325)


@dataclass(frozen=True)
class TrackingConfig:
    region: RegionBounds = EGYPT_REGION
    home: Coordinate = CAIRO
    home_zoom: float = 6.0
    tick_ms: int = 3000
    min_zoom: float = 0.5
    max_zoom: float = 12.0
    zoom_step: float = 1.5
    focus_zoom: float = 8.0
    perspective_px: float = 1000.0
    hit_threshold_px: float = 15.0
    persistent_units: int = 50
    initial_transient: int = 4
    min_transient: int = 2
    max_transient: int = 10
    # per-tick probabilities
    p_move: float = 0.3
    p_turn: float = 0.2
    turn_max_deg: float = 10.0
    p_retune: float = 0.08
    p_status: float = 0.05
    p_spawn: float = 0.1
    p_retire: float = 0.05
    seed: Optional[int] = None

    def __post_init__(self):
        if self.min_transient < 0 or self.max_transient < self.min_transient:
            raise ValueError(
                f"invalid transient population [{self.min_transient}, {self.max_transient}]")
        if self.tick_ms <= 0:
            raise ValueError(f"tick_ms must be positive, got {self.tick_ms}")

    @classmethod
    def from_env(cls, base: Optional["TrackingConfig"] = None) -> "TrackingConfig":
        """Overlay TACMAP_* environment values onto `base` (default config if None)."""
        cfg = base or cls()
        overrides: Dict[str, object] = {}
        for env, name, conv in (
            ("TACMAP_TICK_MS", "tick_ms", _get_int),
            ("TACMAP_MIN_ZOOM", "min_zoom", _get_float),
            ("TACMAP_MAX_ZOOM", "max_zoom", _get_float),
            ("TACMAP_HIT_THRESHOLD_PX", "hit_threshold_px", _get_float),
            ("TACMAP_MIN_TRANSIENT", "min_transient", _get_int),
            ("TACMAP_MAX_TRANSIENT", "max_transient", _get_int),
            ("TACMAP_SEED", "seed", _get_int),
        ):
            v = conv(env)
            if v is not None:
                overrides[name] = v
        region = get_region()
        if region is not None:
            overrides["region"] = region
        try:
            return replace(cfg, **overrides)
        except ValueError as e:
            raise SystemExit(f"Invalid TACMAP_* configuration: {e}")


# Each dashboard panel runs its own engine with its own population rules.
PANEL_PRESETS: Dict[str, TrackingConfig] = {
    "gis": TrackingConfig(),
    "tactical": TrackingConfig(
        tick_ms=2000, persistent_units=5, initial_transient=3,
        min_transient=3, max_transient=8, home_zoom=4.0,
    ),
    "theatre": TrackingConfig(
        region=RegionBounds(north=32.0, south=5.0, east=60.0, west=-10.0),
        home=Coordinate(26.0, 30.0), home_zoom=1.0,
        tick_ms=5000, persistent_units=80, initial_transient=10,
        min_transient=2, max_transient=40, p_spawn=0.2,
    ),
}


def panel_config(name: str) -> TrackingConfig:
    try:
        return PANEL_PRESETS[name]
    except KeyError:
        raise KeyError(f"unknown panel {name!r}; expected one of {sorted(PANEL_PRESETS)}")


# ---------- env readers ----------

def _get_float(name: str) -> Optional[float]:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return None
    try:
        return float(v)
    except ValueError:
        raise SystemExit(f"Invalid float for {name}: {v!r}")

def _get_int(name: str) -> Optional[int]:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return None
    try:
        return int(v)
    except ValueError:
        raise SystemExit(f"Invalid integer for {name}: {v!r}")

def get_region() -> Optional[RegionBounds]:
    """TACMAP_REGION as 'N,S,E,W'."""
    v = os.getenv("TACMAP_REGION")
    if v is None or v.strip() == "":
        return None
    try:
        n, s, e, w = (float(x) for x in v.split(","))
    except ValueError:
        raise SystemExit(f"Invalid TACMAP_REGION (expected 'N,S,E,W'): {v!r}")
    return RegionBounds(north=n, south=s, east=e, west=w)

def get_log_level(default: int = logging.INFO) -> int:
    v = os.getenv("TACMAP_LOG_LEVEL")
    if v is None or v.strip() == "":
        return default
    level = logging.getLevelName(v.strip().upper())
    if not isinstance(level, int):
        raise SystemExit(f"Invalid TACMAP_LOG_LEVEL: {v!r}")
    return level
