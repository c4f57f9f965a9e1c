#!/usr/bin/env python3
"""
record: run a tracking engine headless and emit its state as NDJSON.

Examples:
  One line per tick (all entities):
    python3 -m tacmap.tools.record --panel gis --ticks 100 --seed 7 > gis.ndjson
  Projected pixels for a 800x600 canvas, written to a file:
    python3 -m tacmap.tools.record --ticks 20 --size 800x600 -o out/ticks.ndjson
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, TextIO, Tuple

from tacmap.config import PANEL_PRESETS, TrackingConfig, get_log_level, panel_config
from tacmap.engine import TrackingEngine
from tacmap.logging_config import setup_logging

logger = logging.getLogger(__name__)


def _parse_size(s: str) -> Tuple[float, float]:
    try:
        w, h = (float(x) for x in s.lower().split("x"))
    except ValueError:
        raise argparse.ArgumentTypeError("Use --size WxH, e.g. 800x600")
    return w, h


def tick_record(engine: TrackingEngine, rep, size: Optional[Tuple[float, float]]) -> dict:
    snap = engine.snapshot()
    rows = [e.as_dict() for e in snap.entities]
    if size is not None:
        xy = engine.projector.project_coords([e.position for e in snap.entities], snap.viewport, size)
        for row, (x, y) in zip(rows, xy):
            row["x"], row["y"] = float(x), float(y)
    return {
        "tick": rep.tick,
        "timestamp": rep.now,
        "moved": len(rep.moved),
        "spawned": rep.spawned,
        "retired": rep.retired,
        "viewport": {
            "lat": snap.viewport.center.lat,
            "lng": snap.viewport.center.lng,
            "zoom": snap.viewport.zoom,
            "tilt": snap.viewport.tilt,
        },
        "entities": rows,
    }


def run(engine: TrackingEngine, ticks: int, out: TextIO,
        size: Optional[Tuple[float, float]] = None, dt: float = 0.0) -> int:
    """Advance `ticks` times, writing one JSON object per tick. Returns lines written."""
    t = engine.clock()
    n = 0
    for _ in range(max(0, ticks)):
        t += dt
        rep = engine.tick(t if dt else None)
        out.write(json.dumps(tick_record(engine, rep, size)) + "\n")
        n += 1
    return n


def main(argv: List[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Run the tracking simulation headless → NDJSON.")
    p.add_argument("--panel", choices=sorted(PANEL_PRESETS), default="gis")
    p.add_argument("--ticks", type=int, default=50)
    p.add_argument("--seed", type=int, default=None, help="RNG seed (overrides TACMAP_SEED)")
    p.add_argument("--size", type=_parse_size, default=None,
                   help="Also emit projected pixel x,y for a WxH canvas")
    p.add_argument("--simulated", action="store_true",
                   help="Stamp ticks at simulated tick_ms spacing instead of wall-clock time")
    p.add_argument("-o", "--out", type=Path, help="Output file (default: stdout).")
    p.add_argument("--log-file", type=str, default=None)
    ns = p.parse_args(argv)

    setup_logging(get_log_level(), ns.log_file)

    cfg: TrackingConfig = TrackingConfig.from_env(panel_config(ns.panel))
    if ns.seed is not None:
        cfg = replace(cfg, seed=ns.seed)
    engine = TrackingEngine(cfg)
    logger.info("recording %d ticks of panel %r (seed=%s)", ns.ticks, ns.panel, cfg.seed)

    dt = cfg.tick_ms / 1000.0 if ns.simulated else 0.0
    if ns.out:
        ns.out.parent.mkdir(parents=True, exist_ok=True)
    out = sys.stdout if not ns.out else ns.out.open("w", encoding="utf-8")
    try:
        run(engine, ns.ticks, out, ns.size, dt)
    finally:
        if out is not sys.stdout:
            out.close()
        else:
            out.flush()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
