# src/tacmap/terrain.py
"""
Static terrain overlay: polygon features projected through the map projection,
each paired with a matplotlib-style fill keyed by terrain kind.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from tacmap.geo.coords import Coordinate, ViewportState
from tacmap.geo.projection import Projector


class TerrainKind(str, Enum):
    MOUNTAIN = "mountain"
    DESERT = "desert"
    URBAN = "urban"
    WATER = "water"
    FOREST = "forest"


@dataclass(frozen=True)
class TerrainFeature:
    id: str
    name: str
    kind: TerrainKind
    vertices: Tuple[Coordinate, ...]


@dataclass(frozen=True)
class TerrainStyle:
    facecolor: str
    edgecolor: str
    alpha: float = 0.35
    hatch: Optional[str] = None
    zorder: int = 1


TERRAIN_STYLES: Dict[TerrainKind, TerrainStyle] = {
    TerrainKind.WATER:    TerrainStyle("#1f6f9f", "#5fa8d3", 0.45, None, 1),
    TerrainKind.DESERT:   TerrainStyle("#c8a165", "#a07c45", 0.25, None, 0),
    TerrainKind.MOUNTAIN: TerrainStyle("#7a5c3e", "#4e3a27", 0.40, "^^", 2),
    TerrainKind.URBAN:    TerrainStyle("#8c8c8c", "#d4af37", 0.50, "..", 3),
    TerrainKind.FOREST:   TerrainStyle("#3f7f3f", "#2b572b", 0.40, "oo", 2),
}


@dataclass(frozen=True)
class RenderedFeature:
    feature_id: str
    name: str
    kind: TerrainKind
    vertices: np.ndarray   # (N, 2) pixels, N >= 3
    style: TerrainStyle


def render_terrain(features: Sequence[TerrainFeature], viewport: ViewportState,
                   size: Tuple[float, float],
                   projector: Optional[Projector] = None) -> List[RenderedFeature]:
    """Project every drawable polygon (>= 3 vertices). Never mutates `features`."""
    w, h = size
    if not (w > 0 and h > 0):
        return []
    projector = projector or Projector()
    out: List[RenderedFeature] = []
    for f in features:
        if len(f.vertices) < 3:
            continue
        xy = projector.project_coords(f.vertices, viewport, size)
        out.append(RenderedFeature(f.id, f.name, f.kind, xy, TERRAIN_STYLES[f.kind]))
    return out


def _poly(fid: str, name: str, kind: TerrainKind, pts: Sequence[Tuple[float, float]]) -> TerrainFeature:
    return TerrainFeature(fid, name, kind, tuple(Coordinate(lat, lng) for lat, lng in pts))


def default_terrain() -> List[TerrainFeature]:
    """Stylized Egyptian theatre outlines (lat, lng)."""
    return [
        _poly("med", "Mediterranean Sea", TerrainKind.WATER,
              [(31.6, 24.0), (31.2, 27.5), (31.5, 30.0), (31.3, 32.3), (31.1, 34.2),
               (34.0, 36.0), (34.0, 24.0)]),
        _poly("red", "Red Sea", TerrainKind.WATER,
              [(29.9, 32.6), (27.9, 33.6), (25.0, 34.6), (22.0, 36.9), (22.0, 38.5),
               (27.9, 34.5), (29.5, 34.9)]),
        _poly("nile", "Nile Valley", TerrainKind.FOREST,
              [(30.1, 31.1), (28.0, 30.7), (25.7, 32.5), (24.0, 32.8), (22.0, 31.4),
               (22.0, 31.7), (24.1, 33.0), (25.8, 32.8), (28.1, 31.0), (30.1, 31.4)]),
        _poly("delta", "Nile Delta", TerrainKind.FOREST,
              [(30.1, 31.1), (31.4, 29.9), (31.5, 31.0), (31.2, 32.2), (30.1, 31.4)]),
        _poly("sinai", "Sinai Mountains", TerrainKind.MOUNTAIN,
              [(29.5, 33.4), (28.2, 33.6), (27.8, 34.2), (28.6, 34.6), (29.4, 34.3)]),
        _poly("western", "Western Desert", TerrainKind.DESERT,
              [(30.8, 25.0), (30.5, 29.5), (27.0, 30.2), (23.0, 30.5), (22.0, 25.0)]),
        _poly("cairo", "Cairo", TerrainKind.URBAN,
              [(30.2, 31.1), (30.2, 31.5), (29.9, 31.5), (29.9, 31.1)]),
    ]
