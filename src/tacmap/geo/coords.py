# src/tacmap/geo/coords.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

LAT_LIMIT = 90.0
LNG_LIMIT = 180.0
ZOOM_FLOOR = 1e-3   # zoom at or below zero would invert or explode the window


def _clip(v: float, lo: float, hi: float) -> float:
    return lo if v < lo else hi if v > hi else v


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float
    elevation: Optional[float] = None

    def __post_init__(self):
        lat, lng = float(self.lat), float(self.lng)
        if not (math.isfinite(lat) and math.isfinite(lng)):
            raise ValueError(f"non-finite coordinate: lat={self.lat!r}, lng={self.lng!r}")
        object.__setattr__(self, "lat", _clip(lat, -LAT_LIMIT, LAT_LIMIT))
        object.__setattr__(self, "lng", _clip(lng, -LNG_LIMIT, LNG_LIMIT))
        if self.elevation is not None:
            object.__setattr__(self, "elevation", float(self.elevation))

    def moved(self, dlat: float, dlng: float) -> "Coordinate":
        return Coordinate(self.lat + dlat, self.lng + dlng, self.elevation)


@dataclass(frozen=True)
class RegionBounds:
    """
    Fixed geographic rectangle of the simulated theatre.
    Swapped edges are normalized so north >= south and east >= west.
    """
    north: float
    south: float
    east: float
    west: float

    def __post_init__(self):
        n, s = float(self.north), float(self.south)
        e, w = float(self.east), float(self.west)
        if n < s:
            n, s = s, n
        if e < w:
            e, w = w, e
        object.__setattr__(self, "north", n)
        object.__setattr__(self, "south", s)
        object.__setattr__(self, "east", e)
        object.__setattr__(self, "west", w)

    @property
    def lat_span(self) -> float:
        return self.north - self.south

    @property
    def lng_span(self) -> float:
        return self.east - self.west

    @property
    def center(self) -> Coordinate:
        return Coordinate((self.north + self.south) / 2.0, (self.east + self.west) / 2.0)

    def contains(self, c: Coordinate) -> bool:
        return self.south <= c.lat <= self.north and self.west <= c.lng <= self.east

    def clamp(self, c: Coordinate, lat_margin: float = 0.0, lng_margin: float = 0.0) -> Coordinate:
        """Clamp into the bounds, optionally grown by a margin on every side."""
        lat = _clip(c.lat, self.south - lat_margin, self.north + lat_margin)
        lng = _clip(c.lng, self.west - lng_margin, self.east + lng_margin)
        if lat == c.lat and lng == c.lng:
            return c
        return Coordinate(lat, lng, c.elevation)

    def random_point(self, rng: np.random.Generator) -> Coordinate:
        lat = self.south + rng.random() * self.lat_span
        lng = self.west + rng.random() * self.lng_span
        return Coordinate(lat, lng)


@dataclass(frozen=True)
class ViewportState:
    center: Coordinate
    zoom: float
    tilt: float = 0.0

    def __post_init__(self):
        z, t = float(self.zoom), float(self.tilt)
        object.__setattr__(self, "zoom", z if math.isfinite(z) and z > ZOOM_FLOOR else ZOOM_FLOOR)
        object.__setattr__(self, "tilt", t if math.isfinite(t) else 0.0)
