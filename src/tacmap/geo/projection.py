# src/tacmap/geo/projection.py
"""
Linear (equirectangular-style) map projection for the stylized theatre map.

The visible window is BASE_LAT_SPAN / zoom degrees tall and
BASE_LNG_SPAN / zoom degrees wide, centered on the viewport center.
Pixel origin is the top-left corner; y grows downwards.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from tacmap.geo.coords import ZOOM_FLOOR, Coordinate, ViewportState

BASE_LAT_SPAN = 20.0
BASE_LNG_SPAN = 30.0
PERSPECTIVE_PX = 1000.0

Size = Tuple[float, float]      # (w, h) pixels
Pixel = Tuple[float, float]     # (x, y) pixels


def spans(zoom: float) -> Tuple[float, float]:
    """(lat_span, lng_span) in degrees for a zoom level."""
    if not (math.isfinite(zoom) and zoom > ZOOM_FLOOR):
        zoom = ZOOM_FLOOR
    return BASE_LAT_SPAN / zoom, BASE_LNG_SPAN / zoom


def _degenerate(size: Size) -> bool:
    w, h = size
    return not (w > 0 and h > 0)


@dataclass(frozen=True)
class Projector:
    perspective_px: float = PERSPECTIVE_PX

    # ---- tilt warp ----
    def _warp(self, y, h: float, tilt: float):
        if tilt <= 0.0:
            return y
        vc = h / 2.0
        d = y - vc
        denom = self.perspective_px + d * (tilt / 100.0)
        # beyond the horizon: leave unwarped
        safe = np.where(denom > 1e-9, denom, 1.0)
        return np.where(denom > 1e-9, vc + d * self.perspective_px / safe, y)

    def _unwarp(self, y, h: float, tilt: float):
        if tilt <= 0.0:
            return y
        vc = h / 2.0
        d = y - vc
        denom = self.perspective_px - d * (tilt / 100.0)
        safe = np.where(denom > 1e-9, denom, 1.0)
        return np.where(denom > 1e-9, vc + d * self.perspective_px / safe, y)

    # ---- scalar API ----
    def project(self, coord: Coordinate, viewport: ViewportState, size: Size) -> Pixel:
        if _degenerate(size):
            return (0.0, 0.0)
        xy = self.project_many([coord.lat], [coord.lng], viewport, size)
        return float(xy[0, 0]), float(xy[0, 1])

    def unproject(self, pixel: Pixel, viewport: ViewportState, size: Size) -> Coordinate:
        if _degenerate(size):
            return viewport.center
        w, h = size
        lat_span, lng_span = spans(viewport.zoom)
        x, y = float(pixel[0]), float(pixel[1])
        y = float(self._unwarp(np.float64(y), h, viewport.tilt))
        left = viewport.center.lng - lng_span / 2.0
        bottom = viewport.center.lat - lat_span / 2.0
        lng = left + (x / w) * lng_span
        lat = bottom + (1.0 - y / h) * lat_span
        return Coordinate(lat, lng)

    # ---- vectorized ----
    def project_many(self, lats: Sequence[float], lngs: Sequence[float],
                     viewport: ViewportState, size: Size) -> np.ndarray:
        """Project N coordinates at once. Returns (N, 2) float64 array of (x, y)."""
        lat = np.asarray(lats, dtype=np.float64).reshape(-1)
        lng = np.asarray(lngs, dtype=np.float64).reshape(-1)
        if _degenerate(size):
            return np.zeros((lat.size, 2), dtype=np.float64)
        w, h = size
        lat_span, lng_span = spans(viewport.zoom)
        left = viewport.center.lng - lng_span / 2.0
        bottom = viewport.center.lat - lat_span / 2.0
        x = (lng - left) / lng_span * w
        y = (1.0 - (lat - bottom) / lat_span) * h
        y = self._warp(y, h, viewport.tilt)
        return np.column_stack([x, y]).astype(np.float64)

    def project_coords(self, coords: Sequence[Coordinate], viewport: ViewportState,
                       size: Size) -> np.ndarray:
        return self.project_many([c.lat for c in coords], [c.lng for c in coords], viewport, size)


# -------- helpers you can import --------

_DEFAULT = Projector()


def project(coord: Coordinate, viewport: ViewportState, size: Size) -> Pixel:
    return _DEFAULT.project(coord, viewport, size)


def unproject(pixel: Pixel, viewport: ViewportState, size: Size) -> Coordinate:
    return _DEFAULT.unproject(pixel, viewport, size)
