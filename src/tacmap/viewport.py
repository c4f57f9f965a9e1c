from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Optional, Tuple

from tacmap.geo.coords import Coordinate, RegionBounds, ViewportState
from tacmap.geo.projection import spans

logger = logging.getLogger(__name__)

MIN_TILT, MAX_TILT = 0.0, 60.0


class ViewportController:
    """
    Sole owner of the map ViewportState.
    Every operation replaces `state`; out-of-range input is clamped, never raised.
    """

    def __init__(self, bounds: RegionBounds, *,
                 default_center: Optional[Coordinate] = None,
                 default_zoom: float = 6.0,
                 default_tilt: float = 0.0,
                 min_zoom: float = 0.5,
                 max_zoom: float = 12.0,
                 zoom_step: float = 1.5):
        if not (0.0 < min_zoom <= max_zoom):
            raise ValueError(f"invalid zoom range [{min_zoom}, {max_zoom}]")
        self.bounds = bounds
        self.min_zoom = float(min_zoom)
        self.max_zoom = float(max_zoom)
        self.zoom_step = float(zoom_step) if zoom_step > 1.0 else 1.5
        self._default = ViewportState(
            center=default_center or bounds.center,
            zoom=self._clamp_zoom(default_zoom),
            tilt=self._clamp_tilt(default_tilt),
        )
        self.state = self._clamped_center(self._default)

    # ---- clamps ----
    def _clamp_zoom(self, z: float) -> float:
        return min(max(float(z), self.min_zoom), self.max_zoom)

    @staticmethod
    def _clamp_tilt(t: float) -> float:
        return min(max(float(t), MIN_TILT), MAX_TILT)

    def _clamped_center(self, st: ViewportState) -> ViewportState:
        lat_span, lng_span = spans(st.zoom)
        c = self.bounds.clamp(st.center, lat_span / 2.0, lng_span / 2.0)
        return st if c is st.center else replace(st, center=c)

    # ---- operations ----
    def pan(self, dx: float, dy: float, size: Tuple[float, float]) -> ViewportState:
        """Drag by (dx, dy) pixels; dragging right moves the map right (center lng decreases)."""
        w, h = size
        if not (w > 0 and h > 0) or not (math.isfinite(dx) and math.isfinite(dy)):
            return self.state
        lat_span, lng_span = spans(self.state.zoom)
        center = self.state.center.moved(dy / h * lat_span, -dx / w * lng_span)
        self.state = self._clamped_center(replace(self.state, center=center))
        return self.state

    def zoom_by(self, factor: float) -> ViewportState:
        if not (math.isfinite(factor) and factor > 0.0):
            logger.debug("ignoring zoom factor %r", factor)
            return self.state
        z = self._clamp_zoom(self.state.zoom * factor)
        self.state = self._clamped_center(replace(self.state, zoom=z))
        return self.state

    def zoom_in(self) -> ViewportState:
        return self.zoom_by(self.zoom_step)

    def zoom_out(self) -> ViewportState:
        return self.zoom_by(1.0 / self.zoom_step)

    def adjust_tilt(self, delta: float) -> ViewportState:
        if not math.isfinite(delta):
            return self.state
        self.state = replace(self.state, tilt=self._clamp_tilt(self.state.tilt + delta))
        return self.state

    def reset(self) -> ViewportState:
        self.state = self._clamped_center(self._default)
        return self.state

    def focus(self, coord: Coordinate, zoom: Optional[float] = None) -> ViewportState:
        """Re-center on coord; raise zoom to `zoom` if given (never zooms out)."""
        z = self.state.zoom
        if zoom is not None and zoom > z:
            z = self._clamp_zoom(zoom)
        self.state = self._clamped_center(replace(self.state, center=coord, zoom=z))
        return self.state
