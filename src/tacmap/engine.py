#!/usr/bin/env python3
"""
TrackingEngine: one per dashboard panel. Usable as:
  1) a library object:   engine = TrackingEngine.for_panel("gis", seed=7)
  2) a timer-driven core: with engine.running(fig.canvas.new_timer): ...

Composes the viewport controller, the entity simulation, hit-testing and the
terrain overlay, and hands the presentation layer a read-only snapshot.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from tacmap.config import TrackingConfig, panel_config
from tacmap.entities import (Alliance, EntityKind, EntityStatus,
                             MalformedEntityError, TrackedEntity,
                             seed_entities, validate_entity)
from tacmap.geo.coords import ViewportState
from tacmap.geo.projection import Projector
from tacmap.picking import pick_entity
from tacmap.simulation import EntitySimulation, TickReport
from tacmap.terrain import (RenderedFeature, TerrainFeature, default_terrain,
                            render_terrain)
from tacmap.timers import TimerFactory
from tacmap.viewport import ViewportController

logger = logging.getLogger(__name__)

Size = Tuple[float, float]


@dataclass(frozen=True)
class EntityFilter:
    kind: Optional[EntityKind] = None
    alliance: Optional[Alliance] = None
    search: str = ""

    def matches(self, e: TrackedEntity) -> bool:
        if self.kind is not None and e.kind is not self.kind:
            return False
        if self.alliance is not None and e.alliance is not self.alliance:
            return False
        if self.search and self.search.lower() not in e.callsign.lower():
            return False
        return True


@dataclass(frozen=True)
class DashboardSnapshot:
    entities: Tuple[TrackedEntity, ...]
    terrain: Tuple[TerrainFeature, ...]
    viewport: ViewportState
    selection: Optional[TrackedEntity]
    tick_count: int


class TrackingEngine:
    def __init__(self, config: Optional[TrackingConfig] = None,
                 rng: Optional[np.random.Generator] = None,
                 terrain: Optional[Sequence[TerrainFeature]] = None,
                 entities: Optional[List[TrackedEntity]] = None,
                 clock: Callable[[], float] = time.time):
        self.cfg = config or TrackingConfig()
        self.rng = rng if rng is not None else np.random.default_rng(self.cfg.seed)
        self.clock = clock
        self.projector = Projector(self.cfg.perspective_px)
        self.viewport = ViewportController(
            self.cfg.region,
            default_center=self.cfg.home,
            default_zoom=self.cfg.home_zoom,
            min_zoom=self.cfg.min_zoom,
            max_zoom=self.cfg.max_zoom,
            zoom_step=self.cfg.zoom_step,
        )
        self.terrain: Tuple[TerrainFeature, ...] = tuple(
            default_terrain() if terrain is None else terrain)
        now = clock()
        if entities is None:
            entities = seed_entities(self.rng, self.cfg.region, self.cfg.persistent_units, now=now)
        self._entities: List[TrackedEntity] = []
        self.sim = EntitySimulation(self._entities, self.cfg.region, self.cfg, self.rng, clock)
        for e in entities:
            self.add_entity(e)
        if self.cfg.initial_transient:
            self.sim.seed_transients(self.cfg.initial_transient, now)
        self.filter = EntityFilter()
        self._selected_id: Optional[str] = None

    @classmethod
    def for_panel(cls, name: str, seed: Optional[int] = None, **kw) -> "TrackingEngine":
        cfg = panel_config(name)
        if seed is not None:
            cfg = replace(cfg, seed=seed)
        return cls(cfg, **kw)

    # ---- entity collection ----
    def add_entity(self, entity: TrackedEntity) -> TrackedEntity:
        """Register a host-supplied record. Malformed or duplicate records raise."""
        e = validate_entity(entity)
        if any(x.id == e.id for x in self._entities):
            raise MalformedEntityError(f"duplicate entity id {e.id!r}")
        e.position = self.cfg.region.clamp(e.position)
        self._entities.append(e)
        return e

    def entity(self, entity_id: str) -> Optional[TrackedEntity]:
        for e in self._entities:
            if e.id == entity_id:
                return e
        return None

    def set_filter(self, kind: Optional[EntityKind] = None,
                   alliance: Optional[Alliance] = None, search: str = "") -> EntityFilter:
        self.filter = EntityFilter(
            None if kind is None else EntityKind(kind),
            None if alliance is None else Alliance(alliance),
            search or "",
        )
        return self.filter

    def filtered(self) -> List[TrackedEntity]:
        return [e for e in self._entities if self.filter.matches(e)]

    # ---- selection ----
    @property
    def selection(self) -> Optional[TrackedEntity]:
        if self._selected_id is None:
            return None
        e = self.entity(self._selected_id)
        if e is None or e.status is EntityStatus.RETIRED:
            # retired/removed since selection
            self._selected_id = None
            return None
        return e

    def selectable(self) -> List[TrackedEntity]:
        """Filtered entities that can still be picked (retired ones cannot)."""
        return [e for e in self.filtered() if e.status is not EntityStatus.RETIRED]

    def _select(self, e: Optional[TrackedEntity]) -> Optional[TrackedEntity]:
        if e is None or e.status is EntityStatus.RETIRED:
            self._selected_id = None
            return None
        self._selected_id = e.id
        self.viewport.focus(e.position, self.cfg.focus_zoom)
        logger.debug("selected %s (%s)", e.callsign, e.id)
        return e

    def select_at(self, pixel: Tuple[float, float], size: Size) -> Optional[TrackedEntity]:
        hit = pick_entity(pixel, self.selectable(), self.viewport.state, size,
                          self.cfg.hit_threshold_px, self.projector)
        return self._select(hit)

    def select_by_id(self, entity_id: str) -> Optional[TrackedEntity]:
        return self._select(self.entity(entity_id))

    def clear_selection(self) -> None:
        self._selected_id = None

    # ---- viewport passthroughs ----
    def pan(self, dx: float, dy: float, size: Size) -> ViewportState:
        return self.viewport.pan(dx, dy, size)

    def zoom_in(self) -> ViewportState:
        return self.viewport.zoom_in()

    def zoom_out(self) -> ViewportState:
        return self.viewport.zoom_out()

    def zoom_by(self, factor: float) -> ViewportState:
        return self.viewport.zoom_by(factor)

    def reset_view(self) -> ViewportState:
        return self.viewport.reset()

    def adjust_tilt(self, delta: float) -> ViewportState:
        return self.viewport.adjust_tilt(delta)

    # ---- render-side reads ----
    def project_entities(self, size: Size) -> np.ndarray:
        """(N, 2) pixel positions of the filtered entities, same order as filtered()."""
        return self.projector.project_coords([e.position for e in self.filtered()],
                                             self.viewport.state, size)

    def render_terrain(self, size: Size) -> List[RenderedFeature]:
        return render_terrain(self.terrain, self.viewport.state, size, self.projector)

    def snapshot(self) -> DashboardSnapshot:
        sel = self.selection
        return DashboardSnapshot(
            entities=tuple(e.copy() for e in self._entities),
            terrain=self.terrain,
            viewport=self.viewport.state,
            selection=None if sel is None else sel.copy(),
            tick_count=self.sim.tick_count,
        )

    # ---- simulation ----
    def tick(self, now: Optional[float] = None) -> TickReport:
        return self.sim.tick(now)

    def start(self, timer_factory: TimerFactory) -> None:
        self.sim.start(timer_factory)

    def stop(self) -> None:
        self.sim.stop()

    @property
    def is_running(self) -> bool:
        return self.sim.running

    @contextmanager
    def running(self, timer_factory: TimerFactory) -> Iterator["TrackingEngine"]:
        """Simulation timer runs for the duration of the block; always stopped on exit."""
        self.start(timer_factory)
        try:
            yield self
        finally:
            self.stop()
