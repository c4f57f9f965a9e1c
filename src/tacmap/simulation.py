#!/usr/bin/env python3
"""
Entity simulation loop, the only writer of the tracked-entity collection.

Per tick, each entity independently:
  - moves along its heading (mobile entities, p_move), clamped to the region
  - turns by a bounded random delta (p_turn)
  - jitters speed/altitude inside its kind profile (p_retune)
  - resamples its status from STATUS_TRANSITIONS (p_status); only
    transients can end up retired, persistent units always recover
Then the transient (target/threat) population is topped up to the floor,
and may spawn (p_spawn) or retire (p_retire) one entity within the
floor/ceiling.

Randomness comes only from the injected numpy Generator.
"""
from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import numpy as np

from tacmap.config import TrackingConfig
from tacmap.entities import (TRANSIENT_KINDS, Alliance, EntityStatus,
                             TrackedEntity, make_entity, next_statuses)
from tacmap.geo.coords import RegionBounds
from tacmap.timers import TimerDriver, TimerFactory

logger = logging.getLogger(__name__)


@dataclass
class TickReport:
    tick: int
    now: float
    moved: List[str] = field(default_factory=list)
    spawned: List[str] = field(default_factory=list)
    retired: List[str] = field(default_factory=list)


def _clip(v: float, lo: float, hi: float) -> float:
    return min(max(v, lo), hi)


class EntitySimulation:
    def __init__(self, entities: List[TrackedEntity], bounds: RegionBounds,
                 config: TrackingConfig, rng: np.random.Generator,
                 clock: Callable[[], float] = time.time):
        self.entities = entities
        self.bounds = bounds
        self.cfg = config
        self.rng = rng
        self.clock = clock
        self.tick_count = 0
        self._next_transient = 0
        self._driver = TimerDriver("simulation", config.tick_ms, self.tick)

    # ---- population ----
    def transients(self) -> List[TrackedEntity]:
        return [e for e in self.entities if e.transient]

    def spawn_transient(self, now: float) -> TrackedEntity:
        kind = TRANSIENT_KINDS[int(self.rng.integers(len(TRANSIENT_KINDS)))]
        alliance = Alliance.ENEMY if self.rng.random() < 0.7 else Alliance.NEUTRAL
        eid = f"{kind.value}-t{self._next_transient}"
        self._next_transient += 1
        e = make_entity(self.rng, kind, self.bounds.random_point(self.rng), eid,
                        alliance=alliance, now=now)
        self.entities.append(e)
        logger.debug("spawned %s (%s) at %.3f,%.3f", e.callsign, eid, e.position.lat, e.position.lng)
        return e

    def retire_transient(self) -> Optional[TrackedEntity]:
        pool = self.transients()
        if not pool:
            return None
        # already-retired ones go first
        done = [e for e in pool if e.status is EntityStatus.RETIRED]
        victims = done or pool
        e = victims[int(self.rng.integers(len(victims)))]
        self.entities.remove(e)
        logger.debug("retired %s (%s)", e.callsign, e.id)
        return e

    def seed_transients(self, count: int, now: Optional[float] = None) -> None:
        now = self.clock() if now is None else now
        for _ in range(max(0, min(count, self.cfg.max_transient))):
            self.spawn_transient(now)

    # ---- per-entity steps ----
    def _move(self, e: TrackedEntity) -> bool:
        step = e.profile.step_deg
        if step <= 0.0:
            return False
        h = math.radians(e.heading)
        pos = e.position.moved(math.sin(h) * step, math.cos(h) * step)
        e.position = self.bounds.clamp(pos)
        return True

    def _turn(self, e: TrackedEntity) -> None:
        d = self.rng.uniform(-self.cfg.turn_max_deg, self.cfg.turn_max_deg)
        e.heading = float((e.heading + d) % 360.0)

    def _retune(self, e: TrackedEntity) -> None:
        prof = e.profile
        if e.speed is not None:
            lo, hi = prof.speed_range
            e.speed = _clip(e.speed + self.rng.uniform(-prof.speed_jitter, prof.speed_jitter),
                            max(lo, 0.0), hi)
        if e.altitude is not None and prof.altitude_range is not None:
            lo, hi = prof.altitude_range
            e.altitude = _clip(e.altitude + self.rng.uniform(-prof.altitude_jitter, prof.altitude_jitter),
                               max(lo, 0.0), hi)

    def _resample_status(self, e: TrackedEntity) -> None:
        options = next_statuses(e.status, e.transient)
        if not options:
            return
        w = np.array([p for _, p in options], dtype=float)
        idx = int(self.rng.choice(len(options), p=w / w.sum()))
        e.status = options[idx][0]

    # ---- tick ----
    def tick(self, now: Optional[float] = None) -> TickReport:
        now = self.clock() if now is None else float(now)
        self.tick_count += 1
        rep = TickReport(self.tick_count, now)
        cfg, rng = self.cfg, self.rng

        for e in self.entities:
            touched = False
            live = e.status is not EntityStatus.RETIRED
            if live and e.mobile:
                if rng.random() < cfg.p_move and self._move(e):
                    rep.moved.append(e.id)
                    touched = True
                if rng.random() < cfg.p_turn:
                    self._turn(e)
                    touched = True
            if live and rng.random() < cfg.p_retune:
                self._retune(e)
                touched = True
            if rng.random() < cfg.p_status:
                before = e.status
                self._resample_status(e)
                touched = touched or e.status is not before
            if touched:
                e.last_update = now

        n = len(self.transients())
        if n < cfg.min_transient:
            rep.spawned.append(self.spawn_transient(now).id)
        elif rng.random() < cfg.p_spawn and n < cfg.max_transient:
            rep.spawned.append(self.spawn_transient(now).id)
        elif rng.random() < cfg.p_retire and n > cfg.min_transient:
            gone = self.retire_transient()
            if gone is not None:
                rep.retired.append(gone.id)
        return rep

    # ---- lifecycle ----
    @property
    def running(self) -> bool:
        return self._driver.running

    def start(self, timer_factory: TimerFactory) -> None:
        self._driver.start(timer_factory)

    def stop(self) -> None:
        self._driver.stop()

    def running_with(self, timer_factory: TimerFactory):
        return self._driver.running_with(timer_factory)
