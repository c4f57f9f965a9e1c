# src/tacmap/radar_scope.py
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from tacmap.entities import Alliance
from tacmap.timers import TimerDriver, TimerFactory

logger = logging.getLogger(__name__)

MIN_DISTANCE, MAX_DISTANCE = 5.0, 95.0   # percent of scope radius


@dataclass
class ScopeContact:
    id: str
    alliance: Alliance
    distance: float     # % of scope radius
    angle: float        # bearing, 0°=North, CW
    callsign: str
    locked: bool = False


def scope_xy(distance: float, angle_deg: float, radius: float = 1.0) -> Tuple[float, float]:
    """Polar (distance %, bearing 0°=N CW) -> (east, north) offsets from scope center."""
    a = math.radians(angle_deg)
    r = radius * distance / 100.0
    return r * math.sin(a), r * math.cos(a)


def _callsign(rng: np.random.Generator, alliance: Alliance) -> str:
    base = {Alliance.ENEMY: "BANDIT", Alliance.ALLY: "EAGLE", Alliance.NEUTRAL: "CIVILIAN"}[alliance]
    return f"{base}-{int(rng.integers(10))}"


class RadarScope:
    """Polar tactical scope: rotating sweep plus drifting contacts."""

    def __init__(self, rng: np.random.Generator, *,
                 min_contacts: int = 3,
                 max_contacts: int = 8,
                 sweep_step_deg: float = 5.0,
                 sweep_ms: int = 50,
                 update_ms: int = 2000,
                 p_spawn: float = 0.1,
                 p_drop: float = 0.05):
        self.rng = rng
        self.min_contacts = min_contacts
        self.max_contacts = max_contacts
        self.sweep_step_deg = sweep_step_deg
        self.p_spawn = p_spawn
        self.p_drop = p_drop
        self.sweep_angle = 0.0
        self.contacts: List[ScopeContact] = [
            ScopeContact("1", Alliance.ALLY, 25.0, 45.0, "EAGLE-1"),
            ScopeContact("2", Alliance.ALLY, 30.0, 90.0, "EAGLE-2"),
            ScopeContact("3", Alliance.ENEMY, 60.0, 180.0, "BANDIT-1", locked=True),
            ScopeContact("4", Alliance.ENEMY, 70.0, 200.0, "BANDIT-2"),
            ScopeContact("5", Alliance.NEUTRAL, 50.0, 270.0, "CIVILIAN-1"),
        ]
        self._seq = len(self.contacts)
        self._sweep = TimerDriver("radar-sweep", sweep_ms, self.advance_sweep)
        self._update = TimerDriver("radar-contacts", update_ms, self.tick)

    def advance_sweep(self) -> float:
        self.sweep_angle = (self.sweep_angle + self.sweep_step_deg) % 360.0
        return self.sweep_angle

    def tick(self) -> None:
        rng = self.rng
        for c in self.contacts:
            c.distance = min(max(c.distance + rng.uniform(-2.0, 2.0), MIN_DISTANCE), MAX_DISTANCE)
            c.angle = float((c.angle + rng.uniform(-5.0, 5.0)) % 360.0)
            c.locked = c.alliance is Alliance.ENEMY and rng.random() > 0.7

        if rng.random() < self.p_spawn and len(self.contacts) < self.max_contacts:
            r = rng.random()
            alliance = Alliance.ENEMY if r > 0.7 else Alliance.ALLY if r > 0.35 else Alliance.NEUTRAL
            self._seq += 1
            self.contacts.append(ScopeContact(
                str(self._seq), alliance, 90.0 + rng.random() * 5.0,
                float(rng.random() * 360.0), _callsign(rng, alliance)))
        if rng.random() < self.p_drop and len(self.contacts) > self.min_contacts:
            gone = self.contacts.pop(int(rng.integers(len(self.contacts))))
            logger.debug("scope contact %s faded", gone.callsign)

    def locked(self) -> List[ScopeContact]:
        return [c for c in self.contacts if c.locked]

    def nearest(self) -> Optional[ScopeContact]:
        return min(self.contacts, key=lambda c: c.distance, default=None)

    # ---- lifecycle ----
    def start(self, timer_factory: TimerFactory) -> None:
        self._sweep.start(timer_factory)
        self._update.start(timer_factory)

    def stop(self) -> None:
        self._sweep.stop()
        self._update.stop()

    @property
    def running(self) -> bool:
        return self._sweep.running or self._update.running
