import numpy as np
import pytest

from tacmap.config import TrackingConfig
from tacmap.entities import Alliance, EntityKind, TrackedEntity
from tacmap.geo.coords import Coordinate, RegionBounds

SCENARIO_BOUNDS = RegionBounds(north=32.0, south=5.0, east=60.0, west=-10.0)


class FakeTimer:
    """Stand-in for a matplotlib canvas timer; fire() runs the callbacks."""

    def __init__(self, interval=None):
        self.interval = interval
        self.callbacks = []
        self.started = False
        self.stop_calls = 0

    def add_callback(self, func, *args, **kwargs):
        self.callbacks.append(func)
        return func

    def remove_callback(self, func, *args, **kwargs):
        if func in self.callbacks:
            self.callbacks.remove(func)

    def start(self, interval=None):
        self.started = True

    def stop(self):
        self.started = False
        self.stop_calls += 1

    def fire(self, n=1):
        for _ in range(n):
            for cb in list(self.callbacks):
                cb()


class FakeTimerFactory:
    def __init__(self):
        self.timers = []

    def __call__(self, interval=None, callbacks=None):
        t = FakeTimer(interval)
        self.timers.append(t)
        return t


@pytest.fixture
def timer_factory():
    return FakeTimerFactory()


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def scenario_bounds():
    return SCENARIO_BOUNDS


@pytest.fixture
def quiet_config():
    """No seeding, no transients: the test decides the population."""
    return TrackingConfig(region=SCENARIO_BOUNDS, home=Coordinate(26.0, 30.0), home_zoom=1.0,
                          persistent_units=0, initial_transient=0,
                          min_transient=0, max_transient=0)


@pytest.fixture
def make_unit():
    def _make(eid="a1", kind=EntityKind.AIRCRAFT, lat=30.1, lng=31.4, *,
              alliance=Alliance.ALLY, callsign=None, heading=90.0,
              speed=300.0, altitude=10000.0, mobile=True):
        return TrackedEntity(
            id=eid, kind=kind, callsign=callsign or f"EAGLE-{eid}",
            alliance=alliance, position=Coordinate(lat, lng), heading=heading,
            speed=speed, altitude=altitude, mobile=mobile,
            transient=kind in (EntityKind.TARGET, EntityKind.THREAT),
        )
    return _make
