import math

import numpy as np
import pytest

from tacmap.entities import Alliance
from tacmap.radar_scope import MAX_DISTANCE, MIN_DISTANCE, RadarScope, scope_xy


def test_scope_xy_north_is_up_and_clockwise():
    assert scope_xy(100.0, 0.0) == pytest.approx((0.0, 1.0))
    x, y = scope_xy(50.0, 90.0, radius=2.0)
    assert (x, y) == pytest.approx((1.0, 0.0), abs=1e-12)
    x, y = scope_xy(100.0, 180.0)
    assert y == pytest.approx(-1.0)


def test_sweep_wraps_around():
    scope = RadarScope(np.random.default_rng(0), sweep_step_deg=5.0)
    for _ in range(72):
        scope.advance_sweep()
    assert scope.sweep_angle == pytest.approx(0.0)
    assert scope.advance_sweep() == pytest.approx(5.0)


def test_contacts_stay_on_scope():
    scope = RadarScope(np.random.default_rng(3), p_spawn=0.5, p_drop=0.5)
    for _ in range(400):
        scope.tick()
        assert scope.min_contacts <= len(scope.contacts) <= scope.max_contacts
        for c in scope.contacts:
            assert MIN_DISTANCE <= c.distance <= MAX_DISTANCE
            assert 0.0 <= c.angle < 360.0


def test_only_enemies_get_locked():
    scope = RadarScope(np.random.default_rng(5), p_spawn=0.3)
    for _ in range(100):
        scope.tick()
        assert all(c.alliance is Alliance.ENEMY for c in scope.locked())


def test_nearest_contact():
    scope = RadarScope(np.random.default_rng(0))
    assert scope.nearest().callsign == "EAGLE-1"
    scope.contacts.clear()
    assert scope.nearest() is None


def test_start_runs_two_timers(timer_factory):
    scope = RadarScope(np.random.default_rng(0), sweep_ms=50, update_ms=2000)
    scope.start(timer_factory)
    sweep, update = timer_factory.timers
    assert (sweep.interval, update.interval) == (50, 2000)
    sweep.fire(2)
    assert scope.sweep_angle == pytest.approx(10.0)
    scope.stop()
    assert not scope.running
    assert math.isfinite(scope.sweep_angle)
