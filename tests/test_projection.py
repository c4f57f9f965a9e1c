import math

import numpy as np
import pytest

from tacmap.geo.coords import Coordinate, RegionBounds, ViewportState
from tacmap.geo.projection import Projector, project, spans, unproject
from tacmap.viewport import ViewportController

SIZE = (800.0, 600.0)
VIEW = ViewportState(center=Coordinate(26.0, 30.0), zoom=1.0)


def test_center_maps_to_canvas_middle():
    x, y = project(VIEW.center, VIEW, SIZE)
    assert x == pytest.approx(400.0)
    assert y == pytest.approx(300.0)


@pytest.mark.parametrize("lat,lng", [(26.0, 30.0), (35.9, 44.9), (16.1, 15.1), (20.0, 40.0)])
def test_inside_window_projects_inside_canvas(lat, lng):
    x, y = project(Coordinate(lat, lng), VIEW, SIZE)
    assert 0.0 <= x <= 800.0
    assert 0.0 <= y <= 600.0


def test_outside_window_is_not_clamped():
    x, y = project(Coordinate(26.0, 0.0), VIEW, SIZE)
    assert x < 0.0
    x, y = project(Coordinate(-10.0, 30.0), VIEW, SIZE)
    assert y > 600.0


def test_north_is_up():
    _, y_north = project(Coordinate(30.0, 30.0), VIEW, SIZE)
    _, y_south = project(Coordinate(20.0, 30.0), VIEW, SIZE)
    assert y_north < y_south


@pytest.mark.parametrize("lat,lng", [(26.0, 30.0), (30.1, 31.4), (17.5, 21.25), (40.0, 50.0)])
def test_round_trip_without_tilt(lat, lng):
    c = Coordinate(lat, lng)
    back = unproject(project(c, VIEW, SIZE), VIEW, SIZE)
    assert back.lat == pytest.approx(lat, abs=1e-9)
    assert back.lng == pytest.approx(lng, abs=1e-9)


def test_round_trip_with_tilt_inside_window():
    v = ViewportState(center=Coordinate(26.0, 30.0), zoom=2.0, tilt=45.0)
    c = Coordinate(28.3, 27.1)
    back = unproject(project(c, v, SIZE), v, SIZE)
    assert back.lat == pytest.approx(c.lat, abs=1e-9)
    assert back.lng == pytest.approx(c.lng, abs=1e-9)


def test_zoom_shrinks_degrees_per_pixel():
    a, b = Coordinate(26.0, 30.0), Coordinate(27.0, 31.0)
    dists = []
    for z in (1.0, 2.0, 4.0):
        v = ViewportState(center=Coordinate(26.0, 30.0), zoom=z)
        pa, pb = project(a, v, SIZE), project(b, v, SIZE)
        dists.append(math.dist(pa, pb))
    assert dists[0] < dists[1] < dists[2]
    assert spans(2.0)[0] < spans(1.0)[0]


def test_cairo_scenario_doubles_distance_after_zoom():
    bounds = RegionBounds(north=32.0, south=5.0, west=-10.0, east=60.0)
    ctl = ViewportController(bounds, default_center=Coordinate(26.0, 30.0), default_zoom=1.0)
    cairo = Coordinate(30.1, 31.4)

    x1, y1 = project(cairo, ctl.state, SIZE)
    assert x1 > 400.0          # east of center
    assert y1 < 300.0          # north of center
    d1 = math.hypot(x1 - 400.0, y1 - 300.0)

    ctl.zoom_by(2.0)
    x2, y2 = project(cairo, ctl.state, SIZE)
    d2 = math.hypot(x2 - 400.0, y2 - 300.0)
    assert d2 == pytest.approx(2.0 * d1)


@pytest.mark.parametrize("size", [(0.0, 600.0), (800.0, 0.0), (0.0, 0.0), (-5.0, 10.0)])
def test_degenerate_size_is_safe(size):
    assert project(Coordinate(30.0, 31.0), VIEW, size) == (0.0, 0.0)
    assert unproject((10.0, 10.0), VIEW, size) == VIEW.center
    assert Projector().project_many([1.0, 2.0], [3.0, 4.0], VIEW, size).shape == (2, 2)


def test_tilt_warps_only_y_and_keeps_horizon_row():
    flat = VIEW
    tilted = ViewportState(center=VIEW.center, zoom=1.0, tilt=60.0)
    c = Coordinate(33.0, 35.0)   # upper half of the canvas
    xf, yf = project(c, flat, SIZE)
    xt, yt = project(c, tilted, SIZE)
    assert xt == pytest.approx(xf)
    assert yt != pytest.approx(yf)
    # the vertical center row is a fixed point of the warp
    _, ymid = project(Coordinate(26.0, 35.0), tilted, SIZE)
    assert ymid == pytest.approx(300.0)


def test_project_many_matches_scalar():
    p = Projector()
    lats, lngs = [26.0, 30.1, 20.0], [30.0, 31.4, 40.0]
    xy = p.project_many(lats, lngs, VIEW, SIZE)
    assert xy.shape == (3, 2)
    for (lat, lng), row in zip(zip(lats, lngs), xy):
        assert np.allclose(row, p.project(Coordinate(lat, lng), VIEW, SIZE))


@pytest.mark.parametrize("zoom", [0.0, -3.0, math.nan])
def test_non_positive_zoom_is_floored(zoom):
    v = ViewportState(center=Coordinate(0.0, 0.0), zoom=zoom)
    assert v.zoom > 0.0
    x, y = project(Coordinate(1.0, 1.0), v, SIZE)
    assert math.isfinite(x) and math.isfinite(y)
    lat_span, lng_span = spans(zoom)
    assert math.isfinite(lat_span) and math.isfinite(lng_span)


def test_non_finite_tilt_means_flat():
    v = ViewportState(center=VIEW.center, zoom=1.0, tilt=math.nan)
    assert v.tilt == 0.0
    assert project(Coordinate(30.0, 31.0), v, SIZE) == project(Coordinate(30.0, 31.0), VIEW, SIZE)
