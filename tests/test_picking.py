import pytest

from tacmap.geo.coords import Coordinate, ViewportState
from tacmap.geo.projection import project, unproject
from tacmap.picking import pick_entity, pixel_distances

SIZE = (800.0, 600.0)
VIEW = ViewportState(center=Coordinate(26.0, 30.0), zoom=1.0)


def _at_pixel(make_unit, eid, x, y, view=VIEW):
    c = unproject((x, y), view, SIZE)
    return make_unit(eid, lat=c.lat, lng=c.lng)


def test_click_on_entity_selects_it(make_unit):
    unit = make_unit()
    px = project(unit.position, VIEW, SIZE)
    assert pick_entity(px, [unit], VIEW, SIZE) is unit


def test_click_far_away_selects_nothing(make_unit):
    unit = _at_pixel(make_unit, "a", 400.0, 300.0)
    assert pick_entity((400.0, 330.0), [unit], VIEW, SIZE, threshold_px=15.0) is None


def test_threshold_is_inclusive(make_unit):
    unit = _at_pixel(make_unit, "a", 400.0, 300.0)
    assert pick_entity((409.0, 312.0), [unit], VIEW, SIZE, threshold_px=15.0) is unit


def test_nearest_wins(make_unit):
    a = _at_pixel(make_unit, "a", 400.0, 300.0)
    b = _at_pixel(make_unit, "b", 410.0, 300.0)
    assert pick_entity((408.0, 300.0), [a, b], VIEW, SIZE) is b
    assert pick_entity((403.0, 300.0), [a, b], VIEW, SIZE) is a


def test_tie_goes_to_first_in_collection_order(make_unit):
    # stacked markers
    a = _at_pixel(make_unit, "a", 400.0, 300.0)
    b = _at_pixel(make_unit, "b", 400.0, 300.0)
    assert pick_entity((400.0, 300.0), [a, b], VIEW, SIZE) is a
    assert pick_entity((405.0, 300.0), [b, a], VIEW, SIZE) is b


def test_empty_collection_and_degenerate_canvas(make_unit):
    unit = make_unit()
    assert pick_entity((400.0, 300.0), [], VIEW, SIZE) is None
    assert pick_entity((0.0, 0.0), [unit], VIEW, (0.0, 600.0)) is None
    assert pixel_distances((0.0, 0.0), [], VIEW, SIZE).shape == (0,)


def test_picking_uses_drawn_position_under_tilt(make_unit):
    tilted = ViewportState(center=VIEW.center, zoom=2.0, tilt=60.0)
    unit = make_unit(lat=29.5, lng=30.5)
    drawn = project(unit.position, tilted, SIZE)
    flat = project(unit.position, ViewportState(center=VIEW.center, zoom=2.0), SIZE)
    assert abs(drawn[1] - flat[1]) > 15.0
    assert pick_entity(drawn, [unit], tilted, SIZE) is unit
    assert pick_entity(flat, [unit], tilted, SIZE) is None


def test_distances_are_euclidean(make_unit):
    unit = _at_pixel(make_unit, "a", 100.0, 100.0)
    d = pixel_distances((103.0, 104.0), [unit], VIEW, SIZE)
    assert d[0] == pytest.approx(5.0)
