from types import SimpleNamespace

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pytest

from tacmap.comms import CommsLog
from tacmap.engine import TrackingEngine
from tacmap.entities import Alliance, EntityKind
from tacmap.geo.projection import project
from tacmap.radar_scope import RadarScope
from tacmap.tools.viewer import CANVAS_SIZE, DashboardViewer


@pytest.fixture
def viewer(quiet_config, make_unit):
    rng = np.random.default_rng(8)
    units = [make_unit("a1"), make_unit("g1", EntityKind.GROUND, lat=24.0, lng=28.0,
                                        alliance=Alliance.ENEMY, altitude=None, speed=30.0)]
    engine = TrackingEngine(quiet_config, rng=rng, entities=units, clock=lambda: 0.0)
    v = DashboardViewer(engine, RadarScope(rng), CommsLog(rng, clock=lambda: 0.0))
    v.refresh()
    yield v
    v.stop()
    plt.close(v.fig)


def _mouse(v, x, y, button=1, inaxes=None):
    return SimpleNamespace(inaxes=v.ax_map if inaxes is None else inaxes,
                           button=button, xdata=x, ydata=y)


def test_drag_pans_without_selecting(viewer):
    lng0 = viewer.engine.viewport.state.center.lng
    viewer.on_press(_mouse(viewer, 400.0, 300.0))
    viewer.on_motion(_mouse(viewer, 430.0, 300.0))
    viewer.on_release(_mouse(viewer, 430.0, 300.0))
    assert viewer.engine.viewport.state.center.lng < lng0
    assert viewer.engine.selection is None


def test_small_jitter_is_still_a_click(viewer):
    e = viewer.engine.entity("g1")
    x, y = project(e.position, viewer.engine.viewport.state, CANVAS_SIZE)
    viewer.on_press(_mouse(viewer, x, y))
    viewer.on_motion(_mouse(viewer, x + 1.0, y + 1.0))
    viewer.on_release(_mouse(viewer, x + 1.0, y + 1.0))
    assert viewer.engine.selection is e


def test_press_outside_map_is_ignored(viewer):
    viewer.on_press(_mouse(viewer, 10.0, 10.0, inaxes=viewer.ax_scope))
    viewer.on_release(_mouse(viewer, 10.0, 10.0))
    assert viewer.engine.selection is None


def test_scroll_and_keys(viewer):
    z0 = viewer.engine.viewport.state.zoom
    viewer.on_scroll(SimpleNamespace(inaxes=viewer.ax_map, button='up'))
    assert viewer.engine.viewport.state.zoom > z0
    viewer.on_key(SimpleNamespace(key='t'))
    assert viewer.engine.viewport.state.tilt == 5.0
    viewer.on_key(SimpleNamespace(key='r'))
    assert viewer.engine.viewport.state.zoom == z0
    assert viewer.engine.viewport.state.tilt == 0.0
    viewer.engine.select_by_id("a1")
    viewer.on_key(SimpleNamespace(key='escape'))
    assert viewer.engine.selection is None


def test_start_pause_resume(viewer):
    viewer.start()
    assert viewer.engine.is_running and viewer.scope.running and viewer.comms.running
    viewer.on_key(SimpleNamespace(key=' '))
    assert viewer.paused
    assert not viewer.engine.is_running
    assert viewer.status_txt.get_text() == "PAUSED"
    viewer.on_key(SimpleNamespace(key='p'))
    assert not viewer.paused and viewer.engine.is_running


def test_selection_details_table(viewer):
    viewer.engine.select_by_id("g1")
    viewer.refresh()
    assert viewer.sel_label.get_text() == "EAGLE-g1"
    assert viewer.ax_info.tables


def test_close_stops_timers(viewer):
    viewer.start()
    viewer.on_close(None)
    assert not viewer.engine.is_running
    assert not viewer.scope.running
