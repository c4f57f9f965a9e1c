#!/usr/bin/env python3
from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from typing import List, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.gridspec import GridSpec
from matplotlib.patches import Polygon

from tacmap.comms import CommsLog, Priority
from tacmap.config import PANEL_PRESETS, TrackingConfig, get_log_level, panel_config
from tacmap.engine import TrackingEngine
from tacmap.entities import Alliance
from tacmap.logging_config import setup_logging
from tacmap.radar_scope import RadarScope
from tacmap.timers import TimerDriver

logger = logging.getLogger(__name__)

# ---------------- Config / constants ----------------
ALLIANCE_COLORS = {
    Alliance.ALLY: 'tab:green',
    Alliance.ENEMY: 'tab:red',
    Alliance.NEUTRAL: 'tab:gray',
}
PRIORITY_COLORS = {
    Priority.NORMAL: '0.85',
    Priority.HIGH: 'gold',
    Priority.CRITICAL: 'crimson',
}
CANVAS_SIZE = (800.0, 600.0)
CLICK_SLOP_PX = 3.0     # press→release travel below this is a click, not a drag
TILT_STEP = 5.0
RENDER_MS = 100


def _alliance_colors(entities) -> List[str]:
    return [ALLIANCE_COLORS[e.alliance] for e in entities]


# ---------------- Viewer ----------------
class DashboardViewer:
    """
    Matplotlib host for one TrackingEngine plus the radar scope and comms log.
    The map axes use pixel data coordinates (0..w, h..0) so event.xdata/ydata
    are the engine's pointer pixels directly.
    """

    def __init__(self, engine: TrackingEngine, scope: RadarScope, comms: CommsLog,
                 size: Tuple[float, float] = CANVAS_SIZE):
        self.engine = engine
        self.scope = scope
        self.comms = comms
        self.size = size
        self.paused = False
        self._press: Optional[Tuple[float, float]] = None
        self._last: Optional[Tuple[float, float]] = None
        self._travel = 0.0
        self._terrain_patches: List[Polygon] = []
        self._render = TimerDriver("render", RENDER_MS, self.refresh)
        self._build()

    # ---- Figure & layout ----
    def _build(self) -> None:
        w, h = self.size
        self.fig = plt.figure(constrained_layout=True, figsize=(14.5, 8.5))
        gs = GridSpec(2, 2, figure=self.fig, width_ratios=[2, 1], height_ratios=[1, 1])
        self.ax_map = self.fig.add_subplot(gs[:, 0])
        self.ax_scope = self.fig.add_subplot(gs[0, 1], projection='polar')
        self.ax_info = self.fig.add_subplot(gs[1, 1])

        ax = self.ax_map
        ax.set_title('Theatre map: drag to pan, click to select, scroll/+/- zoom, t/g tilt, r reset')
        ax.set_xlim(0, w); ax.set_ylim(h, 0)
        ax.set_aspect('equal', adjustable='box')
        ax.set_facecolor('#e9dcc0')
        ax.set_xticks([]); ax.set_yticks([])
        self.scat = ax.scatter([], [], s=36, edgecolor='k', linewidths=0.5, zorder=5)
        self.sel_ring = ax.scatter([], [], s=240, facecolors='none', edgecolors='goldenrod',
                                   linewidths=2.0, zorder=6)
        self.sel_label = ax.text(0, 0, '', fontsize=9, weight='bold', color='k', zorder=7,
                                 bbox=dict(boxstyle="round,pad=0.2", fc="w", ec="0.5", alpha=0.8))
        self.coord_txt = ax.text(
            0.01, 0.01, '', transform=ax.transAxes, fontsize=9, va='bottom',
            bbox=dict(boxstyle="round,pad=0.25", fc="w", ec="0.5", alpha=0.9))

        sc = self.ax_scope
        sc.set_title('Tactical radar: 0°=North (CW)', fontsize=11)
        sc.set_theta_zero_location('N')
        sc.set_theta_direction(-1)   # clockwise
        sc.set_rlim(0, 100)
        sc.grid(True, linestyle=':', linewidth=0.7)
        self.sweep_ln, = sc.plot([], [], lw=1.5, color='tab:green', alpha=0.8)
        self.scope_pts = sc.scatter([], [], s=30, edgecolor='k', zorder=3)

        self.status_txt = self.fig.text(
            0.86, 0.985, "PLAYING", fontsize=11, ha="left", va="top",
            bbox=dict(boxstyle="round,pad=0.25", fc="w", ec="0.5", alpha=0.9), color="green")

        c = self.fig.canvas.mpl_connect
        self._cids = [
            c('button_press_event', self.on_press),
            c('motion_notify_event', self.on_motion),
            c('button_release_event', self.on_release),
            c('scroll_event', self.on_scroll),
            c('key_press_event', self.on_key),
            c('close_event', self.on_close),
        ]

    # ---- pointer handlers ----
    def on_press(self, event):
        if event.inaxes != self.ax_map or event.button != 1: return
        if event.xdata is None or event.ydata is None: return
        self._press = self._last = (float(event.xdata), float(event.ydata))
        self._travel = 0.0

    def on_motion(self, event):
        if self._last is None or event.inaxes != self.ax_map: return
        if event.xdata is None or event.ydata is None: return
        x, y = float(event.xdata), float(event.ydata)
        dx, dy = x - self._last[0], y - self._last[1]
        self._travel += float(np.hypot(dx, dy))
        if self._travel < CLICK_SLOP_PX:
            return
        self.engine.pan(dx, dy, self.size)
        # map content moved under the pointer; the pointer position itself is unchanged
        self._last = (x, y)
        self.refresh()

    def on_release(self, event):
        press, self._press, self._last = self._press, None, None
        if press is None or self._travel >= CLICK_SLOP_PX:
            return
        hit = self.engine.select_at(press, self.size)
        if hit is not None:
            logger.info("selected %s", hit.callsign)
        self.refresh()

    def on_scroll(self, event):
        if event.inaxes != self.ax_map: return
        if event.button == 'up':
            self.engine.zoom_in()
        else:
            self.engine.zoom_out()
        self.refresh()

    def on_key(self, ev):
        k = ev.key
        if k in ('+', '='):
            self.engine.zoom_in()
        elif k == '-':
            self.engine.zoom_out()
        elif k == 'r':
            self.engine.reset_view()
        elif k == 't':
            self.engine.adjust_tilt(TILT_STEP)
        elif k == 'g':
            self.engine.adjust_tilt(-TILT_STEP)
        elif k in ('c', 'escape'):
            self.engine.clear_selection()
        elif k in (' ', 'p'):
            self.toggle_pause()
        else:
            return
        self.refresh()

    def on_close(self, _event):
        self.stop()

    # ---- lifecycle ----
    def start(self) -> None:
        new_timer = self.fig.canvas.new_timer
        self.engine.start(new_timer)
        self.scope.start(new_timer)
        self.comms.start(new_timer)
        self._render.start(new_timer)
        self.paused = False
        self._set_status()

    def stop(self) -> None:
        self.engine.stop()
        self.scope.stop()
        self.comms.stop()
        self._render.stop()

    def toggle_pause(self) -> None:
        if self.paused:
            self.start()
        else:
            self.stop()
            self.paused = True
            self._set_status()

    def _set_status(self) -> None:
        self.status_txt.set_text("PAUSED" if self.paused else "PLAYING")
        self.status_txt.set_color("crimson" if self.paused else "green")

    # ---- drawing ----
    def _draw_terrain(self) -> None:
        for p in self._terrain_patches:
            p.remove()
        self._terrain_patches = []
        for f in self.engine.render_terrain(self.size):
            st = f.style
            patch = Polygon(f.vertices, closed=True, facecolor=st.facecolor, edgecolor=st.edgecolor,
                            alpha=st.alpha, hatch=st.hatch, zorder=st.zorder, label=f.name)
            self.ax_map.add_patch(patch)
            self._terrain_patches.append(patch)

    def _draw_entities(self) -> None:
        units = self.engine.filtered()
        xy = self.engine.project_entities(self.size)
        self.scat.set_offsets(xy if len(units) else np.empty((0, 2)))
        self.scat.set_facecolors(_alliance_colors(units) if units else [])

        sel = self.engine.selection
        if sel is None:
            self.sel_ring.set_offsets(np.empty((0, 2)))
            self.sel_label.set_text('')
            return
        x, y = self.engine.projector.project(sel.position, self.engine.viewport.state, self.size)
        self.sel_ring.set_offsets(np.array([[x, y]]))
        self.sel_label.set_position((x + 10, y + 10))
        self.sel_label.set_text(sel.callsign)

    def _draw_scope(self) -> None:
        th = np.radians(self.scope.sweep_angle)
        self.sweep_ln.set_data([th, th], [0, 100])
        cs = self.scope.contacts
        if cs:
            pts = np.column_stack([np.radians([c.angle for c in cs]), [c.distance for c in cs]])
            self.scope_pts.set_offsets(pts)
            self.scope_pts.set_facecolors(_alliance_colors(cs))
            self.scope_pts.set_sizes([80 if c.locked else 30 for c in cs])
        else:
            self.scope_pts.set_offsets(np.empty((0, 2)))

    def render_tables(self) -> None:
        ax = self.ax_info
        ax.clear(); ax.axis('off')
        sel = self.engine.selection
        if sel is not None:
            ax.set_title('Unit details', fontsize=11)
            rows = [
                ['callsign', sel.callsign],
                ['type', sel.kind.value],
                ['alliance', sel.alliance.value],
                ['status', sel.status.value],
                ['heading', f'{sel.heading:.0f}°'],
                ['speed', '-' if sel.speed is None else f'{sel.speed:.0f}'],
                ['altitude', '-' if sel.altitude is None else f'{sel.altitude:,.0f} ft'],
                ['position', f'{sel.position.lat:.4f}, {sel.position.lng:.4f}'],
            ]
            t = ax.table(cellText=rows, colLabels=['Field', 'Value'], loc='upper center')
            t.auto_set_font_size(False); t.set_fontsize(9); t.scale(1.0, 1.1)
            return
        ax.set_title(f'Comms: {self.comms.link.value} ({self.comms.latency_ms} ms)', fontsize=11)
        for i, m in enumerate(self.comms.messages):
            ax.text(0.0, 0.95 - i * 0.11, f'[{m.channel}] {m.sender}: {m.content}',
                    fontsize=8, transform=ax.transAxes, va='top', wrap=True,
                    color='k', bbox=dict(fc=PRIORITY_COLORS[m.priority], ec='none', alpha=0.6))

    def refresh(self) -> None:
        self._draw_terrain()
        self._draw_entities()
        self._draw_scope()
        self.render_tables()
        v = self.engine.viewport.state
        self.coord_txt.set_text(
            f'LAT: {v.center.lat:.4f} | LNG: {v.center.lng:.4f} | ZOOM: {v.zoom:.2f} | TILT: {v.tilt:.0f}°'
            f' | UNITS: {len(self.engine.filtered())}')
        self.fig.canvas.draw_idle()


# ---------------- CLI ----------------
def viewer_main(argv=None):
    ap = argparse.ArgumentParser(description="tacmap dashboard viewer (matplotlib)")
    ap.add_argument("--panel", choices=sorted(PANEL_PRESETS), default="gis")
    ap.add_argument("--seed", type=int, default=None, help="RNG seed for the whole panel")
    ap.add_argument("--kind", default=None, help="Only show this entity kind (e.g. aircraft)")
    ap.add_argument("--alliance", choices=[a.value for a in Alliance], default=None)
    ap.add_argument("--search", default="", help="Callsign substring filter")
    ap.add_argument("--log-file", type=str, default=None)
    args = ap.parse_args(argv)

    setup_logging(get_log_level(), args.log_file)

    cfg: TrackingConfig = TrackingConfig.from_env(panel_config(args.panel))
    if args.seed is not None:
        cfg = replace(cfg, seed=args.seed)
    rng = np.random.default_rng(cfg.seed)
    engine = TrackingEngine(cfg, rng=rng)
    engine.set_filter(args.kind, args.alliance, args.search)
    viewer = DashboardViewer(engine, RadarScope(rng), CommsLog(rng))
    viewer.comms.post('COMMAND', 'Communications link established. Standing by for further instructions.')

    viewer.refresh()
    viewer.start()
    try:
        plt.show()
    finally:
        viewer.stop()
    return 0


if __name__ == "__main__":
    raise SystemExit(viewer_main())
