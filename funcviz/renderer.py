"""Full-redraw renderer for sampled snippet curves.

Purpose
-------
``Renderer.draw`` paints one complete frame onto a
:class:`~funcviz.surface.DrawingSurface`: background, grid, zero line, axes,
tick labels, axis titles, one polyline per curve with start/end markers and,
while the pointer hovers over the plot, a dashed cursor line with a labelled
read-out per curve.

Architecture notes
------------------
The renderer keeps no frame state: every call redraws from its arguments.
Geometry comes from the surface size and the configured padding; all
domain/range conversions go through :class:`~funcviz.ranges.RangeMapper`.

Important gotchas
-----------------
- Curves are not clamped to the plot band; values beyond ``[y_min, y_max]``
  are drawn outside it.
- Absent samples (shorter outputs) are skipped and the line bridges them.
  Non-finite values break the line instead.
- Read-outs use the nearest sample and are shown only for curves that have a
  non-empty label.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .config import (
    AXIS_LINE_WIDTH,
    DEFAULT_CONFIG,
    GRID_LINE_WIDTH,
    X_AXIS_TITLE,
    Y_AXIS_TITLE,
    VisualizerConfig,
)
from .ranges import PlotGeometry, RangeMapper
from .sampling import SampleGrid
from .surface import DrawingSurface, Point

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

_BADGE_OFFSET = 10.0
_BADGE_HEIGHT = 16.0


@dataclass(frozen=True)
class CursorState:
    """Pointer position in surface pixels and whether it is over the canvas."""

    x: float
    y: float
    hovering: bool = True


@dataclass(frozen=True)
class Readout:
    """Value of one labelled curve at the cursor."""

    curve: int
    label: str
    value: float


class Renderer:
    """
    Draws grids, axes and curves for one visualizer.

    Parameters
    ----------
    config : VisualizerConfig, optional
        Palette, theme colours, padding and font sizes.
    """

    def __init__(self, config: VisualizerConfig = DEFAULT_CONFIG) -> None:
        self._config = config
        self._info_log_t = 0.0
        self._debug_log_t = 0.0

    @property
    def config(self) -> VisualizerConfig:
        return self._config

    def geometry_for(self, surface: DrawingSurface) -> PlotGeometry:
        return PlotGeometry(surface.width, surface.height, self._config.padding)

    def draw(
        self,
        surface: DrawingSurface,
        mapper: RangeMapper,
        grid: Optional[SampleGrid] = None,
        labels: Sequence[str] = (),
        cursor: Optional[CursorState] = None,
    ) -> None:
        """Redraw the whole frame.

        Parameters
        ----------
        surface : DrawingSurface
            Target surface; its size defines the geometry.
        mapper : RangeMapper
            Active domain/range mapping.
        grid : SampleGrid or None
            Samples of the current pass; ``None`` after a compile or evaluation
            error, in which case only the chrome is drawn.
        labels : sequence of str
            Curve labels by position.
        cursor : CursorState or None
            Pointer state; the cursor is drawn while hovering inside the
            plot's horizontal extent.
        """
        geometry = self.geometry_for(surface)
        surface.clear(self._config.colors["background"])
        self._draw_grid(surface, mapper, geometry)
        self._draw_zero_line(surface, mapper, geometry)
        self._draw_axes(surface, geometry)
        self._draw_tick_labels(surface, mapper, geometry)
        self._draw_axis_titles(surface, geometry)

        show_cursor = False
        if grid is not None:
            self._draw_curves(surface, mapper, geometry, grid)
            show_cursor = (
                cursor is not None and cursor.hovering and geometry.contains_x(cursor.x)
            )
            if show_cursor:
                self._draw_cursor(surface, mapper, geometry, grid, labels, cursor)

        self._log_draw(grid, show_cursor)

    def readout(
        self,
        grid: SampleGrid,
        labels: Sequence[str],
        x: float,
    ) -> List[Readout]:
        """Return labelled curve values at the sample nearest ``x``."""
        result: List[Readout] = []
        for index in range(grid.num_curves):
            label = labels[index] if index < len(labels) else ""
            if not label:
                continue
            value = grid.value_at(index, x)
            if value is None or not math.isfinite(value):
                continue
            result.append(Readout(curve=index, label=label, value=value))
        return result

    # SECTION: chrome [id: chrome]
    # =========================================================================

    def _draw_grid(self, surface: DrawingSurface, mapper: RangeMapper, geometry: PlotGeometry) -> None:
        color = self._config.colors["grid"]
        divisions_x = int(mapper.config.tick_divisions_x)
        for i in range(divisions_x + 1):
            px = geometry.left + (i / divisions_x) * geometry.plot_width
            surface.stroke_path([(px, geometry.top), (px, geometry.bottom)], color=color, width=GRID_LINE_WIDTH)
        divisions_y = int(self._config.grid_divisions_y)
        for i in range(divisions_y + 1):
            py = geometry.top + (i / divisions_y) * geometry.plot_height
            surface.stroke_path([(geometry.left, py), (geometry.right, py)], color=color, width=GRID_LINE_WIDTH)

    def _draw_zero_line(self, surface: DrawingSurface, mapper: RangeMapper, geometry: PlotGeometry) -> None:
        c = mapper.config
        if not c.y_min < 0.0 < c.y_max:
            return
        _, py = mapper.plot_to_pixel(0.0, mapper.range_to_plot(0.0), geometry)
        surface.stroke_path(
            [(geometry.left, py), (geometry.right, py)],
            color=self._config.colors["zero"],
            width=1.5,
        )

    def _draw_axes(self, surface: DrawingSurface, geometry: PlotGeometry) -> None:
        color = self._config.colors["axis"]
        surface.stroke_path([(geometry.left, geometry.bottom), (geometry.right, geometry.bottom)], color=color, width=AXIS_LINE_WIDTH)
        surface.stroke_path([(geometry.left, geometry.top), (geometry.left, geometry.bottom)], color=color, width=AXIS_LINE_WIDTH)

    def _draw_tick_labels(self, surface: DrawingSurface, mapper: RangeMapper, geometry: PlotGeometry) -> None:
        color = self._config.colors["tick"]
        size = self._config.tick_font_size
        for value, text in mapper.x_ticks():
            px, _ = mapper.plot_to_pixel(mapper.domain_to_plot(value), 0.0, geometry)
            surface.fill_text(text, px, geometry.bottom + 20, color=color, font_size=size, align="center")
        for value, text in mapper.y_ticks(self._config.grid_divisions_y):
            _, py = mapper.plot_to_pixel(0.0, mapper.range_to_plot(value), geometry)
            surface.fill_text(text, geometry.left - 10, py + 4, color=color, font_size=size, align="right")

    def _draw_axis_titles(self, surface: DrawingSurface, geometry: PlotGeometry) -> None:
        color = self._config.colors["title"]
        size = self._config.title_font_size
        surface.fill_text(X_AXIS_TITLE, geometry.width / 2, geometry.height - 5, color=color, font_size=size, align="center")
        surface.fill_text(Y_AXIS_TITLE, 15, geometry.height / 2, color=color, font_size=size, align="center", rotation=-90.0)

    # SECTION: curves [id: curves]
    # =========================================================================

    def _curve_segments(
        self, mapper: RangeMapper, geometry: PlotGeometry, grid: SampleGrid, index: int
    ) -> List[List[Point]]:
        segments: List[List[Point]] = []
        current: List[Point] = []
        for i in range(len(grid.xs)):
            if not grid.present[i, index]:
                continue
            y = float(grid.values[i, index])
            if not math.isfinite(y):
                if current:
                    segments.append(current)
                current = []
                continue
            current.append(mapper.to_pixel(float(grid.xs[i]), y, geometry))
        if current:
            segments.append(current)
        return segments

    def _endpoint(
        self, mapper: RangeMapper, geometry: PlotGeometry, grid: SampleGrid, index: int, sample: int
    ) -> Optional[Point]:
        if not grid.present[sample, index]:
            return None
        y = float(grid.values[sample, index])
        if not math.isfinite(y):
            return None
        return mapper.to_pixel(float(grid.xs[sample]), y, geometry)

    def _draw_curves(self, surface: DrawingSurface, mapper: RangeMapper, geometry: PlotGeometry, grid: SampleGrid) -> None:
        cfg = self._config
        for index in range(grid.num_curves):
            color = cfg.curve_color(index)
            for segment in self._curve_segments(mapper, geometry, grid, index):
                if len(segment) >= 2:
                    surface.stroke_path(segment, color=color, width=cfg.curve_width)
            for sample in (0, grid.sample_count):
                point = self._endpoint(mapper, geometry, grid, index, sample)
                if point is not None:
                    surface.fill_circle(point[0], point[1], cfg.marker_radius, color=color)

    # SECTION: cursor [id: cursor]
    # =========================================================================

    def _draw_cursor(
        self,
        surface: DrawingSurface,
        mapper: RangeMapper,
        geometry: PlotGeometry,
        grid: SampleGrid,
        labels: Sequence[str],
        cursor: CursorState,
    ) -> None:
        cfg = self._config
        surface.stroke_path(
            [(cursor.x, geometry.top), (cursor.x, geometry.bottom)],
            color=cfg.colors["cursor"],
            width=1.0,
            dash=cfg.cursor_dash,
        )

        x_value = mapper.pixel_to_domain(cursor.x, geometry)
        for item in self.readout(grid, labels, x_value):
            color = cfg.curve_color(item.curve)
            _, dot_y = mapper.plot_to_pixel(0.0, mapper.range_to_plot(item.value), geometry)
            surface.fill_circle(cursor.x, dot_y, cfg.marker_radius, color=color)

            text = f"{item.label}: {item.value:.3f}"
            text_width = surface.measure_text_width(text, font_size=cfg.badge_font_size)
            label_x, label_y = self._badge_origin(cursor.x, dot_y, text_width, geometry)
            surface.fill_rect(
                label_x - 2, label_y - 12, text_width + 4, _BADGE_HEIGHT, color=cfg.colors["badge"]
            )
            surface.fill_text(text, label_x, label_y, color=color, font_size=cfg.badge_font_size, align="left")

    @staticmethod
    def _badge_origin(
        cursor_x: float, dot_y: float, text_width: float, geometry: PlotGeometry
    ) -> Tuple[float, float]:
        """Place the badge right of the cursor, or left of it near the right edge."""
        label_x = cursor_x + _BADGE_OFFSET
        if label_x + text_width + 2 > geometry.right:
            label_x = cursor_x - _BADGE_OFFSET - text_width
        return label_x, dot_y + 4

    def _log_draw(self, grid: Optional[SampleGrid], show_cursor: bool) -> None:
        # Simple rate-limited logging implementation
        now = time.monotonic()
        if logger.isEnabledFor(logging.INFO) and (now - self._info_log_t) > 1.0:
            self._info_log_t = now
            curves = grid.num_curves if grid is not None else 0
            logger.info(f"draw curves={curves} cursor={show_cursor}")
        if logger.isEnabledFor(logging.DEBUG) and (now - self._debug_log_t) > 0.5:
            self._debug_log_t = now
            if grid is not None:
                logger.debug(f"draw samples={len(grid.xs)} domain={grid.domain}")


__all__ = ["CursorState", "Readout", "Renderer"]
