"""Defaults shared by the sampling, mapping and rendering layers.

Module-level constants are the single source of defaults. ``VisualizerConfig``
bundles them for a session so a notebook can run several visualizers with
different canvases or palettes side by side.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Tuple

# Sampling
SAMPLE_COUNT = 500

# Canvas geometry (pixels)
CANVAS_WIDTH = 800
CANVAS_HEIGHT = 600
PADDING = 40
GRID_DIVISIONS_Y = 10

# Palette cycled across curves
CURVE_PALETTE: Tuple[str, ...] = ("#00ff88", "#ff4444", "#ffdd44", "#4488ff")

THEME_COLORS = {
    "background": "#0a0a0a",
    "grid": "#2a2a2a",
    "zero": "#5a5a5a",
    "axis": "#4a4a4a",
    "tick": "#888888",
    "title": "#aaaaaa",
    "cursor": "#666666",
    "badge": "rgba(10, 10, 10, 0.9)",
}

# Strokes, markers and text
GRID_LINE_WIDTH = 1.0
AXIS_LINE_WIDTH = 2.0
CURVE_LINE_WIDTH = 2.5
MARKER_RADIUS = 4.0
CURSOR_DASH: Tuple[float, ...] = (5.0, 5.0)
FONT_FAMILY = "monospace"
TICK_FONT_SIZE = 12
TITLE_FONT_SIZE = 14
BADGE_FONT_SIZE = 13
X_AXIS_TITLE = "Input (x)"
Y_AXIS_TITLE = "Output (y)"

# Snippets
SNIPPET_FILENAME = "<snippet>"
DEFAULT_SOURCE = "curve = 2.0  # range(0.1, 5.0)\n\nreturn x ** curve\n"


@dataclass(frozen=True)
class VisualizerConfig:
    """Rendering and sampling settings for one visualizer.

    Parameters
    ----------
    sample_count : int
        Number of intervals ``S``; the sampler evaluates ``S + 1`` points.
    width, height : int
        Default canvas size used when no surface is attached.
    padding : int
        Margin in pixels between the canvas edge and the plot area.
    palette : tuple[str, ...]
        Curve colours, cycled when there are more curves than colours.
    colors : Mapping[str, str]
        Theme colours keyed like :data:`THEME_COLORS`.
    """

    sample_count: int = SAMPLE_COUNT
    width: int = CANVAS_WIDTH
    height: int = CANVAS_HEIGHT
    padding: int = PADDING
    grid_divisions_y: int = GRID_DIVISIONS_Y
    palette: Tuple[str, ...] = CURVE_PALETTE
    colors: Mapping[str, str] = field(default_factory=lambda: dict(THEME_COLORS))
    curve_width: float = CURVE_LINE_WIDTH
    marker_radius: float = MARKER_RADIUS
    cursor_dash: Tuple[float, ...] = CURSOR_DASH
    tick_font_size: int = TICK_FONT_SIZE
    title_font_size: int = TITLE_FONT_SIZE
    badge_font_size: int = BADGE_FONT_SIZE

    def __post_init__(self) -> None:
        if int(self.sample_count) < 1:
            raise ValueError(f"sample_count must be >= 1, got {self.sample_count!r}")
        if self.width <= 2 * self.padding or self.height <= 2 * self.padding:
            raise ValueError(
                f"Canvas {self.width}x{self.height} is too small for padding={self.padding}."
            )
        if not self.palette:
            raise ValueError("palette must contain at least one colour")
        missing = set(THEME_COLORS) - set(self.colors)
        if missing:
            raise ValueError("colors is missing theme keys: " + ", ".join(sorted(missing)))

    def curve_color(self, index: int) -> str:
        """Return the palette colour for curve ``index`` (cycling)."""
        return self.palette[index % len(self.palette)]


DEFAULT_CONFIG = VisualizerConfig()
