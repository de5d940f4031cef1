"""Domain/range presets and the coordinate transforms of the plot.

Purpose
-------
This module defines ``RangeConfig`` (one named domain/range preset),
``PlotGeometry`` (canvas size and padding) and ``RangeMapper``, which converts
between snippet units, the normalized ``[0, 1]`` plot square and pixels.

Notes
-----
``RangeMapper`` holds no state beyond the active config. Vertical mapping is
not clamped: outputs beyond ``[y_min, y_max]`` map outside the plot band.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Tuple, Union

import sympy as sp

from .config import GRID_DIVISIONS_Y

_PI_TOLERANCE = 1e-9
_MAX_PI_DENOMINATOR = 64
_MAX_TICK_DECIMALS = 6


@dataclass(frozen=True)
class RangeConfig:
    """Immutable domain/range preset.

    Parameters
    ----------
    x_min, x_max : float
        Sampled input interval.
    y_min, y_max : float
        Output interval mapped to the plot's height.
    tick_divisions_x : int
        Number of grid divisions along x.
    display_label : str
        Human-readable name shown in selectors.
    """

    x_min: float
    x_max: float
    y_min: float
    y_max: float
    tick_divisions_x: int
    display_label: str

    def __post_init__(self) -> None:
        if not self.x_min < self.x_max:
            raise ValueError(f"x_min must be < x_max, got ({self.x_min}, {self.x_max})")
        if not self.y_min < self.y_max:
            raise ValueError(f"y_min must be < y_max, got ({self.y_min}, {self.y_max})")
        if int(self.tick_divisions_x) < 1:
            raise ValueError(f"tick_divisions_x must be >= 1, got {self.tick_divisions_x}")

    @property
    def domain(self) -> Tuple[float, float]:
        return self.x_min, self.x_max

    @property
    def is_angular(self) -> bool:
        """Whether both domain bounds are integer multiples of pi."""
        return _is_pi_multiple(self.x_min) and _is_pi_multiple(self.x_max)


def _is_pi_multiple(value: float) -> bool:
    ratio = value / math.pi
    return abs(ratio - round(ratio)) < _PI_TOLERANCE


RANGE_PRESETS: Dict[str, RangeConfig] = {
    "norm": RangeConfig(0.0, 1.0, 0.0, 1.0, 10, "0 → 1"),
    "bipolar": RangeConfig(-1.0, 1.0, -1.0, 1.0, 10, "-1 → 1"),
    "angle": RangeConfig(0.0, 2 * math.pi, -1.5, 1.5, 8, "0 → 2π"),
    "angle_sym": RangeConfig(-math.pi, math.pi, -1.5, 1.5, 8, "-π → π"),
    "wide": RangeConfig(-10.0, 10.0, -10.0, 10.0, 10, "-10 → 10"),
}
DEFAULT_RANGE = "norm"


@dataclass(frozen=True)
class PlotGeometry:
    """Pixel geometry of a canvas with a uniform padding around the plot."""

    width: float
    height: float
    padding: float

    def __post_init__(self) -> None:
        if self.width <= 2 * self.padding or self.height <= 2 * self.padding:
            raise ValueError(
                f"Canvas {self.width}x{self.height} is too small for padding={self.padding}."
            )

    @property
    def left(self) -> float:
        return self.padding

    @property
    def right(self) -> float:
        return self.width - self.padding

    @property
    def top(self) -> float:
        return self.padding

    @property
    def bottom(self) -> float:
        return self.height - self.padding

    @property
    def plot_width(self) -> float:
        return self.width - 2 * self.padding

    @property
    def plot_height(self) -> float:
        return self.height - 2 * self.padding

    def contains_x(self, px: float) -> bool:
        return self.left <= px <= self.right

    def clamp_x(self, px: float) -> float:
        return min(self.right, max(self.left, px))


# SECTION: tick formatting [id: ticks]
# =============================================================================


def format_pi_multiple(value: float) -> str:
    """Format ``value`` as a rational multiple of pi, e.g. ``3π/4`` or ``-π``."""
    ratio = sp.Rational(value / math.pi).limit_denominator(_MAX_PI_DENOMINATOR)
    p, q = int(ratio.p), int(ratio.q)
    if p == 0:
        return "0"
    sign = "-" if p < 0 else ""
    numerator = "π" if abs(p) == 1 else f"{abs(p)}π"
    if q == 1:
        return f"{sign}{numerator}"
    return f"{sign}{numerator}/{q}"


def _decimals_for(values: List[float]) -> int:
    decimals = 1
    while decimals < _MAX_TICK_DECIMALS and any(
        abs(round(v, decimals) - v) > 1e-9 for v in values
    ):
        decimals += 1
    return decimals


def format_ticks(values: List[float], *, angular: bool = False) -> List[str]:
    """Format tick values: multiples of pi when ``angular``, else fixed-point."""
    if angular:
        return [format_pi_multiple(v) for v in values]
    decimals = _decimals_for(values)
    labels = []
    for v in values:
        text = f"{v:.{decimals}f}"
        if float(text) == 0.0:
            text = f"{0.0:.{decimals}f}"
        labels.append(text)
    return labels


def _tick_values(low: float, high: float, divisions: int) -> List[float]:
    return [low + (i / divisions) * (high - low) for i in range(divisions + 1)]


# SECTION: RangeMapper [id: RangeMapper]
# =============================================================================


class RangeMapper:
    """Coordinate transforms for the active :class:`RangeConfig`.

    Examples
    --------
    >>> mapper = RangeMapper("norm")
    >>> mapper.domain_to_plot(0.25)
    0.25
    >>> mapper.to_pixel(0.0, 0.0, PlotGeometry(800, 600, 40))
    (40.0, 560.0)
    """

    def __init__(self, config: Union[str, RangeConfig] = DEFAULT_RANGE) -> None:
        self._config = _resolve(config)

    @property
    def config(self) -> RangeConfig:
        return self._config

    def select(self, config: Union[str, RangeConfig]) -> RangeConfig:
        """Activate a preset by name or an explicit config."""
        self._config = _resolve(config)
        return self._config

    def domain_to_plot(self, x: float) -> float:
        c = self._config
        return (x - c.x_min) / (c.x_max - c.x_min)

    def plot_to_domain(self, t: float) -> float:
        c = self._config
        return c.x_min + t * (c.x_max - c.x_min)

    def range_to_plot(self, y: float) -> float:
        c = self._config
        return (y - c.y_min) / (c.y_max - c.y_min)

    @staticmethod
    def plot_to_pixel(t: float, v: float, geometry: PlotGeometry) -> Tuple[float, float]:
        px = geometry.padding + t * geometry.plot_width
        py = geometry.height - geometry.padding - v * geometry.plot_height
        return px, py

    @staticmethod
    def pixel_to_plot_x(px: float, geometry: PlotGeometry) -> float:
        return (px - geometry.padding) / geometry.plot_width

    def to_pixel(self, x: float, y: float, geometry: PlotGeometry) -> Tuple[float, float]:
        """Map a domain/range point straight to pixels."""
        return self.plot_to_pixel(self.domain_to_plot(x), self.range_to_plot(y), geometry)

    def pixel_to_domain(self, px: float, geometry: PlotGeometry) -> float:
        return self.plot_to_domain(self.pixel_to_plot_x(px, geometry))

    def x_ticks(self) -> List[Tuple[float, str]]:
        """Return ``(value, label)`` pairs for the x grid."""
        c = self._config
        values = _tick_values(c.x_min, c.x_max, int(c.tick_divisions_x))
        return list(zip(values, format_ticks(values, angular=c.is_angular)))

    def y_ticks(self, divisions: int = GRID_DIVISIONS_Y) -> List[Tuple[float, str]]:
        """Return ``(value, label)`` pairs for the y grid."""
        c = self._config
        values = _tick_values(c.y_min, c.y_max, int(divisions))
        return list(zip(values, format_ticks(values)))


def _resolve(config: Union[str, RangeConfig]) -> RangeConfig:
    if isinstance(config, RangeConfig):
        return config
    try:
        return RANGE_PRESETS[config]
    except KeyError:
        known = ", ".join(RANGE_PRESETS)
        raise KeyError(f"Unknown range preset {config!r}; choose one of: {known}.") from None


__all__ = [
    "DEFAULT_RANGE",
    "PlotGeometry",
    "RANGE_PRESETS",
    "RangeConfig",
    "RangeMapper",
    "format_pi_multiple",
    "format_ticks",
]
