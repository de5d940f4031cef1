"""Abstract drawing surface used by :class:`funcviz.renderer.Renderer`.

The renderer only needs six capabilities: clear, stroke a polyline, fill a
circle, fill a rectangle, fill text and measure text. Any backend implementing
:class:`DrawingSurface` can host the plot; :class:`RecordingSurface` keeps the
calls as data for tests and inspection, and
:class:`funcviz.plotly_surface.PlotlySurface` draws into a Plotly figure.

Coordinates are pixels with the origin in the top-left corner and y growing
downwards. Text is anchored at its baseline; ``rotation`` is in degrees,
clockwise (``-90`` reads bottom-to-top).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

Point = Tuple[float, float]

# Average advance of a monospace glyph relative to the font size.
MONOSPACE_ADVANCE = 0.6


@runtime_checkable
class DrawingSurface(Protocol):
    @property
    def width(self) -> int: ...

    @property
    def height(self) -> int: ...

    def clear(self, color: str) -> None: ...

    def stroke_path(
        self,
        points: Sequence[Point],
        *,
        color: str,
        width: float = 1.0,
        dash: Optional[Sequence[float]] = None,
    ) -> None: ...

    def fill_circle(self, cx: float, cy: float, radius: float, *, color: str) -> None: ...

    def fill_rect(self, x: float, y: float, w: float, h: float, *, color: str) -> None: ...

    def fill_text(
        self,
        text: str,
        x: float,
        y: float,
        *,
        color: str,
        font_size: float,
        align: str = "left",
        rotation: float = 0.0,
    ) -> None: ...

    def measure_text_width(self, text: str, *, font_size: float) -> float: ...


def monospace_text_width(text: str, font_size: float) -> float:
    """Estimate the rendered width of ``text`` in a monospace font."""
    return len(text) * font_size * MONOSPACE_ADVANCE


@dataclass(frozen=True)
class DrawOp:
    """One recorded drawing call: ``kind`` is the method name, ``params`` its arguments."""

    kind: str
    params: Dict[str, Any] = field(default_factory=dict)


class RecordingSurface:
    """A surface that records every call instead of drawing.

    ``clear`` starts a new frame, so ``ops`` always holds the last full redraw.
    """

    def __init__(self, width: int = 800, height: int = 600) -> None:
        self._width = int(width)
        self._height = int(height)
        self.ops: List[DrawOp] = []

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def clear(self, color: str) -> None:
        self.ops = [DrawOp("clear", {"color": color})]

    def stroke_path(
        self,
        points: Sequence[Point],
        *,
        color: str,
        width: float = 1.0,
        dash: Optional[Sequence[float]] = None,
    ) -> None:
        self.ops.append(
            DrawOp(
                "stroke_path",
                {
                    "points": [(float(x), float(y)) for x, y in points],
                    "color": color,
                    "width": width,
                    "dash": tuple(dash) if dash else None,
                },
            )
        )

    def fill_circle(self, cx: float, cy: float, radius: float, *, color: str) -> None:
        self.ops.append(DrawOp("fill_circle", {"cx": cx, "cy": cy, "radius": radius, "color": color}))

    def fill_rect(self, x: float, y: float, w: float, h: float, *, color: str) -> None:
        self.ops.append(DrawOp("fill_rect", {"x": x, "y": y, "w": w, "h": h, "color": color}))

    def fill_text(
        self,
        text: str,
        x: float,
        y: float,
        *,
        color: str,
        font_size: float,
        align: str = "left",
        rotation: float = 0.0,
    ) -> None:
        self.ops.append(
            DrawOp(
                "fill_text",
                {
                    "text": text,
                    "x": x,
                    "y": y,
                    "color": color,
                    "font_size": font_size,
                    "align": align,
                    "rotation": rotation,
                },
            )
        )

    def measure_text_width(self, text: str, *, font_size: float) -> float:
        return monospace_text_width(text, font_size)

    def of_kind(self, kind: str) -> List[DrawOp]:
        """Return the recorded ops of one kind, in drawing order."""
        return [op for op in self.ops if op.kind == kind]

    def texts(self) -> List[str]:
        return [op.params["text"] for op in self.of_kind("fill_text")]


__all__ = ["DrawOp", "DrawingSurface", "Point", "RecordingSurface", "monospace_text_width"]
