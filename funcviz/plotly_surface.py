"""Plotly backend for :class:`~funcviz.surface.DrawingSurface`.

``PlotlySurface`` turns draw calls into Plotly layout shapes and annotations.
The figure is sized to the surface with zero margins and hidden axes spanning
``[0, width]`` by ``[height, 0]``, so one data unit is one pixel and y grows
downwards exactly like the renderer expects.

Calls are buffered; :meth:`PlotlySurface.flush` pushes the whole frame in one
layout update, which keeps a live ``FigureWidget`` to a single round-trip per
redraw.

Examples
--------
>>> from funcviz.plotly_surface import PlotlySurface
>>> surface = PlotlySurface(400, 300)
>>> surface.clear("#000000")
>>> surface.fill_rect(10, 10, 20, 20, color="red")
>>> surface.flush().layout.shapes[0].type
'rect'
"""

from __future__ import annotations

import html
from typing import Any, Dict, List, Optional, Sequence, Union

import plotly.graph_objects as go

from .config import FONT_FAMILY
from .surface import Point, monospace_text_width

FigureLike = Union[go.Figure, go.FigureWidget]

_XANCHOR = {"left": "left", "center": "center", "right": "right"}


class PlotlySurface:
    """Drawing surface backed by a Plotly figure.

    Parameters
    ----------
    width, height : int
        Surface size in pixels.
    figure : plotly.graph_objects.Figure or FigureWidget, optional
        Figure to draw into; a new ``go.Figure`` is created when omitted.
        Traces already on the figure are left alone.
    """

    def __init__(self, width: int = 800, height: int = 600, figure: Optional[FigureLike] = None) -> None:
        self._width = int(width)
        self._height = int(height)
        self._figure: FigureLike = figure if figure is not None else go.Figure()
        self._background = "#000000"
        self._shapes: List[Dict[str, Any]] = []
        self._annotations: List[Dict[str, Any]] = []
        self._configure_layout()

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def figure(self) -> FigureLike:
        return self._figure

    def _configure_layout(self) -> None:
        self._figure.update_layout(
            width=self._width,
            height=self._height,
            margin=dict(l=0, r=0, t=0, b=0, pad=0),
            showlegend=False,
            dragmode=False,
            hovermode="x",
            xaxis=dict(range=[0, self._width], visible=False, fixedrange=True),
            yaxis=dict(range=[self._height, 0], visible=False, fixedrange=True),
        )

    def clear(self, color: str) -> None:
        self._background = color
        self._shapes = []
        self._annotations = []

    def stroke_path(
        self,
        points: Sequence[Point],
        *,
        color: str,
        width: float = 1.0,
        dash: Optional[Sequence[float]] = None,
    ) -> None:
        if len(points) < 2:
            return
        line = dict(color=color, width=width, dash="dash" if dash else "solid")
        if len(points) == 2:
            (x0, y0), (x1, y1) = points
            self._shapes.append(dict(type="line", xref="x", yref="y", x0=x0, y0=y0, x1=x1, y1=y1, line=line))
            return
        path = "M " + " L ".join(f"{x:.2f},{y:.2f}" for x, y in points)
        self._shapes.append(dict(type="path", xref="x", yref="y", path=path, line=line))

    def fill_circle(self, cx: float, cy: float, radius: float, *, color: str) -> None:
        self._shapes.append(
            dict(
                type="circle",
                xref="x",
                yref="y",
                x0=cx - radius,
                y0=cy - radius,
                x1=cx + radius,
                y1=cy + radius,
                fillcolor=color,
                line=dict(width=0),
            )
        )

    def fill_rect(self, x: float, y: float, w: float, h: float, *, color: str) -> None:
        self._shapes.append(
            dict(type="rect", xref="x", yref="y", x0=x, y0=y, x1=x + w, y1=y + h, fillcolor=color, line=dict(width=0))
        )

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
        self._annotations.append(
            dict(
                x=x,
                y=y,
                xref="x",
                yref="y",
                text=html.escape(text),
                showarrow=False,
                xanchor=_XANCHOR.get(align, "left"),
                yanchor="middle" if rotation else "bottom",
                textangle=rotation,
                font=dict(color=color, size=font_size, family=FONT_FAMILY),
            )
        )

    def measure_text_width(self, text: str, *, font_size: float) -> float:
        return monospace_text_width(text, font_size)

    def flush(self) -> FigureLike:
        """Push the buffered frame to the figure and return it."""
        with self._figure.batch_update():
            self._figure.update_layout(
                paper_bgcolor=self._background,
                plot_bgcolor=self._background,
                shapes=list(self._shapes),
                annotations=list(self._annotations),
            )
        return self._figure


__all__ = ["PlotlySurface"]
