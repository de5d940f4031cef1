from __future__ import annotations

import plotly.graph_objects as go
import pytest

from funcviz.plotly_surface import PlotlySurface
from funcviz.session import VisualizerSession
from funcviz.surface import DrawingSurface


def test_surface_satisfies_protocol_and_sizes_figure() -> None:
    surface = PlotlySurface(400, 300)
    fig = surface.figure

    assert isinstance(surface, DrawingSurface)
    assert (fig.layout.width, fig.layout.height) == (400, 300)
    assert tuple(fig.layout.xaxis.range) == (0, 400)
    assert tuple(fig.layout.yaxis.range) == (300, 0)
    assert fig.layout.xaxis.visible is False


def test_draw_calls_become_shapes_and_annotations() -> None:
    surface = PlotlySurface(400, 300)
    surface.clear("#101010")
    surface.stroke_path([(0, 0), (10, 10)], color="red", width=2.0)
    surface.stroke_path([(0, 0), (5, 5), (10, 0)], color="blue", dash=(5, 5))
    surface.fill_circle(50, 50, 4, color="green")
    surface.fill_rect(10, 20, 30, 40, color="black")
    surface.fill_text("a < b", 100, 100, color="white", font_size=12, align="right")

    fig = surface.flush()
    shapes = fig.layout.shapes

    assert [s.type for s in shapes] == ["line", "path", "circle", "rect"]
    assert shapes[0].line.width == 2.0
    assert shapes[1].path == "M 0.00,0.00 L 5.00,5.00 L 10.00,0.00"
    assert shapes[1].line.dash == "dash"
    assert (shapes[2].x0, shapes[2].x1) == (46, 54)
    assert (shapes[3].x1, shapes[3].y1) == (40, 60)

    (note,) = fig.layout.annotations
    assert note.text == "a &lt; b"
    assert note.xanchor == "right"
    assert fig.layout.paper_bgcolor == "#101010"


def test_single_point_paths_are_skipped() -> None:
    surface = PlotlySurface(400, 300)
    surface.stroke_path([(1, 1)], color="red")
    assert surface.flush().layout.shapes == ()


def test_rotated_text_is_centred_vertically() -> None:
    surface = PlotlySurface(400, 300)
    surface.fill_text("Output (y)", 15, 150, color="white", font_size=14, align="center", rotation=-90.0)
    (note,) = surface.flush().layout.annotations
    assert note.textangle == -90
    assert note.yanchor == "middle"


def test_clear_starts_a_new_frame() -> None:
    surface = PlotlySurface(400, 300)
    surface.fill_rect(0, 0, 1, 1, color="red")
    surface.flush()
    surface.clear("#000000")
    assert surface.flush().layout.shapes == ()


def test_existing_figure_keeps_its_traces() -> None:
    fig = go.Figure(go.Scatter(x=[0, 1], y=[0, 1]))
    surface = PlotlySurface(400, 300, figure=fig)
    surface.clear("#000000")
    assert surface.flush() is fig
    assert len(fig.data) == 1


def test_text_width_estimate_is_monospace() -> None:
    surface = PlotlySurface(400, 300)
    assert surface.measure_text_width("abcd", font_size=10) == pytest.approx(24.0)


def test_session_draws_into_plotly_figure() -> None:
    surface = PlotlySurface(800, 600)
    session = VisualizerSession(surface=surface)

    fig = surface.figure
    assert session.error is None
    assert any(s.type == "path" and s.line.color == "#00ff88" for s in fig.layout.shapes)
    assert {"Input (x)", "Output (y)"} <= {a.text for a in fig.layout.annotations}
