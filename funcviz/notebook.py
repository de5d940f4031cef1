"""Jupyter front end: a live snippet editor with a plot and generated controls.

Purpose
-------
``FunctionVisualizer`` wires a :class:`~funcviz.session.VisualizerSession` to
ipywidgets. Typing in the editor re-parses the snippet; sliders and checkboxes
are generated from the discovered parameters; the plot is a Plotly
``FigureWidget`` drawn through :class:`~funcviz.plotly_surface.PlotlySurface`.

Architecture notes
------------------
- The session drives everything. Widgets only forward events into it and a
  session hook pushes the outcome (error line, control values) back.
- Controls are rebuilt only when the parameter structure changes (names,
  kinds, bounds, scale). While it is unchanged, existing controls are
  refreshed in place, so a slider is never replaced mid-drag.
- Hover comes from an invisible trace with one point per pixel column of the
  plot area; ``hovermode="x"`` makes it fire anywhere over the plot.

Examples
--------
>>> from funcviz.notebook import FunctionVisualizer  # doctest: +SKIP
>>> viz = FunctionVisualizer("a = 1.0  # range(0, 2)\\nreturn a * x")  # doctest: +SKIP
>>> viz.show()  # doctest: +SKIP
"""

from __future__ import annotations

import html
import logging
from typing import Any, Optional, Tuple, Union

import ipywidgets as widgets
import numpy as np
import plotly.graph_objects as go
import traitlets
from IPython.display import display

from .annotations import ParameterKind, ParameterSpec
from .config import DEFAULT_CONFIG, DEFAULT_SOURCE, VisualizerConfig
from .plotly_surface import PlotlySurface
from .ranges import DEFAULT_RANGE, RANGE_PRESETS, PlotGeometry, RangeConfig
from .session import VisualizerSession

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

_SLIDER_STEP = 0.001
_HOVER_TRACE_NAME = "__hover__"

ShapeSignature = Tuple[Tuple[Any, ...], ...]


def _format_value(spec: ParameterSpec) -> str:
    if spec.is_integer and float(spec.value).is_integer():
        return str(int(spec.value))
    return f"{float(spec.value):.4g}"


def shape_signature(specs: Tuple[ParameterSpec, ...]) -> ShapeSignature:
    """Key that changes exactly when the set of controls must be rebuilt."""
    return tuple((s.name, s.kind, s.min, s.max, s.scale, s.is_integer) for s in specs)


# SECTION: controls [id: controls]
# =============================================================================


class ParameterSlider(widgets.HBox):
    """
    Slider for one range parameter.

    The slider itself always spans ``[0, 1]``; the session maps the position to
    the parameter's value (linear, log or integer). The text field shows the
    current value and accepts typed expressions such as ``pi/4``, committed on
    Enter. Invalid input reverts to the previous value.
    """

    position = traitlets.Float(0.0)

    def __init__(self, session: VisualizerSession, name: str, **kwargs: Any) -> None:
        self._session = session
        self._name = name
        self._syncing = False
        spec = session.store[name]

        step = _SLIDER_STEP
        if spec.is_integer and spec.min is not None and spec.max is not None:
            step = 1.0 / (spec.max - spec.min)

        self.slider = widgets.FloatSlider(
            value=session.store.position(name),
            min=0.0,
            max=1.0,
            step=step,
            description="",
            continuous_update=True,
            readout=False,
            layout=widgets.Layout(width="50%"),
        )
        self.description_label = widgets.Label(value=name, layout=widgets.Layout(width="90px"))
        self.number = widgets.Text(
            value=_format_value(spec),
            continuous_update=False,
            layout=widgets.Layout(width="70px"),
        )
        self.btn_reset = widgets.Button(
            description="↺",
            tooltip="Reset",
            layout=widgets.Layout(width="22px", height="22px", padding="0px"),
        )
        super().__init__(
            [self.description_label, self.slider, self.number, self.btn_reset],
            layout=widgets.Layout(align_items="center", gap="4px"),
            **kwargs,
        )

        self.position = self.slider.value
        traitlets.link((self, "position"), (self.slider, "value"))
        self.slider.observe(self._commit_position, names="value")
        self.number.observe(self._commit_text_value, names="value")
        self.btn_reset.on_click(self._reset)

    @property
    def name(self) -> str:
        return self._name

    def refresh(self) -> None:
        """Pull the current value from the session without echoing it back."""
        spec = self._session.store[self._name]
        self._syncing = True
        try:
            self.slider.value = self._session.store.position(self._name)
            self.number.value = _format_value(spec)
        finally:
            self._syncing = False

    def _commit_position(self, change) -> None:
        if self._syncing:
            return
        self._session.set_parameter_position(self._name, change.new)

    def _commit_text_value(self, change) -> None:
        if self._syncing:
            return
        raw = (change.new or "").strip()
        try:
            self._session.set_parameter(self._name, raw)
        except (ValueError, TypeError) as exc:
            logger.debug("rejected %r for %s: %s", raw, self._name, exc)
        self.refresh()

    def _reset(self, _) -> None:
        self._session.reset_parameter(self._name)


class ParameterCheckbox(widgets.Checkbox):
    """Checkbox for one boolean parameter."""

    def __init__(self, session: VisualizerSession, name: str, **kwargs: Any) -> None:
        self._session = session
        self._name = name
        self._syncing = False
        super().__init__(
            value=bool(session.store[name].value),
            description=name,
            indent=False,
            **kwargs,
        )
        self.observe(self._commit_value, names="value")

    @property
    def name(self) -> str:
        return self._name

    def refresh(self) -> None:
        self._syncing = True
        try:
            self.value = bool(self._session.store[self._name].value)
        finally:
            self._syncing = False

    def _commit_value(self, change) -> None:
        if self._syncing:
            return
        self._session.set_parameter(self._name, bool(change.new))


def make_control(session: VisualizerSession, spec: ParameterSpec) -> Union[ParameterSlider, ParameterCheckbox]:
    if spec.kind is ParameterKind.CHECKBOX:
        return ParameterCheckbox(session, spec.name)
    return ParameterSlider(session, spec.name)


# SECTION: FunctionVisualizer [id: FunctionVisualizer]
# =============================================================================


class FunctionVisualizer(widgets.VBox):
    """
    Notebook widget for editing a snippet and watching its curves live.

    Parameters
    ----------
    source : str, optional
        Initial snippet text.
    range_name : str or RangeConfig, optional
        Initial range preset (a key of :data:`~funcviz.ranges.RANGE_PRESETS`).
    config : VisualizerConfig, optional
        Canvas size, palette and sampling settings.
    """

    def __init__(
        self,
        source: str = DEFAULT_SOURCE,
        *,
        range_name: Union[str, RangeConfig] = DEFAULT_RANGE,
        config: VisualizerConfig = DEFAULT_CONFIG,
        **kwargs: Any,
    ) -> None:
        self._config = config
        self._signature: Optional[ShapeSignature] = None
        self._controls: dict = {}

        self.editor = widgets.Textarea(
            value=source,
            continuous_update=True,
            layout=widgets.Layout(width="100%", height="220px"),
        )
        range_options = [(preset.display_label, key) for key, preset in RANGE_PRESETS.items()]
        initial_range = range_name if isinstance(range_name, str) else None
        self.range_select = widgets.Dropdown(
            options=range_options,
            value=initial_range if initial_range in RANGE_PRESETS else None,
            description="Range:",
        )
        self.params_box = widgets.VBox([])
        self.error_line = widgets.HTML(value="")

        self.figure_widget = go.FigureWidget()
        self.surface = PlotlySurface(config.width, config.height, figure=self.figure_widget)
        self._add_hover_trace()

        self.session = VisualizerSession(source, range_name=range_name, config=config)
        self.session.add_hook(self._on_pass, hook_id="notebook")

        sidebar = widgets.VBox(
            [self.editor, self.range_select, self.params_box, self.error_line],
            layout=widgets.Layout(width="420px", gap="6px"),
        )
        super().__init__([widgets.HBox([sidebar, self.figure_widget])], **kwargs)

        self.editor.observe(self._on_source_change, names="value")
        self.range_select.observe(self._on_range_change, names="value")

        self.session.surface = self.surface

    def show(self) -> None:
        """Display the visualizer in the current notebook cell."""
        display(self)

    @property
    def controls(self) -> dict:
        """Current parameter controls by name."""
        return dict(self._controls)

    # --- widget events --------------------------------------------------------

    def _on_source_change(self, change) -> None:
        self.session.set_source(change.new)

    def _on_range_change(self, change) -> None:
        if change.new is not None:
            self.session.select_range(change.new)

    def _on_hover(self, trace, points, state) -> None:
        if not points.xs:
            return
        self.session.hover(points.xs[0], points.ys[0])

    def _on_unhover(self, trace, points, state) -> None:
        self.session.leave()

    # --- session outcome ------------------------------------------------------

    def _on_pass(self, session: VisualizerSession) -> None:
        error = session.error
        self.error_line.value = (
            "" if error is None else f'<span style="color:#ff4444">{html.escape(error)}</span>'
        )
        self._sync_controls(session.parameters)

    def _sync_controls(self, specs: Tuple[ParameterSpec, ...]) -> None:
        signature = shape_signature(specs)
        if signature == self._signature:
            for control in self._controls.values():
                control.refresh()
            return
        logger.debug("rebuilding %d parameter controls", len(specs))
        self._controls = {spec.name: make_control(self.session, spec) for spec in specs}
        self._signature = signature
        self.params_box.children = tuple(self._controls.values())

    def _add_hover_trace(self) -> None:
        geometry = PlotGeometry(self._config.width, self._config.height, self._config.padding)
        xs = np.arange(geometry.left, geometry.right + 1.0, 1.0)
        ys = np.full_like(xs, geometry.top + geometry.plot_height / 2.0)
        self.figure_widget.add_trace(
            go.Scatter(
                x=xs,
                y=ys,
                name=_HOVER_TRACE_NAME,
                mode="markers",
                marker=dict(opacity=0.0, size=1),
                hoverinfo="none",
                showlegend=False,
            )
        )
        hover_trace = self.figure_widget.data[-1]
        hover_trace.on_hover(self._on_hover)
        hover_trace.on_unhover(self._on_unhover)


__all__ = [
    "FunctionVisualizer",
    "ParameterCheckbox",
    "ParameterSlider",
    "make_control",
    "shape_signature",
]
