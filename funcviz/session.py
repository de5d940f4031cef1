"""Pipeline session: source edits in, frames out.

Purpose
-------
``VisualizerSession`` is the coordinator of the parse -> merge -> synthesize ->
sample -> render pipeline. Front ends push events into it (source edits,
parameter edits, range selection, pointer moves) and every event runs one
full pass before returning.

Concepts and structure
----------------------
The session owns:

- the snippet source and its derived labels,
- a :class:`~funcviz.parameters.ParameterStore`,
- a :class:`~funcviz.ranges.RangeMapper` holding the active range preset,
- the cursor state,
- the outcome of the last pass (sample grid or error message).

Important gotchas
-----------------
- Passes are synchronous and uncancellable. A snippet that never returns
  blocks the caller.
- ``CompileError`` and ``EvaluationError`` never propagate out of a pass:
  they replace :attr:`VisualizerSession.error` and suppress the curves. The
  next successful pass clears the message.
- Parameter edits never re-parse the source.

Examples
--------
>>> from funcviz.session import VisualizerSession
>>> session = VisualizerSession("k = 2.0  # range(0, 4)\\nreturn k * x")
>>> session.grid.num_curves
1
>>> session.set_parameter("k", 3)
>>> float(session.grid.values[-1, 0])
3.0
"""

from __future__ import annotations

import logging
import time
import warnings
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple, Union

from .annotations import ParameterSpec, parse_source
from .config import DEFAULT_CONFIG, DEFAULT_SOURCE, VisualizerConfig
from .errors import SnippetError
from .parameters import ParameterStore
from .ranges import DEFAULT_RANGE, PlotGeometry, RangeConfig, RangeMapper
from .renderer import CursorState, Readout, Renderer
from .sampling import SampleGrid, sample
from .surface import DrawingSurface
from .synthesis import build

# Module logger
# - Uses a NullHandler so importing this module never configures global logging.
# - Callers can enable logs via standard logging configuration.
logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

SessionHook = Callable[["VisualizerSession"], Any]


class VisualizerSession:
    """
    Live state of one function visualizer.

    Parameters
    ----------
    source : str, optional
        Initial snippet text.
    range_name : str or RangeConfig, optional
        Initial range preset.
    config : VisualizerConfig, optional
        Sampling and rendering settings.
    surface : DrawingSurface, optional
        Surface redrawn after every pass. Without one, passes still parse,
        compile and sample, so errors, parameters and read-outs stay current.
    """

    def __init__(
        self,
        source: str = DEFAULT_SOURCE,
        *,
        range_name: Union[str, RangeConfig] = DEFAULT_RANGE,
        config: VisualizerConfig = DEFAULT_CONFIG,
        surface: Optional[DrawingSurface] = None,
    ) -> None:
        self._config = config
        self._renderer = Renderer(config)
        self._mapper = RangeMapper(range_name)
        self._store = ParameterStore()
        self._surface = surface
        self._source = ""
        self._labels: Tuple[str, ...] = ()
        self._cursor: Optional[CursorState] = None
        self._grid: Optional[SampleGrid] = None
        self._error: Optional[str] = None
        self._hooks: Dict[Hashable, SessionHook] = {}
        self._hook_counter = 0
        self._pass_count = 0
        self._last_log_t = 0.0
        self.set_source(source)

    # SECTION: state [id: state]
    # =========================================================================

    @property
    def source(self) -> str:
        return self._source

    @property
    def labels(self) -> Tuple[str, ...]:
        return self._labels

    @property
    def parameters(self) -> Tuple[ParameterSpec, ...]:
        """Current parameter specs, in declaration order, for building controls."""
        return self._store.snapshot()

    @property
    def store(self) -> ParameterStore:
        return self._store

    @property
    def range_config(self) -> RangeConfig:
        return self._mapper.config

    @property
    def mapper(self) -> RangeMapper:
        return self._mapper

    @property
    def cursor(self) -> Optional[CursorState]:
        return self._cursor

    @property
    def grid(self) -> Optional[SampleGrid]:
        """Samples of the last pass, or ``None`` if it failed."""
        return self._grid

    @property
    def error(self) -> Optional[str]:
        """Message of the last failed pass, or ``None``."""
        return self._error

    @property
    def surface(self) -> Optional[DrawingSurface]:
        return self._surface

    @surface.setter
    def surface(self, surface: Optional[DrawingSurface]) -> None:
        self._surface = surface
        self.render(reason="surface")

    @property
    def geometry(self) -> PlotGeometry:
        if self._surface is not None:
            return self._renderer.geometry_for(self._surface)
        return PlotGeometry(self._config.width, self._config.height, self._config.padding)

    # SECTION: triggers [id: triggers]
    # =========================================================================

    def set_source(self, source: str) -> None:
        """Replace the snippet text, re-derive parameters and labels, and redraw."""
        self._source = str(source)
        parsed = parse_source(self._source)
        self._store.merge(parsed.parameters)
        self._labels = parsed.labels
        self.render(reason="source")

    def set_parameter(self, name: str, value: Any) -> None:
        """Set a parameter value (number, bool or expression string) and redraw."""
        self._store.set(name, value)
        self.render(reason="param_change")

    def set_parameter_position(self, name: str, position: float) -> None:
        """Set a range parameter from a normalized slider position and redraw."""
        self._store.set_position(name, position)
        self.render(reason="param_change")

    def reset_parameter(self, name: str) -> None:
        self._store.reset(name)
        self.render(reason="param_change")

    def toggle_parameter(self, name: str) -> None:
        self._store.toggle(name)
        self.render(reason="param_change")

    def select_range(self, range_name: Union[str, RangeConfig]) -> None:
        """Switch the active range preset and redraw. Parameters are untouched."""
        self._mapper.select(range_name)
        self.render(reason="range")

    def hover(self, px: float, py: float) -> None:
        """Record the pointer position over the surface and redraw."""
        self._cursor = CursorState(x=float(px), y=float(py), hovering=True)
        self.render(reason="hover")

    def leave(self) -> None:
        """Record that the pointer left the surface and redraw."""
        if self._cursor is not None:
            self._cursor = CursorState(x=self._cursor.x, y=self._cursor.y, hovering=False)
        self.render(reason="leave")

    # SECTION: pipeline [id: pipeline]
    # =========================================================================

    def render(
        self, surface: Optional[DrawingSurface] = None, *, reason: str = "manual"
    ) -> Optional[SampleGrid]:
        """Run one full pass: synthesize, sample, draw.

        Parameters
        ----------
        surface : DrawingSurface, optional
            Draw this pass onto ``surface`` instead of the session's own.
        reason : str
            Trigger name, used for logging only.

        Returns
        -------
        SampleGrid or None
            The new samples, or ``None`` when the snippet failed.
        """
        self._pass_count += 1
        try:
            fn = build(self._source, self._store.value_map())
            grid: Optional[SampleGrid] = sample(fn, self._mapper.config.domain, self._config.sample_count)
            error: Optional[str] = None
        except SnippetError as exc:
            grid = None
            error = str(exc)
            logger.debug("pass %d (%s) failed: %s", self._pass_count, reason, error)

        self._grid = grid
        self._error = error

        target = surface if surface is not None else self._surface
        if target is not None:
            self._renderer.draw(
                target,
                self._mapper,
                grid,
                self._labels,
                self._cursor,
            )
            flush = getattr(target, "flush", None)
            if callable(flush):
                flush()

        self._log_pass(reason)
        self._run_hooks()
        return grid

    def readout(self) -> List[Readout]:
        """Labelled curve values under the cursor (clamped to the plot's extent)."""
        if self._grid is None or self._cursor is None or not self._cursor.hovering:
            return []
        geometry = self.geometry
        px = geometry.clamp_x(self._cursor.x)
        x_value = self._mapper.pixel_to_domain(px, geometry)
        return self._renderer.readout(self._grid, self._labels, x_value)

    # SECTION: hooks [id: hooks]
    # =========================================================================

    def add_hook(self, callback: SessionHook, hook_id: Optional[Hashable] = None) -> Hashable:
        """Register ``callback(session)`` to run after every pass; returns the hook id."""
        if hook_id is None:
            self._hook_counter += 1
            hook_id = f"hook:{self._hook_counter}"
        self._hooks[hook_id] = callback
        return hook_id

    def remove_hook(self, hook_id: Hashable) -> None:
        self._hooks.pop(hook_id, None)

    def _run_hooks(self) -> None:
        for h_id, callback in list(self._hooks.items()):
            try:
                callback(self)
            except Exception as e:
                warnings.warn(f"Hook {h_id} failed: {e}")

    def _log_pass(self, reason: str) -> None:
        # Simple rate-limited logging implementation
        now = time.monotonic()
        if logger.isEnabledFor(logging.INFO) and (now - self._last_log_t) > 1.0:
            self._last_log_t = now
            curves = self._grid.num_curves if self._grid is not None else 0
            logger.info(
                f"pass {self._pass_count} reason={reason} params={len(self._store)} "
                f"curves={curves} error={self._error!r}"
            )


__all__ = ["SessionHook", "VisualizerSession"]
