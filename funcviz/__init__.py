"""Top-level public API for the ``funcviz`` package.

This module re-exports the notebook-facing surface and the pipeline building
blocks so users can import from a single namespace, for example:

>>> from funcviz import FunctionVisualizer  # doctest: +SKIP
>>> FunctionVisualizer("k = 2.0  # range(0, 4)\\nreturn sin(k * x)").show()  # doctest: +SKIP

Lower-level pieces (parser, store, synthesizer, sampler, mapper, renderer and
drawing surfaces) are exported as well, for headless use and for embedding the
pipeline in other front ends.
"""

from .annotations import (
    ParameterKind,
    ParameterSpec,
    ParseResult,
    Scale,
    derive_labels,
    discover_parameters,
    parse_source,
)
from .config import DEFAULT_CONFIG, DEFAULT_SOURCE, VisualizerConfig
from .errors import CompileError, EvaluationError, FuncvizError, MalformedAnnotation, SnippetError
from .InputConvert import InputConvert
from .notebook import FunctionVisualizer
from .parameters import ParameterStore, position_to_value, value_to_position
from .plotly_surface import PlotlySurface
from .ranges import RANGE_PRESETS, PlotGeometry, RangeConfig, RangeMapper
from .renderer import CursorState, Readout, Renderer
from .sampling import SampleGrid, normalize_output, sample
from .session import VisualizerSession
from .surface import DrawingSurface, RecordingSurface
from .synthesis import SnippetFunction, build

__all__ = [
    "CompileError",
    "CursorState",
    "DEFAULT_CONFIG",
    "DEFAULT_SOURCE",
    "DrawingSurface",
    "EvaluationError",
    "FuncvizError",
    "FunctionVisualizer",
    "InputConvert",
    "MalformedAnnotation",
    "ParameterKind",
    "ParameterSpec",
    "ParameterStore",
    "ParseResult",
    "PlotGeometry",
    "PlotlySurface",
    "RANGE_PRESETS",
    "RangeConfig",
    "RangeMapper",
    "Readout",
    "RecordingSurface",
    "Renderer",
    "SampleGrid",
    "Scale",
    "SnippetError",
    "SnippetFunction",
    "VisualizerConfig",
    "VisualizerSession",
    "build",
    "derive_labels",
    "discover_parameters",
    "normalize_output",
    "parse_source",
    "position_to_value",
    "sample",
    "value_to_position",
]
