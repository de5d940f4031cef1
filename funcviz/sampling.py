"""Dense sampling of a snippet over the active domain.

Purpose
-------
``sample`` evaluates a compiled snippet at ``S + 1`` evenly spaced points and
packs the outputs into a :class:`SampleGrid`. A snippet may return a single
number or a list of numbers; each list position is one curve.

Important gotchas
-----------------
- The curve count is the longest output seen over *all* samples, not the
  first one. Shorter outputs leave the missing positions absent (``present``
  is ``False`` there), which is different from a NaN the snippet returned.
- ``x`` is handed to the snippet as a plain Python ``float`` so ``1 / x`` at
  zero raises like ordinary Python instead of producing a NumPy ``inf``.
- Any exception at any sample aborts the whole pass with one
  :class:`~funcviz.errors.EvaluationError`. There are no partial grids.
"""

from __future__ import annotations

import logging
import numbers
import traceback
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Tuple

import numpy as np

from .config import SAMPLE_COUNT, SNIPPET_FILENAME
from .errors import EvaluationError

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


@dataclass(frozen=True)
class SampleGrid:
    """Sampled outputs of one pass.

    Parameters
    ----------
    xs : numpy.ndarray
        Sample positions, shape ``(S + 1,)``, from ``x_min`` to ``x_max``.
    values : numpy.ndarray
        Outputs, shape ``(S + 1, n_curves)``; NaN where absent.
    present : numpy.ndarray
        Boolean mask, same shape as ``values``, ``True`` where the snippet
        produced a value for that curve.
    """

    xs: np.ndarray
    values: np.ndarray
    present: np.ndarray

    @property
    def sample_count(self) -> int:
        """Number of intervals ``S`` (there are ``S + 1`` samples)."""
        return len(self.xs) - 1

    @property
    def num_curves(self) -> int:
        return int(self.values.shape[1])

    @property
    def domain(self) -> Tuple[float, float]:
        return float(self.xs[0]), float(self.xs[-1])

    def curve(self, index: int) -> Tuple[np.ndarray, np.ndarray]:
        """Return ``(xs, ys)`` of the samples where curve ``index`` is present."""
        if not 0 <= index < self.num_curves:
            raise IndexError(f"curve index {index} out of range for {self.num_curves} curve(s)")
        mask = self.present[:, index]
        return self.xs[mask], self.values[mask, index]

    def nearest_index(self, x: float) -> int:
        """Return the index of the sample nearest to ``x`` (clamped to the grid)."""
        x_min, x_max = self.domain
        if self.sample_count == 0 or x_max == x_min:
            return 0
        t = (float(x) - x_min) / (x_max - x_min)
        index = int(round(t * self.sample_count))
        return min(self.sample_count, max(0, index))

    def value_at(self, index: int, x: float) -> Optional[float]:
        """Return curve ``index`` at the sample nearest ``x``, or ``None`` if absent."""
        if not 0 <= index < self.num_curves:
            return None
        i = self.nearest_index(x)
        if not self.present[i, index]:
            return None
        return float(self.values[i, index])


def _as_float(value: numbers.Real, what: str) -> float:
    try:
        return float(value)
    except (OverflowError, TypeError, ValueError) as exc:
        raise EvaluationError(f"{what} cannot be represented as a float: {exc}") from exc


def normalize_output(result: Any) -> List[float]:
    """Return a snippet result as a list of floats.

    Real scalars (including NumPy scalars and 0-d arrays) become one-element
    lists; lists, tuples and 1-d arrays of reals are converted element-wise.

    Raises
    ------
    EvaluationError
        For anything else: ``None``, strings, nested sequences, complex values,
        and integers too large for a float.
    """
    if isinstance(result, np.ndarray):
        if result.ndim == 0:
            result = result.item()
        elif result.ndim == 1:
            result = result.tolist()
        else:
            raise EvaluationError(
                f"snippet returned an array of shape {result.shape}; expected a number or a flat list"
            )

    if isinstance(result, numbers.Real):
        return [_as_float(result, "result")]

    if isinstance(result, (list, tuple)):
        values: List[float] = []
        for position, item in enumerate(result, start=1):
            if isinstance(item, np.ndarray) and item.ndim == 0:
                item = item.item()
            if not isinstance(item, numbers.Real):
                raise EvaluationError(
                    f"output {position} is {type(item).__name__}; expected a number"
                )
            values.append(_as_float(item, f"output {position}"))
        return values

    raise EvaluationError(
        f"snippet returned {type(result).__name__}; expected a number or a list of numbers"
    )


def _snippet_lineno(exc: BaseException) -> Optional[int]:
    """Return the innermost snippet line in ``exc``'s traceback, if any."""
    lineno: Optional[int] = None
    for frame in traceback.extract_tb(exc.__traceback__):
        if frame.filename == SNIPPET_FILENAME:
            lineno = frame.lineno
    return lineno


def sample(
    fn: Callable[[float], Any],
    domain: Sequence[float] = (0.0, 1.0),
    count: int = SAMPLE_COUNT,
) -> SampleGrid:
    """Evaluate ``fn`` at ``count + 1`` evenly spaced points of ``domain``.

    Parameters
    ----------
    fn : callable
        Compiled snippet, ``fn(x) -> number | list of numbers``.
    domain : (float, float)
        ``(x_min, x_max)``, both ends sampled.
    count : int
        Number of intervals ``S``.

    Returns
    -------
    SampleGrid

    Raises
    ------
    EvaluationError
        If ``fn`` raises or returns a non-numeric result at any sample.
    ValueError
        If ``count`` is not positive or the domain is empty.
    """
    count = int(count)
    if count < 1:
        raise ValueError(f"count must be >= 1, got {count}")
    x_min, x_max = float(domain[0]), float(domain[1])
    if not x_min < x_max:
        raise ValueError(f"domain must satisfy x_min < x_max, got ({x_min}, {x_max})")

    xs = x_min + (np.arange(count + 1) / count) * (x_max - x_min)
    outputs: List[List[float]] = []
    for x in xs.tolist():
        try:
            result = fn(x)
        except Exception as exc:
            raise EvaluationError(
                f"{type(exc).__name__}: {exc}", x=x, lineno=_snippet_lineno(exc)
            ) from exc
        try:
            outputs.append(normalize_output(result))
        except EvaluationError as exc:
            exc.x = x
            raise

    num_curves = max((len(row) for row in outputs), default=0)
    values = np.full((count + 1, num_curves), np.nan, dtype=float)
    present = np.zeros((count + 1, num_curves), dtype=bool)
    for i, row in enumerate(outputs):
        if row:
            values[i, : len(row)] = row
            present[i, : len(row)] = True

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("sample: %d points over [%g, %g], %d curve(s)", count + 1, x_min, x_max, num_curves)
    return SampleGrid(xs=xs, values=values, present=present)


__all__ = ["SampleGrid", "normalize_output", "sample"]
