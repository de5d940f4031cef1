"""Parameter store for snippet sliders and checkboxes."""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, Dict, Iterable, Iterator, Tuple

from .InputConvert import InputConvert
from .annotations import ParameterKind, ParameterSpec, ParameterValue

# SECTION: slider mapping [id: slider_mapping]
# =============================================================================


def _require_range(spec: ParameterSpec) -> Tuple[float, float]:
    if spec.kind is not ParameterKind.RANGE or spec.min is None or spec.max is None:
        raise TypeError(f"Parameter {spec.name!r} is a {spec.kind.value}; it has no slider position.")
    return spec.min, spec.max


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def position_to_value(spec: ParameterSpec, position: float) -> ParameterValue:
    """Map a normalized slider position ``u`` in ``[0, 1]`` to a parameter value.

    Linear sliders interpolate between the bounds (integer sliders round half
    up); log sliders interpolate the logarithms. ``u`` is clamped into
    ``[0, 1]``.

    Examples
    --------
    >>> from funcviz.annotations import ParameterKind, ParameterSpec, Scale
    >>> spec = ParameterSpec("f", ParameterKind.RANGE, 1.0, 1.0, min=0.1, max=10.0, scale=Scale.LOG)
    >>> round(position_to_value(spec, 0.5), 6)
    1.0
    """
    low, high = _require_range(spec)
    u = min(1.0, max(0.0, float(position)))
    if spec.is_log:
        log_low = math.log(low)
        log_high = math.log(high)
        return math.exp(log_low + u * (log_high - log_low))
    value = low + u * (high - low)
    if spec.is_integer:
        return _round_half_up(value)
    return value


def value_to_position(spec: ParameterSpec, value: Any = None) -> float:
    """Inverse of :func:`position_to_value` (``value`` defaults to ``spec.value``).

    The position is computed directly from the value, without rounding, so an
    integer slider reports the exact position of its integer value. Values
    outside the bounds (e.g. carried over from wider bounds) are clamped first.
    """
    low, high = _require_range(spec)
    v = min(high, max(low, float(spec.value if value is None else value)))
    if spec.is_log:
        log_low = math.log(low)
        log_high = math.log(high)
        return (math.log(v) - log_low) / (log_high - log_low)
    return (v - low) / (high - low)


# SECTION: ParameterStore [id: ParameterStore]
# =============================================================================


class ParameterStore(Mapping[str, ParameterSpec]):
    """
    Holds the current value of every discovered parameter.

    Responsibilities:
    - Merging freshly parsed specs while keeping values of persisting names.
    - Applying direct edits from sliders, checkboxes or typed-in values.
    - Acts like a read-only dictionary so ``store["curve"]`` works.

    Design Note:
    ------------
    The store never looks at source text. Re-parsing happens upstream and the
    result is handed to :meth:`merge`; edits only ever touch ``value``.
    """

    def __init__(self, specs: Iterable[ParameterSpec] = ()) -> None:
        self._specs: Dict[str, ParameterSpec] = {}
        if specs:
            self.merge(specs)

    def __getitem__(self, name: str) -> ParameterSpec:
        return self._specs[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._specs)

    def __len__(self) -> int:
        return len(self._specs)

    def __repr__(self) -> str:
        values = ", ".join(f"{name}={spec.value!r}" for name, spec in self._specs.items())
        return f"ParameterStore({values})"

    def merge(self, new_specs: Iterable[ParameterSpec]) -> Tuple[ParameterSpec, ...]:
        """Replace the parameter set, carrying values forward by name.

        Parameters
        ----------
        new_specs : iterable of ParameterSpec
            Specs from the latest parse, in parameter order.

        Returns
        -------
        tuple[ParameterSpec, ...]
            The merged specs, in the order given.

        Notes
        -----
        A persisting name keeps its current ``value`` even when its bounds
        changed. If its kind changed (slider <-> checkbox) the carried value
        would be meaningless, so the new default is used instead.
        """
        merged: Dict[str, ParameterSpec] = {}
        for spec in new_specs:
            previous = self._specs.get(spec.name)
            if previous is not None and previous.kind is spec.kind:
                spec = spec.with_value(previous.value)
            else:
                spec = spec.with_value(spec.default)
            merged[spec.name] = spec
        self._specs = merged
        return tuple(merged.values())

    def set(self, name: str, value: Any) -> ParameterSpec:
        """Set a parameter from a direct edit and return the updated spec.

        Parameters
        ----------
        name : str
            Parameter name; unknown names raise ``KeyError``.
        value : Any
            New value. Strings are accepted (``"pi/4"``, ``"true"``) and
            converted with :func:`~funcviz.InputConvert.InputConvert`.

        Notes
        -----
        Range values are clamped into ``[min, max]``; integer ranges round half
        up. ``ValueError`` is raised when the value cannot be converted.
        """
        spec = self._require(name)
        if spec.kind is ParameterKind.CHECKBOX:
            coerced: ParameterValue = InputConvert(value, bool)
        else:
            number = InputConvert(value, float)
            if math.isnan(number):
                raise ValueError(f"Parameter {name!r} cannot be set to NaN.")
            low, high = _require_range(spec)
            number = min(high, max(low, number))
            coerced = _round_half_up(number) if spec.is_integer else number
        updated = spec.with_value(coerced)
        self._specs[name] = updated
        return updated

    def set_position(self, name: str, position: float) -> ParameterSpec:
        """Set a range parameter from a normalized slider position."""
        spec = self._require(name)
        updated = spec.with_value(position_to_value(spec, position))
        self._specs[name] = updated
        return updated

    def position(self, name: str) -> float:
        """Return the normalized slider position of a range parameter."""
        return value_to_position(self._require(name))

    def toggle(self, name: str) -> ParameterSpec:
        """Flip a checkbox parameter."""
        spec = self._require(name)
        if spec.kind is not ParameterKind.CHECKBOX:
            raise TypeError(f"Parameter {name!r} is not a checkbox.")
        return self.set(name, not spec.value)

    def reset(self, name: str) -> ParameterSpec:
        """Restore a parameter to its declared default."""
        spec = self._require(name)
        updated = spec.with_value(spec.default)
        self._specs[name] = updated
        return updated

    def value_map(self) -> Dict[str, ParameterValue]:
        """Return ``{name: value}`` in parameter order."""
        return {name: spec.value for name, spec in self._specs.items()}

    def snapshot(self) -> Tuple[ParameterSpec, ...]:
        """Return the current specs, e.g. for building controls."""
        return tuple(self._specs.values())

    def _require(self, name: str) -> ParameterSpec:
        try:
            return self._specs[name]
        except KeyError:
            known = ", ".join(self._specs) or "none"
            raise KeyError(f"Unknown parameter {name!r}; known parameters: {known}.") from None


__all__ = ["ParameterStore", "position_to_value", "value_to_position"]
