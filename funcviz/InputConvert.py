# === SECTION: InputConvert [id: InputConvert]===
from __future__ import annotations

from typing import Any, Type, TypeVar
import sympy as sp

T = TypeVar("T", int, float, bool)

_TRUE_WORDS = {"true", "yes", "on", "1"}
_FALSE_WORDS = {"false", "no", "off", "0"}


def InputConvert(obj: Any, dest_type: Type[T] = float, truncate: bool = True) -> T:
    """
    Convert `obj` (a parameter value or a typed-in string) to `dest_type`.

    Supported destination types:
    - float (strictly real)
    - int
    - bool

    Rules:
    - If `obj` is a number: cast via dest_type(obj).
    - If `obj` is a string:
        1) booleans accept true/false, yes/no, on/off, 1/0 (any case)
        2) numbers try float(s) first
        3) else parse as a SymPy expression (e.g. "pi/4", "2*E"), then evaluate.

    Truncation Rules (`truncate`):
    - When converting Float -> Int:
        - If `truncate=True`: Truncate decimal part (e.g., 3.9 -> 3).
        - If `truncate=False`: Require exact integer (e.g., 3.0 -> 3, 3.1 -> Error).

    Raises
    ------
    NotImplementedError
        If dest_type is unsupported.
    ValueError
        If conversion fails or violates truncation rules.
    """
    if dest_type not in (float, int, bool):
        raise NotImplementedError(
            f"Unsupported destination type: {dest_type!r}. Only float, int, and bool are supported."
        )

    if dest_type is bool:
        return _to_bool(obj)  # type: ignore[return-value]

    def _coerce_real_value(r_val: float) -> T:
        """
        Coerce a real value 'r_val' to 'dest_type' respecting the 'truncate' flag.
        """
        if dest_type is float:
            return float(r_val)  # type: ignore[return-value]

        if not float(r_val).is_integer():
            if not truncate:
                raise ValueError(
                    f"Could not convert {r_val!r} to int: value is not an exact integer."
                )
            # If truncate=True, int() truncates towards zero
        return int(r_val)  # type: ignore[return-value]

    # Fast path: numeric types (bool counts as 0/1 here)
    if isinstance(obj, (int, float)):
        try:
            return _coerce_real_value(float(obj))
        except (OverflowError, ValueError) as e:
            raise ValueError(f"Could not convert {obj!r} to {dest_type.__name__}.") from e

    if isinstance(obj, str):
        s = obj.strip()
        if s == "":
            raise ValueError(f"Cannot convert empty string to {dest_type.__name__}.")

        # 1) Plain native conversion
        try:
            return _coerce_real_value(float(s))
        except ValueError:
            pass

        # 2) SymPy path
        try:
            expr = sp.sympify(s)
            val = complex(expr.evalf())
        except Exception as e:
            raise ValueError(
                f"Could not convert {obj!r} to {dest_type.__name__} (neither directly nor via SymPy)."
            ) from e
        if val.imag != 0:
            raise ValueError(
                f"Could not convert non-real {obj!r} to {dest_type.__name__}: imaginary part is non-zero."
            )
        return _coerce_real_value(val.real)

    # Fallback: NumPy scalars and other objects implementing __float__
    try:
        return _coerce_real_value(float(obj))
    except Exception as e:
        raise ValueError(f"Could not convert {obj!r} to {dest_type.__name__}.") from e


def _to_bool(obj: Any) -> bool:
    if isinstance(obj, bool):
        return obj
    if isinstance(obj, str):
        word = obj.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
        raise ValueError(f"Could not convert {obj!r} to bool.")
    try:
        return float(obj) != 0.0
    except Exception as e:
        raise ValueError(f"Could not convert {obj!r} to bool.") from e

# === END OF SECTION: InputConvert [id: InputConvert]===
