"""
synthesis: Compile a snippet plus live parameter values into a callable
======================================================================

Purpose
-------
Turn the snippet text and the current parameter values into a Python function
``f(x)``. Parameters are rebound on every build:

1. the snippet is parsed into statements,
2. every top-level declaration of a live parameter is removed,
3. one fresh ``name = value`` assignment per parameter is prepended,
4. the statements become the body of ``def __snippet__(x): ...``, which is
   compiled and materialised with ``exec``.

Rebinding is a tree edit (statements are dropped and inserted as AST nodes),
never a textual find-and-replace.

Namespace
---------
The snippet sees ``math``, the public names of :mod:`math` (``sin``, ``pi``,
``tau``...) and NumPy as ``np``/``numpy``. Builtins are the regular ones.

Logging
-------
This module uses Python's standard :mod:`logging` library and is silent by
default. Enable it with:

>>> import logging
>>> logging.getLogger("funcviz.synthesis").setLevel(logging.DEBUG)  # doctest: +SKIP

Notes
-----
The snippet runs with full interpreter privileges. It is the user's own code;
do not build snippets from untrusted input.
"""

from __future__ import annotations

import ast
import logging
import math
import time
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, cast

import numpy as np

from .annotations import ParameterValue, iter_declarations
from .config import SNIPPET_FILENAME
from .errors import CompileError

__all__ = ["SNIPPET_GLOBALS", "SnippetFunction", "build"]


logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


SNIPPET_FUNCTION_NAME = "__snippet__"
_TEMPLATE = f"def {SNIPPET_FUNCTION_NAME}(x):\n    pass\n"

SNIPPET_GLOBALS: Dict[str, Any] = {
    **{name: getattr(math, name) for name in dir(math) if not name.startswith("_")},
    "math": math,
    "np": np,
    "numpy": np,
}


class SnippetFunction:
    """Compiled snippet callable with its parameter bindings and generated source."""

    __slots__ = ("_fn", "parameter_values", "source")

    def __init__(
        self,
        fn: Callable[[float], Any],
        parameter_values: Mapping[str, ParameterValue],
        source: str,
    ) -> None:
        self._fn = fn
        self.parameter_values: Dict[str, ParameterValue] = dict(parameter_values)
        self.source = source

    def __call__(self, x: float) -> Any:
        return self._fn(x)

    def __repr__(self) -> str:
        bound = ", ".join(f"{k}={v!r}" for k, v in self.parameter_values.items())
        return f"SnippetFunction({bound})"


def _declared_name(stmt: ast.stmt) -> Optional[str]:
    if isinstance(stmt, ast.Assign) and len(stmt.targets) == 1 and isinstance(stmt.targets[0], ast.Name):
        return stmt.targets[0].id
    if isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
        return stmt.target.id
    return None


def _parameter_assignment(name: str, value: ParameterValue) -> ast.Assign:
    if isinstance(value, bool):
        constant: Any = value
    elif isinstance(value, int):
        constant = int(value)
    else:
        constant = float(value)
    return ast.Assign(
        targets=[ast.Name(id=name, ctx=ast.Store())],
        value=ast.Constant(value=constant),
    )


def _strip_declarations(
    source: str, body: list[ast.stmt], names: Mapping[str, Any]
) -> list[ast.stmt]:
    declared: set[Tuple[int, str]] = {
        (decl.lineno, decl.name) for decl in iter_declarations(source) if decl.name in names
    }
    if not declared:
        return body
    return [stmt for stmt in body if (stmt.lineno, _declared_name(stmt)) not in declared]


def build(source: str, parameter_values: Mapping[str, ParameterValue]) -> SnippetFunction:
    """Compile ``source`` with ``parameter_values`` bound as constants.

    Parameters
    ----------
    source : str
        Snippet text: the body of a function of ``x``.
    parameter_values : Mapping[str, value]
        Current parameter values in parameter order (see
        :meth:`funcviz.parameters.ParameterStore.value_map`).

    Returns
    -------
    SnippetFunction
        Callable ``f(x)`` returning a number or a sequence of numbers.

    Raises
    ------
    CompileError
        If the snippet does not parse or compile.

    Examples
    --------
    >>> f = build("a = 1.0  # range(0, 5)\\nreturn a * x", {"a": 3.0})
    >>> f(2.0)
    6.0
    """
    log_debug = logger.isEnabledFor(logging.DEBUG)
    t0: float | None = time.perf_counter() if log_debug else None

    try:
        module = ast.parse(source, filename=SNIPPET_FILENAME)
    except SyntaxError as exc:
        raise CompileError(f"SyntaxError: {exc.msg}", lineno=exc.lineno) from exc

    body = _strip_declarations(source, module.body, parameter_values)
    prelude = [_parameter_assignment(name, value) for name, value in parameter_values.items()]

    wrapper = ast.parse(_TEMPLATE)
    func_def = cast(ast.FunctionDef, wrapper.body[0])
    func_def.body = prelude + body or [ast.Pass()]
    ast.fix_missing_locations(wrapper)

    try:
        code = compile(wrapper, SNIPPET_FILENAME, "exec")
    except SyntaxError as exc:
        raise CompileError(f"SyntaxError: {exc.msg}", lineno=exc.lineno) from exc
    except ValueError as exc:
        raise CompileError(f"{type(exc).__name__}: {exc}") from exc

    namespace: Dict[str, Any] = dict(SNIPPET_GLOBALS)
    exec(code, namespace)
    fn = cast(Callable[[float], Any], namespace[SNIPPET_FUNCTION_NAME])

    generated = ast.unparse(wrapper)
    if log_debug and t0 is not None:
        logger.debug(
            "build: %d parameter(s), %d statement(s) in %.2f ms",
            len(prelude),
            len(body),
            1000.0 * (time.perf_counter() - t0),
        )
    return SnippetFunction(fn, parameter_values, generated)
