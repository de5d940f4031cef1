"""Parameter and label discovery for function snippets.

Purpose
-------
A snippet is the body of a function of ``x``. Two kinds of inline metadata
live in its comments:

- a trailing directive on a top-level assignment turns that name into an
  interactive parameter::

      curve = 2.0      # range(0.1, 5.0)
      freq = 1.0       # range(0.1, 10.0, log)
      steps = 8        # range(2, 16)
      inverted = False # checkbox

- a ``labels(...)`` directive on the final ``return`` names the output curves::

      return [linear, square, cubic]  # labels(Linear)

Architecture notes
------------------
Declarations are found by tokenizing the whole snippet: a comment counts only
when it ends a logical line that starts at column 0, so look-alike lines inside
strings or brackets are ignored. Each candidate's code part is handed to
:mod:`ast` on its own, and when tokenizing stops early the remaining lines are
scanned one at a time. Sliders therefore survive while the rest of the snippet
is half-typed and does not parse. Labels need the whole tree (to find the last
``return``), so they are only derived from snippets that parse.

Malformed directives raise :class:`~funcviz.errors.MalformedAnnotation`
internally and the declaration is dropped; the rest of the source is still
scanned.
"""

from __future__ import annotations

import ast
import io
import keyword
import logging
import math
import re
import tokenize
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple, Union

from .InputConvert import InputConvert
from .errors import MalformedAnnotation

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

ParameterValue = Union[int, float, bool]


class ParameterKind(str, Enum):
    RANGE = "range"
    CHECKBOX = "checkbox"


class Scale(str, Enum):
    LINEAR = "linear"
    LOG = "log"


@dataclass(frozen=True)
class ParameterSpec:
    """One discovered parameter.

    Parameters
    ----------
    name : str
        Identifier bound by the declaration.
    kind : ParameterKind
        ``RANGE`` for sliders, ``CHECKBOX`` for toggles.
    default : int, float or bool
        Value written in the declaration.
    value : int, float or bool
        Current value; equals ``default`` on first discovery.
    min, max : float or None
        Slider bounds (``RANGE`` only), ``min < max``.
    scale : Scale
        Slider scale; ``LOG`` implies ``min > 0``.
    is_integer : bool
        Whether the slider snaps to integers.
    lineno : int
        1-based line of the declaration that produced this spec.
    """

    name: str
    kind: ParameterKind
    default: ParameterValue
    value: ParameterValue
    min: Optional[float] = None
    max: Optional[float] = None
    scale: Scale = Scale.LINEAR
    is_integer: bool = False
    lineno: int = 0

    @property
    def is_log(self) -> bool:
        return self.scale is Scale.LOG

    def with_value(self, value: ParameterValue) -> "ParameterSpec":
        """Return a copy holding ``value``."""
        return replace(self, value=value)

    def same_shape(self, other: "ParameterSpec") -> bool:
        """Whether ``other`` would need the same control (kind, bounds, scale)."""
        return (
            self.kind is other.kind
            and self.min == other.min
            and self.max == other.max
            and self.scale is other.scale
            and self.is_integer == other.is_integer
        )


@dataclass(frozen=True)
class Directive:
    """A comment directive such as ``range(0, 1)``; ``args`` is ``None`` without parentheses."""

    name: str
    args: Optional[str]


@dataclass(frozen=True)
class Declaration:
    """A top-level ``name = value  # directive`` line, before validation."""

    name: str
    lineno: int
    value_source: str
    directive: Directive


@dataclass(frozen=True)
class ParseResult:
    parameters: Tuple[ParameterSpec, ...]
    labels: Tuple[str, ...]


_DIRECTIVE_HEAD = re.compile(r"\s*([A-Za-z_]\w*)\s*(?:\(([^)]*)\))?")
_LABELS_DIRECTIVE = re.compile(r"\blabels\s*\(([^)]*)\)")
_NEWLINES = re.compile(r"\r\n|\r|\n")
_PARAMETER_DIRECTIVES = frozenset({"range", "checkbox"})
_TRUE_LITERALS = frozenset({"True", "true"})
_LAYOUT_TOKENS = frozenset({tokenize.NL, tokenize.INDENT, tokenize.DEDENT, tokenize.COMMENT})


# SECTION: declarations [id: declarations]
# =============================================================================


def parse_directive(comment: str) -> Optional[Directive]:
    """Parse the directive at the start of a comment (with or without ``#``)."""
    text = comment.lstrip()
    if text.startswith("#"):
        text = text[1:]
    match = _DIRECTIVE_HEAD.match(text)
    if match is None:
        return None
    return Directive(name=match.group(1), args=match.group(2))


def _split_trailing_comment(line: str) -> Optional[Tuple[str, str]]:
    """Return ``(code, comment)`` for a line ending in a comment, else ``None``."""
    try:
        for tok in tokenize.generate_tokens(io.StringIO(line).readline):
            if tok.type == tokenize.COMMENT:
                return line[: tok.start[1]], tok.string
    except (tokenize.TokenError, SyntaxError):
        return None
    return None


def _statement_comments(text: str) -> Tuple[Dict[int, Tuple[int, str]], Optional[int]]:
    """Find comments that end a logical line starting at column 0.

    Returns ``({lineno: (column, comment)}, scanned)``. ``scanned`` is ``None``
    when the whole text tokenized, otherwise the last line known to lie outside
    any string or bracket before tokenizing failed.
    """
    found: Dict[int, Tuple[int, str]] = {}
    scanned = 0
    first: Optional[Tuple[int, int]] = None
    pending: Optional[tokenize.TokenInfo] = None
    try:
        for tok in tokenize.generate_tokens(io.StringIO(text).readline):
            if tok.type == tokenize.NEWLINE:
                if pending is not None and first == (pending.start[0], 0):
                    found[pending.start[0]] = (pending.start[1], pending.string)
                scanned = tok.start[0]
                first = None
                pending = None
            elif tok.type == tokenize.COMMENT:
                pending = tok
            else:
                pending = None
                if first is None and tok.type not in _LAYOUT_TOKENS:
                    first = tok.start
    except (tokenize.TokenError, SyntaxError):
        return found, scanned
    return found, None


def _top_level_assignment_lines(source: str) -> Optional[frozenset]:
    try:
        module = ast.parse(source)
    except SyntaxError:
        return None
    return frozenset(
        stmt.lineno for stmt in module.body if isinstance(stmt, (ast.Assign, ast.AnnAssign))
    )


def _parse_assignment(code: str) -> Optional[Tuple[str, str]]:
    """Return ``(name, value_source)`` when ``code`` is a single simple assignment."""
    try:
        module = ast.parse(code)
    except SyntaxError:
        return None
    if len(module.body) != 1:
        return None
    stmt = module.body[0]
    if isinstance(stmt, ast.Assign):
        if len(stmt.targets) != 1 or not isinstance(stmt.targets[0], ast.Name):
            return None
        target = stmt.targets[0]
    elif isinstance(stmt, ast.AnnAssign):
        if stmt.value is None or not isinstance(stmt.target, ast.Name):
            return None
        target = stmt.target
    else:
        return None
    value_source = ast.get_source_segment(code, stmt.value) or ""
    return target.id, value_source


def iter_declarations(source: str) -> Iterator[Declaration]:
    """Yield every top-level parameter declaration in source order.

    Only statements that start at column 0 are considered; a declaration nested
    in a block, or a look-alike line inside a string, is not a declaration.
    Validation of the directive happens later, so the result may include
    declarations that :func:`discover_parameters` drops.
    """
    text = _NEWLINES.sub("\n", source)
    lines = text.split("\n")
    comments, scanned = _statement_comments(text)
    if scanned is not None:
        # Tokenizing stopped early (half-typed snippet); scan the tail line by line.
        for lineno in range(scanned + 1, len(lines) + 1):
            line = lines[lineno - 1]
            if not line.strip() or line[0].isspace():
                continue
            split = _split_trailing_comment(line)
            if split is not None:
                comments[lineno] = (len(split[0]), split[1])

    allowed = _top_level_assignment_lines(source)
    for lineno in sorted(comments):
        if allowed is not None and lineno not in allowed:
            continue
        column, comment = comments[lineno]
        directive = parse_directive(comment)
        if directive is None or directive.name not in _PARAMETER_DIRECTIVES:
            continue
        assignment = _parse_assignment(lines[lineno - 1][:column])
        if assignment is None:
            continue
        name, value_source = assignment
        yield Declaration(name=name, lineno=lineno, value_source=value_source, directive=directive)


def _numeric_literal(node: ast.expr, decl: Declaration) -> Tuple[float, bool]:
    """Return ``(value, written_as_integer)`` for an optionally signed number literal."""
    sign = 1.0
    if isinstance(node, ast.UnaryOp) and isinstance(node.op, (ast.USub, ast.UAdd)):
        sign = -1.0 if isinstance(node.op, ast.USub) else 1.0
        node = node.operand
    if (
        isinstance(node, ast.Constant)
        and isinstance(node.value, (int, float))
        and not isinstance(node.value, bool)
    ):
        value = sign * float(node.value)
        if math.isfinite(value):
            return value, isinstance(node.value, int)
    raise MalformedAnnotation(
        "range() bounds must be finite numbers", name=decl.name, lineno=decl.lineno
    )


def _scale_literal(node: ast.expr, decl: Declaration) -> Scale:
    if isinstance(node, ast.Name):
        word = node.id
    elif isinstance(node, ast.Constant) and isinstance(node.value, str):
        word = node.value
    else:
        word = ""
    try:
        return Scale(word.strip().lower())
    except ValueError:
        raise MalformedAnnotation(
            f"unknown range() scale {word!r}; expected 'linear' or 'log'",
            name=decl.name,
            lineno=decl.lineno,
        ) from None


def _parse_range_args(decl: Declaration) -> Tuple[float, float, Scale, bool]:
    args = decl.directive.args
    if args is None or not args.strip():
        raise MalformedAnnotation("range() needs bounds", name=decl.name, lineno=decl.lineno)
    try:
        node = ast.parse(f"({args},)", mode="eval").body
    except SyntaxError as exc:
        raise MalformedAnnotation(
            f"cannot parse range({args})", name=decl.name, lineno=decl.lineno
        ) from exc
    elts = node.elts if isinstance(node, ast.Tuple) else []
    if len(elts) not in (2, 3):
        raise MalformedAnnotation(
            f"range() takes 2 or 3 arguments, got {len(elts)}", name=decl.name, lineno=decl.lineno
        )

    low, low_is_int = _numeric_literal(elts[0], decl)
    high, high_is_int = _numeric_literal(elts[1], decl)
    scale = _scale_literal(elts[2], decl) if len(elts) == 3 else Scale.LINEAR

    if not low < high:
        raise MalformedAnnotation(
            f"range() needs min < max, got ({low:g}, {high:g})", name=decl.name, lineno=decl.lineno
        )
    if scale is Scale.LOG and low <= 0:
        raise MalformedAnnotation(
            f"log range() needs min > 0, got {low:g}", name=decl.name, lineno=decl.lineno
        )

    is_integer = low_is_int and high_is_int and (high - low) >= 3 and scale is Scale.LINEAR
    return low, high, scale, is_integer


def _spec_from_declaration(decl: Declaration) -> ParameterSpec:
    if decl.directive.name == "checkbox":
        flag = decl.value_source.strip() in _TRUE_LITERALS
        return ParameterSpec(
            name=decl.name,
            kind=ParameterKind.CHECKBOX,
            default=flag,
            value=flag,
            lineno=decl.lineno,
        )

    low, high, scale, is_integer = _parse_range_args(decl)
    try:
        default: ParameterValue = InputConvert(decl.value_source, float)
    except ValueError as exc:
        raise MalformedAnnotation(
            f"default {decl.value_source!r} is not a number", name=decl.name, lineno=decl.lineno
        ) from exc
    if not math.isfinite(default):
        raise MalformedAnnotation(
            f"default {decl.value_source!r} is not finite", name=decl.name, lineno=decl.lineno
        )
    if is_integer and float(default).is_integer():
        default = int(default)

    return ParameterSpec(
        name=decl.name,
        kind=ParameterKind.RANGE,
        default=default,
        value=default,
        min=low,
        max=high,
        scale=scale,
        is_integer=is_integer,
        lineno=decl.lineno,
    )


def discover_parameters(source: str) -> Tuple[ParameterSpec, ...]:
    """Return the valid parameter specs of ``source``.

    A redeclared name keeps its first position and takes the last valid
    declaration. Malformed declarations are skipped.
    """
    found: Dict[str, ParameterSpec] = {}
    for decl in iter_declarations(source):
        try:
            spec = _spec_from_declaration(decl)
        except MalformedAnnotation as exc:
            logger.debug("dropping parameter %r (line %d): %s", decl.name, decl.lineno, exc)
            continue
        found[decl.name] = spec
    return tuple(found.values())


# SECTION: labels [id: labels]
# =============================================================================


class _ReturnCollector(ast.NodeVisitor):
    """Collect ``return`` statements of the snippet body, skipping nested helpers."""

    def __init__(self) -> None:
        self.returns: List[ast.Return] = []

    def visit_Return(self, node: ast.Return) -> None:
        self.returns.append(node)

    def visit_FunctionDef(self, node: ast.AST) -> None:
        return None

    visit_AsyncFunctionDef = visit_FunctionDef
    visit_ClassDef = visit_FunctionDef


def _last_return(module: ast.Module) -> Optional[ast.Return]:
    collector = _ReturnCollector()
    collector.visit(module)
    if not collector.returns:
        return None
    return max(collector.returns, key=lambda node: (node.lineno, node.col_offset))


def _comments_by_line(source: str) -> Dict[int, str]:
    comments: Dict[int, str] = {}
    try:
        for tok in tokenize.generate_tokens(io.StringIO(source).readline):
            if tok.type == tokenize.COMMENT:
                comments[tok.start[0]] = tok.string
    except (tokenize.TokenError, SyntaxError):
        pass
    return comments


_OPENING = frozenset({"(", "[", "{"})
_CLOSING = frozenset({")", "]", "}"})


def _split_at_commas(tokens: List[tokenize.TokenInfo], depth: int) -> List[List[tokenize.TokenInfo]]:
    """Split ``tokens`` at commas nested exactly ``depth`` brackets deep.

    The brackets enclosing that depth are dropped; chunks holding only layout
    tokens (comments, line breaks) are dropped too.
    """
    chunks: List[List[tokenize.TokenInfo]] = [[]]
    level = 0
    for tok in tokens:
        if tok.type == tokenize.OP and tok.string in _OPENING:
            level += 1
            if level <= depth:
                continue
        elif tok.type == tokenize.OP and tok.string in _CLOSING:
            level -= 1
            if level < depth:
                continue
        elif tok.type == tokenize.OP and tok.string == "," and level == depth:
            chunks.append([])
            continue
        chunks[-1].append(tok)
    return [chunk for chunk in chunks if _head_token(chunk) is not None]


def _head_token(chunk: List[tokenize.TokenInfo]) -> Optional[tokenize.TokenInfo]:
    for tok in chunk:
        if tok.type not in _LAYOUT_TOKENS and tok.type not in (tokenize.NEWLINE, tokenize.ENDMARKER):
            return tok
    return None


def _leading_identifier(chunk: List[tokenize.TokenInfo]) -> Optional[str]:
    """Return the identifier an element's text starts with (``math.sin(x)`` -> ``math``)."""
    tok = _head_token(chunk)
    if tok is not None and tok.type == tokenize.NAME and not keyword.iskeyword(tok.string):
        return tok.string
    return None


def _returned_elements(source: str, ret: ast.Return) -> List[List[tokenize.TokenInfo]]:
    """Return the tokens of each returned element, in order.

    A list or tuple yields one chunk per element; any other value yields a
    single chunk. Elements are taken from the source text, so ``(x)`` starts
    with ``(`` rather than ``x``.
    """
    segment = ast.get_source_segment(source, ret) or ""
    try:
        tokens = list(tokenize.generate_tokens(io.StringIO(segment).readline))[1:]
    except (tokenize.TokenError, SyntaxError):
        tokens = []
    if not isinstance(ret.value, (ast.List, ast.Tuple)):
        return [tokens]
    if not tokens:
        return [[] for _ in ret.value.elts]
    top = _split_at_commas(tokens, 0)
    if len(top) > 1:
        return top
    return _split_at_commas(tokens, 1)


def _provided_labels(comment: str) -> List[str]:
    match = _LABELS_DIRECTIVE.search(comment)
    if match is None:
        return []
    return [part.strip() for part in match.group(1).split(",")]


def derive_labels(source: str) -> Tuple[str, ...]:
    """Return one label per output position of the snippet's final ``return``.

    Explicit ``labels(...)`` entries win positionally; other positions use the
    leading identifier of the returned element, or ``output<N>`` (``output``
    for a single value).
    """
    try:
        module = ast.parse(source)
    except SyntaxError as exc:
        logger.debug("no labels: snippet does not parse (%s)", exc.msg)
        return ()

    ret = _last_return(module)
    if ret is None or ret.value is None:
        return ()

    elements = _returned_elements(source, ret)
    if isinstance(ret.value, (ast.List, ast.Tuple)):
        fallbacks = [
            _leading_identifier(chunk) or f"output{i}" for i, chunk in enumerate(elements, start=1)
        ]
    else:
        fallbacks = [_leading_identifier(elements[0]) or "output"]

    end_line = ret.end_lineno if ret.end_lineno is not None else ret.lineno
    provided = _provided_labels(_comments_by_line(source).get(end_line, ""))
    return tuple(
        provided[i] if i < len(provided) and provided[i] else fallback
        for i, fallback in enumerate(fallbacks)
    )


def parse_source(source: str) -> ParseResult:
    """Discover parameters and labels in one call."""
    return ParseResult(parameters=discover_parameters(source), labels=derive_labels(source))


__all__ = [
    "Declaration",
    "Directive",
    "ParameterKind",
    "ParameterSpec",
    "ParameterValue",
    "ParseResult",
    "Scale",
    "derive_labels",
    "discover_parameters",
    "iter_declarations",
    "parse_directive",
    "parse_source",
]
