from __future__ import annotations

import math

import pytest

from funcviz.errors import CompileError
from funcviz.synthesis import SNIPPET_GLOBALS, SnippetFunction, build


def test_declarations_are_rebound_to_current_values() -> None:
    fn = build("a = 1.0  # range(0, 5)\nreturn a * x", {"a": 3.0})

    assert isinstance(fn, SnippetFunction)
    assert fn(2.0) == 6.0


def test_every_declaration_of_a_parameter_is_removed() -> None:
    source = "a = 1.0  # range(0, 5)\na = 2.0  # range(0, 5)\nreturn a"
    assert build(source, {"a": 4.0})(0.0) == 4.0


def test_ordinary_assignments_to_a_parameter_still_run() -> None:
    source = "a = 1.0  # range(0, 5)\na = a + 1\nreturn a"
    assert build(source, {"a": 2.0})(0.0) == 3.0


def test_indented_declaration_is_an_ordinary_statement() -> None:
    source = "a = 1.0  # range(0, 5)\nif x > 0.5:\n    a = 0.0  # range(0, 5)\nreturn a"
    fn = build(source, {"a": 2.0})
    assert fn(0.0) == 2.0
    assert fn(1.0) == 0.0


def test_malformed_declaration_stays_in_place() -> None:
    assert build("a = 9.0  # range(5, 2)\nreturn a", {})(0.0) == 9.0


def test_declaration_text_inside_a_string_is_left_alone() -> None:
    source = 'doc = """\na = 1.0  # range(0, 5)\n"""\nreturn len(doc)'
    assert build(source, {})(0.0) == len("\na = 1.0  # range(0, 5)\n")


def test_integer_and_boolean_values_keep_their_type() -> None:
    source = (
        "n = 3  # range(1, 10)\n"
        "invert = False  # checkbox\n"
        "total = sum(1 for _ in range(n))\n"
        "return -total if invert else total"
    )
    fn = build(source, {"n": 4, "invert": True})
    assert fn(0.0) == -4


def test_snippet_namespace_exposes_math_and_numpy() -> None:
    fn = build("return sin(pi / 2) + np.cos(0.0) + math.sqrt(4.0) + numpy.floor(tau)", {})
    assert fn(0.0) == pytest.approx(1.0 + 1.0 + 2.0 + 6.0)
    assert SNIPPET_GLOBALS["e"] == math.e


def test_helpers_and_loops_inside_snippet() -> None:
    source = (
        "steps = 4  # range(2, 16)\n"
        "def quantize(v):\n"
        "    return math.floor(v * steps) / steps\n"
        "out = []\n"
        "for k in range(2):\n"
        "    out.append(quantize(x) + k)\n"
        "return out"
    )
    assert build(source, {"steps": 4})(0.3) == [0.25, 1.25]


def test_syntax_error_reports_snippet_line() -> None:
    with pytest.raises(CompileError) as info:
        build("a = 1.0  # range(0, 2)\nreturn (x +", {"a": 1.0})

    assert info.value.lineno == 2
    assert "SyntaxError" in str(info.value)
    assert "(line 2)" in str(info.value)


def test_compile_stage_errors_become_compile_errors() -> None:
    with pytest.raises(CompileError):
        build("break\nreturn x", {})


def test_empty_snippet_returns_none() -> None:
    assert build("", {})(0.5) is None


def test_generated_source_is_kept_for_inspection() -> None:
    fn = build("a = 1.0  # range(0, 5)\nreturn a * x", {"a": 3.0})

    assert fn.source.startswith("def __snippet__(x):")
    assert "a = 3.0" in fn.source
    assert "a = 1.0" not in fn.source
    assert fn.parameter_values == {"a": 3.0}
    assert repr(fn) == "SnippetFunction(a=3.0)"


def test_builds_are_independent() -> None:
    source = "k = 1.0  # range(0, 5)\nreturn k"
    first = build(source, {"k": 1.0})
    second = build(source, {"k": 2.0})
    assert (first(0.0), second(0.0)) == (1.0, 2.0)
