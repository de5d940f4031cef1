from __future__ import annotations

import warnings

import numpy as np
import pytest

from funcviz.config import CURVE_PALETTE, DEFAULT_SOURCE, THEME_COLORS, VisualizerConfig
from funcviz.renderer import Readout
from funcviz.session import VisualizerSession
from funcviz.surface import RecordingSurface


def _curve_strokes(surface: RecordingSurface):
    return [op for op in surface.of_kind("stroke_path") if op.params["color"] in CURVE_PALETTE]


def test_default_session_renders_one_curve() -> None:
    surface = RecordingSurface()
    session = VisualizerSession(surface=surface)

    assert session.source == DEFAULT_SOURCE
    assert session.error is None
    assert [s.name for s in session.parameters] == ["curve"]
    assert session.labels == ("x",)
    assert session.grid is not None and session.grid.num_curves == 1
    assert session.grid.sample_count == 500
    assert len(_curve_strokes(surface)) == 1


def test_identity_snippet_samples_identity() -> None:
    session = VisualizerSession("return x")
    np.testing.assert_allclose(session.grid.values[:, 0], session.grid.xs)


def test_parameter_values_survive_source_edits() -> None:
    session = VisualizerSession("a = 1.0  # range(0, 2)\nreturn a * x")
    session.set_parameter("a", 1.5)

    session.set_source("a = 1.0  # range(0, 2)\nb = 0.5  # range(0, 1)\nreturn a * b * x")

    assert session.store["a"].value == 1.5
    assert session.store["b"].value == 0.5
    assert session.grid.values[-1, 0] == pytest.approx(0.75)


def test_slider_position_edit_updates_curve() -> None:
    session = VisualizerSession("k = 0.0  # range(0, 4)\nreturn k")
    session.set_parameter_position("k", 0.25)
    assert session.store["k"].value == 1.0
    assert np.all(session.grid.values[:, 0] == 1.0)


def test_labels_directive_flows_through_session() -> None:
    session = VisualizerSession("a = x\nb = 2 * x\nc = 3 * x\nreturn [a, b, c]  # labels(First)")
    assert session.labels == ("First", "b", "c")
    assert session.grid.num_curves == 3


def test_throwing_snippet_yields_one_error_and_no_curves() -> None:
    surface = RecordingSurface()
    session = VisualizerSession("return 1.0 / (x - 0.5)", surface=surface)

    assert session.grid is None
    assert session.error is not None
    assert "ZeroDivisionError" in session.error
    assert "at x=0.5" in session.error
    assert "(line 1)" in session.error
    assert _curve_strokes(surface) == []
    assert "Input (x)" in surface.texts()

    session.set_source("return x")
    assert session.error is None
    assert len(_curve_strokes(surface)) == 1


def test_syntax_error_is_reported_with_line() -> None:
    session = VisualizerSession("a = 1.0  # range(0, 2)\nreturn (a +")
    assert session.grid is None
    assert session.error.startswith("SyntaxError")
    assert "(line 2)" in session.error
    assert [s.name for s in session.parameters] == ["a"]


def test_non_numeric_result_is_an_error() -> None:
    session = VisualizerSession("return 'a'")
    assert session.grid is None
    assert "at x=0" in session.error


@pytest.mark.parametrize("source", ["return 10 ** 400", "return [x, 2 ** 2000]"])
def test_unrepresentable_result_is_an_error_not_a_crash(source: str) -> None:
    session = VisualizerSession(source)

    assert session.grid is None
    assert session.error is not None
    assert "cannot be represented as a float" in session.error
    assert "at x=0" in session.error

    session.set_source("return x")
    assert session.error is None


def test_malformed_range_is_dropped_while_the_rest_runs() -> None:
    session = VisualizerSession("a = 2.0  # range(5, 2)\nb = 1.0  # range(0, 2)\nreturn a * b * x")

    assert [s.name for s in session.parameters] == ["b"]
    assert session.error is None
    assert session.grid.values[-1, 0] == pytest.approx(2.0)


def test_integer_parameter_works_with_range() -> None:
    session = VisualizerSession("n = 3  # range(1, 10)\nreturn float(sum(1 for _ in range(n)))")
    session.set_parameter("n", 6.6)
    assert session.store["n"].value == 7
    assert np.all(session.grid.values[:, 0] == 7.0)


def test_checkbox_toggle_and_reset() -> None:
    session = VisualizerSession("flip = False  # checkbox\nreturn -x if flip else x")
    session.toggle_parameter("flip")
    assert session.grid.values[-1, 0] == -1.0
    session.reset_parameter("flip")
    assert session.grid.values[-1, 0] == 1.0


def test_switching_range_changes_domain_and_ticks_but_not_parameters() -> None:
    surface = RecordingSurface()
    session = VisualizerSession("a = 0.5  # range(0, 1)\nreturn a * x", surface=surface)
    session.set_parameter("a", 0.75)
    norm_texts = surface.texts()
    norm_points = _curve_strokes(surface)[0].params["points"]

    session.select_range("wide")

    assert session.range_config.display_label == "-10 → 10"
    assert session.grid.domain == (-10.0, 10.0)
    assert session.store["a"].value == 0.75
    assert surface.texts() != norm_texts
    assert "-10.0" in surface.texts()
    assert _curve_strokes(surface)[0].params["points"] != norm_points


def test_unknown_range_or_parameter_raises() -> None:
    session = VisualizerSession("return x")
    with pytest.raises(KeyError):
        session.select_range("nope")
    with pytest.raises(KeyError):
        session.set_parameter("nope", 1.0)


def test_hover_readout_and_leave() -> None:
    surface = RecordingSurface()
    session = VisualizerSession(surface=surface)

    session.hover(400.0, 300.0)

    assert session.cursor is not None and session.cursor.hovering
    assert session.readout() == [Readout(0, "x", pytest.approx(0.25))]
    assert "x: 0.250" in surface.texts()

    session.leave()

    assert session.readout() == []
    assert not any(op.params["dash"] for op in surface.of_kind("stroke_path"))


def test_readout_clamps_to_plot_extent() -> None:
    session = VisualizerSession("return x")
    session.hover(5000.0, 300.0)
    assert session.readout() == [Readout(0, "x", pytest.approx(1.0))]


def test_render_onto_explicit_surface() -> None:
    session = VisualizerSession("return x")
    surface = RecordingSurface(400, 300)

    session.render(surface)

    assert surface.ops[0].kind == "clear"
    assert surface.ops[0].params["color"] == THEME_COLORS["background"]
    assert len(_curve_strokes(surface)) == 1


def test_custom_sample_count() -> None:
    session = VisualizerSession("return x", config=VisualizerConfig(sample_count=20))
    assert session.grid.xs.shape == (21,)


def test_hooks_run_after_every_pass() -> None:
    session = VisualizerSession("k = 1.0  # range(0, 2)\nreturn k")
    seen = []

    hook_id = session.add_hook(lambda s: seen.append(s.store["k"].value))
    session.set_parameter("k", 2.0)
    session.remove_hook(hook_id)
    session.set_parameter("k", 0.0)

    assert hook_id == "hook:1"
    assert seen == [2.0]


def test_failing_hook_warns_without_blocking_other_hooks() -> None:
    session = VisualizerSession("return x")
    calls = []

    def broken(_session):
        raise RuntimeError("boom")

    session.add_hook(broken, hook_id="broken")
    session.add_hook(lambda _s: calls.append("ok"))

    with pytest.warns(UserWarning, match="Hook broken failed: boom"):
        session.render()

    assert calls == ["ok"]


def test_error_pass_still_runs_hooks() -> None:
    session = VisualizerSession("return x")
    errors = []
    session.add_hook(lambda s: errors.append(s.error))

    with warnings.catch_warnings():
        warnings.simplefilter("error")
        session.set_source("return undefined_name")

    assert len(errors) == 1
    assert "NameError" in errors[0]
