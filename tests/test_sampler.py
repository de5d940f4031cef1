from __future__ import annotations

import numpy as np
import pytest

from funcviz.errors import EvaluationError
from funcviz.sampling import SampleGrid, normalize_output, sample
from funcviz.synthesis import build


def test_identity_snippet_samples_the_diagonal() -> None:
    grid = sample(build("return x", {}), (0.0, 1.0), 500)

    assert isinstance(grid, SampleGrid)
    assert grid.xs.shape == (501,)
    assert grid.values.shape == (501, 1)
    assert grid.present.all()
    np.testing.assert_allclose(grid.xs, np.linspace(0.0, 1.0, 501))
    np.testing.assert_allclose(grid.values[:, 0], grid.xs)


def test_both_domain_ends_are_sampled() -> None:
    grid = sample(lambda x: x, (-1.0, 1.0), 4)
    assert grid.xs.tolist() == [-1.0, -0.5, 0.0, 0.5, 1.0]
    assert grid.sample_count == 4
    assert grid.domain == (-1.0, 1.0)


def test_snippet_receives_python_floats() -> None:
    seen = []
    sample(lambda x: seen.append(type(x)) or 0.0, (0.0, 1.0), 3)
    assert seen == [float] * 4


def test_list_outputs_become_curves() -> None:
    grid = sample(lambda x: [x, 2 * x], (0.0, 1.0), 10)
    assert grid.num_curves == 2
    xs, ys = grid.curve(1)
    np.testing.assert_allclose(ys, 2 * xs)


def test_curve_count_is_longest_output_over_all_samples() -> None:
    grid = sample(lambda x: [x] if x < 0.5 else [x, -x], (0.0, 1.0), 10)

    assert grid.num_curves == 2
    assert not grid.present[0, 1]
    assert grid.present[-1, 1]
    xs, _ = grid.curve(1)
    assert xs.min() == pytest.approx(0.5)


def test_nan_output_is_present_but_not_finite() -> None:
    grid = sample(lambda x: float("nan"), (0.0, 1.0), 2)
    assert grid.present.all()
    assert np.isnan(grid.values).all()


def test_exception_aborts_pass_with_offending_x() -> None:
    with pytest.raises(EvaluationError) as info:
        sample(lambda x: 1.0 / (x - 0.5), (0.0, 1.0), 10)

    err = info.value
    assert err.x == pytest.approx(0.5)
    assert "ZeroDivisionError" in str(err)
    assert "at x=0.5" in str(err)


def test_exception_reports_snippet_line() -> None:
    fn = build("y = x\nreturn 1.0 / (y - y)", {})
    with pytest.raises(EvaluationError) as info:
        sample(fn, (0.0, 1.0), 10)

    assert info.value.lineno == 2
    assert info.value.x == 0.0


@pytest.mark.parametrize("bad", [None, "1.0", [[1.0, 2.0]], 1 + 2j, {"a": 1}, np.zeros((2, 2))])
def test_non_numeric_results_are_rejected(bad) -> None:
    with pytest.raises(EvaluationError):
        sample(lambda x: bad, (0.0, 1.0), 2)


def test_non_numeric_result_error_carries_x() -> None:
    with pytest.raises(EvaluationError) as info:
        sample(lambda x: None if x > 0.6 else x, (0.0, 1.0), 10)
    assert info.value.x == pytest.approx(0.7)


@pytest.mark.parametrize("huge", [10 ** 400, [0.5, 2 ** 2000]])
def test_integers_too_large_for_float_are_rejected(huge) -> None:
    with pytest.raises(EvaluationError) as info:
        sample(lambda x: huge, (0.0, 1.0), 4)
    assert "float" in str(info.value)
    assert info.value.x == 0.0


@pytest.mark.parametrize(
    ("result", "expected"),
    [
        (2, [2.0]),
        (np.float32(1.5), [1.5]),
        (np.array(3.0), [3.0]),
        ((1, 2.5), [1.0, 2.5]),
        (np.array([0.5, 1.5]), [0.5, 1.5]),
        ([np.float64(1.0), np.array(2.0)], [1.0, 2.0]),
    ],
)
def test_normalize_output_accepts_real_numbers(result, expected) -> None:
    assert normalize_output(result) == expected


def test_invalid_sampling_arguments() -> None:
    with pytest.raises(ValueError):
        sample(lambda x: x, (0.0, 1.0), 0)
    with pytest.raises(ValueError):
        sample(lambda x: x, (1.0, 1.0), 10)


def test_nearest_index_and_value_at() -> None:
    grid = sample(lambda x: [x] if x < 0.5 else [x, 10 * x], (0.0, 1.0), 10)

    assert grid.nearest_index(0.34) == 3
    assert grid.nearest_index(-5.0) == 0
    assert grid.nearest_index(5.0) == 10
    assert grid.value_at(0, 0.34) == pytest.approx(0.3)
    assert grid.value_at(1, 0.2) is None
    assert grid.value_at(1, 0.81) == pytest.approx(8.0)
    assert grid.value_at(5, 0.5) is None


def test_curve_index_out_of_range() -> None:
    grid = sample(lambda x: x, (0.0, 1.0), 2)
    with pytest.raises(IndexError):
        grid.curve(1)
