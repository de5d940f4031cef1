from __future__ import annotations

import math

import pytest

from funcviz.ranges import (
    DEFAULT_RANGE,
    RANGE_PRESETS,
    PlotGeometry,
    RangeConfig,
    RangeMapper,
    format_pi_multiple,
    format_ticks,
)

GEOMETRY = PlotGeometry(800, 600, 40)


def test_presets_and_default() -> None:
    assert set(RANGE_PRESETS) == {"norm", "bipolar", "angle", "angle_sym", "wide"}
    assert DEFAULT_RANGE == "norm"
    norm = RANGE_PRESETS["norm"]
    assert (norm.x_min, norm.x_max, norm.y_min, norm.y_max) == (0.0, 1.0, 0.0, 1.0)
    assert RANGE_PRESETS["angle"].x_max == pytest.approx(2 * math.pi)


def test_norm_corners_map_to_plot_corners() -> None:
    mapper = RangeMapper("norm")
    assert mapper.to_pixel(0.0, 0.0, GEOMETRY) == (40.0, 560.0)
    assert mapper.to_pixel(1.0, 1.0, GEOMETRY) == (760.0, 40.0)
    assert mapper.to_pixel(0.5, 0.5, GEOMETRY) == (400.0, 300.0)


def test_vertical_mapping_is_not_clamped() -> None:
    mapper = RangeMapper("norm")
    assert mapper.range_to_plot(2.0) == 2.0
    _, py = mapper.to_pixel(0.0, 2.0, GEOMETRY)
    assert py < GEOMETRY.top


def test_pixel_to_domain_inverts_horizontal_mapping() -> None:
    mapper = RangeMapper("wide")
    assert mapper.pixel_to_domain(400.0, GEOMETRY) == pytest.approx(0.0)
    assert mapper.pixel_to_domain(40.0, GEOMETRY) == pytest.approx(-10.0)


def test_select_switches_config_and_rejects_unknown_names() -> None:
    mapper = RangeMapper()
    before = mapper.to_pixel(0.5, 0.5, GEOMETRY)

    config = mapper.select("bipolar")

    assert config is RANGE_PRESETS["bipolar"]
    assert mapper.to_pixel(0.5, 0.5, GEOMETRY) != before
    with pytest.raises(KeyError, match="Unknown range preset"):
        mapper.select("huge")


def test_explicit_config_can_be_selected() -> None:
    custom = RangeConfig(0.0, 4.0, -2.0, 2.0, 4, "custom")
    mapper = RangeMapper(custom)
    assert mapper.config is custom
    assert [label for _, label in mapper.x_ticks()] == ["0.0", "1.0", "2.0", "3.0", "4.0"]


def test_angular_detection() -> None:
    assert RANGE_PRESETS["angle"].is_angular
    assert RANGE_PRESETS["angle_sym"].is_angular
    assert not RANGE_PRESETS["norm"].is_angular
    assert not RANGE_PRESETS["wide"].is_angular


def test_angle_ticks_are_multiples_of_pi() -> None:
    labels = [label for _, label in RangeMapper("angle").x_ticks()]
    assert labels == ["0", "π/4", "π/2", "3π/4", "π", "5π/4", "3π/2", "7π/4", "2π"]


def test_symmetric_angle_ticks_include_negative_multiples() -> None:
    labels = [label for _, label in RangeMapper("angle_sym").x_ticks()]
    assert labels[0] == "-π"
    assert labels[2] == "-π/2"
    assert labels[4] == "0"
    assert labels[-1] == "π"


def test_decimal_ticks_use_fewest_exact_decimals() -> None:
    x_labels = [label for _, label in RangeMapper("norm").x_ticks()]
    assert x_labels[:3] == ["0.0", "0.1", "0.2"]
    assert x_labels[-1] == "1.0"

    y_labels = [label for _, label in RangeMapper("angle").y_ticks()]
    assert y_labels == ["-1.5", "-1.2", "-0.9", "-0.6", "-0.3", "0.0", "0.3", "0.6", "0.9", "1.2", "1.5"]

    assert format_ticks([0.0, 0.25, 0.5]) == ["0.00", "0.25", "0.50"]


def test_y_ticks_cover_the_range() -> None:
    ticks = RangeMapper("wide").y_ticks()
    assert len(ticks) == 11
    assert ticks[0] == (-10.0, "-10.0")
    assert ticks[-1] == (10.0, "10.0")


@pytest.mark.parametrize(
    ("value", "expected"),
    [(0.0, "0"), (math.pi, "π"), (-math.pi / 2, "-π/2"), (3 * math.pi / 4, "3π/4"), (4 * math.pi, "4π")],
)
def test_format_pi_multiple(value: float, expected: str) -> None:
    assert format_pi_multiple(value) == expected


def test_invalid_configs_and_geometry() -> None:
    with pytest.raises(ValueError):
        RangeConfig(1.0, 0.0, 0.0, 1.0, 10, "bad x")
    with pytest.raises(ValueError):
        RangeConfig(0.0, 1.0, 1.0, 1.0, 10, "bad y")
    with pytest.raises(ValueError):
        RangeConfig(0.0, 1.0, 0.0, 1.0, 0, "bad ticks")
    with pytest.raises(ValueError):
        PlotGeometry(60, 600, 40)


def test_geometry_edges_and_clamp() -> None:
    assert (GEOMETRY.left, GEOMETRY.right, GEOMETRY.top, GEOMETRY.bottom) == (40, 760, 40, 560)
    assert GEOMETRY.contains_x(40) and GEOMETRY.contains_x(760)
    assert not GEOMETRY.contains_x(39.5)
    assert GEOMETRY.clamp_x(900) == 760
