import numpy as np
import pytest
from parapix.kernel.image.color import rgb_to_hsl, hsl_to_rgb, hex_to_rgb
from parapix.kernel.image.curves import (
    CURVE_PRESETS,
    IDENTITY_CURVE,
    CurvePoint,
    build_curve_lut,
    evaluate_curve,
    is_identity_curve,
    resolve_curve,
    smoothstep,
    validate_curve_points,
)


def test_rgb_to_hsl_primaries():
    assert rgb_to_hsl(255, 0, 0) == pytest.approx((0.0, 1.0, 0.5))
    assert rgb_to_hsl(0, 255, 0) == pytest.approx((1.0 / 3.0, 1.0, 0.5))
    assert rgb_to_hsl(0, 0, 255) == pytest.approx((2.0 / 3.0, 1.0, 0.5))


def test_rgb_to_hsl_gray_has_no_saturation():
    h, s, l = rgb_to_hsl(100, 100, 100)
    assert s == 0.0
    assert l == pytest.approx(100 / 255)


def test_hsl_to_rgb_gray():
    assert hsl_to_rgb(0.7, 0.0, 0.5) == pytest.approx((127.5, 127.5, 127.5))


def test_hsl_round_trip_within_one_level():
    rng = np.random.default_rng(42)
    for r, g, b in rng.integers(0, 256, size=(500, 3)):
        h, s, l = rgb_to_hsl(int(r), int(g), int(b))
        if s == 0:
            continue
        rr, gg, bb = hsl_to_rgb(h, s, l)
        assert abs(rr - r) <= 1.0
        assert abs(gg - g) <= 1.0
        assert abs(bb - b) <= 1.0


def test_hue_is_below_one():
    # Pure magenta-ish red wraps to just under 1.0, never 1.0 itself
    h, _, _ = rgb_to_hsl(255, 0, 1)
    assert 0.0 <= h < 1.0


def test_hex_to_rgb():
    assert hex_to_rgb("#ff8000") == (255, 128, 0)


def test_smoothstep_endpoints():
    assert smoothstep(0.0) == 0.0
    assert smoothstep(1.0) == 1.0
    assert smoothstep(0.5) == 0.5


@pytest.mark.parametrize("name", list(CURVE_PRESETS))
def test_curve_exact_at_control_points(name):
    points = CURVE_PRESETS[name]
    for p in points:
        assert evaluate_curve(points, p.x) == p.y


def test_curve_exact_at_custom_control_points():
    points = (
        CurvePoint(0.0, 0.05),
        CurvePoint(0.3, 0.41),
        CurvePoint(0.7, 0.66),
        CurvePoint(1.0, 0.97),
    )
    for p in points:
        assert evaluate_curve(points, p.x) == p.y


def test_curve_uses_smoothstep_between_points():
    points = (CurvePoint(0.0, 0.0), CurvePoint(1.0, 1.0))
    assert evaluate_curve(points, 0.25) == pytest.approx(smoothstep(0.25))


def test_curve_extends_flat_outside_range():
    points = CURVE_PRESETS["fade"]
    assert evaluate_curve(points, -0.5) == pytest.approx(0.1)
    assert evaluate_curve(points, 1.5) == pytest.approx(0.9)


def test_validate_curve_points_rejects_degenerate():
    assert validate_curve_points([(0, 0)]) is None
    assert validate_curve_points([(0.1, 0), (1, 1)]) is None
    assert validate_curve_points([(0, 0), (0.5, 0.5), (0.5, 0.6), (1, 1)]) is None
    assert validate_curve_points([(0, 0), (0.5, 1.5), (1, 1)]) is None
    assert validate_curve_points([(0, 0), (float("nan"), 0.5), (1, 1)]) is None
    assert validate_curve_points(["bad", (1, 1)]) is None


def test_validate_curve_points_accepts_dicts():
    points = validate_curve_points([{"x": 0, "y": 0.1}, {"x": 1, "y": 0.8}])
    assert points == (CurvePoint(0.0, 0.1), CurvePoint(1.0, 0.8))


def test_resolve_curve_falls_back_to_identity(caplog):
    with caplog.at_level("WARNING", logger="parapix"):
        assert resolve_curve([(0.2, 0.2), (0.1, 0.3)]) == IDENTITY_CURVE
    assert "Degenerate tone curve" in caplog.text
    assert resolve_curve("no-such-preset") == IDENTITY_CURVE


def test_identity_detection():
    assert is_identity_curve(CURVE_PRESETS["linear"])
    assert not is_identity_curve(CURVE_PRESETS["contrast"])


def test_build_curve_lut():
    lut = build_curve_lut(CURVE_PRESETS["fade"])
    assert lut.shape == (256,)
    assert lut.dtype == np.float32
    assert lut[0] == pytest.approx(25.5)
    assert lut[255] == pytest.approx(229.5)
    assert np.all(np.diff(lut) >= 0)
