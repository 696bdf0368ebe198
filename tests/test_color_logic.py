import numpy as np
import pytest
from parapix.domain.interfaces import PipelineContext
from parapix.domain.models import Adjustments
from parapix.kernel.image.color import rgb_to_hsl
from parapix.features.color.logic import apply_color, apply_fade, split_pivot, split_tone_vector
from parapix.features.color.models import ColorConfig
from parapix.features.color.processor import ColorProcessor
from parapix.services.rendering.pipeline import AdjustmentPipeline


def _px(r, g, b):
    return np.array([[[r, g, b]]], dtype=np.float32)


def _config(adj: Adjustments) -> ColorConfig:
    return ColorConfig.from_adjustments(adj)


def test_saturation_minus_hundred_is_gray():
    res = apply_color(_px(200, 100, 50), _config(Adjustments(saturation=-100)))
    assert res[0, 0] == pytest.approx([125.0, 125.0, 125.0], abs=1e-3)


def test_saturation_boost_clamps_s():
    res = apply_color(_px(220, 80, 80), _config(Adjustments(saturation=100)))
    _, s, _ = rgb_to_hsl(*res[0, 0])
    assert s == pytest.approx(1.0, abs=1e-4)


def test_vibrance_raises_mid_saturation():
    img = _px(160, 120, 110)
    _, s_before, _ = rgb_to_hsl(*img[0, 0])
    res = apply_color(img, _config(Adjustments(vibrance=100)))
    _, s_after, _ = rgb_to_hsl(*res[0, 0])
    assert s_after == pytest.approx(s_before + (1 - s_before) * s_before, abs=1e-4)


def test_hsl_pass_is_near_identity_for_unit_factors():
    rng = np.random.default_rng(1)
    img = rng.integers(0, 256, size=(8, 8, 3)).astype(np.float32)
    config = _config(Adjustments().with_hsl("red", "sat", 0).with_split_tone("highlights", "#808080", 0))
    # A negligible vibrance forces the HSL round trip
    forced = _config(Adjustments(vibrance=0.0001))
    res = apply_color(img, forced)
    assert np.allclose(res, img, atol=0.05)
    assert config.is_neutral()


def test_red_band_hue_shift_moves_toward_orange():
    res = apply_color(_px(255, 0, 0), _config(Adjustments().with_hsl("red", "hue", 100)))
    assert res[0, 0] == pytest.approx([255.0, 127.5, 0.0], abs=1e-3)


def test_green_band_desaturate():
    res = apply_color(_px(0, 255, 0), _config(Adjustments().with_hsl("green", "sat", -100)))
    assert res[0, 0] == pytest.approx([127.5, 127.5, 127.5], abs=1e-3)


def test_band_does_not_touch_distant_hues():
    img = _px(0, 0, 255)
    res = apply_color(img, _config(Adjustments().with_hsl("red", "sat", -100)))
    assert res[0, 0] == pytest.approx([0.0, 0.0, 255.0], abs=1e-3)


def test_band_lightness_skips_achromatic():
    adj = Adjustments()
    for band in ("red", "orange", "yellow", "green", "aqua", "blue", "purple", "magenta"):
        adj = adj.with_hsl(band, "lum", 100)
    res = apply_color(_px(100, 100, 100), _config(adj))
    assert res[0, 0] == pytest.approx([100.0, 100.0, 100.0], abs=1e-3)


def test_split_toning_highlights_tint_bright_pixels():
    adj = Adjustments().with_split_tone("highlights", "#ff0000", 100)
    res = apply_color(_px(230, 230, 230), _config(adj))
    r, g, b = res[0, 0]
    assert r > g
    assert g == pytest.approx(b, abs=1e-3)


def test_split_toning_shadows_tint_dark_pixels():
    adj = Adjustments().with_split_tone("shadows", "#0000ff", 100)
    res = apply_color(_px(30, 30, 30), _config(adj))
    r, g, b = res[0, 0]
    assert b > r
    # Highlights tone is off, bright pixels stay neutral
    bright = apply_color(_px(230, 230, 230), _config(adj))
    assert bright[0, 0] == pytest.approx([230.0, 230.0, 230.0], abs=1e-3)


def test_split_pivot():
    assert split_pivot(0) == 0.5
    assert split_pivot(100) == 0.0
    assert split_pivot(-100) == 1.0


def test_split_tone_vector_zero_amount():
    adj = Adjustments().with_split_tone("highlights", "#ff0000", 0)
    assert np.array_equal(split_tone_vector(adj.split_highlights), [0.0, 0.0])


def test_fade():
    res = apply_fade(_px(0, 255, 128), 100)
    assert res[0, 0] == pytest.approx([53.4, 231.9, 143.0], abs=1e-3)
    assert apply_fade(_px(0, 255, 128), 0)[0, 0] == pytest.approx([0, 255, 128])


def test_fade_does_not_desaturate_hue():
    img = _px(200, 100, 50)
    res = apply_fade(img, 50)
    h0, _, _ = rgb_to_hsl(*img[0, 0])
    h1, _, _ = rgb_to_hsl(*res[0, 0])
    assert h1 == pytest.approx(h0, abs=1e-3)


def test_neutrality_and_skip():
    assert _config(Adjustments()).is_neutral()
    assert _config(Adjustments(split_balance=50)).is_neutral()
    assert not _config(Adjustments(fade=10)).is_neutral()
    context = PipelineContext(size=(1, 1))
    img = _px(1, 2, 3)
    assert ColorProcessor(_config(Adjustments())).process(img, context) is img
    assert context.executed == []


def test_over_range_channels_keep_their_chroma():
    over = _px(400, 200, 100)
    res = apply_color(over, _config(Adjustments(saturation=1)))
    assert res[0, 0] == pytest.approx([255.0, 200.0, 100.0], abs=1.5)


def test_small_color_change_after_exposure_is_small():
    pipeline = AdjustmentPipeline()
    cases = [
        ((200, 100, 50), Adjustments(exposure=50), Adjustments(exposure=50, saturation=1)),
        ((250, 200, 150), Adjustments(exposure=20), Adjustments(exposure=20, vibrance=1)),
    ]
    for rgb, base, nudged in cases:
        pixels = np.array([[list(rgb) + [255]]], dtype=np.uint8)
        a = pipeline.run(pixels, base).astype(int)
        b = pipeline.run(pixels, nudged).astype(int)
        assert np.abs(a - b).max() <= 2
