import numpy as np
import pytest
from parapix.domain.interfaces import PipelineContext
from parapix.domain.models import Adjustments
from parapix.features.basic.logic import (
    apply_basic_adjustments,
    apply_clarity,
    apply_contrast,
    apply_dehaze,
    apply_exposure,
    apply_tonal_range,
)
from parapix.features.basic.models import BasicConfig
from parapix.features.basic.processor import BasicProcessor


def _flat(value, h=2, w=2):
    return np.full((h, w, 3), value, dtype=np.float32)


def test_exposure_plus_fifty_doubles():
    res = apply_exposure(_flat(128), 50)
    assert np.allclose(res, 256.0)


def test_exposure_is_unclamped():
    res = apply_exposure(_flat(200), 100)
    assert res.max() > 255


def test_contrast_pivot():
    img = np.array([[[100, 128, 192]]], dtype=np.float32)
    res = apply_contrast(img, 100)
    assert np.allclose(res, [[[72, 128, 256]]])


def test_contrast_minus_hundred_flattens():
    img = np.array([[[0, 77, 255]]], dtype=np.float32)
    assert np.allclose(apply_contrast(img, -100), 128)


def test_highlights_gate():
    res = apply_tonal_range(_flat(255), highlights=100)
    assert np.allclose(res, 255 + 50 * (127 / 128))
    # Shadows never reach the bright end
    assert np.allclose(apply_tonal_range(_flat(255), shadows=100), 255)


def test_shadows_gate():
    assert np.allclose(apply_tonal_range(_flat(0), shadows=100), 50)
    assert np.allclose(apply_tonal_range(_flat(0), highlights=100), 0)


def test_whites_and_blacks_gates():
    assert np.allclose(apply_tonal_range(_flat(255), whites=100), 255 + 30 * (63 / 64))
    assert np.allclose(apply_tonal_range(_flat(0), blacks=-100), -30)
    # Mid-gray sits outside both clip gates
    assert np.allclose(apply_tonal_range(_flat(128), whites=100, blacks=100), 128)


def test_tonal_delta_is_equal_across_channels():
    img = np.array([[[250, 200, 150]]], dtype=np.float32)
    res = apply_tonal_range(img, highlights=60)
    delta = res - img
    assert np.allclose(delta[..., 0], delta[..., 1])
    assert np.allclose(delta[..., 1], delta[..., 2])


def test_clarity_weights_midtones():
    assert np.allclose(apply_clarity(_flat(128), 100), 128)
    # lum 64 -> mask 0.5 -> factor 1.25
    assert np.allclose(apply_clarity(_flat(64), 100), 48)
    assert np.allclose(apply_clarity(_flat(0), 100), 0)


def test_dehaze():
    assert np.allclose(apply_dehaze(_flat(228), 100), 258)
    assert np.allclose(apply_dehaze(_flat(228), -100), 198)


def test_basic_order_exposure_before_contrast():
    config = BasicConfig(exposure=50, contrast=100)
    res = apply_basic_adjustments(_flat(100), config)
    # 100 * 2 = 200 -> (200 - 128) * 2 + 128 = 272
    assert np.allclose(res, 272)


def test_processor_neutral_passthrough():
    img = _flat(42)
    context = PipelineContext(size=(2, 2))
    processor = BasicProcessor(BasicConfig())
    assert processor.is_neutral()
    assert processor.process(img, context) is img
    assert context.executed == []


def test_config_from_adjustments():
    config = BasicConfig.from_adjustments(Adjustments(exposure=10, dehaze=-5, vibrance=30))
    assert config.exposure == 10
    assert config.dehaze == -5
    assert not config.is_neutral()
    assert BasicConfig.from_adjustments(Adjustments(vibrance=30)).is_neutral()


def test_input_not_mutated():
    img = _flat(100)
    before = img.copy()
    apply_basic_adjustments(img, BasicConfig(exposure=20, contrast=20, shadows=30, clarity=10))
    assert np.array_equal(img, before)
    assert pytest.approx(100.0) == float(img[0, 0, 0])
