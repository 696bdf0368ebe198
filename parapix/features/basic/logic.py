import numpy as np
from parapix.domain.types import ImageBuffer
from parapix.kernel.image.logic import get_luminance
from parapix.kernel.image.validation import ensure_image
from parapix.kernel.system.performance import time_function
from parapix.features.basic.models import BasicConfig, BASIC_CONSTANTS


def apply_exposure(img: ImageBuffer, exposure: float) -> ImageBuffer:
    if exposure == 0:
        return img
    mult = 2.0 ** (exposure * BASIC_CONSTANTS["exposure_stops_per_unit"])
    return ensure_image(img * mult)


def apply_contrast(img: ImageBuffer, contrast: float) -> ImageBuffer:
    if contrast == 0:
        return img
    mid = BASIC_CONSTANTS["midpoint"]
    factor = (contrast + 100.0) / 100.0
    return ensure_image((img - mid) * factor + mid)


def apply_tonal_range(
    img: ImageBuffer,
    highlights: float = 0.0,
    shadows: float = 0.0,
    whites: float = 0.0,
    blacks: float = 0.0,
) -> ImageBuffer:
    """
    Luminance-gated additive deltas, applied equally to R, G and B.
    All four gates read the same luminance, measured before any delta.
    """
    if highlights == 0 and shadows == 0 and whites == 0 and blacks == 0:
        return img

    mid = BASIC_CONSTANTS["midpoint"]
    lum = get_luminance(img)
    delta = np.zeros_like(lum)

    if highlights != 0:
        mask = np.maximum(0.0, (lum - mid) / mid)
        delta += highlights * 0.01 * mask * BASIC_CONSTANTS["tonal_scale"]

    if shadows != 0:
        mask = np.maximum(0.0, (mid - lum) / mid)
        delta += shadows * 0.01 * mask * BASIC_CONSTANTS["tonal_scale"]

    if whites != 0:
        gate = BASIC_CONSTANTS["whites_gate"]
        mask = np.maximum(0.0, (lum - gate) / (256.0 - gate))
        delta += whites * 0.01 * mask * BASIC_CONSTANTS["clip_scale"]

    if blacks != 0:
        gate = BASIC_CONSTANTS["blacks_gate"]
        mask = np.maximum(0.0, (gate - lum) / gate)
        delta += blacks * 0.01 * mask * BASIC_CONSTANTS["clip_scale"]

    return ensure_image(img + delta[..., None])


def apply_clarity(img: ImageBuffer, clarity: float) -> ImageBuffer:
    """
    Midtone contrast: stretches deviation from mid-gray, weighted by how
    close each pixel's luminance sits to the midpoint.
    """
    if clarity == 0:
        return img
    mid = BASIC_CONSTANTS["midpoint"]
    lum = get_luminance(img)
    mask = np.maximum(0.0, 1.0 - np.abs(lum - mid) / mid)
    factor = 1.0 + clarity * 0.01 * BASIC_CONSTANTS["clarity_strength"] * mask
    return ensure_image(mid + (img - mid) * factor[..., None])


def apply_dehaze(img: ImageBuffer, dehaze: float) -> ImageBuffer:
    if dehaze == 0:
        return img
    mid = BASIC_CONSTANTS["midpoint"]
    mult = 1.0 + dehaze * 0.01 * BASIC_CONSTANTS["dehaze_strength"]
    return ensure_image(mid + (img - mid) * mult)


@time_function
def apply_basic_adjustments(img: ImageBuffer, config: BasicConfig) -> ImageBuffer:
    """
    Exposure -> contrast -> tonal range -> clarity -> dehaze. Unclamped.
    """
    res = apply_exposure(img, config.exposure)
    res = apply_contrast(res, config.contrast)
    res = apply_tonal_range(
        res,
        highlights=config.highlights,
        shadows=config.shadows,
        whites=config.whites,
        blacks=config.blacks,
    )
    res = apply_clarity(res, config.clarity)
    return apply_dehaze(res, config.dehaze)
