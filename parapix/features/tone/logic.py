import numpy as np
import numpy.typing as npt
from typing import Sequence
from parapix.domain.types import ImageBuffer
from parapix.kernel.image.curves import CurvePoint, build_curve_lut
from parapix.kernel.image.validation import ensure_image
from parapix.kernel.system.performance import time_function
from parapix.features.tone.models import TONE_CONSTANTS

_LUT_X = np.arange(256, dtype=np.float32)


def white_balance_offsets(temperature: float, tint: float) -> npt.NDArray[np.float32]:
    """
    Additive (R, G, B) offsets for the white balance sliders.
    """
    offsets = np.zeros(3, dtype=np.float32)
    if temperature > 0:
        offsets += np.array(TONE_CONSTANTS["warm_gains"], dtype=np.float32) * temperature
    elif temperature < 0:
        offsets += np.array(TONE_CONSTANTS["cool_gains"], dtype=np.float32) * temperature

    if tint != 0:
        offsets[1] -= TONE_CONSTANTS["tint_green"] * abs(tint)
        if tint > 0:
            offsets[0] += TONE_CONSTANTS["tint_red_blue"] * tint
        else:
            offsets[2] -= TONE_CONSTANTS["tint_red_blue"] * abs(tint)
    return offsets


def apply_white_balance(img: ImageBuffer, temperature: float, tint: float) -> ImageBuffer:
    if temperature == 0 and tint == 0:
        return img
    return ensure_image(img + white_balance_offsets(temperature, tint))


def apply_curve_lut(img: ImageBuffer, lut: npt.NDArray[np.float32]) -> ImageBuffer:
    """
    Maps every channel through a 256-entry table, interpolating between
    entries. Inputs outside [0, 255] take the end values.
    """
    return ensure_image(np.interp(img, _LUT_X, lut))


@time_function
def apply_tone(
    img: ImageBuffer,
    temperature: float,
    tint: float,
    curve: Sequence[CurvePoint],
    use_curve: bool = True,
) -> ImageBuffer:
    res = apply_white_balance(img, temperature, tint)
    if use_curve:
        # Built once per render, shared by all pixels
        res = apply_curve_lut(res, build_curve_lut(curve))
    return res
