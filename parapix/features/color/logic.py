import math
import numpy as np
import numpy.typing as npt
from numba import njit, prange  # type: ignore
from typing import Tuple
from parapix.domain.constants import HSL_BAND_CENTERS
from parapix.domain.models import HslAdjustments, SplitTone
from parapix.domain.types import ImageBuffer
from parapix.kernel.image.color import rgb_to_hsl, hsl_to_rgb, hex_to_rgb
from parapix.kernel.image.validation import ensure_image
from parapix.kernel.system.performance import time_function
from parapix.features.color.models import ColorConfig, COLOR_CONSTANTS

# Band centres as hue fractions, closed with a wrap-around sentinel at 1.0
_CENTERS = np.array(HSL_BAND_CENTERS + (360.0,), dtype=np.float64) / 360.0
_TWO_PI = 2.0 * math.pi


@njit(cache=True)
def _band_weights(h: float, centers: np.ndarray) -> Tuple[int, int, float, float]:
    """
    Splits hue h in [0, 1) between its two neighbouring band centres.
    Returns (band_a, band_b, weight_a, weight_b) with weights summing to 1.
    """
    n = centers.shape[0] - 1
    i = n - 1
    for k in range(n):
        if centers[k] <= h < centers[k + 1]:
            i = k
            break
    span = centers[i + 1] - centers[i]
    wb = (h - centers[i]) / span
    if wb < 0.0:
        wb = 0.0
    elif wb > 1.0:
        wb = 1.0
    j = i + 1
    if j == n:
        j = 0
    return i, j, 1.0 - wb, wb


@njit(parallel=True, cache=True)
def _color_kernel_jit(
    img: np.ndarray,
    centers: np.ndarray,
    band_hue: np.ndarray,
    band_sat: np.ndarray,
    band_lum: np.ndarray,
    use_bands: bool,
    hl_vec: np.ndarray,
    sh_vec: np.ndarray,
    pivot: float,
    use_split: bool,
    vibrance: float,
    sat_factor: float,
) -> np.ndarray:
    """
    Single HSL round trip per pixel: bands -> split toning -> vibrance ->
    saturation. Channels enter the round trip clamped to [0, 255]. Rows are
    independent so the parallel loop is deterministic.
    """
    h_dim, w_dim, _ = img.shape
    res = np.empty_like(img)
    for y in prange(h_dim):
        for x in range(w_dim):
            # HSL cannot represent overflow; clamp on entry only
            r = min(255.0, max(0.0, img[y, x, 0]))
            g = min(255.0, max(0.0, img[y, x, 1]))
            bl = min(255.0, max(0.0, img[y, x, 2]))
            h, s, l = rgb_to_hsl(r, g, bl)

            if use_bands:
                a, b, wa, wb = _band_weights(h, centers)
                d_hue = wa * band_hue[a] + wb * band_hue[b]
                d_sat = wa * band_sat[a] + wb * band_sat[b]
                d_lum = wa * band_lum[a] + wb * band_lum[b]
                h = h + d_hue
                h = h - math.floor(h)
                s = s * (1.0 + d_sat)
                if s < 0.0:
                    s = 0.0
                l = l + d_lum * s

            if use_split:
                vx = s * math.cos(_TWO_PI * h)
                vy = s * math.sin(_TWO_PI * h)
                w_hl = 0.0
                if pivot < 1.0:
                    w_hl = (l - pivot) / (1.0 - pivot)
                    w_hl = min(1.0, max(0.0, w_hl))
                w_sh = 0.0
                if pivot > 0.0:
                    w_sh = (pivot - l) / pivot
                    w_sh = min(1.0, max(0.0, w_sh))
                vx += w_hl * hl_vec[0] + w_sh * sh_vec[0]
                vy += w_hl * hl_vec[1] + w_sh * sh_vec[1]
                s = math.sqrt(vx * vx + vy * vy)
                if s > 0.0:
                    h = math.atan2(vy, vx) / _TWO_PI
                    h = h - math.floor(h)

            s = s + vibrance * (1.0 - s) * s
            s = s * sat_factor
            if s < 0.0:
                s = 0.0
            elif s > 1.0:
                s = 1.0

            r, g, bl = hsl_to_rgb(h, s, l)
            res[y, x, 0] = r
            res[y, x, 1] = g
            res[y, x, 2] = bl
    return res


def band_shift_arrays(
    hsl: HslAdjustments,
) -> Tuple[npt.NDArray[np.float64], npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """
    Per-band slider values converted to kernel units: hue as a fraction of the
    circle, saturation as a relative gain, lightness as a lightness offset
    per unit of saturation.
    """
    bands = hsl.bands()
    hue = np.array([b.hue for b in bands], dtype=np.float64)
    sat = np.array([b.sat for b in bands], dtype=np.float64)
    lum = np.array([b.lum for b in bands], dtype=np.float64)
    hue = hue / 100.0 * COLOR_CONSTANTS["hue_shift_degrees"] / 360.0
    sat = sat / 100.0
    lum = lum / 100.0 * COLOR_CONSTANTS["lum_strength"]
    return hue, sat, lum


def split_tone_vector(tone: SplitTone) -> npt.NDArray[np.float64]:
    """
    Chroma vector a split tone adds at full weight.
    """
    if tone.amount <= 0:
        return np.zeros(2, dtype=np.float64)
    r, g, b = hex_to_rgb(tone.color)
    h_t, s_t, _ = rgb_to_hsl(float(r), float(g), float(b))
    mag = tone.amount / 100.0 * s_t * COLOR_CONSTANTS["split_strength"]
    return np.array(
        [mag * math.cos(_TWO_PI * h_t), mag * math.sin(_TWO_PI * h_t)],
        dtype=np.float64,
    )


def split_pivot(balance: float) -> float:
    return 0.5 - balance / 200.0


@time_function
def apply_hsl_pass(img: ImageBuffer, config: ColorConfig) -> ImageBuffer:
    hue, sat, lum = band_shift_arrays(config.hsl)
    res = _color_kernel_jit(
        np.ascontiguousarray(img, dtype=np.float32),
        _CENTERS,
        hue,
        sat,
        lum,
        not config.hsl.is_neutral,
        split_tone_vector(config.split_highlights),
        split_tone_vector(config.split_shadows),
        split_pivot(config.split_balance),
        config.has_split_toning,
        config.vibrance / 100.0,
        (config.saturation + 100.0) / 100.0,
    )
    return ensure_image(res)


def apply_fade(img: ImageBuffer, fade: float) -> ImageBuffer:
    """
    Pulls every channel toward mid-gray and lifts it; no desaturation.
    """
    if fade == 0:
        return img
    f = fade / 100.0
    mid = COLOR_CONSTANTS["midpoint"]
    res = img + (mid - img) * (f * COLOR_CONSTANTS["fade_pull"]) + f * COLOR_CONSTANTS["fade_lift"]
    return ensure_image(res)


def apply_color(img: ImageBuffer, config: ColorConfig) -> ImageBuffer:
    res = img
    if config.needs_hsl_pass:
        res = apply_hsl_pass(res, config)
    return apply_fade(res, config.fade)
