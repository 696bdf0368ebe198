import math
import cv2
import numpy as np
from typing import Optional
from parapix.domain.types import ImageBuffer
from parapix.kernel.image.validation import ensure_image
from parapix.kernel.system.performance import time_function
from parapix.features.effects.models import EffectsConfig, EFFECTS_CONSTANTS

_SHARPEN_KERNEL = np.array(EFFECTS_CONSTANTS["sharpen_kernel"], dtype=np.float32)


def noise_radius(noise: float) -> int:
    return int(math.ceil(noise / 100.0 * EFFECTS_CONSTANTS["noise_max_radius"]))


@time_function
def apply_lens_distortion(img: ImageBuffer, distortion: float) -> ImageBuffer:
    """
    Radial remap about the centre: r_src = r * (1 + k * r^2), r normalised to
    the half-diagonal. Positive k samples further out (barrel).
    """
    if distortion == 0:
        return img
    h, w = img.shape[:2]
    cx = (w - 1) / 2.0
    cy = (h - 1) / 2.0
    half_diag = math.hypot(cx, cy)
    if half_diag == 0:
        return img

    k = distortion / 100.0 * EFFECTS_CONSTANTS["distortion_k"]
    ys, xs = np.mgrid[0:h, 0:w].astype(np.float32)
    dx = xs - cx
    dy = ys - cy
    r2 = (dx * dx + dy * dy) / (half_diag * half_diag)
    factor = 1.0 + k * r2
    map_x = (cx + dx * factor).astype(np.float32)
    map_y = (cy + dy * factor).astype(np.float32)

    res = cv2.remap(
        np.ascontiguousarray(img, dtype=np.float32),
        map_x,
        map_y,
        interpolation=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_REPLICATE,
    )
    return ensure_image(res)


@time_function
def apply_sharpening(img: ImageBuffer, amount: float) -> ImageBuffer:
    """
    3x3 sharpen against a frozen copy, blended by amount/100. The outermost
    row and column keep their input values.
    """
    h, w = img.shape[:2]
    if amount <= 0 or h < 3 or w < 3:
        return img
    intensity = amount / 100.0
    conv = cv2.filter2D(np.ascontiguousarray(img), cv2.CV_32F, _SHARPEN_KERNEL, borderType=cv2.BORDER_REPLICATE)
    res = img.copy()
    inner = img[1:-1, 1:-1]
    res[1:-1, 1:-1] = inner + (conv[1:-1, 1:-1] - inner) * intensity
    return ensure_image(res)


@time_function
def apply_noise_reduction(img: ImageBuffer, amount: float) -> ImageBuffer:
    """
    Box blur of radius ceil(amount/100 * 3). Pixels closer than the radius
    to any edge are left untouched.
    """
    radius = noise_radius(amount)
    h, w = img.shape[:2]
    if radius == 0 or h <= 2 * radius or w <= 2 * radius:
        return img
    size = 2 * radius + 1
    blurred = cv2.blur(np.ascontiguousarray(img), (size, size), borderType=cv2.BORDER_REPLICATE)
    res = img.copy()
    res[radius:-radius, radius:-radius] = blurred[radius:-radius, radius:-radius]
    return ensure_image(res)


def vignette_falloff(h: int, w: int) -> ImageBuffer:
    """
    0 inside 20% of the half-diagonal, rising linearly to 1 at the corners.
    Distances are measured from pixel centres.
    """
    cx = w / 2.0
    cy = h / 2.0
    radius = math.hypot(cx, cy)
    inner = radius * EFFECTS_CONSTANTS["vignette_inner"]
    ys, xs = np.mgrid[0:h, 0:w].astype(np.float32)
    dist = np.hypot(xs + 0.5 - cx, ys + 0.5 - cy)
    t = np.clip((dist - inner) / (radius - inner), 0.0, 1.0)
    return ensure_image(t)


@time_function
def apply_vignette(img: ImageBuffer, amount: float) -> ImageBuffer:
    """
    Positive darkens toward the edge; negative brightens the centre.
    """
    if amount == 0:
        return img
    h, w = img.shape[:2]
    t = vignette_falloff(h, w)
    v = amount / 100.0
    if v > 0:
        alpha = t * (EFFECTS_CONSTANTS["vignette_dark_alpha"] * v)
        res = img * (1.0 - alpha)[..., None]
    else:
        alpha = (1.0 - t) * (EFFECTS_CONSTANTS["vignette_light_alpha"] * -v)
        res = img * (1.0 - alpha)[..., None] + (255.0 * alpha)[..., None]
    return ensure_image(res)


@time_function
def apply_grain(
    img: ImageBuffer, amount: float, rng: Optional[np.random.Generator] = None
) -> ImageBuffer:
    if amount <= 0:
        return img
    if rng is None:
        rng = np.random.default_rng()
    amp = EFFECTS_CONSTANTS["grain_amplitude"] * amount / 100.0
    noise = rng.uniform(-amp, amp, size=img.shape).astype(np.float32)
    return ensure_image(img + noise)


def apply_effects(
    img: ImageBuffer, config: EffectsConfig, rng: Optional[np.random.Generator] = None
) -> ImageBuffer:
    res = apply_lens_distortion(img, config.distortion)
    res = apply_sharpening(res, config.sharpening)
    res = apply_noise_reduction(res, config.noise)
    res = apply_vignette(res, config.vignette)
    return apply_grain(res, config.grain, rng)
