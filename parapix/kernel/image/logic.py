import numpy as np
from typing import Tuple
from parapix.domain.types import ImageBuffer, PixelBuffer, LUMA_R, LUMA_G, LUMA_B
from parapix.kernel.image.validation import ensure_image


def split_alpha(pixels: PixelBuffer) -> Tuple[ImageBuffer, np.ndarray]:
    """
    Separates an RGBA buffer into a float32 working image and its alpha plane.
    """
    rgb = ensure_image(pixels[..., :3])
    alpha = pixels[..., 3].copy()
    return rgb, alpha


def merge_alpha(img: ImageBuffer, alpha: np.ndarray) -> PixelBuffer:
    """
    Terminal clamp: rounds and clamps every channel to [0, 255] once and
    re-attaches the untouched alpha plane.
    """
    rgb = np.clip(np.rint(np.nan_to_num(img)), 0, 255).astype(np.uint8)
    return np.dstack([rgb, alpha])


def get_luminance(img: ImageBuffer) -> ImageBuffer:
    res = LUMA_R * img[..., 0] + LUMA_G * img[..., 1] + LUMA_B * img[..., 2]
    return ensure_image(res)
