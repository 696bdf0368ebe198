from typing import Any, cast
import math
import numpy as np
from parapix.domain.types import ImageBuffer, PixelBuffer


def ensure_image(arr: Any) -> ImageBuffer:
    """
    Ensures the input is a float32 numpy array and returns it as an ImageBuffer.
    """
    if not isinstance(arr, np.ndarray):
        raise TypeError(f"Expected numpy.ndarray, got {type(arr)}")

    if arr.dtype != np.float32:
        arr = arr.astype(np.float32)

    return cast(ImageBuffer, arr)


def ensure_pixel_buffer(arr: Any) -> PixelBuffer:
    """
    Validates a decoded RGBA buffer: (H, W, 4) uint8 with non-zero size.
    RGB input gets an opaque alpha channel appended.
    """
    if not isinstance(arr, np.ndarray):
        raise TypeError(f"Expected numpy.ndarray, got {type(arr)}")
    if arr.dtype != np.uint8:
        raise TypeError(f"Expected uint8 pixel buffer, got {arr.dtype}")
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise ValueError(f"Expected (H, W, 4) pixel buffer, got shape {arr.shape}")
    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise ValueError("Pixel buffer has no pixels")

    if arr.shape[2] == 3:
        alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
        arr = np.concatenate([arr, alpha], axis=2)
    return cast(PixelBuffer, arr)


def validate_float(val: Any, default: float = 0.0) -> float:
    """Ensures a value is a finite float, providing a default otherwise."""
    if val is None:
        return default
    try:
        f = float(val)
    except (TypeError, ValueError):
        return default
    return f if math.isfinite(f) else default
