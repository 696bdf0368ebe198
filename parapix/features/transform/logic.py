import numpy as np
from parapix.domain.types import PixelBuffer
from parapix.features.transform.models import TransformState


def apply_transform(pixels: PixelBuffer, transform: TransformState) -> PixelBuffer:
    """
    Flips in image space, then rotates clockwise by the quarter-turn angle.
    The input is never modified; the identity transform returns it as-is.
    """
    if transform.is_identity:
        return pixels

    res = pixels
    if transform.flip_h:
        res = res[:, ::-1]
    if transform.flip_v:
        res = res[::-1, :]
    if transform.rotation:
        res = np.rot90(res, k=-(transform.rotation // 90))
    return np.ascontiguousarray(res)
