from typing import TypeAlias, Tuple
import numpy as np
import numpy.typing as npt


# Image Types
# Decoded RGBA image, 8 bits per channel (Height, Width, 4)
PixelBuffer: TypeAlias = npt.NDArray[np.uint8]
# Working RGB image on the 0-255 scale, unclamped (Height, Width, 3)
ImageBuffer: TypeAlias = npt.NDArray[np.float32]

# (Width, Height)
Dimensions: TypeAlias = Tuple[int, int]
# (x, y) in canvas pixels
Point: TypeAlias = Tuple[float, float]

# Rec.601 luma, used by the tonal gates
LUMA_R = 0.299
LUMA_G = 0.587
LUMA_B = 0.114
