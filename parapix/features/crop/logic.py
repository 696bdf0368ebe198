import math
from typing import Optional, Tuple
from parapix.domain.constants import MIN_CROP_SIZE, RATIO_FIT_COVERAGE
from parapix.kernel.image.validation import validate_float
from parapix.kernel.system.logging import get_logger
from parapix.features.crop.models import CropBox, Handle

logger = get_logger(__name__)


def parse_ratio(text: Optional[str]) -> Optional[float]:
    """
    Parses an aspect-ratio selector. ``None``/``"free"`` unlock the ratio,
    ``"w:h"`` and plain numbers lock it.
    """
    if text is None:
        return None
    value = text.strip().lower()
    if value in ("", "free"):
        return None
    try:
        if ":" in value:
            w_r, h_r = (float(p) for p in value.split(":"))
            ratio = w_r / h_r
        else:
            ratio = float(value)
    except (ValueError, ZeroDivisionError):
        raise ValueError(f"Invalid aspect ratio: {text!r}")
    if not math.isfinite(ratio) or ratio <= 0:
        raise ValueError(f"Invalid aspect ratio: {text!r}")
    return ratio


def full_canvas_box(canvas_w: float, canvas_h: float) -> CropBox:
    return CropBox(0.0, 0.0, float(canvas_w), float(canvas_h))


def fit_aspect_ratio(canvas_w: float, canvas_h: float, ratio: Optional[float]) -> CropBox:
    """
    Largest centred box of the given ratio covering 90% of the limiting
    canvas dimension. Without a ratio the whole canvas is selected.
    """
    if ratio is None:
        return full_canvas_box(canvas_w, canvas_h)

    if ratio > canvas_w / canvas_h:
        width = canvas_w * RATIO_FIT_COVERAGE
        height = width / ratio
    else:
        height = canvas_h * RATIO_FIT_COVERAGE
        width = height * ratio

    box = CropBox((canvas_w - width) / 2.0, (canvas_h - height) / 2.0, width, height)
    return sanitize_crop_box(box, canvas_w, canvas_h, ratio)


def _min_size(ratio: Optional[float]) -> Tuple[float, float]:
    if ratio is None:
        return float(MIN_CROP_SIZE), float(MIN_CROP_SIZE)
    min_w = max(float(MIN_CROP_SIZE), MIN_CROP_SIZE * ratio)
    return min_w, min_w / ratio


def sanitize_crop_box(
    box: CropBox, canvas_w: float, canvas_h: float, ratio: Optional[float] = None
) -> CropBox:
    """
    Repairs a box so it satisfies the crop invariants for the canvas.

    Non-finite or non-positive dimensions are replaced with the minimum size,
    oversize boxes are shrunk (proportionally when a ratio is locked) and the
    origin is pulled inside the canvas.
    """
    width = validate_float(box.width, 0.0)
    height = validate_float(box.height, 0.0)
    if width <= 0 or height <= 0:
        logger.warning(f"Invalid crop dimensions {box.width}x{box.height}, repairing")

    min_w, min_h = _min_size(ratio)
    if ratio is not None:
        if width <= 0:
            width = height * ratio if height > 0 else min_w
        if height <= 0 or abs(width / height - ratio) > 1e-9:
            height = width / ratio
        if width < min_w:
            width, height = min_w, min_h
        scale = min(1.0, canvas_w / width, canvas_h / height)
        if scale < 1.0:
            width *= scale
            height = width / ratio
    else:
        width = min(max(width, min_w), canvas_w)
        height = min(max(height, min_h), canvas_h)

    x = min(max(validate_float(box.x, 0.0), 0.0), max(0.0, canvas_w - width))
    y = min(max(validate_float(box.y, 0.0), 0.0), max(0.0, canvas_h - height))
    return CropBox(x, y, width, height)


def drag_crop_box(
    start: CropBox, dx: float, dy: float, canvas_w: float, canvas_h: float
) -> CropBox:
    """
    Translates the box by the pointer delta, keeping it inside the canvas.
    """
    dx = validate_float(dx, 0.0)
    dy = validate_float(dy, 0.0)
    x = min(max(0.0, start.x + dx), max(0.0, canvas_w - start.width))
    y = min(max(0.0, start.y + dy), max(0.0, canvas_h - start.height))
    return CropBox(x, y, start.width, start.height)


def resize_crop_box(
    start: CropBox,
    handle: Handle,
    dx: float,
    dy: float,
    canvas_w: float,
    canvas_h: float,
    ratio: Optional[float] = None,
) -> CropBox:
    """
    Resizes the gesture-start box by dragging one handle.

    1. Edges named by the handle move by the pointer delta.
    2. A locked ratio derives height from width for handles with an east/west
       component, width from height for pure north/south handles.
    3. Minimum size is restored by growing away from the anchored edge.
    4. Canvas overflow is resolved by shrinking toward the anchored edge,
       both dimensions together when a ratio is locked.
    5. The edge opposite the handle stays where it was.
    """
    dx = validate_float(dx, 0.0)
    dy = validate_float(dy, 0.0)

    right = start.right
    bottom = start.bottom
    width = start.width
    height = start.height

    if handle.moves_right:
        width = start.width + dx
    if handle.moves_left:
        width = start.width - dx
    if handle.moves_bottom:
        height = start.height + dy
    if handle.moves_top:
        height = start.height - dy

    if ratio is not None:
        if handle.is_horizontal:
            height = width / ratio
        else:
            width = height * ratio

    min_w, min_h = _min_size(ratio)
    if ratio is not None:
        if width < min_w:
            width, height = min_w, min_h
    else:
        width = max(width, min_w)
        height = max(height, min_h)

    max_w = right if handle.moves_left else canvas_w - start.x
    max_h = bottom if handle.moves_top else canvas_h - start.y

    if ratio is not None:
        scale = min(1.0, max_w / width, max_h / height)
        width *= scale
        height = width / ratio
    else:
        width = min(width, max_w)
        height = min(height, max_h)

    if width < min_w - 1e-9 or height < min_h - 1e-9:
        logger.debug(
            f"Canvas {canvas_w}x{canvas_h} too small for minimum crop, "
            f"keeping {width:.1f}x{height:.1f}"
        )

    x = right - width if handle.moves_left else start.x
    y = bottom - height if handle.moves_top else start.y
    return CropBox(x, y, width, height)
