import math
from typing import Dict, NamedTuple, Sequence, Tuple, Union, Any
import numpy as np
import numpy.typing as npt
from parapix.kernel.system.logging import get_logger

logger = get_logger(__name__)


class CurvePoint(NamedTuple):
    x: float
    y: float


CurvePoints = Tuple[CurvePoint, ...]
CurveSpec = Union[str, Sequence[Any]]

IDENTITY_CURVE: CurvePoints = (CurvePoint(0.0, 0.0), CurvePoint(1.0, 1.0))

CURVE_PRESETS: Dict[str, CurvePoints] = {
    "linear": IDENTITY_CURVE,
    "contrast": (
        CurvePoint(0.0, 0.0),
        CurvePoint(0.25, 0.15),
        CurvePoint(0.75, 0.85),
        CurvePoint(1.0, 1.0),
    ),
    "fade": (CurvePoint(0.0, 0.1), CurvePoint(1.0, 0.9)),
}


def smoothstep(r: float) -> float:
    return r * r * (3.0 - 2.0 * r)


def evaluate_curve(points: Sequence[CurvePoint], t: float) -> float:
    """
    Smoothstep-weighted interpolation between the control points bracketing t.

    Points must be sorted by x. Values left of the first point use the first
    segment, values right of the last point use the last segment, and the
    segment ratio is held to [0, 1] so the curve extends flat beyond its ends.
    Exactly returns the control-point y at every control-point x.
    """
    n = len(points)
    if n == 0:
        return t
    if n == 1:
        return points[0].y

    p1, p2 = points[-2], points[-1]
    if t <= points[0].x:
        p1, p2 = points[0], points[1]
    else:
        for i in range(n - 1):
            if points[i].x <= t <= points[i + 1].x:
                p1, p2 = points[i], points[i + 1]
                break

    span = p2.x - p1.x
    if span <= 0:
        return p1.y
    ratio = (t - p1.x) / span
    if ratio <= 0.0:
        return p1.y
    if ratio >= 1.0:
        return p2.y
    return p1.y + (p2.y - p1.y) * smoothstep(ratio)


def _coerce_point(raw: Any) -> CurvePoint:
    if isinstance(raw, dict):
        return CurvePoint(float(raw["x"]), float(raw["y"]))
    if hasattr(raw, "x") and hasattr(raw, "y"):
        return CurvePoint(float(raw.x), float(raw.y))
    x, y = raw
    return CurvePoint(float(x), float(y))


def validate_curve_points(raw_points: Sequence[Any]) -> CurvePoints | None:
    """
    Returns the points as a tuple when they form a usable curve, else None.

    A usable curve has at least two points inside [0, 1]^2, strictly increasing
    x, and endpoints at x=0 and x=1.
    """
    try:
        points = tuple(_coerce_point(p) for p in raw_points)
    except (TypeError, ValueError, KeyError):
        return None

    if len(points) < 2:
        return None
    for p in points:
        if not (math.isfinite(p.x) and math.isfinite(p.y)):
            return None
        if not (0.0 <= p.x <= 1.0 and 0.0 <= p.y <= 1.0):
            return None
    if points[0].x != 0.0 or points[-1].x != 1.0:
        return None
    if any(b.x <= a.x for a, b in zip(points, points[1:])):
        return None
    return points


def resolve_curve(curve: CurveSpec) -> CurvePoints:
    """
    Maps a curve selector (preset name or point list) to control points.
    Degenerate input falls back to the identity curve.
    """
    if isinstance(curve, str):
        preset = CURVE_PRESETS.get(curve)
        if preset is None:
            logger.warning(f"Unknown curve preset '{curve}', using linear")
            return IDENTITY_CURVE
        return preset

    points = validate_curve_points(curve)
    if points is None:
        logger.warning("Degenerate tone curve, falling back to identity")
        return IDENTITY_CURVE
    return points


def is_identity_curve(points: Sequence[CurvePoint]) -> bool:
    return (
        len(points) == 2
        and points[0].x == 0.0
        and points[0].y == 0.0
        and points[1].x == 1.0
        and points[1].y == 1.0
    )


def build_curve_lut(points: Sequence[CurvePoint]) -> npt.NDArray[np.float32]:
    """
    Samples the curve at t = i/255 into a 256-entry table on the 0-255 scale.
    """
    lut = np.empty(256, dtype=np.float32)
    for i in range(256):
        lut[i] = evaluate_curve(points, i / 255.0) * 255.0
    return lut
