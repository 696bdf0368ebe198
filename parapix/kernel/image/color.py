from typing import Tuple
from numba import njit  # type: ignore


@njit(cache=True)
def rgb_to_hsl(r: float, g: float, b: float) -> Tuple[float, float, float]:
    """
    RGB on the 0-255 scale to (h, s, l) normalised to [0, 1], h in [0, 1).

    Accepts unclamped channel values; a degenerate denominator yields s = 0.
    """
    rf = float(r)
    gf = float(g)
    bf = float(b)
    mx = max(rf, gf, bf)
    mn = min(rf, gf, bf)
    l = (mx + mn) / 510.0

    if mx == mn:
        return 0.0, 0.0, l

    d = mx - mn
    if l > 0.5:
        den = 510.0 - mx - mn
    else:
        den = mx + mn
    s = d / den if den > 0.0 else 0.0

    if mx == rf:
        h = (gf - bf) / d + (6.0 if gf < bf else 0.0)
    elif mx == gf:
        h = (bf - rf) / d + 2.0
    else:
        h = (rf - gf) / d + 4.0
    h /= 6.0
    if h >= 1.0:
        h -= 1.0
    return h, s, l


@njit(cache=True)
def _hue_to_channel(p: float, q: float, t: float) -> float:
    if t < 0.0:
        t += 1.0
    if t > 1.0:
        t -= 1.0
    if t < 1.0 / 6.0:
        return p + (q - p) * 6.0 * t
    if t < 0.5:
        return q
    if t < 2.0 / 3.0:
        return p + (q - p) * (2.0 / 3.0 - t) * 6.0
    return p


@njit(cache=True)
def hsl_to_rgb(h: float, s: float, l: float) -> Tuple[float, float, float]:
    """
    Inverse of rgb_to_hsl; returns channels on the 0-255 scale.
    """
    hf = float(h)
    sf = float(s)
    lf = float(l)
    if sf == 0.0:
        v = lf * 255.0
        return v, v, v

    if lf < 0.5:
        q = lf * (1.0 + sf)
    else:
        q = lf + sf - lf * sf
    p = 2.0 * lf - q

    return (
        _hue_to_channel(p, q, hf + 1.0 / 3.0) * 255.0,
        _hue_to_channel(p, q, hf) * 255.0,
        _hue_to_channel(p, q, hf - 1.0 / 3.0) * 255.0,
    )


def hex_to_rgb(color: str) -> Tuple[int, int, int]:
    """
    Parses ``#rrggbb`` into integer channels.
    """
    text = color.lstrip("#")
    return int(text[0:2], 16), int(text[2:4], 16), int(text[4:6], 16)
