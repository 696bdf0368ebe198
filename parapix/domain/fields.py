import math
import string
from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class FieldSpec:
    """
    Declared domain of a scalar adjustment.
    """

    default: float
    minimum: float
    maximum: float

    def clamp(self, value: Any) -> float:
        """
        Clamps to [minimum, maximum]. Non-numeric or NaN input resolves to the
        default.
        """
        try:
            v = float(value)
        except (TypeError, ValueError):
            return self.default
        if math.isnan(v):
            return self.default
        return min(self.maximum, max(self.minimum, v))


_SIGNED = FieldSpec(0, -100, 100)
_UNSIGNED = FieldSpec(0, 0, 100)

# Static registry of every scalar slider. Neutral value == default.
ADJUSTMENT_FIELDS: Dict[str, FieldSpec] = {
    # Basic - Light
    "exposure": _SIGNED,
    "contrast": _SIGNED,
    "highlights": _SIGNED,
    "shadows": _SIGNED,
    "whites": _SIGNED,
    "blacks": _SIGNED,
    # Basic - Presence
    "clarity": _SIGNED,
    "dehaze": _SIGNED,
    "vibrance": _SIGNED,
    "saturation": _SIGNED,
    # Tone - White Balance
    "temperature": _SIGNED,
    "tint": _SIGNED,
    # Effects
    "sharpening": _UNSIGNED,
    "noise": _UNSIGNED,
    "vignette": _SIGNED,
    "grain": _UNSIGNED,
    "fade": _SIGNED,
    "distortion": _SIGNED,
    # Split toning
    "split_balance": _SIGNED,
}

HSL_CHANNEL_SPEC = _SIGNED
SPLIT_AMOUNT_SPEC = _UNSIGNED


def clamp_field_value(name: str, value: Any) -> float:
    """
    Intake helper: clamps a slider write to its declared range.
    """
    spec = ADJUSTMENT_FIELDS.get(name)
    if spec is None:
        raise KeyError(f"Unknown adjustment field: {name}")
    return spec.clamp(value)


def normalize_hex_color(value: Any, default: str = "#000000") -> str:
    """
    Returns a lowercase ``#rrggbb`` string, accepting ``#rgb`` shorthand.
    Anything unparsable resolves to ``default``.
    """
    if not isinstance(value, str):
        return default
    text = value.strip().lstrip("#")
    if len(text) == 3:
        text = "".join(ch * 2 for ch in text)
    if len(text) != 6 or not all(c in string.hexdigits for c in text):
        return default
    return f"#{text.lower()}"
