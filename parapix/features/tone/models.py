from dataclasses import dataclass
from typing import Dict, Any
from parapix.domain.models import Adjustments
from parapix.kernel.image.curves import CurvePoints, IDENTITY_CURVE, is_identity_curve

TONE_CONSTANTS: Dict[str, Any] = {
    # Per-channel temperature gains; warm and cool are deliberately asymmetric
    "warm_gains": (0.6, 0.2, -0.5),
    "cool_gains": (0.5, 0.1, -0.6),
    "tint_green": 0.3,
    "tint_red_blue": 0.15,
}


@dataclass(frozen=True)
class ToneConfig:
    """
    White balance and the resolved tone curve.
    """

    temperature: float = 0.0
    tint: float = 0.0
    curve: CurvePoints = IDENTITY_CURVE

    @classmethod
    def from_adjustments(cls, adj: Adjustments) -> "ToneConfig":
        return cls(
            temperature=adj.temperature,
            tint=adj.tint,
            curve=adj.curve_points,
        )

    @property
    def has_white_balance(self) -> bool:
        return self.temperature != 0 or self.tint != 0

    @property
    def has_curve(self) -> bool:
        return not is_identity_curve(self.curve)

    def is_neutral(self) -> bool:
        return not self.has_white_balance and not self.has_curve

    def to_dict(self) -> Dict[str, Any]:
        return {
            "temperature": self.temperature,
            "tint": self.tint,
            "curve": [[p.x, p.y] for p in self.curve],
        }
