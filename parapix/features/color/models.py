from dataclasses import dataclass, field
from typing import Dict, Any
from parapix.domain.models import Adjustments, HslAdjustments, SplitTone

COLOR_CONSTANTS: Dict[str, Any] = {
    "hue_shift_degrees": 30.0,  # Full band hue slider rotates the band by 30 deg
    "lum_strength": 0.3,
    "split_strength": 0.5,
    "fade_pull": 0.3,  # Fraction of the distance to mid-gray at fade=100
    "fade_lift": 15.0,  # 30 * 0.5 levels at fade=100
    "midpoint": 128.0,
}


@dataclass(frozen=True)
class ColorConfig:
    """
    Per-band HSL, split toning, vibrance, saturation and fade.
    """

    vibrance: float = 0.0
    saturation: float = 0.0
    fade: float = 0.0
    hsl: HslAdjustments = field(default_factory=HslAdjustments)
    split_highlights: SplitTone = field(default_factory=SplitTone)
    split_shadows: SplitTone = field(default_factory=SplitTone)
    split_balance: float = 0.0

    @classmethod
    def from_adjustments(cls, adj: Adjustments) -> "ColorConfig":
        return cls(
            vibrance=adj.vibrance,
            saturation=adj.saturation,
            fade=adj.fade,
            hsl=adj.hsl,
            split_highlights=adj.split_highlights,
            split_shadows=adj.split_shadows,
            split_balance=adj.split_balance,
        )

    @property
    def has_split_toning(self) -> bool:
        return self.split_highlights.amount > 0 or self.split_shadows.amount > 0

    @property
    def needs_hsl_pass(self) -> bool:
        return (
            not self.hsl.is_neutral
            or self.has_split_toning
            or self.vibrance != 0
            or self.saturation != 0
        )

    def is_neutral(self) -> bool:
        # split_balance only matters while a tone is active
        return not self.needs_hsl_pass and self.fade == 0
