from dataclasses import dataclass
from typing import Dict, Any
from parapix.domain.models import Adjustments

BASIC_CONSTANTS: Dict[str, Any] = {
    "exposure_stops_per_unit": 0.02,  # exposure=+50 -> one stop (x2)
    "midpoint": 128.0,  # Pivot for contrast/clarity/dehaze
    "tonal_scale": 50.0,  # Max delta of highlights/shadows
    "clip_scale": 30.0,  # Max delta of whites/blacks
    "whites_gate": 192.0,
    "blacks_gate": 64.0,
    "clarity_strength": 0.5,
    "dehaze_strength": 0.3,
}


@dataclass(frozen=True)
class BasicConfig:
    """
    Light and presence sliders (exposure through dehaze).
    """

    exposure: float = 0.0
    contrast: float = 0.0
    highlights: float = 0.0
    shadows: float = 0.0
    whites: float = 0.0
    blacks: float = 0.0
    clarity: float = 0.0
    dehaze: float = 0.0

    @classmethod
    def from_adjustments(cls, adj: Adjustments) -> "BasicConfig":
        return cls(
            exposure=adj.exposure,
            contrast=adj.contrast,
            highlights=adj.highlights,
            shadows=adj.shadows,
            whites=adj.whites,
            blacks=adj.blacks,
            clarity=adj.clarity,
            dehaze=adj.dehaze,
        )

    def is_neutral(self) -> bool:
        return self == BasicConfig()
