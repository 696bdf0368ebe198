from dataclasses import dataclass
from typing import Dict, Any
from parapix.domain.models import Adjustments

EFFECTS_CONSTANTS: Dict[str, Any] = {
    "sharpen_kernel": ((0.0, -1.0, 0.0), (-1.0, 5.0, -1.0), (0.0, -1.0, 0.0)),
    "noise_max_radius": 3,
    "vignette_inner": 0.2,  # Fraction of the half-diagonal where the falloff starts
    "vignette_dark_alpha": 0.7,
    "vignette_light_alpha": 0.3,
    "grain_amplitude": 25.0,
    "distortion_k": 0.3,
}


@dataclass(frozen=True)
class EffectsConfig:
    """
    Neighbourhood and stochastic effects on the rendered buffer.
    """

    distortion: float = 0.0
    sharpening: float = 0.0
    noise: float = 0.0
    vignette: float = 0.0
    grain: float = 0.0

    @classmethod
    def from_adjustments(cls, adj: Adjustments) -> "EffectsConfig":
        return cls(
            distortion=adj.distortion,
            sharpening=adj.sharpening,
            noise=adj.noise,
            vignette=adj.vignette,
            grain=adj.grain,
        )

    def is_neutral(self) -> bool:
        return self == EffectsConfig()
