from dataclasses import dataclass
from typing import Dict, Tuple

MIN_CROP_SIZE = 20

# Fraction of the limiting canvas dimension covered by a freshly fitted ratio crop
RATIO_FIT_COVERAGE = 0.9

HSL_BANDS: Tuple[str, ...] = (
    "red",
    "orange",
    "yellow",
    "green",
    "aqua",
    "blue",
    "purple",
    "magenta",
)

# Band centres in degrees, same order as HSL_BANDS
HSL_BAND_CENTERS: Tuple[float, ...] = (0.0, 30.0, 60.0, 120.0, 180.0, 240.0, 270.0, 300.0)


@dataclass(frozen=True)
class ExportPreset:
    name: str
    ratio: float
    width: int
    height: int


EXPORT_PRESETS: Dict[str, ExportPreset] = {
    "instagram-square": ExportPreset("instagram-square", 1.0, 1080, 1080),
    "instagram-portrait": ExportPreset("instagram-portrait", 4 / 5, 1080, 1350),
    "instagram-story": ExportPreset("instagram-story", 9 / 16, 1080, 1920),
    "youtube-thumbnail": ExportPreset("youtube-thumbnail", 16 / 9, 1280, 720),
    "facebook-post": ExportPreset("facebook-post", 1.91, 1200, 630),
    "twitter-post": ExportPreset("twitter-post", 16 / 9, 1600, 900),
}
