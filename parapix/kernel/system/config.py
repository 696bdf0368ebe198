import os
import logging
from dataclasses import dataclass
from typing import Tuple


@dataclass
class AppConfig:
    history_capacity: int
    history_debounce_s: float
    frame_interval_s: float
    export_quality: int
    viewport_size: Tuple[int, int]
    log_level: int


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_viewport(name: str, default: Tuple[int, int]) -> Tuple[int, int]:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        w, h = (int(part) for part in raw.lower().split("x"))
    except ValueError:
        return default
    if w <= 0 or h <= 0:
        return default
    return w, h


def _env_log_level(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    level = logging.getLevelName(raw.upper())
    return level if isinstance(level, int) else default


# Global application constants
APP_CONFIG = AppConfig(
    history_capacity=max(1, _env_int("PARAPIX_HISTORY_CAPACITY", 30)),
    history_debounce_s=max(0, _env_int("PARAPIX_HISTORY_DEBOUNCE_MS", 300)) / 1000.0,
    frame_interval_s=max(0, _env_int("PARAPIX_FRAME_INTERVAL_MS", 16)) / 1000.0,
    export_quality=min(100, max(1, _env_int("PARAPIX_EXPORT_QUALITY", 92))),
    viewport_size=_env_viewport("PARAPIX_VIEWPORT", (1600, 1000)),
    log_level=_env_log_level("PARAPIX_LOG_LEVEL", logging.INFO),
)
