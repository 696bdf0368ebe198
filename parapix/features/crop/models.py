from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class Handle(Enum):
    N = "n"
    S = "s"
    E = "e"
    W = "w"
    NE = "ne"
    NW = "nw"
    SE = "se"
    SW = "sw"

    @property
    def moves_left(self) -> bool:
        return "w" in self.value

    @property
    def moves_right(self) -> bool:
        return "e" in self.value

    @property
    def moves_top(self) -> bool:
        return "n" in self.value

    @property
    def moves_bottom(self) -> bool:
        return "s" in self.value

    @property
    def is_horizontal(self) -> bool:
        return self.moves_left or self.moves_right


class GestureState(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    RESIZING = "resizing"


@dataclass(frozen=True)
class CropBox:
    """
    Crop rectangle in canvas pixels.
    """

    x: float = 0.0
    y: float = 0.0
    width: float = 100.0
    height: float = 100.0

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def ratio(self) -> float:
        return self.width / self.height if self.height else 0.0

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return self.x, self.y, self.width, self.height


@dataclass(frozen=True)
class Gesture:
    """
    An in-flight pointer interaction, anchored to the box at gesture start.
    """

    state: GestureState
    start_pointer: Tuple[float, float]
    start_box: CropBox
    handle: Optional[Handle] = None
