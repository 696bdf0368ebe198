from dataclasses import dataclass, replace


@dataclass(frozen=True)
class TransformState:
    rotation: int = 0  # Clockwise degrees, one of 0/90/180/270
    flip_h: bool = False
    flip_v: bool = False

    @property
    def swaps_axes(self) -> bool:
        return self.rotation in (90, 270)

    @property
    def is_identity(self) -> bool:
        return self.rotation == 0 and not self.flip_h and not self.flip_v

    def rotated(self, degrees: int) -> "TransformState":
        return replace(self, rotation=normalize_rotation(self.rotation + degrees))

    def flipped(self, horizontal: bool) -> "TransformState":
        if horizontal:
            return replace(self, flip_h=not self.flip_h)
        return replace(self, flip_v=not self.flip_v)


def normalize_rotation(degrees: int) -> int:
    """
    Snaps any angle to the nearest quarter turn in [0, 360).
    """
    return int(round(degrees / 90.0)) % 4 * 90
