from typing import Optional, Tuple, Union
from parapix.domain.types import Point
from parapix.kernel.image.validation import validate_float
from parapix.kernel.system.logging import get_logger
from parapix.features.crop.models import CropBox, Gesture, GestureState, Handle
from parapix.features.crop.logic import (
    drag_crop_box,
    fit_aspect_ratio,
    full_canvas_box,
    resize_crop_box,
    sanitize_crop_box,
)

logger = get_logger(__name__)


class CropGeometry:
    """
    Pointer-driven crop rectangle: Idle -> Dragging/Resizing -> Idle.

    Every move is computed from the box captured at gesture start, so a
    sequence of moves never accumulates rounding drift.
    """

    def __init__(
        self,
        canvas_size: Tuple[float, float],
        box: Optional[CropBox] = None,
        ratio: Optional[float] = None,
    ) -> None:
        self.canvas_w, self.canvas_h = (float(v) for v in canvas_size)
        self.ratio = ratio
        self._gesture: Optional[Gesture] = None
        if box is None:
            box = fit_aspect_ratio(self.canvas_w, self.canvas_h, ratio)
        self.box = sanitize_crop_box(box, self.canvas_w, self.canvas_h, ratio)

    @property
    def state(self) -> GestureState:
        if self._gesture is None:
            return GestureState.IDLE
        return self._gesture.state

    def set_canvas(self, canvas_size: Tuple[float, float], box: Optional[CropBox] = None) -> CropBox:
        """
        Switches to a new canvas and re-fits the crop for the current ratio.
        """
        self.canvas_w, self.canvas_h = (float(v) for v in canvas_size)
        self._gesture = None
        if box is None:
            box = fit_aspect_ratio(self.canvas_w, self.canvas_h, self.ratio)
        self.box = sanitize_crop_box(box, self.canvas_w, self.canvas_h, self.ratio)
        return self.box

    def set_aspect_ratio(self, ratio: Optional[float]) -> CropBox:
        self.ratio = ratio
        self._gesture = None
        if ratio is None:
            # Unlocking keeps the current framing
            self.box = sanitize_crop_box(self.box, self.canvas_w, self.canvas_h)
        else:
            self.box = fit_aspect_ratio(self.canvas_w, self.canvas_h, ratio)
        return self.box

    def reset(self) -> CropBox:
        self.ratio = None
        self._gesture = None
        self.box = full_canvas_box(self.canvas_w, self.canvas_h)
        return self.box

    def load(
        self,
        box: CropBox,
        ratio: Optional[float],
        canvas_size: Optional[Tuple[float, float]] = None,
    ) -> None:
        """
        Adopts a restored (box, ratio) pair, e.g. after undo.
        """
        if canvas_size is not None:
            self.canvas_w, self.canvas_h = (float(v) for v in canvas_size)
        self.ratio = ratio
        self._gesture = None
        self.box = sanitize_crop_box(box, self.canvas_w, self.canvas_h, ratio)

    # --- Gestures ---

    def gesture_start(self, pointer: Point, handle: Union[Handle, str, None] = None) -> None:
        if isinstance(handle, str):
            handle = Handle(handle)
        start = (validate_float(pointer[0]), validate_float(pointer[1]))
        self._gesture = Gesture(
            state=GestureState.DRAGGING if handle is None else GestureState.RESIZING,
            start_pointer=start,
            start_box=self.box,
            handle=handle,
        )

    def gesture_move(self, pointer: Point) -> CropBox:
        gesture = self._gesture
        if gesture is None:
            return self.box

        dx = validate_float(pointer[0]) - gesture.start_pointer[0]
        dy = validate_float(pointer[1]) - gesture.start_pointer[1]

        if gesture.state is GestureState.DRAGGING:
            self.box = drag_crop_box(gesture.start_box, dx, dy, self.canvas_w, self.canvas_h)
        elif gesture.handle is not None:
            self.box = resize_crop_box(
                gesture.start_box,
                gesture.handle,
                dx,
                dy,
                self.canvas_w,
                self.canvas_h,
                self.ratio,
            )
        return self.box

    def gesture_end(self) -> bool:
        """
        Finishes the gesture. Returns True when the box differs from the one
        at gesture start.
        """
        gesture = self._gesture
        self._gesture = None
        if gesture is None:
            return False
        return gesture.start_box != self.box
