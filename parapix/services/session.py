from typing import Any, Callable, Hashable, Optional, Tuple, Union
import numpy as np
from parapix.domain.constants import EXPORT_PRESETS
from parapix.domain.errors import ExportError
from parapix.domain.models import (
    Adjustments,
    EditorContext,
    EditorSnapshot,
    ExportFormat,
    ExportOptions,
    ExportResult,
)
from parapix.domain.types import PixelBuffer, Point
from parapix.kernel.image.validation import ensure_pixel_buffer
from parapix.kernel.system.config import APP_CONFIG
from parapix.kernel.system.logging import get_logger
from parapix.kernel.system.scheduling import ManualScheduler, Scheduler
from parapix.features.crop.logic import parse_ratio
from parapix.features.crop.models import CropBox, GestureState, Handle
from parapix.features.crop.session import CropGeometry
from parapix.features.transform.models import TransformState
from parapix.services.history.manager import HistoryManager
from parapix.services.rendering.orchestrator import RenderCoalescer, RenderOrchestrator

logger = get_logger(__name__)

FrameListener = Callable[[PixelBuffer], None]


def fit_display_scale(width: int, height: int, viewport: Tuple[int, int]) -> float:
    """
    Largest scale that fits the image in the viewport without upscaling.
    """
    vw, vh = viewport
    return min(vw / width, vh / height, 1.0)


class EditorSession:
    """
    Owner of the editable state for one open image.

    Wires parameter intake, crop gestures and transforms to the history log
    and the render coalescer. All collaborators share one scheduler. The
    default is a ManualScheduler: deferred renders, history commits and
    exports run only when the host loop calls ``scheduler.advance``, on the
    host's own thread.
    """

    def __init__(
        self,
        scheduler: Optional[Scheduler] = None,
        orchestrator: Optional[RenderOrchestrator] = None,
        viewport: Optional[Tuple[int, int]] = None,
        history_capacity: Optional[int] = None,
        history_debounce_s: Optional[float] = None,
        frame_interval_s: Optional[float] = None,
    ) -> None:
        self.scheduler = scheduler or ManualScheduler()
        self.orchestrator = orchestrator or RenderOrchestrator()
        self.viewport = viewport or APP_CONFIG.viewport_size
        self.history = HistoryManager(self.scheduler, history_capacity, history_debounce_s)
        self.context: Optional[EditorContext] = None
        self.crop: Optional[CropGeometry] = None
        self.frame_listener: Optional[FrameListener] = None
        self.last_frame: Optional[PixelBuffer] = None
        self._coalescer = RenderCoalescer(self.scheduler, self._render_frame, frame_interval_s)
        self._generation = 0

    # --- Loading ---

    def load_image(self, pixels: Any) -> EditorContext:
        """
        Replaces the source. Transform, adjustments, crop and history are all
        reset and the initial state becomes the first history entry.
        """
        source = ensure_pixel_buffer(pixels)
        self._generation += 1
        h, w = source.shape[:2]
        self.context = EditorContext(
            source=source,
            display_scale=fit_display_scale(w, h, self.viewport),
            generation=self._generation,
        )
        self.crop = CropGeometry(self.context.canvas_size)
        self.context.crop_box = self.crop.box

        self.history.clear()
        self.history.commit_immediate(self.context.snapshot())
        logger.info(
            f"Loaded {w}x{h} image, canvas {self.context.canvas_size} "
            f"(scale {self.context.display_scale:.3f})"
        )
        self.request_render()
        return self.context

    @property
    def has_image(self) -> bool:
        return self.context is not None

    def _require(self) -> Tuple[EditorContext, CropGeometry]:
        if self.context is None or self.crop is None:
            raise RuntimeError("No image loaded")
        return self.context, self.crop

    # --- Adjustments (debounced history) ---

    def _update_adjustments(self, adjustments: Adjustments) -> Adjustments:
        ctx, _ = self._require()
        if adjustments != ctx.adjustments:
            ctx.adjustments = adjustments
            self.history.commit_debounced(ctx.snapshot())
            self.request_render()
        return ctx.adjustments

    def set_adjustment(self, name: str, value: Any) -> Adjustments:
        ctx, _ = self._require()
        return self._update_adjustments(ctx.adjustments.with_value(name, value))

    def set_hsl(self, band: str, channel: str, value: Any) -> Adjustments:
        ctx, _ = self._require()
        return self._update_adjustments(ctx.adjustments.with_hsl(band, channel, value))

    def set_split_tone(
        self, tone: str, color: Optional[str] = None, amount: Optional[Any] = None
    ) -> Adjustments:
        ctx, _ = self._require()
        return self._update_adjustments(ctx.adjustments.with_split_tone(tone, color, amount))

    def set_curve(self, curve: Any) -> Adjustments:
        ctx, _ = self._require()
        return self._update_adjustments(ctx.adjustments.with_curve(curve))

    def set_adjustments(self, adjustments: Adjustments) -> Adjustments:
        return self._update_adjustments(adjustments.sanitized())

    def reset_adjustments(self) -> Adjustments:
        return self._update_adjustments(Adjustments())

    # --- Geometry (immediate history) ---

    def _refit_canvas(self) -> None:
        ctx, crop = self._require()
        w, h = ctx.source_size
        ctx.display_scale = fit_display_scale(w, h, self.viewport)
        ctx.crop_box = crop.set_canvas(ctx.canvas_size)

    def rotate(self, degrees: int) -> TransformState:
        """
        Quarter-turn rotation. The canvas and crop are re-fitted, adjustments
        are kept.
        """
        ctx, _ = self._require()
        ctx.transform = ctx.transform.rotated(degrees)
        self._refit_canvas()
        self.history.commit_immediate(ctx.snapshot())
        self.request_render()
        return ctx.transform

    def flip(self, horizontal: bool = True) -> TransformState:
        ctx, _ = self._require()
        ctx.transform = ctx.transform.flipped(horizontal)
        self._refit_canvas()
        self.history.commit_immediate(ctx.snapshot())
        self.request_render()
        return ctx.transform

    def apply_preset(self, name: str) -> CropBox:
        """
        Locks the preset's ratio and output size and re-fits the crop.
        """
        preset = EXPORT_PRESETS.get(name)
        if preset is None:
            raise KeyError(f"Unknown export preset: {name}")
        ctx, crop = self._require()
        ctx.aspect_ratio = preset.ratio
        ctx.export_width = preset.width
        ctx.export_height = preset.height
        ctx.crop_box = crop.set_aspect_ratio(preset.ratio)
        self.history.commit_immediate(ctx.snapshot())
        return ctx.crop_box

    def set_aspect_ratio(self, ratio: Union[str, float, None]) -> CropBox:
        """
        Accepts ``"free"``, ``"w:h"`` or a number. Clears any preset output
        size.
        """
        ctx, crop = self._require()
        value = parse_ratio(ratio) if isinstance(ratio, str) or ratio is None else float(ratio)
        ctx.aspect_ratio = value
        ctx.export_width = None
        ctx.export_height = None
        ctx.crop_box = crop.set_aspect_ratio(value)
        self.history.commit_immediate(ctx.snapshot())
        return ctx.crop_box

    # --- Crop gestures ---

    @property
    def gesture_state(self) -> GestureState:
        return self.crop.state if self.crop is not None else GestureState.IDLE

    def gesture_start(self, pointer: Point, handle: Union[Handle, str, None] = None) -> None:
        _, crop = self._require()
        crop.gesture_start(pointer, handle)

    def gesture_move(self, pointer: Point) -> CropBox:
        ctx, crop = self._require()
        ctx.crop_box = crop.gesture_move(pointer)
        return ctx.crop_box

    def gesture_end(self) -> bool:
        ctx, crop = self._require()
        changed = crop.gesture_end()
        if changed:
            ctx.crop_box = crop.box
            self.history.commit_immediate(ctx.snapshot())
        return changed

    # --- History ---

    def snapshot(self) -> EditorSnapshot:
        ctx, _ = self._require()
        return ctx.snapshot()

    def restore(self, snapshot: EditorSnapshot) -> None:
        """
        Applies a snapshot without touching history.
        """
        ctx, crop = self._require()
        ctx.restore(snapshot)
        w, h = ctx.source_size
        ctx.display_scale = fit_display_scale(w, h, self.viewport)
        crop.load(snapshot.crop_box, snapshot.aspect_ratio, ctx.canvas_size)
        ctx.crop_box = crop.box
        self.request_render()

    def undo(self) -> bool:
        snapshot = self.history.undo()
        if snapshot is None:
            return False
        self.restore(snapshot)
        return True

    def redo(self) -> bool:
        snapshot = self.history.redo()
        if snapshot is None:
            return False
        self.restore(snapshot)
        return True

    # --- Rendering ---

    def render(
        self, show_original: bool = False, rng: Optional[np.random.Generator] = None
    ) -> PixelBuffer:
        ctx, _ = self._require()
        return self.orchestrator.render(ctx, show_original=show_original, rng=rng)

    def request_render(self) -> None:
        """
        Coalesced preview render; the newest request wins.
        """
        if self.context is not None:
            self._coalescer.request()

    def _render_frame(self) -> None:
        self.last_frame = self.render()
        if self.frame_listener is not None:
            self.frame_listener(self.last_frame)

    # --- Export ---

    def resize_dimensions_for_width(self, width: int) -> Tuple[int, int]:
        """
        Pairs a typed output width with the height that keeps the crop ratio.
        """
        ctx, _ = self._require()
        ratio = ctx.crop_box.width / ctx.crop_box.height
        return int(width), max(1, int(round(width / ratio)))

    def resize_dimensions_for_height(self, height: int) -> Tuple[int, int]:
        ctx, _ = self._require()
        ratio = ctx.crop_box.width / ctx.crop_box.height
        return max(1, int(round(height * ratio))), int(height)

    def export_options(
        self,
        target_format: Union[ExportFormat, str] = ExportFormat.JPEG,
        quality: Optional[int] = None,
        resize: Optional[Tuple[int, int]] = None,
    ) -> ExportOptions:
        ctx, _ = self._require()
        if isinstance(target_format, str):
            try:
                target_format = ExportFormat(target_format.lower())
            except ValueError:
                raise ExportError(f"Unsupported export format: {target_format!r}")
        return ExportOptions(
            crop_box=ctx.crop_box,
            display_scale=ctx.display_scale,
            target_format=target_format,
            target_quality=quality if quality is not None else APP_CONFIG.export_quality,
            resize_width=resize[0] if resize else None,
            resize_height=resize[1] if resize else None,
            export_width=ctx.export_width,
            export_height=ctx.export_height,
        )

    def export(
        self,
        target_format: Union[ExportFormat, str] = ExportFormat.JPEG,
        quality: Optional[int] = None,
        resize: Optional[Tuple[int, int]] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> ExportResult:
        ctx, _ = self._require()
        options = self.export_options(target_format, quality, resize)
        return self.orchestrator.export(ctx, options, rng=rng)

    def export_deferred(
        self,
        on_done: Callable[[ExportResult], None],
        on_error: Optional[Callable[[ExportError], None]] = None,
        target_format: Union[ExportFormat, str] = ExportFormat.JPEG,
        quality: Optional[int] = None,
        resize: Optional[Tuple[int, int]] = None,
    ) -> Hashable:
        ctx, _ = self._require()
        options = self.export_options(target_format, quality, resize)
        return self.orchestrator.export_deferred(
            self.scheduler, ctx, options, on_done, on_error
        )
