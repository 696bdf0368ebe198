import math
from dataclasses import replace
from typing import Callable, Hashable, Optional, Tuple, Union
import cv2
import numpy as np
from parapix.domain.errors import ExportError
from parapix.domain.models import EditorContext, ExportFormat, ExportOptions, ExportResult
from parapix.domain.types import PixelBuffer
from parapix.kernel.system.config import APP_CONFIG
from parapix.kernel.system.logging import get_logger
from parapix.kernel.system.scheduling import Scheduler
from parapix.features.transform.logic import apply_transform
from parapix.services.rendering.pipeline import AdjustmentPipeline

logger = get_logger(__name__)


def resize_pixels(pixels: PixelBuffer, width: int, height: int) -> PixelBuffer:
    """
    Resamples an RGBA buffer; area averaging when shrinking.
    """
    h, w = pixels.shape[:2]
    if (w, h) == (width, height):
        return pixels
    interp = cv2.INTER_AREA if width < w and height < h else cv2.INTER_LINEAR
    return cv2.resize(np.ascontiguousarray(pixels), (width, height), interpolation=interp)


def _positive_int(value: Union[int, float], label: str) -> int:
    try:
        f = float(value)
    except (TypeError, ValueError):
        raise ExportError(f"Invalid {label}: {value!r}")
    if not math.isfinite(f) or f <= 0:
        raise ExportError(f"Invalid {label}: {value!r}")
    res = int(round(f))
    if res <= 0:
        raise ExportError(f"Invalid {label}: {value!r}")
    return res


def _pair_given(a: Optional[float], b: Optional[float], label: str) -> bool:
    if a is None and b is None:
        return False
    if a is None or b is None:
        raise ExportError(f"Both {label} width and height are required")
    return True


def resolve_export_dimensions(options: ExportOptions) -> Tuple[int, int]:
    """
    Output size with precedence resize > preset export size > crop box
    scaled back to source resolution.
    """
    scale = _validate_scale(options.display_scale)
    if _pair_given(options.resize_width, options.resize_height, "resize"):
        return (
            _positive_int(options.resize_width, "resize width"),  # type: ignore[arg-type]
            _positive_int(options.resize_height, "resize height"),  # type: ignore[arg-type]
        )
    if _pair_given(options.export_width, options.export_height, "export"):
        return (
            _positive_int(options.export_width, "export width"),  # type: ignore[arg-type]
            _positive_int(options.export_height, "export height"),  # type: ignore[arg-type]
        )
    return (
        _positive_int(options.crop_box.width / scale, "export width"),
        _positive_int(options.crop_box.height / scale, "export height"),
    )


def _validate_scale(scale: float) -> float:
    try:
        f = float(scale)
    except (TypeError, ValueError):
        raise ExportError(f"Invalid display scale: {scale!r}")
    if not math.isfinite(f) or f <= 0:
        raise ExportError(f"Invalid display scale: {scale!r}")
    return f


def _resolve_format(target: Union[ExportFormat, str]) -> ExportFormat:
    if isinstance(target, ExportFormat):
        return target
    try:
        return ExportFormat(str(target).lower())
    except ValueError:
        raise ExportError(f"Unsupported export format: {target!r}")


class RenderOrchestrator:
    """
    Turns an EditorContext into pixels: the canvas preview and the
    full-resolution export.
    """

    def __init__(self, pipeline: Optional[AdjustmentPipeline] = None) -> None:
        self.pipeline = pipeline or AdjustmentPipeline()
        self._base_key: Optional[str] = None
        self._base: Optional[PixelBuffer] = None

    def source_key(self, context: EditorContext) -> str:
        t = context.transform
        w, h = context.canvas_size
        return f"{context.generation}:{t.rotation}:{int(t.flip_h)}{int(t.flip_v)}:{w}x{h}"

    def base_buffer(self, context: EditorContext) -> PixelBuffer:
        """
        Transformed source resampled to canvas size; reused until the source,
        the transform or the canvas changes.
        """
        key = self.source_key(context)
        if self._base is None or self._base_key != key:
            w, h = context.canvas_size
            transformed = apply_transform(context.source, context.transform)
            self._base = resize_pixels(transformed, w, h)
            self._base_key = key
        return self._base

    def render(
        self,
        context: EditorContext,
        show_original: bool = False,
        rng: Optional[np.random.Generator] = None,
    ) -> PixelBuffer:
        base = self.base_buffer(context)
        if show_original:
            return base.copy()
        return self.pipeline.run(
            base,
            context.adjustments,
            source_key=self.source_key(context),
            rng=rng,
        )

    def export(
        self,
        context: EditorContext,
        options: ExportOptions,
        rng: Optional[np.random.Generator] = None,
    ) -> ExportResult:
        """
        Crops the transformed source at full resolution, resamples it to the
        resolved output size and runs the pipeline over it.

        Raises:
            ExportError: invalid dimensions or scale, empty source region or
                unknown format.
        """
        target_format = _resolve_format(options.target_format)
        scale = _validate_scale(options.display_scale)
        out_w, out_h = resolve_export_dimensions(options)

        transformed = apply_transform(context.source, context.transform)
        src_h, src_w = transformed.shape[:2]

        box = options.crop_box
        x0 = max(0, int(round(box.x / scale)))
        y0 = max(0, int(round(box.y / scale)))
        x1 = min(src_w, int(round((box.x + box.width) / scale)))
        y1 = min(src_h, int(round((box.y + box.height) / scale)))
        if x1 <= x0 or y1 <= y0:
            raise ExportError(
                f"Crop {box.as_tuple()} at scale {scale} selects no source pixels"
            )

        region = resize_pixels(transformed[y0:y1, x0:x1], out_w, out_h)
        pixels = self.pipeline.run(region, context.adjustments, rng=rng)

        quality = int(min(100, max(1, options.target_quality)))
        logger.info(
            f"Exported {out_w}x{out_h} {target_format.value} "
            f"from source region {x1 - x0}x{y1 - y0}"
        )
        return ExportResult(
            pixels=pixels,
            width=out_w,
            height=out_h,
            target_format=target_format,
            target_quality=quality,
        )

    def export_deferred(
        self,
        scheduler: Scheduler,
        context: EditorContext,
        options: ExportOptions,
        on_done: Callable[[ExportResult], None],
        on_error: Optional[Callable[[ExportError], None]] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> Hashable:
        """
        Schedules the export on a zero-delay callback. The editor state is
        captured now, so later edits do not leak into the running export.
        """
        frozen = replace(context)

        def _run() -> None:
            try:
                result = self.export(frozen, options, rng=rng)
            except ExportError as e:
                logger.error(f"Export failed: {e}")
                if on_error is None:
                    raise
                on_error(e)
                return
            on_done(result)

        return scheduler.schedule_after(0.0, _run)


class RenderCoalescer:
    """
    Collapses bursts of render requests into one render per frame interval.
    A newer request cancels and replaces the pending one.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        render_fn: Callable[[], None],
        interval_s: Optional[float] = None,
    ) -> None:
        self.scheduler = scheduler
        self.render_fn = render_fn
        self.interval_s = interval_s if interval_s is not None else APP_CONFIG.frame_interval_s
        self._token: Optional[Hashable] = None
        self._requests = 0

    @property
    def pending(self) -> bool:
        return self._token is not None

    def request(self) -> None:
        self.cancel()
        self._requests += 1
        seq = self._requests
        self._token = self.scheduler.schedule_after(self.interval_s, lambda: self._fire(seq))

    def cancel(self) -> None:
        if self._token is not None:
            self.scheduler.cancel(self._token)
            self._token = None

    def _fire(self, seq: int) -> None:
        if seq != self._requests or self._token is None:
            return
        self._token = None
        self.render_fn()
