import numpy as np
import pytest
from parapix.domain.errors import ExportError
from parapix.domain.models import (
    Adjustments,
    EditorContext,
    ExportFormat,
    ExportOptions,
)
from parapix.features.crop.models import CropBox
from parapix.features.transform.logic import apply_transform
from parapix.features.transform.models import TransformState, normalize_rotation
from parapix.kernel.system.scheduling import ManualScheduler
from parapix.services.rendering.orchestrator import (
    RenderCoalescer,
    RenderOrchestrator,
    resolve_export_dimensions,
)


def _source(h=40, w=60, seed=0):
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(h, w, 4), dtype=np.uint8)


def _context(source=None, scale=0.5, **kwargs):
    source = _source() if source is None else source
    ctx = EditorContext(source=source, display_scale=scale, **kwargs)
    w, h = ctx.canvas_size
    ctx.crop_box = CropBox(0, 0, w, h)
    return ctx


def _options(ctx, **kwargs):
    return ExportOptions(crop_box=ctx.crop_box, display_scale=ctx.display_scale, **kwargs)


# --- Transform ---


def test_transform_rotation_clockwise():
    arr = np.array([[1, 2, 3], [4, 5, 6]])
    res = apply_transform(arr, TransformState(rotation=90))
    assert np.array_equal(res, [[4, 1], [5, 2], [6, 3]])
    res = apply_transform(arr, TransformState(rotation=270))
    assert np.array_equal(res, [[3, 6], [2, 5], [1, 4]])
    res = apply_transform(arr, TransformState(rotation=180))
    assert np.array_equal(res, [[6, 5, 4], [3, 2, 1]])


def test_transform_flips_before_rotation():
    arr = np.array([[1, 2, 3], [4, 5, 6]])
    res = apply_transform(arr, TransformState(rotation=90, flip_h=True))
    assert np.array_equal(res, [[6, 3], [5, 2], [4, 1]])
    res = apply_transform(arr, TransformState(flip_v=True))
    assert np.array_equal(res, [[4, 5, 6], [1, 2, 3]])


def test_identity_transform_returns_input():
    arr = _source()
    assert apply_transform(arr, TransformState()) is arr


def test_normalize_rotation():
    assert normalize_rotation(-90) == 270
    assert normalize_rotation(450) == 90
    assert normalize_rotation(360) == 0
    assert TransformState(rotation=270).rotated(90).rotation == 0


# --- Preview ---


def test_render_matches_canvas_size():
    orch = RenderOrchestrator()
    ctx = _context()
    out = orch.render(ctx)
    assert out.shape == (20, 30, 4)
    assert out.dtype == np.uint8


def test_render_rotated_swaps_axes():
    orch = RenderOrchestrator()
    ctx = _context(transform=TransformState(rotation=90))
    assert ctx.canvas_size == (20, 30)
    assert orch.render(ctx).shape == (30, 20, 4)


def test_render_show_original_ignores_adjustments():
    orch = RenderOrchestrator()
    ctx = _context(adjustments=Adjustments(exposure=80))
    original = orch.render(ctx, show_original=True)
    edited = orch.render(ctx)
    assert np.array_equal(original, orch.base_buffer(ctx))
    assert not np.array_equal(original, edited)


def test_base_buffer_reused_until_key_changes():
    orch = RenderOrchestrator()
    ctx = _context()
    first = orch.base_buffer(ctx)
    assert orch.base_buffer(ctx) is first
    ctx.transform = TransformState(flip_h=True)
    assert orch.base_buffer(ctx) is not first


def test_source_key_tracks_generation():
    orch = RenderOrchestrator()
    ctx = _context()
    key = orch.source_key(ctx)
    ctx.generation += 1
    assert orch.source_key(ctx) != key


# --- Export dimensions ---


def test_dimensions_precedence():
    box = CropBox(0, 0, 100, 50)
    base = dict(crop_box=box, display_scale=0.5)
    assert resolve_export_dimensions(ExportOptions(**base)) == (200, 100)
    assert resolve_export_dimensions(
        ExportOptions(**base, export_width=1080, export_height=1080)
    ) == (1080, 1080)
    assert resolve_export_dimensions(
        ExportOptions(**base, export_width=1080, export_height=1080, resize_width=640, resize_height=480)
    ) == (640, 480)


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(resize_width=0, resize_height=100),
        dict(resize_width=-5, resize_height=100),
        dict(resize_width=float("nan"), resize_height=100),
        dict(resize_width=100),
        dict(export_height=100),
    ],
)
def test_invalid_dimensions_raise(kwargs):
    opts = ExportOptions(crop_box=CropBox(0, 0, 100, 50), display_scale=0.5, **kwargs)
    with pytest.raises(ExportError):
        resolve_export_dimensions(opts)


@pytest.mark.parametrize("scale", [0, -1, float("nan"), float("inf")])
def test_invalid_scale_raises(scale):
    with pytest.raises(ExportError):
        resolve_export_dimensions(ExportOptions(crop_box=CropBox(0, 0, 10, 10), display_scale=scale))


# --- Export ---


def test_full_neutral_export_is_exact_source():
    orch = RenderOrchestrator()
    ctx = _context()
    result = orch.export(ctx, _options(ctx, target_format=ExportFormat.PNG))
    assert (result.width, result.height) == (60, 40)
    assert np.array_equal(result.pixels, ctx.source)
    assert result.target_format is ExportFormat.PNG


def test_export_crop_region():
    orch = RenderOrchestrator()
    ctx = _context()
    ctx.crop_box = CropBox(5, 2.5, 10, 5)
    result = orch.export(ctx, _options(ctx))
    assert (result.width, result.height) == (20, 10)
    assert np.array_equal(result.pixels, ctx.source[5:15, 10:30])


def test_export_rotated_region():
    orch = RenderOrchestrator()
    ctx = _context(transform=TransformState(rotation=90))
    result = orch.export(ctx, _options(ctx))
    assert (result.width, result.height) == (40, 60)
    assert np.array_equal(result.pixels, np.rot90(ctx.source, k=-1))


def test_export_resize():
    orch = RenderOrchestrator()
    ctx = _context()
    result = orch.export(ctx, _options(ctx, resize_width=30, resize_height=15))
    assert result.pixels.shape == (15, 30, 4)


def test_export_quality_clamped_and_format_parsed():
    orch = RenderOrchestrator()
    ctx = _context()
    result = orch.export(ctx, _options(ctx, target_format="webp", target_quality=400))
    assert result.target_format is ExportFormat.WEBP
    assert result.target_quality == 100


def test_export_unknown_format_raises():
    orch = RenderOrchestrator()
    ctx = _context()
    with pytest.raises(ExportError):
        orch.export(ctx, _options(ctx, target_format="bmp"))


def test_export_empty_region_raises():
    orch = RenderOrchestrator()
    ctx = _context()
    opts = ExportOptions(crop_box=CropBox(500, 500, 10, 10), display_scale=0.5)
    with pytest.raises(ExportError):
        orch.export(ctx, opts)


def test_export_deferred_snapshots_state():
    orch = RenderOrchestrator()
    clock = ManualScheduler()
    ctx = _context()
    results = []
    orch.export_deferred(clock, ctx, _options(ctx, target_format=ExportFormat.PNG), results.append)
    ctx.adjustments = Adjustments(exposure=100)
    assert results == []
    clock.run_pending()
    assert len(results) == 1
    assert np.array_equal(results[0].pixels, ctx.source)


def test_export_deferred_error_callback():
    orch = RenderOrchestrator()
    clock = ManualScheduler()
    ctx = _context()
    errors = []
    opts = _options(ctx, resize_width=0, resize_height=10)
    orch.export_deferred(clock, ctx, opts, lambda r: None, on_error=errors.append)
    clock.run_pending()
    assert len(errors) == 1
    assert isinstance(errors[0], ExportError)


def test_export_deferred_without_error_callback_raises():
    orch = RenderOrchestrator()
    clock = ManualScheduler()
    ctx = _context()
    opts = _options(ctx, resize_width=0, resize_height=10)
    orch.export_deferred(clock, ctx, opts, lambda r: None)
    with pytest.raises(ExportError):
        clock.run_pending()


# --- Coalescing ---


def test_coalescer_renders_once_per_burst():
    clock = ManualScheduler()
    calls = []
    coalescer = RenderCoalescer(clock, lambda: calls.append(clock.now), interval_s=0.016)
    for _ in range(10):
        coalescer.request()
    assert coalescer.pending
    clock.advance(0.016)
    assert len(calls) == 1
    assert not coalescer.pending

    coalescer.request()
    coalescer.cancel()
    clock.advance(1.0)
    assert len(calls) == 1


def test_coalescer_ignores_superseded_callback():
    callbacks = []

    class _LateCancelScheduler:
        def schedule_after(self, delay, callback):
            callbacks.append(callback)
            return len(callbacks)

        def cancel(self, token):
            return False

    calls = []
    coalescer = RenderCoalescer(_LateCancelScheduler(), lambda: calls.append(1), interval_s=0.016)
    coalescer.request()
    coalescer.request()
    callbacks[0]()
    assert calls == []
    assert coalescer.pending
    callbacks[1]()
    assert calls == [1]
    assert not coalescer.pending
