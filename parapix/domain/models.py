from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Any, Optional, Tuple, Union
from parapix.domain.constants import HSL_BANDS
from parapix.domain.fields import (
    ADJUSTMENT_FIELDS,
    HSL_CHANNEL_SPEC,
    SPLIT_AMOUNT_SPEC,
    clamp_field_value,
    normalize_hex_color,
)
from parapix.domain.types import PixelBuffer
from parapix.kernel.image.curves import (
    CurvePoint,
    CurvePoints,
    CURVE_PRESETS,
    is_identity_curve,
    resolve_curve,
)
from parapix.features.crop.models import CropBox
from parapix.features.transform.models import TransformState


@dataclass(frozen=True)
class HslBand:
    hue: float = 0.0
    sat: float = 0.0
    lum: float = 0.0

    @property
    def is_neutral(self) -> bool:
        return self.hue == 0 and self.sat == 0 and self.lum == 0


@dataclass(frozen=True)
class HslAdjustments:
    """
    Per-band hue/saturation/luminance shifts for the 8 fixed hue ranges.
    """

    red: HslBand = field(default_factory=HslBand)
    orange: HslBand = field(default_factory=HslBand)
    yellow: HslBand = field(default_factory=HslBand)
    green: HslBand = field(default_factory=HslBand)
    aqua: HslBand = field(default_factory=HslBand)
    blue: HslBand = field(default_factory=HslBand)
    purple: HslBand = field(default_factory=HslBand)
    magenta: HslBand = field(default_factory=HslBand)

    @property
    def is_neutral(self) -> bool:
        return all(getattr(self, band).is_neutral for band in HSL_BANDS)

    def bands(self) -> Tuple[HslBand, ...]:
        return tuple(getattr(self, band) for band in HSL_BANDS)

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {
            band: {"hue": b.hue, "sat": b.sat, "lum": b.lum}
            for band, b in zip(HSL_BANDS, self.bands())
        }


@dataclass(frozen=True)
class SplitTone:
    color: str = "#000000"
    amount: float = 0.0


CurveSelector = Union[str, Tuple[CurvePoint, ...]]


@dataclass(frozen=True)
class Adjustments:
    """
    Flat record of every editable adjustment. All defaults are neutral.
    """

    # Basic - Light
    exposure: float = 0.0
    contrast: float = 0.0
    highlights: float = 0.0
    shadows: float = 0.0
    whites: float = 0.0
    blacks: float = 0.0
    # Basic - Presence
    clarity: float = 0.0
    dehaze: float = 0.0
    vibrance: float = 0.0
    saturation: float = 0.0
    # Tone - White Balance
    temperature: float = 0.0
    tint: float = 0.0
    # Tone - Curve
    curve: CurveSelector = "linear"
    # Effects
    sharpening: float = 0.0
    noise: float = 0.0
    vignette: float = 0.0
    grain: float = 0.0
    fade: float = 0.0
    distortion: float = 0.0
    # Color - HSL
    hsl: HslAdjustments = field(default_factory=HslAdjustments)
    # Split Toning
    split_highlights: SplitTone = field(default_factory=SplitTone)
    split_shadows: SplitTone = field(default_factory=SplitTone)
    split_balance: float = 0.0

    @property
    def curve_points(self) -> CurvePoints:
        return resolve_curve(self.curve)

    def has_curve(self) -> bool:
        return not is_identity_curve(self.curve_points)

    def is_neutral(self) -> bool:
        for name, spec in ADJUSTMENT_FIELDS.items():
            if name == "split_balance":
                continue
            if getattr(self, name) != spec.default:
                return False
        return (
            not self.has_curve()
            and self.hsl.is_neutral
            and self.split_highlights.amount == 0
            and self.split_shadows.amount == 0
        )

    # --- Intake (clamping happens here, before values reach a snapshot) ---

    def with_value(self, name: str, value: Any) -> "Adjustments":
        """
        Returns a copy with one scalar slider written, clamped to its range.
        """
        return replace(self, **{name: clamp_field_value(name, value)})

    def with_curve(self, curve: Any) -> "Adjustments":
        """
        Accepts a preset name or a control-point list; degenerate input is
        stored as the identity curve.
        """
        if isinstance(curve, str) and curve in CURVE_PRESETS:
            return replace(self, curve=curve)
        points = resolve_curve(curve)
        if is_identity_curve(points):
            return replace(self, curve="linear")
        return replace(self, curve=points)

    def with_hsl(self, band: str, channel: str, value: Any) -> "Adjustments":
        if band not in HSL_BANDS:
            raise KeyError(f"Unknown HSL band: {band}")
        if channel not in ("hue", "sat", "lum"):
            raise KeyError(f"Unknown HSL channel: {channel}")
        current = getattr(self.hsl, band)
        updated = replace(current, **{channel: HSL_CHANNEL_SPEC.clamp(value)})
        return replace(self, hsl=replace(self.hsl, **{band: updated}))

    def with_split_tone(
        self,
        tone: str,
        color: Optional[str] = None,
        amount: Optional[Any] = None,
    ) -> "Adjustments":
        if tone not in ("highlights", "shadows"):
            raise KeyError(f"Unknown split tone: {tone}")
        attr = f"split_{tone}"
        current: SplitTone = getattr(self, attr)
        updated = SplitTone(
            color=normalize_hex_color(color, current.color) if color is not None else current.color,
            amount=SPLIT_AMOUNT_SPEC.clamp(amount) if amount is not None else current.amount,
        )
        return replace(self, **{attr: updated})

    def sanitized(self) -> "Adjustments":
        """
        Clamps every field into its domain. Returns self when nothing changes.
        """
        return Adjustments.from_dict(self.to_dict()) if not self._in_range() else self

    def _in_range(self) -> bool:
        for name, spec in ADJUSTMENT_FIELDS.items():
            if spec.clamp(getattr(self, name)) != getattr(self, name):
                return False
        for b in self.hsl.bands():
            for v in (b.hue, b.sat, b.lum):
                if HSL_CHANNEL_SPEC.clamp(v) != v:
                    return False
        for tone in (self.split_highlights, self.split_shadows):
            if SPLIT_AMOUNT_SPEC.clamp(tone.amount) != tone.amount:
                return False
            if normalize_hex_color(tone.color, "") != tone.color:
                return False
        if isinstance(self.curve, str):
            return self.curve in CURVE_PRESETS
        return self.curve == resolve_curve(self.curve)

    # --- Serialization ---

    def to_dict(self) -> Dict[str, Any]:
        res: Dict[str, Any] = {name: getattr(self, name) for name in ADJUSTMENT_FIELDS}
        res["curve"] = (
            self.curve
            if isinstance(self.curve, str)
            else [[p.x, p.y] for p in self.curve]
        )
        res["hsl"] = self.hsl.to_dict()
        res["split_highlights"] = {
            "color": self.split_highlights.color,
            "amount": self.split_highlights.amount,
        }
        res["split_shadows"] = {
            "color": self.split_shadows.color,
            "amount": self.split_shadows.amount,
        }
        return res

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Adjustments":
        """
        Builds a clamped record from a (possibly partial) dict. Unknown keys
        are ignored.
        """
        adj = cls()
        for name in ADJUSTMENT_FIELDS:
            if name in data and data[name] is not None:
                adj = adj.with_value(name, data[name])

        if data.get("curve") is not None:
            adj = adj.with_curve(data["curve"])

        hsl = data.get("hsl") or {}
        for band, values in hsl.items():
            if band not in HSL_BANDS or not isinstance(values, dict):
                continue
            for channel in ("hue", "sat", "lum"):
                if channel in values:
                    adj = adj.with_hsl(band, channel, values[channel])

        for tone in ("highlights", "shadows"):
            raw = data.get(f"split_{tone}")
            if isinstance(raw, dict):
                adj = adj.with_split_tone(tone, raw.get("color"), raw.get("amount"))
        return adj


@dataclass(frozen=True)
class EditorSnapshot:
    """
    Immutable copy of the full editable state, stored by the history log.
    """

    crop_box: CropBox
    adjustments: Adjustments
    aspect_ratio: Optional[float]
    export_width: Optional[int]
    export_height: Optional[int]
    transform: TransformState


class ExportFormat(Enum):
    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"

    @property
    def extension(self) -> str:
        return "jpg" if self is ExportFormat.JPEG else self.value


@dataclass(frozen=True)
class ExportOptions:
    """
    Export request. Dimension precedence: resize > preset export size >
    crop box scaled back to source resolution.
    """

    crop_box: CropBox
    display_scale: float
    target_format: ExportFormat = ExportFormat.JPEG
    target_quality: int = 92
    resize_width: Optional[int] = None
    resize_height: Optional[int] = None
    export_width: Optional[int] = None
    export_height: Optional[int] = None


@dataclass(frozen=True)
class ExportResult:
    pixels: PixelBuffer
    width: int
    height: int
    target_format: ExportFormat = ExportFormat.JPEG
    target_quality: int = 92


@dataclass
class EditorContext:
    """
    The single mutable editor record. Owned by one EditorSession and replaced
    field-by-field on commit; everything it references is immutable except
    the decoded source buffer, which is never written to.
    """

    source: PixelBuffer
    display_scale: float = 1.0
    adjustments: Adjustments = field(default_factory=Adjustments)
    crop_box: CropBox = field(default_factory=CropBox)
    aspect_ratio: Optional[float] = None
    export_width: Optional[int] = None
    export_height: Optional[int] = None
    transform: TransformState = field(default_factory=TransformState)
    # Bumped whenever the decoded source is replaced
    generation: int = 0

    @property
    def source_size(self) -> Tuple[int, int]:
        """(Width, Height) of the source after rotation."""
        h, w = self.source.shape[:2]
        if self.transform.swaps_axes:
            return h, w
        return w, h

    @property
    def canvas_size(self) -> Tuple[int, int]:
        w, h = self.source_size
        return max(1, int(round(w * self.display_scale))), max(1, int(round(h * self.display_scale)))

    def snapshot(self) -> EditorSnapshot:
        return EditorSnapshot(
            crop_box=self.crop_box,
            adjustments=self.adjustments,
            aspect_ratio=self.aspect_ratio,
            export_width=self.export_width,
            export_height=self.export_height,
            transform=self.transform,
        )

    def restore(self, snapshot: EditorSnapshot) -> None:
        self.crop_box = snapshot.crop_box
        self.adjustments = snapshot.adjustments
        self.aspect_ratio = snapshot.aspect_ratio
        self.export_width = snapshot.export_width
        self.export_height = snapshot.export_height
        self.transform = snapshot.transform

