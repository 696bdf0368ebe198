"""parapix CLI editor.

Applies adjustments, crop and transforms to a single image and writes the
export, without an interactive front end.
"""

import os
import sys

os.environ.setdefault("NUMBA_THREADING_LAYER", "workqueue")

import argparse
import json
import logging
import time
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from PIL import Image

from parapix.domain.constants import EXPORT_PRESETS
from parapix.domain.errors import ExportError
from parapix.domain.fields import ADJUSTMENT_FIELDS
from parapix.domain.models import Adjustments, ExportFormat
from parapix.kernel.image.curves import CURVE_PRESETS
from parapix.kernel.system.config import APP_CONFIG
from parapix.kernel.system.logging import setup_logging
from parapix.kernel.system.scheduling import ManualScheduler
from parapix.services.export.encoder import save_export
from parapix.services.session import EditorSession

FORMAT_MAP = {
    "jpeg": ExportFormat.JPEG,
    "png": ExportFormat.PNG,
    "webp": ExportFormat.WEBP,
}

EXTENSION_FORMATS = {
    ".jpg": "jpeg",
    ".jpeg": "jpeg",
    ".png": "png",
    ".webp": "webp",
}

FORMAT_CHOICES = tuple(FORMAT_MAP.keys())
PRESET_CHOICES = tuple(EXPORT_PRESETS.keys())


def _flag(name: str) -> str:
    return "--" + name.replace("_", "-")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="parapix",
        description="parapix -- Non-destructive photo adjustments from the command line",
        epilog="Example: parapix photo.jpg --exposure 20 --preset instagram-square --output out.jpg",
    )

    parser.add_argument("input", metavar="FILE", help="Input image (any format Pillow can read)")

    parser.add_argument(
        "--output",
        default=None,
        metavar="FILE",
        help="Output file (default: <input>_edited.<ext> next to the input)",
    )

    parser.add_argument(
        "--settings",
        default=None,
        metavar="JSON",
        help="Adjustments as a JSON file path or inline JSON object",
    )

    adj_group = parser.add_argument_group("adjustments")
    for name, spec in ADJUSTMENT_FIELDS.items():
        adj_group.add_argument(
            _flag(name),
            dest=name,
            type=float,
            default=None,
            metavar="FLOAT",
            help=f"{name.replace('_', ' ').capitalize()} ({spec.minimum:g}..{spec.maximum:g})",
        )

    parser.add_argument(
        "--curve",
        default=None,
        help=f"Tone curve: one of {', '.join(CURVE_PRESETS)} or a JSON point list like [[0,0],[0.5,0.6],[1,1]]",
    )

    parser.add_argument(
        "--preset",
        choices=PRESET_CHOICES,
        default=None,
        help="Export preset (locks ratio and output size)",
    )

    parser.add_argument(
        "--ratio",
        default=None,
        metavar="W:H",
        help="Crop aspect ratio, e.g. 16:9 (ignored when --preset is given)",
    )

    parser.add_argument(
        "--rotate",
        type=int,
        default=0,
        choices=(-270, -180, -90, 0, 90, 180, 270),
        help="Clockwise rotation in degrees",
    )

    parser.add_argument("--flip-h", action="store_true", help="Mirror horizontally")
    parser.add_argument("--flip-v", action="store_true", help="Mirror vertically")

    parser.add_argument(
        "--resize",
        default=None,
        metavar="WxH",
        help="Output size; overrides the preset size",
    )

    parser.add_argument(
        "--format",
        choices=FORMAT_CHOICES,
        default=None,
        dest="output_format",
        help="Output format (default: from the output extension, else jpeg)",
    )

    parser.add_argument(
        "--quality",
        type=int,
        default=None,
        metavar="1-100",
        help=f"JPEG/WEBP quality (default: {APP_CONFIG.export_quality})",
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for film grain, for reproducible output",
    )

    parser.add_argument("--verbose", action="store_true", help="Debug logging")

    return parser


def load_settings(raw: Optional[str]) -> Dict[str, Any]:
    """Reads --settings from a file or inline JSON."""
    if raw is None:
        return {}
    if os.path.isfile(raw):
        with open(raw, "r") as f:
            data = json.load(f)
    else:
        data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("Settings must be a JSON object")
    return data


def parse_curve(raw: Optional[str]) -> Any:
    if raw is None:
        return None
    if raw in CURVE_PRESETS:
        return raw
    return json.loads(raw)


def parse_size(raw: Optional[str]) -> Optional[Tuple[int, int]]:
    if raw is None:
        return None
    try:
        w, h = (int(part) for part in raw.lower().split("x"))
    except ValueError:
        raise ValueError(f"Invalid size {raw!r}, expected WxH")
    return w, h


def build_adjustments(args: argparse.Namespace, settings: Dict[str, Any]) -> Adjustments:
    """Settings JSON first, individual flags override."""
    data = dict(settings)
    for name in ADJUSTMENT_FIELDS:
        value = getattr(args, name, None)
        if value is not None:
            data[name] = value
    curve = parse_curve(args.curve)
    if curve is not None:
        data["curve"] = curve
    return Adjustments.from_dict(data)


def resolve_output(args: argparse.Namespace) -> Tuple[str, str]:
    """Returns (output path, format key)."""
    fmt = args.output_format
    if args.output is not None and fmt is None:
        ext = os.path.splitext(args.output)[1].lower()
        fmt = EXTENSION_FORMATS.get(ext)
    fmt = fmt or "jpeg"

    output = args.output
    if output is None:
        stem = os.path.splitext(args.input)[0]
        output = f"{stem}_edited.{FORMAT_MAP[fmt].extension}"
    return output, fmt


def load_pixels(path: str) -> np.ndarray:
    with Image.open(path) as img:
        return np.asarray(img.convert("RGBA"), dtype=np.uint8).copy()


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point. Returns 0 on success, 1 on failure."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else APP_CONFIG.log_level)

    try:
        settings = load_settings(args.settings)
        adjustments = build_adjustments(args, settings)
        resize = parse_size(args.resize)
        output, fmt = resolve_output(args)
    except (json.JSONDecodeError, OSError, ValueError) as e:
        print(f"Error loading settings: {e}", file=sys.stderr)
        return 1

    try:
        pixels = load_pixels(args.input)
    except OSError as e:
        print(f"Error: Cannot read image {args.input}: {e}", file=sys.stderr)
        return 1

    start = time.perf_counter()
    h, w = pixels.shape[:2]
    # Canvas at full resolution in both orientations
    side = max(w, h)
    session = EditorSession(scheduler=ManualScheduler(), viewport=(side, side))

    try:
        session.load_image(pixels)
        if args.flip_h:
            session.flip(horizontal=True)
        if args.flip_v:
            session.flip(horizontal=False)
        if args.rotate:
            session.rotate(args.rotate)
        if args.preset:
            session.apply_preset(args.preset)
        elif args.ratio:
            session.set_aspect_ratio(args.ratio)
        session.set_adjustments(adjustments)

        rng = np.random.default_rng(args.seed) if args.seed is not None else None
        result = session.export(
            target_format=FORMAT_MAP[fmt],
            quality=args.quality,
            resize=resize,
            rng=rng,
        )
        save_export(result, output)
    except (ExportError, ValueError, KeyError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    elapsed = time.perf_counter() - start
    print(f"Wrote {output} ({result.width}x{result.height}, {elapsed:.1f}s)", file=sys.stderr)
    return 0


def cli_entry() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    sys.exit(main())
