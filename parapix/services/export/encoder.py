import io
import os
import numpy as np
from PIL import Image
from parapix.domain.errors import ExportError
from parapix.domain.models import ExportFormat, ExportResult
from parapix.kernel.system.logging import get_logger

logger = get_logger(__name__)

_PIL_FORMATS = {
    ExportFormat.JPEG: "JPEG",
    ExportFormat.PNG: "PNG",
    ExportFormat.WEBP: "WEBP",
}


def _to_pil(result: ExportResult) -> Image.Image:
    pil_img = Image.fromarray(np.ascontiguousarray(result.pixels, dtype=np.uint8))
    if result.target_format is ExportFormat.JPEG:
        # JPEG has no alpha channel
        return pil_img.convert("RGB")
    return pil_img


def _save_to_buffer(pil_img: Image.Image, buf: io.BytesIO, result: ExportResult) -> None:
    fmt = result.target_format
    if fmt is ExportFormat.PNG:
        pil_img.save(buf, format="PNG")
    else:
        pil_img.save(buf, format=_PIL_FORMATS[fmt], quality=result.target_quality)


def encode_image(result: ExportResult) -> bytes:
    """
    Encodes an export result into its container format.

    Raises:
        ExportError: unknown format or encoder failure.
    """
    if result.target_format not in _PIL_FORMATS:
        raise ExportError(f"Unsupported export format: {result.target_format!r}")

    output_buf = io.BytesIO()
    try:
        _save_to_buffer(_to_pil(result), output_buf, result)
    except (OSError, ValueError, KeyError) as e:
        raise ExportError(f"Encoding {result.target_format.value} failed: {e}") from e
    return output_buf.getvalue()


def save_export(result: ExportResult, path: str) -> str:
    """
    Writes the encoded result to ``path``, creating parent directories.
    Returns the path written.
    """
    data = encode_image(result)
    parent = os.path.dirname(os.path.abspath(path))
    try:
        os.makedirs(parent, exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)
    except OSError as e:
        raise ExportError(f"Could not write {path}: {e}") from e
    logger.info(f"Saved {result.width}x{result.height} {result.target_format.value} to {path}")
    return path
