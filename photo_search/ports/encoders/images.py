"""Image decoding and resizing helpers for encoder adapters.

Requires `Pillow`; `numpy` is needed for `to_normalized_array`.
"""

from __future__ import annotations

import io
from typing import Any, Sequence

from ...core.errors import EncodingError

CLIP_MEAN = (0.48145466, 0.4578275, 0.40821073)
CLIP_STD = (0.26862954, 0.26130258, 0.27577711)


def _pil() -> Any:
    try:
        from PIL import Image  # type: ignore[import-not-found]
    except ImportError as exc:  # pragma: no cover - env dependent
        raise ImportError(
            "Pillow is required for image preprocessing. Install with `pip install Pillow`."
        ) from exc
    return Image


def decode_image(image_bytes: bytes) -> Any:
    """Decode encoded image bytes into an RGB `PIL.Image.Image`."""

    Image = _pil()
    try:
        with Image.open(io.BytesIO(image_bytes)) as image:
            return image.convert("RGB")
    except (OSError, ValueError) as exc:
        raise EncodingError(f"Cannot decode image: {exc}") from exc


def resize_image(image_bytes: bytes, size: int, *, image_format: str = "PNG") -> bytes:
    """Resize to a `size` x `size` square and re-encode it."""

    Image = _pil()
    image = decode_image(image_bytes)
    resized = image.resize((size, size), Image.Resampling.BICUBIC)
    buffer = io.BytesIO()
    try:
        resized.save(buffer, format=image_format)
    except (OSError, ValueError) as exc:
        raise EncodingError(f"Cannot encode resized image: {exc}") from exc
    return buffer.getvalue()


def to_normalized_array(
    image_bytes: bytes,
    size: int,
    *,
    mean: Sequence[float] = CLIP_MEAN,
    std: Sequence[float] = CLIP_STD,
) -> Any:
    """Return a float32 `(1, 3, size, size)` array normalized per channel.

    The image must already be `size` x `size`; other geometries raise
    `EncodingError`.
    """

    try:
        import numpy as np  # type: ignore[import-not-found]
    except ImportError as exc:  # pragma: no cover - env dependent
        raise ImportError(
            "numpy is required for image preprocessing. Install with `pip install numpy`."
        ) from exc

    image = decode_image(image_bytes)
    if image.size != (size, size):
        raise EncodingError(
            f"Image must be {size}x{size} pixels, got {image.size[0]}x{image.size[1]}"
        )
    pixels = np.asarray(image, dtype=np.float32) / 255.0
    pixels = (pixels - np.asarray(mean, dtype=np.float32)) / np.asarray(std, dtype=np.float32)
    return np.ascontiguousarray(pixels.transpose(2, 0, 1)[np.newaxis, ...], dtype=np.float32)
