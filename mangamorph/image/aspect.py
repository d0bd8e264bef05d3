from __future__ import annotations

import io
import math
from enum import Enum

from PIL import Image, UnidentifiedImageError

from mangamorph.errors import DecodeError

from .source import SourceImage

__all__ = ["AspectRatioTag", "nearest_aspect_ratio", "probe_dimensions", "estimate"]


class AspectRatioTag(str, Enum):
    """Aspect ratio presets accepted by the Gemini image model."""

    SQUARE = "1:1"
    PORTRAIT = "3:4"
    LANDSCAPE = "4:3"
    TALL = "9:16"
    WIDE = "16:9"

    @property
    def ratio(self) -> float:
        return _RATIOS[self]


# Declaration order is the tie-break order.
_RATIOS = {
    AspectRatioTag.SQUARE: 1.0,
    AspectRatioTag.PORTRAIT: 0.75,
    AspectRatioTag.LANDSCAPE: 1.333,
    AspectRatioTag.TALL: 0.5625,
    AspectRatioTag.WIDE: 1.777,
}


def nearest_aspect_ratio(ratio: float) -> AspectRatioTag:
    if not math.isfinite(ratio) or ratio <= 0:
        raise DecodeError(f"Invalid aspect ratio: {ratio!r}")
    best = AspectRatioTag.SQUARE
    best_distance = abs(best.ratio - ratio)
    for tag in AspectRatioTag:
        distance = abs(tag.ratio - ratio)
        if distance < best_distance:
            best, best_distance = tag, distance
    return best


def probe_dimensions(data: bytes) -> tuple[int, int]:
    """Decode just enough of ``data`` to read its pixel size."""

    if not data:
        raise DecodeError("Image payload is empty")
    try:
        with Image.open(io.BytesIO(data)) as img:
            width, height = img.size
    except Image.DecompressionBombError as exc:
        raise DecodeError(f"Image dimensions exceed the decoder limit: {exc}") from exc
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise DecodeError(f"Could not decode image: {exc}") from exc
    return int(width), int(height)


def estimate(image: SourceImage) -> AspectRatioTag:
    width, height = image.width, image.height
    if width is None or height is None:
        width, height = probe_dimensions(image.data)
    if width <= 0 or height <= 0:
        raise DecodeError(f"Image has invalid dimensions {width}x{height}")
    return nearest_aspect_ratio(width / height)
