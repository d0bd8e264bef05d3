"""Source image intake, aspect estimation and transport encoding."""

from .aspect import AspectRatioTag, estimate, nearest_aspect_ratio, probe_dimensions
from .encoding import EncodedImage, decode_payload, encode, split_data_url, strip_data_url, to_data_url
from .source import DEFAULT_MAX_BYTES, SourceImage

__all__ = [
    "AspectRatioTag",
    "DEFAULT_MAX_BYTES",
    "EncodedImage",
    "SourceImage",
    "decode_payload",
    "encode",
    "estimate",
    "nearest_aspect_ratio",
    "probe_dimensions",
    "split_data_url",
    "strip_data_url",
    "to_data_url",
]
