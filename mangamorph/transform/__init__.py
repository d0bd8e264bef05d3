"""Gemini transformation client."""

from .adapter import GeminiTransformEngine, parse_response, transform_image
from .interfaces import (
    RESULT_MIME_TYPE,
    TransformEngineProtocol,
    TransformationRequest,
    TransformationResult,
    TransformedImage,
)

__all__ = [
    "GeminiTransformEngine",
    "RESULT_MIME_TYPE",
    "TransformEngineProtocol",
    "TransformationRequest",
    "TransformationResult",
    "TransformedImage",
    "parse_response",
    "transform_image",
]
