from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Optional, Protocol

from mangamorph.errors import MangaMorphError
from mangamorph.image.aspect import AspectRatioTag
from mangamorph.image.encoding import to_data_url

RESULT_MIME_TYPE = "image/png"


@dataclass(frozen=True)
class TransformationRequest:
    instruction: str
    payload: str
    mime_type: str
    aspect_ratio: AspectRatioTag
    attempt: Optional[int] = None


@dataclass(frozen=True)
class TransformedImage:
    image_bytes: bytes
    mime_type: str = RESULT_MIME_TYPE

    @property
    def base64_payload(self) -> str:
        return base64.b64encode(self.image_bytes).decode("ascii")

    @property
    def data_url(self) -> str:
        return to_data_url(self.base64_payload, self.mime_type)


@dataclass(frozen=True)
class TransformationResult:
    """Either ``image`` or ``error`` is set, never both."""

    image: Optional[TransformedImage] = None
    error: Optional[MangaMorphError] = None

    def __post_init__(self) -> None:
        if (self.image is None) == (self.error is None):
            raise ValueError("TransformationResult needs exactly one of image or error")

    @property
    def ok(self) -> bool:
        return self.image is not None

    @classmethod
    def success(cls, image_bytes: bytes) -> "TransformationResult":
        return cls(image=TransformedImage(image_bytes=image_bytes))

    @classmethod
    def failure(cls, error: MangaMorphError) -> "TransformationResult":
        return cls(error=error)

    def unwrap(self) -> TransformedImage:
        if self.error is not None:
            raise self.error
        assert self.image is not None
        return self.image


class TransformEngineProtocol(Protocol):
    def transform(self, request: TransformationRequest) -> TransformationResult:
        """Run one round trip against the generative model."""


__all__ = [
    "RESULT_MIME_TYPE",
    "TransformEngineProtocol",
    "TransformationRequest",
    "TransformationResult",
    "TransformedImage",
]
