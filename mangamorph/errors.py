"""Failure taxonomy for the transformation pipeline."""

from __future__ import annotations

CREDENTIAL_MARKER = "API Key"

__all__ = [
    "CREDENTIAL_MARKER",
    "MangaMorphError",
    "DecodeError",
    "UnsupportedSourceError",
    "SourceTooLargeError",
    "EncodeError",
    "TransportError",
    "CredentialError",
    "ResponseError",
    "EmptyResponseError",
    "NoImageDataError",
    "RefusalError",
    "is_credential_error",
]


class MangaMorphError(RuntimeError):
    """Base class for every pipeline failure surfaced to the workflow."""


class DecodeError(MangaMorphError):
    """Raised when source bytes cannot be interpreted as an image."""


class UnsupportedSourceError(DecodeError):
    """Raised when the selected file does not declare an image MIME type."""


class SourceTooLargeError(DecodeError):
    """Raised when the selected file exceeds the upload ceiling."""

    def __init__(self, size: int, limit: int) -> None:
        if limit >= 1024 * 1024:
            ceiling = f"{limit / (1024 * 1024):g}MB"
        else:
            ceiling = f"{limit} bytes"
        super().__init__(f"Image is {size} bytes; please upload an image under {ceiling}.")
        self.size = size
        self.limit = limit


class EncodeError(MangaMorphError):
    """Raised when source bytes cannot be fully read for transport."""


class TransportError(MangaMorphError):
    """Raised when the remote service cannot be reached or rejects the call."""


class CredentialError(TransportError):
    """Missing or rejected API key."""

    def __init__(self, detail: str | None = None) -> None:
        message = f"{CREDENTIAL_MARKER} is missing or invalid."
        if detail:
            message = f"{message} {detail}"
        super().__init__(message)


class ResponseError(MangaMorphError):
    """The call succeeded but returned nothing usable."""


class EmptyResponseError(ResponseError):
    def __init__(self, message: str = "No content received from Gemini.") -> None:
        super().__init__(message)


class NoImageDataError(ResponseError):
    def __init__(self, message: str = "No valid image data found in response.") -> None:
        super().__init__(message)


class RefusalError(MangaMorphError):
    """The model declined to draw and explained why; ``text`` is kept verbatim."""

    def __init__(self, text: str) -> None:
        super().__init__(text)
        self.text = text


def is_credential_error(message: str | None) -> bool:
    if not message:
        return False
    return CREDENTIAL_MARKER.lower() in message.lower()
