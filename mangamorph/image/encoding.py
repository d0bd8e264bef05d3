from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass

from mangamorph.errors import DecodeError, EncodeError

from .source import SourceImage

__all__ = ["EncodedImage", "encode", "strip_data_url", "split_data_url", "decode_payload", "to_data_url"]

_DATA_URL_PREFIX = "data:"


@dataclass(frozen=True)
class EncodedImage:
    payload: str
    mime_type: str


def split_data_url(text: str) -> tuple[str | None, str]:
    """Split ``data:<mime>;base64,<payload>`` into its MIME type and payload.

    Text without the prefix is returned unchanged with no MIME type.
    """

    value = text.strip()
    if not value.startswith(_DATA_URL_PREFIX) or "," not in value:
        return None, value
    header, payload = value.split(",", 1)
    mime = header[len(_DATA_URL_PREFIX):].split(";", 1)[0].strip() or None
    return mime, payload


def strip_data_url(text: str) -> str:
    return split_data_url(text)[1]


def to_data_url(payload: str, mime_type: str) -> str:
    return f"data:{mime_type};base64,{payload}"


def decode_payload(payload: str) -> bytes:
    try:
        return base64.b64decode(strip_data_url(payload), validate=True)
    except (ValueError, binascii.Error) as exc:
        raise DecodeError(f"Payload is not valid base64: {exc}") from exc


def encode(image: SourceImage) -> EncodedImage:
    try:
        raw = bytes(image.data)
    except (TypeError, ValueError) as exc:
        raise EncodeError(f"Could not read image bytes: {exc}") from exc
    if not raw:
        raise EncodeError("Image payload is empty")
    payload = base64.b64encode(raw).decode("ascii")
    return EncodedImage(payload=payload, mime_type=image.mime_type)
