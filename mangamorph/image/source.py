from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional

from mangamorph.errors import EncodeError, SourceTooLargeError, UnsupportedSourceError

DEFAULT_MAX_BYTES = 5 * 1024 * 1024

__all__ = ["DEFAULT_MAX_BYTES", "SourceImage"]


def _check_mime(mime_type: str | None, name: str | None) -> str:
    mime = (mime_type or "").strip().lower()
    if not mime.startswith("image/"):
        label = name or "selected file"
        raise UnsupportedSourceError(f"{label} is not an image (type: {mime or 'unknown'})")
    return mime


def _check_size(size: int, max_bytes: int | None) -> None:
    if max_bytes is not None and max_bytes > 0 and size > max_bytes:
        raise SourceTooLargeError(size, max_bytes)


@dataclass(frozen=True)
class SourceImage:
    """A user-supplied photo held fully in memory.

    ``width`` and ``height`` are optional; the aspect estimator decodes the
    payload when they are missing.
    """

    data: bytes
    mime_type: str
    name: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None

    def __post_init__(self) -> None:
        if not isinstance(self.data, (bytes, bytearray, memoryview)):
            raise EncodeError(f"Image payload must be bytes, got {type(self.data).__name__}")
        object.__setattr__(self, "data", bytes(self.data))

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def suffix(self) -> str:
        if self.name and Path(self.name).suffix:
            return Path(self.name).suffix.lower()
        return mimetypes.guess_extension(self.mime_type) or ".img"

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------
    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        mime_type: str,
        *,
        name: str | None = None,
        max_bytes: int | None = DEFAULT_MAX_BYTES,
    ) -> "SourceImage":
        mime = _check_mime(mime_type, name)
        _check_size(len(data), max_bytes)
        return cls(data=data, mime_type=mime, name=name)

    @classmethod
    def from_path(cls, path: Path | str, *, max_bytes: int | None = DEFAULT_MAX_BYTES) -> "SourceImage":
        path = Path(path)
        mime, _ = mimetypes.guess_type(path.name)
        mime = _check_mime(mime, path.name)
        try:
            size = path.stat().st_size
            _check_size(size, max_bytes)
            data = path.read_bytes()
        except OSError as exc:
            raise EncodeError(f"Could not read {path}: {exc}") from exc
        if len(data) != size:
            raise EncodeError(f"Short read on {path}: expected {size} bytes, got {len(data)}")
        return cls(data=data, mime_type=mime, name=path.name)

    @classmethod
    def from_stream(
        cls,
        stream: BinaryIO,
        mime_type: str,
        *,
        name: str | None = None,
        expected_size: int | None = None,
        max_bytes: int | None = DEFAULT_MAX_BYTES,
    ) -> "SourceImage":
        mime = _check_mime(mime_type, name)
        if expected_size is not None:
            _check_size(expected_size, max_bytes)
        try:
            data = stream.read()
        except (OSError, ValueError) as exc:
            # ValueError: read on a closed handle
            raise EncodeError(f"Could not read image stream: {exc}") from exc
        if not isinstance(data, (bytes, bytearray)):
            raise EncodeError("Image stream must be opened in binary mode")
        if expected_size is not None and len(data) != expected_size:
            raise EncodeError(
                f"Short read on image stream: expected {expected_size} bytes, got {len(data)}"
            )
        _check_size(len(data), max_bytes)
        return cls(data=bytes(data), mime_type=mime, name=name)

    @classmethod
    def from_data_url(
        cls,
        text: str,
        *,
        name: str | None = None,
        max_bytes: int | None = DEFAULT_MAX_BYTES,
    ) -> "SourceImage":
        from .encoding import decode_payload, split_data_url

        mime, payload = split_data_url(text)
        data = decode_payload(payload)
        return cls.from_bytes(data, mime or "", name=name, max_bytes=max_bytes)
