from __future__ import annotations

import io
from pathlib import Path
import struct
import sys
import zlib
from types import SimpleNamespace

import pytest
from PIL import Image

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from mangamorph.image.source import SourceImage


def make_png(width: int, height: int, color: tuple[int, int, int] = (200, 40, 90)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


def _png_chunk(kind: bytes, body: bytes) -> bytes:
    return struct.pack(">I", len(body)) + kind + body + struct.pack(">I", zlib.crc32(kind + body) & 0xFFFFFFFF)


def make_header_only_png(width: int, height: int) -> bytes:
    """A tiny PNG whose IHDR claims ``width`` x ``height`` pixels."""
    header = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return (
        b"\x89PNG\r\n\x1a\n"
        + _png_chunk(b"IHDR", header)
        + _png_chunk(b"IDAT", zlib.compress(b""))
        + _png_chunk(b"IEND", b"")
    )


def image_part(data: bytes) -> SimpleNamespace:
    return SimpleNamespace(inline_data=SimpleNamespace(data=data, mime_type="image/png"), text=None)


def text_part(text: str) -> SimpleNamespace:
    return SimpleNamespace(inline_data=None, text=text)


def make_response(*parts: SimpleNamespace) -> SimpleNamespace:
    content = SimpleNamespace(parts=list(parts) if parts else None)
    return SimpleNamespace(candidates=[SimpleNamespace(content=content)])


@pytest.fixture()
def portrait_png() -> bytes:
    return make_png(300, 400)


@pytest.fixture()
def portrait_source(portrait_png: bytes) -> SourceImage:
    return SourceImage.from_bytes(portrait_png, "image/png", name="portrait.png")


@pytest.fixture()
def portrait_file(tmp_path: Path, portrait_png: bytes) -> Path:
    path = tmp_path / "portrait.png"
    path.write_bytes(portrait_png)
    return path
