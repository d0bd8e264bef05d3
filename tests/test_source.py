from __future__ import annotations

import io
from pathlib import Path

import pytest

from mangamorph.errors import DecodeError, EncodeError, SourceTooLargeError, UnsupportedSourceError
from mangamorph.image.encoding import to_data_url
from mangamorph.image.source import SourceImage


def test_from_path_reads_bytes_and_guesses_mime(portrait_file: Path, portrait_png: bytes) -> None:
    image = SourceImage.from_path(portrait_file)

    assert image.data == portrait_png
    assert image.mime_type == "image/png"
    assert image.name == "portrait.png"
    assert image.width is None and image.height is None


def test_from_path_rejects_non_image(tmp_path: Path) -> None:
    path = tmp_path / "notes.txt"
    path.write_text("hello", encoding="utf-8")

    with pytest.raises(UnsupportedSourceError):
        SourceImage.from_path(path)


def test_unsupported_source_is_a_decode_error() -> None:
    with pytest.raises(DecodeError):
        SourceImage.from_bytes(b"abc", "application/pdf")


def test_missing_file_raises_encode_error(tmp_path: Path) -> None:
    with pytest.raises(EncodeError):
        SourceImage.from_path(tmp_path / "gone.jpg")


def test_size_ceiling_is_enforced(tmp_path: Path) -> None:
    with pytest.raises(SourceTooLargeError) as excinfo:
        SourceImage.from_bytes(b"x" * 11, "image/png", max_bytes=10)
    assert excinfo.value.limit == 10
    assert isinstance(excinfo.value, DecodeError)

    path = tmp_path / "big.jpg"
    path.write_bytes(b"x" * 11)
    with pytest.raises(SourceTooLargeError):
        SourceImage.from_path(path, max_bytes=10)


def test_from_stream_detects_short_read() -> None:
    with pytest.raises(EncodeError):
        SourceImage.from_stream(io.BytesIO(b"abc"), "image/png", expected_size=10)


def test_from_stream_on_closed_handle_raises_encode_error() -> None:
    stream = io.BytesIO(b"abc")
    stream.close()
    with pytest.raises(EncodeError):
        SourceImage.from_stream(stream, "image/png")


def test_from_data_url_strips_framing(portrait_png: bytes) -> None:
    import base64

    url = to_data_url(base64.b64encode(portrait_png).decode("ascii"), "image/png")
    image = SourceImage.from_data_url(url, name="drop.png")

    assert image.data == portrait_png
    assert image.mime_type == "image/png"


def test_source_image_is_immutable(portrait_source: SourceImage) -> None:
    with pytest.raises(AttributeError):
        portrait_source.mime_type = "image/gif"  # type: ignore[misc]


def test_suffix_falls_back_to_mime() -> None:
    assert SourceImage(data=b"x", mime_type="image/png").suffix == ".png"
    assert SourceImage(data=b"x", mime_type="image/png", name="Photo.JPG").suffix == ".jpg"
