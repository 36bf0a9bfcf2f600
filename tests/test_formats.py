from __future__ import annotations

import pytest

from cutout_viewer.image_engine.formats import (
    FALLBACK_FORMAT,
    ImageFormat,
    encoder_for_extension,
    format_for_extension,
    format_for_path,
    is_image_extension,
)


@pytest.mark.parametrize(
    ("ext", "fmt"),
    [
        (".png", ImageFormat.PNG),
        ("PNG", ImageFormat.PNG),
        (".webp", ImageFormat.WEBP),
        (".jpg", ImageFormat.JPEG),
        ("jpeg", ImageFormat.JPEG),
        (".bmp", ImageFormat.JPEG),
        (".gif", ImageFormat.JPEG),
        ("", ImageFormat.JPEG),
    ],
)
def test_format_for_extension(ext: str, fmt: ImageFormat) -> None:
    assert format_for_extension(ext) is fmt


def test_unknown_extension_falls_back_to_lossy_jpeg() -> None:
    assert FALLBACK_FORMAT is ImageFormat.JPEG
    assert FALLBACK_FORMAT.lossy
    assert format_for_path("/photos/scan.tiff") is ImageFormat.JPEG


def test_format_properties() -> None:
    assert ImageFormat.PNG.extension == ".png"
    assert not ImageFormat.PNG.lossy
    assert ImageFormat.WEBP.lossy
    assert ImageFormat.JPEG.extension == ".jpg"


def test_format_parse() -> None:
    assert ImageFormat.parse("JPG") is ImageFormat.JPEG
    assert ImageFormat.parse(".webp") is ImageFormat.WEBP
    with pytest.raises(ValueError):
        ImageFormat.parse("tiff")


def test_is_image_extension_is_case_insensitive() -> None:
    assert is_image_extension("a/B.JPEG")
    assert is_image_extension("x.Gif")
    assert not is_image_extension("notes.txt")
    assert not is_image_extension("no_extension")


def test_encoder_for_extension_has_no_fallback() -> None:
    assert encoder_for_extension(".JPEG") is ImageFormat.JPEG
    assert encoder_for_extension("webp") is ImageFormat.WEBP
    assert encoder_for_extension(".gif") is None
    assert encoder_for_extension(".bmp") is None
