from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from cutout_viewer.image_engine.errors import DecodeError
from cutout_viewer.image_engine.formats import ImageFormat
from cutout_viewer.image_engine.models import RasterImage
from cutout_viewer.image_engine.transform import convert_format, reduce_file_size

pyvips = pytest.importorskip("pyvips")

from cutout_viewer.image_engine.decoder import decode_bytes, get_image_dimensions  # noqa: E402


def test_decode_png_file(write_image) -> None:
    path: Path = write_image("red.png", size=(8, 6), color=(200, 40, 10))

    image = decode_bytes(path.read_bytes())

    assert image.size == (8, 6)
    assert image.pixel(3, 3) == (200, 40, 10)


def test_decode_rejects_garbage() -> None:
    with pytest.raises(DecodeError):
        decode_bytes(b"definitely not an image")
    with pytest.raises(DecodeError):
        decode_bytes(b"")


def test_dimensions_from_header(write_image) -> None:
    path = write_image("a.jpg", size=(33, 21))

    assert get_image_dimensions(path.read_bytes()) == (33, 21)


def test_png_alpha_is_flattened_to_rgb(tmp_path: Path) -> None:
    pil_image = pytest.importorskip("PIL.Image")
    path = tmp_path / "alpha.png"
    pil_image.new("RGBA", (4, 4), (255, 0, 0, 0)).save(path)

    image = decode_bytes(path.read_bytes())

    assert image.pixels.shape == (4, 4, 3)
    assert image.pixel(0, 0) == (0, 0, 0)


def test_png_reencode_is_lossless(gradient) -> None:
    image = RasterImage(gradient(17, 9))

    back = decode_bytes(convert_format(image, ImageFormat.PNG, quality=1))

    assert back.same_pixels(image)


def test_webp_output_is_real_webp(gradient) -> None:
    data = convert_format(RasterImage(gradient(16, 16)), "webp", quality=80)

    assert data[:4] == b"RIFF"
    assert data[8:12] == b"WEBP"


def test_jpeg_quality_affects_size() -> None:
    rng = np.random.default_rng(1)
    image = RasterImage(rng.integers(0, 256, size=(64, 64, 3), dtype=np.uint8))

    small = reduce_file_size(image, 10)
    large = convert_format(image, ImageFormat.JPEG, quality=95)

    assert small[:2] == b"\xff\xd8"
    assert len(small) < len(large)


def test_out_of_range_quality_is_clamped(gradient) -> None:
    data = convert_format(RasterImage(gradient(8, 8)), ImageFormat.JPEG, quality=500)

    assert decode_bytes(data).size == (8, 8)
