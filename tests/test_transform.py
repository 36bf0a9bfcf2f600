from __future__ import annotations

import numpy as np
import pytest

from cutout_viewer.image_engine.errors import EntireImageSelected
from cutout_viewer.image_engine.metrics import metrics
from cutout_viewer.image_engine.models import Axis, RasterImage, SelectionRange
from cutout_viewer.image_engine.transform import cutout, fit_within, pixel_bounds, position_to_pixel, resize


def test_vertical_cutout_removes_columns_and_shifts_left(gradient) -> None:
    image = RasterImage(gradient(100, 50))

    out = cutout(image, SelectionRange(0.2, 0.5, Axis.VERTICAL))

    assert out.size == (70, 50)
    for y in (0, 25, 49):
        assert out.pixel(10, y) == image.pixel(10, y)
        assert out.pixel(60, y) == image.pixel(90, y)
        assert out.pixel(19, y) == image.pixel(19, y)
        assert out.pixel(20, y) == image.pixel(50, y)


def test_horizontal_cutout_removes_rows_and_shifts_up(gradient) -> None:
    image = RasterImage(gradient(40, 100))

    out = cutout(image, SelectionRange(0.1, 0.3, Axis.HORIZONTAL))

    assert out.size == (40, 80)
    assert out.pixel(5, 9) == image.pixel(5, 9)
    assert out.pixel(5, 10) == image.pixel(5, 30)
    assert out.pixel(39, 79) == image.pixel(39, 99)


def test_cutout_does_not_mutate_input(gradient) -> None:
    pixels = gradient(30, 10)
    image = RasterImage(pixels)
    before = image.pixels.copy()

    cutout(image, SelectionRange(0.0, 0.5))

    assert np.array_equal(image.pixels, before)
    assert not image.pixels.flags.writeable


def test_cutout_axis_argument_overrides_selection_axis(gradient) -> None:
    image = RasterImage(gradient(100, 50))

    out = cutout(image, SelectionRange(0.2, 0.5, Axis.VERTICAL), Axis.HORIZONTAL)

    assert out.size == (100, 35)


@pytest.mark.parametrize("axis", [Axis.VERTICAL, Axis.HORIZONTAL])
def test_entire_range_is_rejected(gradient, axis: Axis) -> None:
    image = RasterImage(gradient(20, 10))

    with pytest.raises(EntireImageSelected):
        cutout(image, SelectionRange(0.0, 1.0, axis))


def test_range_that_rounds_to_entire_is_rejected(gradient) -> None:
    image = RasterImage(gradient(10, 10))

    with pytest.raises(EntireImageSelected):
        cutout(image, SelectionRange(0.01, 0.99))


def test_reversed_range_is_reordered(gradient) -> None:
    image = RasterImage(gradient(100, 50))

    a = cutout(image, SelectionRange(0.5, 0.2))
    b = cutout(image, SelectionRange(0.2, 0.5))

    assert a.same_pixels(b)


def test_empty_band_returns_copy_of_same_size(gradient) -> None:
    image = RasterImage(gradient(10, 4))

    out = cutout(image, SelectionRange(0.5, 0.5))

    assert out.same_pixels(image)
    assert out is not image


def test_single_pixel_image_cannot_be_emptied() -> None:
    image = RasterImage(np.zeros((1, 1, 3), dtype=np.uint8))

    with pytest.raises(EntireImageSelected):
        cutout(image, SelectionRange(0.4, 1.0))


def test_rounding_is_half_up_and_clamped() -> None:
    assert position_to_pixel(0.25, 10) == 3
    assert position_to_pixel(0.35, 10) == 4
    assert position_to_pixel(0.0, 10) == 0
    assert position_to_pixel(1.0, 10) == 10
    assert pixel_bounds(SelectionRange(0.9, 0.05), 10) == (1, 9)


def test_cutout_records_metrics(gradient) -> None:
    metrics.reset()
    cutout(RasterImage(gradient(10, 10)), SelectionRange(0.2, 0.4))

    snap = metrics.snapshot()
    assert snap["counters"].get("transform.cutout") == 1
    assert "transform.cutout" in snap["timings"]


def test_fit_within_is_ratio_limited() -> None:
    assert fit_within(4000, 3000, 1920, 1920) == (1920, 1440)
    assert fit_within(3000, 4000, 1920, 1920) == (1440, 1920)
    assert fit_within(500, 500, 4096, 4096) == (500, 500)
    assert fit_within(10000, 1, 100, 100) == (100, 1)


def test_fit_within_rejects_non_positive_limits() -> None:
    with pytest.raises(ValueError):
        fit_within(10, 10, 0, 10)


def test_resize_never_upscales(gradient) -> None:
    image = RasterImage(gradient(500, 500))

    assert resize(image, 4096, 4096) is image


def test_resize_downscales_to_exact_size() -> None:
    pytest.importorskip("pyvips")
    image = RasterImage(np.full((3000, 4000, 3), 90, dtype=np.uint8))

    out = resize(image, 1920, 1920)

    assert out.size == (1920, 1440)
    assert out.pixel(100, 100) == pytest.approx((90, 90, 90), abs=1)
