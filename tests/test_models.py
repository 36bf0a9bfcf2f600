from __future__ import annotations

import numpy as np
import pytest

from cutout_viewer.image_engine.models import Axis, RasterImage, SelectionRange


def test_raster_image_copies_writeable_input_and_freezes_it() -> None:
    arr = np.zeros((2, 3, 3), dtype=np.uint8)
    image = RasterImage(arr)

    arr[0, 0] = (255, 255, 255)

    assert image.size == (3, 2)
    assert image.pixel(0, 0) == (0, 0, 0)
    with pytest.raises(ValueError):
        image.pixels[0, 0] = (1, 2, 3)


@pytest.mark.parametrize(
    "arr",
    [
        np.zeros((2, 2), dtype=np.uint8),
        np.zeros((2, 2, 4), dtype=np.uint8),
        np.zeros((2, 2, 3), dtype=np.float32),
        np.zeros((0, 2, 3), dtype=np.uint8),
    ],
)
def test_raster_image_rejects_bad_arrays(arr: np.ndarray) -> None:
    with pytest.raises(ValueError):
        RasterImage(arr)


def test_selection_range_bounds_and_ordering() -> None:
    with pytest.raises(ValueError):
        SelectionRange(-0.1, 0.5)
    with pytest.raises(ValueError):
        SelectionRange(0.2, 1.5)

    r = SelectionRange(0.8, 0.3, Axis.HORIZONTAL)
    assert r.ordered() == SelectionRange(0.3, 0.8, Axis.HORIZONTAL)
    assert r.span == pytest.approx(0.5)
    assert not r.is_entire
    assert SelectionRange(1.0, 0.0).is_entire


@pytest.mark.parametrize(("text", "axis"), [("vertical", Axis.VERTICAL), ("H", Axis.HORIZONTAL), ("x", Axis.VERTICAL)])
def test_axis_parse(text: str, axis: Axis) -> None:
    assert Axis.parse(text) is axis


def test_axis_parse_rejects_unknown() -> None:
    with pytest.raises(ValueError):
        Axis.parse("diagonal")
