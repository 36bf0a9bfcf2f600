"""Core data model: raster images and selection ranges.

Keep this module free of Qt dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np

RGB_CHANNELS = 3
_EXPECTED_NDIM = 3


class Axis(Enum):
    """Axis along which a band is removed.

    VERTICAL removes a band of columns (the user drags horizontally);
    HORIZONTAL removes a band of rows (the user drags vertically).
    """

    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"

    @classmethod
    def parse(cls, value: object) -> Axis:
        if isinstance(value, Axis):
            return value
        v = str(value or "").strip().lower()
        if v in {"vertical", "v", "x"}:
            return cls.VERTICAL
        if v in {"horizontal", "h", "y"}:
            return cls.HORIZONTAL
        raise ValueError(f"unknown axis: {value!r}")


@dataclass(frozen=True, eq=False)
class RasterImage:
    """Immutable RGB image backed by an (H, W, 3) uint8 array.

    Transforms always return a new RasterImage; the backing array is marked
    read-only so instances can be shared between observers.
    """

    pixels: np.ndarray

    def __post_init__(self) -> None:
        arr = self.pixels
        if arr.ndim != _EXPECTED_NDIM or arr.shape[2] != RGB_CHANNELS:
            raise ValueError(f"expected (H, W, 3) array, got shape {arr.shape}")
        if arr.dtype != np.uint8:
            raise ValueError(f"expected uint8 pixels, got {arr.dtype}")
        if arr.shape[0] <= 0 or arr.shape[1] <= 0:
            raise ValueError(f"image dimensions must be positive, got {arr.shape[1]}x{arr.shape[0]}")
        if arr.flags.writeable:
            arr = np.ascontiguousarray(arr).copy()
            arr.flags.writeable = False
            object.__setattr__(self, "pixels", arr)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> RasterImage:
        return cls(np.asarray(arr))

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def pixel(self, x: int, y: int) -> tuple[int, int, int]:
        r, g, b = self.pixels[y, x]
        return int(r), int(g), int(b)

    def same_pixels(self, other: RasterImage) -> bool:
        return self.size == other.size and bool(np.array_equal(self.pixels, other.pixels))


@dataclass(frozen=True, slots=True)
class SelectionRange:
    """Normalized (0..1) band along one axis of the source image."""

    start: float
    end: float
    axis: Axis = Axis.VERTICAL

    def __post_init__(self) -> None:
        for name in ("start", "end"):
            v = float(getattr(self, name))
            if not 0.0 <= v <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {v}")

    def ordered(self) -> SelectionRange:
        """Return the range with ``start <= end``."""
        if self.start <= self.end:
            return self
        return SelectionRange(self.end, self.start, self.axis)

    @property
    def is_entire(self) -> bool:
        r = self.ordered()
        return r.start == 0.0 and r.end == 1.0

    @property
    def span(self) -> float:
        return abs(self.end - self.start)
