"""Map viewport pointer positions onto a contain-fitted image."""

from __future__ import annotations

from dataclasses import dataclass

from cutout_viewer.image_engine.models import Axis


@dataclass(frozen=True, slots=True)
class DisplayRect:
    """Sub-rectangle of the viewport occupied by the image (viewport pixels)."""

    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    def contains(self, x: float, y: float) -> bool:
        return self.left <= x <= self.right and self.top <= y <= self.bottom

    def position_to_view(self, position: float, axis: Axis) -> float:
        """Inverse of ``to_normalized``: normalized position -> viewport coordinate."""
        if axis is Axis.VERTICAL:
            return self.left + position * self.width
        return self.top + position * self.height


def _clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def contain_rect(viewport: tuple[float, float], image: tuple[float, float]) -> DisplayRect:
    """Largest centered rect with the image's aspect ratio that fits the viewport.

    Unknown image dimensions (<= 0) map to the whole viewport.
    """
    vw, vh = float(viewport[0]), float(viewport[1])
    iw, ih = float(image[0]), float(image[1])
    if vw <= 0 or vh <= 0:
        return DisplayRect(0.0, 0.0, max(0.0, vw), max(0.0, vh))
    if iw <= 0 or ih <= 0:
        return DisplayRect(0.0, 0.0, vw, vh)

    image_ratio = iw / ih
    viewport_ratio = vw / vh
    if image_ratio > viewport_ratio:
        # Wider than the viewport: fit to width.
        dw = vw
        dh = vw / image_ratio
    else:
        dh = vh
        dw = vh * image_ratio

    return DisplayRect((vw - dw) / 2.0, (vh - dh) / 2.0, dw, dh)


def to_normalized(point: tuple[float, float], rect: DisplayRect, axis: Axis) -> float:
    """Fraction along ``axis`` of ``point`` within ``rect``, clamped to [0, 1].

    VERTICAL cutouts read the x coordinate, HORIZONTAL cutouts read y.
    """
    x, y = float(point[0]), float(point[1])
    if axis is Axis.VERTICAL:
        if rect.width <= 0:
            return 0.0
        pos = (x - rect.left) / rect.width
    else:
        if rect.height <= 0:
            return 0.0
        pos = (y - rect.top) / rect.height
    return _clamp(pos, 0.0, 1.0)
