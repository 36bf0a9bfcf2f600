"""Pixel-level transforms: region removal, downscale, re-encode.

Pure functions: an input RasterImage is never mutated; every transform returns
a new RasterImage (or bytes). No Qt dependencies.

Position -> pixel conversion rounds half away from zero (``floor(x + 0.5)`` for
the non-negative values used here) and clamps to ``[0, dimension]`` before any
index is used.
"""

from __future__ import annotations

import math

import numpy as np

from cutout_viewer.logger import get_logger

from .decoder import _get_pyvips_module, encode_image, raster_to_vips, vips_to_raster
from .errors import EmptyResult, EntireImageSelected
from .formats import ImageFormat
from .metrics import metrics
from .models import Axis, RasterImage, SelectionRange

_logger = get_logger("transform")

MIN_QUALITY = 1
MAX_QUALITY = 100


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def position_to_pixel(position: float, dimension: int) -> int:
    """Map a normalized position onto ``[0, dimension]``."""
    return max(0, min(int(dimension), round_half_up(float(position) * dimension)))


def pixel_bounds(selection: SelectionRange, dimension: int) -> tuple[int, int]:
    """Return the half-open pixel band ``[start, end)`` covered by a selection."""
    r = selection.ordered()
    return position_to_pixel(r.start, dimension), position_to_pixel(r.end, dimension)


def _freeze(arr: np.ndarray) -> RasterImage:
    arr = np.ascontiguousarray(arr)
    arr.flags.writeable = False
    return RasterImage(arr)


def cutout(image: RasterImage, selection: SelectionRange, axis: Axis | None = None) -> RasterImage:
    """Remove a band of pixels and close the gap.

    For ``Axis.VERTICAL`` the band is a range of columns: the output keeps
    columns ``x < start`` unchanged and shifts columns ``x >= end`` left by the
    removed width. ``Axis.HORIZONTAL`` does the same for rows.

    Raises:
        EntireImageSelected: the band covers the full dimension.
        EmptyResult: the remaining dimension would not be positive.
    """
    ax = axis or selection.axis
    dimension = image.width if ax is Axis.VERTICAL else image.height
    start_px, end_px = pixel_bounds(selection, dimension)

    if start_px == 0 and end_px == dimension:
        _logger.debug("cutout rejected: band [%d, %d) covers %s dimension %d", start_px, end_px, ax.value, dimension)
        raise EntireImageSelected()

    remaining = dimension - (end_px - start_px)
    if remaining <= 0:
        raise EmptyResult()

    with metrics.timed("transform.cutout"):
        px = image.pixels
        if ax is Axis.VERTICAL:
            out = np.concatenate((px[:, :start_px], px[:, end_px:]), axis=1)
        else:
            out = np.concatenate((px[:start_px, :], px[end_px:, :]), axis=0)

    metrics.inc("transform.cutout")
    _logger.debug(
        "cutout %s [%d, %d): %dx%d -> %dx%d",
        ax.value,
        start_px,
        end_px,
        image.width,
        image.height,
        out.shape[1],
        out.shape[0],
    )
    return _freeze(out)


def fit_within(width: int, height: int, max_width: int, max_height: int) -> tuple[int, int]:
    """Target size for a downscale-only fit; returns the input size if it fits."""
    if max_width <= 0 or max_height <= 0:
        raise ValueError(f"resize limits must be positive, got {max_width}x{max_height}")
    if width <= max_width and height <= max_height:
        return width, height
    ratio = min(max_width / width, max_height / height)
    new_w = max(1, min(max_width, round_half_up(width * ratio)))
    new_h = max(1, min(max_height, round_half_up(height * ratio)))
    return new_w, new_h


def resize(image: RasterImage, max_width: int, max_height: int) -> RasterImage:
    """Downscale to fit within ``max_width`` x ``max_height``; never upscales.

    Returns the same instance when the image already fits.
    """
    new_w, new_h = fit_within(image.width, image.height, int(max_width), int(max_height))
    if (new_w, new_h) == image.size:
        return image

    pyvips = _get_pyvips_module()
    with metrics.timed("transform.resize"):
        vimg = raster_to_vips(image).thumbnail_image(new_w, height=new_h, size=pyvips.Size.FORCE)
        out = vips_to_raster(vimg)

    metrics.inc("transform.resize")
    _logger.debug("resize %dx%d -> %dx%d", image.width, image.height, out.width, out.height)
    return out


def clamp_quality(quality: int) -> int:
    return max(MIN_QUALITY, min(MAX_QUALITY, int(quality)))


def convert_format(image: RasterImage, fmt: ImageFormat | str, quality: int = 95) -> bytes:
    """Encode the current pixel buffer to ``fmt``.

    Always re-encodes from pixels, even when the source file already had the
    target format. ``quality`` is clamped to 1..100 and ignored for lossless
    formats.
    """
    target = ImageFormat.parse(fmt)
    q = clamp_quality(quality)
    if target.lossy and q != quality:
        _logger.debug("quality %s clamped to %d", quality, q)
    with metrics.timed("transform.convert"):
        return encode_image(image, target, q)


def reduce_file_size(image: RasterImage, quality: int) -> bytes:
    """Re-encode as JPEG at ``quality`` to shrink the file."""
    return convert_format(image, ImageFormat.JPEG, quality)
