"""Image decoding/encoding using pyvips.

Bytes in, RasterImage out (and back). All pixel data is normalized to 8-bit
sRGB with three bands; alpha is flattened onto black.
"""

import contextlib
import os
import sys
from pathlib import Path
from typing import Any

import numpy as np

from cutout_viewer.logger import get_logger

from .errors import DecodeError, EncodeError
from .formats import ImageFormat
from .models import RGB_CHANNELS, RasterImage

_logger = get_logger("decoder")

# Locate bundled libvips (for frozen exe/_MEIPASS and source tree)
_BASE_DIR = Path(getattr(sys, "_MEIPASS", Path(__file__).resolve().parent.parent))
_LIBVIPS_DIR = _BASE_DIR / "libvips"
if os.name == "nt" and _LIBVIPS_DIR.exists():
    with contextlib.suppress(OSError):
        os.add_dll_directory(str(_LIBVIPS_DIR))


_pyvips: Any | None = None


def _get_pyvips_module() -> Any:
    global _pyvips
    if _pyvips is None:
        import pyvips  # type: ignore

        # Keep the operation cache from pinning large buffers.
        pyvips.cache_set_max(0)
        pyvips.cache_set_max_mem(0)
        pyvips.cache_set_max_files(0)
        _pyvips = pyvips
    return _pyvips


def _vips_to_array(image: Any) -> "np.ndarray":
    pyvips = _get_pyvips_module()
    with contextlib.suppress(pyvips.Error):
        image = image.colourspace("srgb")
    if image.hasalpha():
        image = image.flatten(background=[0, 0, 0])
    if image.bands > RGB_CHANNELS:
        image = image.extract_band(0, n=RGB_CHANNELS)
    elif image.bands < RGB_CHANNELS:
        image = pyvips.Image.bandjoin([image] * RGB_CHANNELS)
    if image.format != "uchar":
        image = image.cast("uchar")

    mem = image.write_to_memory()
    array = np.frombuffer(mem, dtype=np.uint8).reshape(image.height, image.width, image.bands)
    if array.shape[2] != RGB_CHANNELS:
        raise DecodeError(f"Unsupported band count after conversion: {array.shape[2]}")
    return array


def raster_to_vips(image: RasterImage) -> Any:
    """Wrap a RasterImage as a pyvips image (the buffer is copied)."""
    pyvips = _get_pyvips_module()
    arr = np.ascontiguousarray(image.pixels)
    vimg = pyvips.Image.new_from_memory(arr.tobytes(), image.width, image.height, RGB_CHANNELS, "uchar")
    return vimg.copy(interpretation="srgb")


def vips_to_raster(image: Any) -> RasterImage:
    arr = _vips_to_array(image)
    arr.flags.writeable = False
    return RasterImage(arr)


def decode_bytes(data: bytes) -> RasterImage:
    """Decode encoded image bytes into a RasterImage.

    Raises:
        DecodeError: bytes are empty, malformed or in an unsupported format.
    """
    if not data:
        raise DecodeError("No image data")
    pyvips = _get_pyvips_module()
    try:
        image = pyvips.Image.new_from_buffer(bytes(data), "", access="sequential")
        raster = vips_to_raster(image)
    except DecodeError:
        raise
    except pyvips.Error as e:
        _logger.debug("decode failed: %s", e)
        raise DecodeError(f"Could not decode image: {e}") from e
    _logger.debug("decoded %d bytes -> %dx%d", len(data), raster.width, raster.height)
    return raster


def get_image_dimensions(data: bytes) -> tuple[int, int]:
    """Return (width, height) from the image header without decoding pixels."""
    if not data:
        raise DecodeError("No image data")
    pyvips = _get_pyvips_module()
    try:
        image = pyvips.Image.new_from_buffer(bytes(data), "")
        return int(image.width), int(image.height)
    except pyvips.Error as e:
        raise DecodeError(f"Could not read image header: {e}") from e


def encode_image(image: RasterImage, fmt: ImageFormat, quality: int = 95) -> bytes:
    """Encode a RasterImage to bytes. ``quality`` only applies to lossy formats.

    Raises:
        EncodeError: libvips failed to write the requested format.
    """
    pyvips = _get_pyvips_module()
    options: dict[str, Any] = {}
    if fmt.lossy:
        options["Q"] = int(quality)
    try:
        data = raster_to_vips(image).write_to_buffer(fmt.vips_suffix, **options)
    except pyvips.Error as e:
        _logger.error("encode to %s failed: %s", fmt.value, e)
        raise EncodeError(f"Could not encode image as {fmt.value}: {e}") from e
    _logger.debug("encoded %dx%d -> %s (%d bytes)", image.width, image.height, fmt.value, len(data))
    return bytes(data)
