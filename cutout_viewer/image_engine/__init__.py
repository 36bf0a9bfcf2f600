"""Image Engine - pixel data, transforms and directory sessions.

This package provides the core data and processing functionality:
- RasterImage / SelectionRange data model (models)
- Decoding and encoding via pyvips (decoder)
- Region removal, downscale and re-encode (transform)
- Directory scanning and the navigable image session (directory_session)

Keep this package free of Qt dependencies.

Usage:
    from cutout_viewer.image_engine import cutout, decode_bytes, SelectionRange, Axis

    image = decode_bytes(data)
    out = cutout(image, SelectionRange(0.2, 0.5, Axis.VERTICAL))
"""

from .decoder import decode_bytes, encode_image, get_image_dimensions
from .directory_session import DirectorySession, ImageEntry, is_image_path, list_images_in_directory
from .errors import DecodeError, EmptyResult, EncodeError, EntireImageSelected, FileSystemError, ImageOpError
from .formats import IMAGE_EXTS, ImageFormat, format_for_extension, format_for_path
from .models import Axis, RasterImage, SelectionRange
from .transform import convert_format, cutout, reduce_file_size, resize

__all__ = [
    "IMAGE_EXTS",
    "Axis",
    "DecodeError",
    "DirectorySession",
    "EmptyResult",
    "EncodeError",
    "EntireImageSelected",
    "FileSystemError",
    "ImageEntry",
    "ImageFormat",
    "ImageOpError",
    "RasterImage",
    "SelectionRange",
    "convert_format",
    "cutout",
    "decode_bytes",
    "encode_image",
    "format_for_extension",
    "format_for_path",
    "get_image_dimensions",
    "is_image_path",
    "list_images_in_directory",
    "reduce_file_size",
    "resize",
]
