"""Image formats and extension lookup."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

IMAGE_EXTS = (".jpg", ".jpeg", ".png", ".webp", ".gif", ".bmp")


class ImageFormat(Enum):
    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"

    @property
    def extension(self) -> str:
        return _FORMAT_EXTENSION[self]

    @property
    def lossy(self) -> bool:
        return self is not ImageFormat.PNG

    @property
    def vips_suffix(self) -> str:
        """Suffix understood by pyvips ``write_to_buffer``."""
        return _FORMAT_EXTENSION[self]

    @classmethod
    def parse(cls, value: object) -> ImageFormat:
        if isinstance(value, ImageFormat):
            return value
        v = str(value or "").strip().lower().lstrip(".")
        if v in {"jpg", "jpeg"}:
            return cls.JPEG
        if v == "png":
            return cls.PNG
        if v == "webp":
            return cls.WEBP
        raise ValueError(f"unsupported output format: {value!r}")


_FORMAT_EXTENSION = {
    ImageFormat.JPEG: ".jpg",
    ImageFormat.PNG: ".png",
    ImageFormat.WEBP: ".webp",
}

# Extension -> default output format. Anything missing falls back to JPEG,
# the most compatible lossy format.
_DEFAULT_OUTPUT_FORMAT = {
    ".png": ImageFormat.PNG,
    ".webp": ImageFormat.WEBP,
    ".jpg": ImageFormat.JPEG,
    ".jpeg": ImageFormat.JPEG,
}
FALLBACK_FORMAT = ImageFormat.JPEG


def normalize_extension(ext: str) -> str:
    e = str(ext or "").strip().lower()
    if e and not e.startswith("."):
        e = "." + e
    return e


def format_for_extension(ext: str) -> ImageFormat:
    return _DEFAULT_OUTPUT_FORMAT.get(normalize_extension(ext), FALLBACK_FORMAT)


def format_for_path(path: str | Path) -> ImageFormat:
    return format_for_extension(Path(path).suffix)


def is_image_extension(path: str | Path) -> bool:
    return Path(path).suffix.lower() in IMAGE_EXTS


def encoder_for_extension(ext: str) -> ImageFormat | None:
    """Format that writes files with this extension, or None when there is no encoder."""
    return _DEFAULT_OUTPUT_FORMAT.get(normalize_extension(ext))
