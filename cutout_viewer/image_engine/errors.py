"""Error taxonomy for image operations.

Engine functions raise these; the app layer catches ``ImageOpError`` at the
command boundary and reports it to the UI. State is left unchanged whenever
one of these is raised.
"""

from __future__ import annotations


class ImageOpError(Exception):
    """Base class for user-facing image operation failures."""


class DecodeError(ImageOpError):
    """Bytes are malformed or in an unsupported format."""


class EncodeError(ImageOpError):
    """Pixel data could not be re-encoded to the requested format."""


class EntireImageSelected(ImageOpError):
    """A cutout band would remove the whole image."""

    def __init__(self, message: str = "The selection covers the entire image.") -> None:
        super().__init__(message)


class EmptyResult(ImageOpError):
    """A transform would produce an image with a non-positive dimension."""

    def __init__(self, message: str = "The result would be empty.") -> None:
        super().__init__(message)


class FileSystemError(ImageOpError):
    """Delete/write/read failure for a specific path."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{message}: {path}")
        self.path = path
