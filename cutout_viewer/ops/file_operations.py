"""Common file operation utilities.

Low-level *headless* file operations used by the backend: byte I/O, recycle-bin
deletion and output filename generation. Failures are raised as
``FileSystemError`` so the caller can leave its state untouched.

UI concerns (confirmation, save dialogs) must live in QML.
"""

import time
from pathlib import Path

from send2trash import send2trash

from cutout_viewer.image_engine.errors import FileSystemError
from cutout_viewer.logger import get_logger
from cutout_viewer.path_utils import abs_path, abs_path_str

_logger = get_logger("file_operations")

_KB = 1024
_MB = 1024 * 1024


def read_bytes(path: str) -> bytes:
    try:
        return abs_path(path).read_bytes()
    except OSError as e:
        _logger.warning("read failed: %s -> %s", path, e)
        raise FileSystemError(path, f"Could not read file ({e.strerror or e})") from e


def save_image(data: bytes, path: str) -> str:
    """Write encoded image bytes to ``path``.

    Returns:
        Absolute path written.

    Raises:
        FileSystemError: If the write fails.
    """
    target = abs_path_str(path)
    _logger.debug("writing %d bytes: %s", len(data), target)
    try:
        Path(target).write_bytes(data)
    except OSError as e:
        _logger.error("write failed: %s -> %s", target, e)
        raise FileSystemError(target, f"Could not save image ({e.strerror or e})") from e
    _logger.info("image saved: %s", target)
    return target


def exists(path: str) -> bool:
    try:
        return abs_path(path).is_file()
    except OSError:
        return False


def get_file_size(path: str) -> int:
    try:
        return abs_path(path).stat().st_size
    except OSError:
        return 0


def send_to_recycle_bin(path: str) -> None:
    """Send a single file to recycle bin.

    Uses send2trash library for cross-platform support.

    Raises:
        FileSystemError: If the file could not be moved to the trash.
    """
    abs_p = abs_path_str(path)
    _logger.debug("sending to recycle bin: %s", abs_p)
    try:
        send2trash(abs_p)
    except OSError as e:
        _logger.error("recycle bin failed: %s -> %s", abs_p, e)
        raise FileSystemError(abs_p, f"Could not delete file ({e})") from e
    _logger.debug("recycle bin success: %s", abs_p)


def change_extension(path: str, new_extension: str) -> str:
    ext = new_extension if new_extension.startswith(".") else f".{new_extension}"
    return str(Path(path).with_suffix(ext))


def generate_edited_filename(original_path: str, new_extension: str | None = None) -> str:
    """``<stem>_edited_<millis><ext>`` next to the original; never an existing file."""
    src = Path(original_path)
    ext = new_extension or src.suffix
    if ext and not ext.startswith("."):
        ext = f".{ext}"

    stamp = int(time.time() * 1000)
    dest = src.with_name(f"{src.stem}_edited_{stamp}{ext}")
    counter = 1
    while dest.exists():
        dest = src.with_name(f"{src.stem}_edited_{stamp}_{counter}{ext}")
        counter += 1
    return str(dest)


def format_file_size(size_bytes: int) -> str:
    if size_bytes < 0:
        raise ValueError("size_bytes must be non-negative")
    if size_bytes < _KB:
        return f"{size_bytes} B"
    if size_bytes < _MB:
        return f"{size_bytes / _KB:.1f} KB"
    return f"{size_bytes / _MB:.1f} MB"
