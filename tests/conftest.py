"""Pytest configuration.

Parts of this suite use PySide6 (state objects, the preview coordinator and
the backend facade). Importing Qt modules before a `QApplication` exists can
produce Qt warnings, so a single `QApplication` is created for the whole
session as early as possible and shut down at the end.

Pure modules (mapping, selection, transforms, sessions, shortcuts) are tested
without Qt.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import numpy as np
import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

_APP: Any | None = None


def pytest_configure(config) -> None:  # noqa: ARG001
    """Ensure a QApplication exists before collecting/running tests."""

    # Import lazily so non-Qt environments can still import this conftest.
    try:
        from PySide6.QtWidgets import QApplication
    except ImportError:
        return

    global _APP

    app = QApplication.instance()
    if app is None:
        # Keep a strong ref so it isn't GC'd mid-session.
        _APP = QApplication([])
    else:
        _APP = app


def pytest_sessionfinish(session, exitstatus) -> None:  # noqa: ARG001
    """Attempt a clean Qt shutdown to avoid lingering threads at interpreter exit."""

    try:
        from PySide6.QtWidgets import QApplication
    except ImportError:
        return

    app = QApplication.instance()
    if app is None:
        return

    app.quit()
    app.processEvents()


def gradient_pixels(width: int, height: int) -> np.ndarray:
    """(H, W, 3) uint8 array where R encodes x and G encodes y."""
    xs = np.arange(width, dtype=np.uint16) % 256
    ys = np.arange(height, dtype=np.uint16) % 256
    arr = np.zeros((height, width, 3), dtype=np.uint8)
    arr[:, :, 0] = xs[np.newaxis, :]
    arr[:, :, 1] = ys[:, np.newaxis]
    arr[:, :, 2] = 128
    return arr


@pytest.fixture
def write_image(tmp_path: Path):
    """Write a solid-color image file with Pillow and return its path."""

    pil_image = pytest.importorskip("PIL.Image")

    def _write(name: str, size: tuple[int, int] = (8, 6), color: tuple[int, int, int] = (200, 40, 10)) -> Path:
        path = tmp_path / name
        fmt = {".jpg": "JPEG", ".jpeg": "JPEG", ".png": "PNG", ".webp": "WEBP", ".bmp": "BMP", ".gif": "GIF"}[
            path.suffix.lower()
        ]
        pil_image.new("RGB", size, color).save(path, format=fmt)
        return path

    return _write


@pytest.fixture
def gradient():
    return gradient_pixels
