"""QML image provider for in-memory RasterImages (image://raster/<slot>/<gen>).

The backend publishes the working image and the cutout preview under fixed slot
names; the generation segment only exists so QML re-requests after a change.
"""

from __future__ import annotations

import threading
from typing import Any

import numpy as np
from PySide6.QtCore import Qt
from PySide6.QtGui import QImage
from PySide6.QtQuick import QQuickImageProvider

from cutout_viewer.image_engine.models import RGB_CHANNELS, RasterImage
from cutout_viewer.logger import get_logger

_logger = get_logger("image_provider")

PROVIDER_ID = "raster"
SLOT_WORKING = "working"
SLOT_PREVIEW = "preview"


def raster_to_qimage(image: RasterImage) -> QImage:
    """Copy a RasterImage into a standalone RGB888 QImage."""
    arr = np.ascontiguousarray(image.pixels)
    height, width = arr.shape[0], arr.shape[1]
    bytes_per_line = RGB_CHANNELS * width
    # .copy() detaches the QImage from the numpy buffer.
    return QImage(arr.data, width, height, bytes_per_line, QImage.Format.Format_RGB888).copy()


class RasterImageProvider(QQuickImageProvider):
    def __init__(self) -> None:
        super().__init__(QQuickImageProvider.ImageType.Image)
        self._lock = threading.Lock()
        self._images: dict[str, RasterImage] = {}
        self._generation = 0

    def publish(self, slot: str, image: RasterImage | None) -> str:
        """Store ``image`` under ``slot`` and return a fresh URL (empty for None)."""
        with self._lock:
            if image is None:
                self._images.pop(slot, None)
                return ""
            self._images[slot] = image
            self._generation += 1
            gen = self._generation
        return f"image://{PROVIDER_ID}/{slot}/{gen}"

    def get(self, slot: str) -> RasterImage | None:
        with self._lock:
            return self._images.get(slot)

    def clear(self) -> None:
        with self._lock:
            self._images.clear()

    def requestImage(self, id: str, size: Any, requestedSize: Any) -> QImage:
        slot = str(id).split("/", 1)[0]
        image = self.get(slot)
        if image is None:
            _logger.debug("requestImage: no image for %s", id)
            placeholder = QImage(1, 1, QImage.Format.Format_ARGB32)
            placeholder.fill(Qt.GlobalColor.transparent)
            return placeholder

        qimg = raster_to_qimage(image)
        if hasattr(size, "setWidth"):
            size.setWidth(qimg.width())
            size.setHeight(qimg.height())
        if hasattr(requestedSize, "isValid") and requestedSize.width() > 0 and requestedSize.height() > 0:
            qimg = qimg.scaled(
                requestedSize, Qt.AspectRatioMode.KeepAspectRatio, Qt.TransformationMode.SmoothTransformation
            )
        return qimg
