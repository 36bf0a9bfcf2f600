from __future__ import annotations

from PySide6.QtCore import Property, QObject, Signal


class ViewerState(QObject):
    """State bound by the viewer UI: current image and directory position."""

    currentPathChanged = Signal(str)
    currentIndexChanged = Signal(int)
    imageCountChanged = Signal(int)
    imageUrlChanged = Signal(str)
    imageWidthChanged = Signal(int)
    imageHeightChanged = Signal(int)
    dirtyChanged = Signal(bool)
    errorMessageChanged = Signal(str)
    statusTextChanged = Signal(str)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._current_path = ""
        self._current_index = -1
        self._image_count = 0
        self._image_url = ""
        self._image_w = 0
        self._image_h = 0
        self._dirty = False
        self._error_message = ""
        self._status_text = ""

    # ---- read-only properties (mutate via backend) ----
    def _get_current_path(self) -> str:
        return str(self._current_path)

    currentPath = Property(str, _get_current_path, notify=currentPathChanged)  # type: ignore[arg-type]

    def _get_current_index(self) -> int:
        return int(self._current_index)

    currentIndex = Property(int, _get_current_index, notify=currentIndexChanged)  # type: ignore[arg-type]

    def _get_image_count(self) -> int:
        return int(self._image_count)

    imageCount = Property(int, _get_image_count, notify=imageCountChanged)  # type: ignore[arg-type]

    def _get_image_url(self) -> str:
        return str(self._image_url)

    imageUrl = Property(str, _get_image_url, notify=imageUrlChanged)  # type: ignore[arg-type]

    def _get_image_width(self) -> int:
        return int(self._image_w)

    imageWidth = Property(int, _get_image_width, notify=imageWidthChanged)  # type: ignore[arg-type]

    def _get_image_height(self) -> int:
        return int(self._image_h)

    imageHeight = Property(int, _get_image_height, notify=imageHeightChanged)  # type: ignore[arg-type]

    def _get_dirty(self) -> bool:
        return bool(self._dirty)

    dirty = Property(bool, _get_dirty, notify=dirtyChanged)  # type: ignore[arg-type]

    def _get_error_message(self) -> str:
        return str(self._error_message)

    errorMessage = Property(str, _get_error_message, notify=errorMessageChanged)  # type: ignore[arg-type]

    def _get_status_text(self) -> str:
        return str(self._status_text)

    statusText = Property(str, _get_status_text, notify=statusTextChanged)  # type: ignore[arg-type]

    # ---- internal mutation helpers (called by backend) ----
    def _set_current_path(self, path: str) -> None:
        p = str(path)
        if p == self._current_path:
            return
        self._current_path = p
        self.currentPathChanged.emit(p)

    def _set_current_index(self, idx: int) -> None:
        i = int(idx)
        if i == self._current_index:
            return
        self._current_index = i
        self.currentIndexChanged.emit(i)

    def _set_image_count(self, count: int) -> None:
        c = int(count)
        if c == self._image_count:
            return
        self._image_count = c
        self.imageCountChanged.emit(c)

    def _set_image_url(self, url: str) -> None:
        u = str(url)
        if u == self._image_url:
            return
        self._image_url = u
        self.imageUrlChanged.emit(u)

    def _set_image_size(self, w: int, h: int) -> None:
        iw = int(w)
        ih = int(h)
        if iw != self._image_w:
            self._image_w = iw
            self.imageWidthChanged.emit(iw)
        if ih != self._image_h:
            self._image_h = ih
            self.imageHeightChanged.emit(ih)

    def _set_dirty(self, value: bool) -> None:
        v = bool(value)
        if v == self._dirty:
            return
        self._dirty = v
        self.dirtyChanged.emit(v)

    def _set_error_message(self, text: str) -> None:
        t = str(text)
        if t == self._error_message:
            return
        self._error_message = t
        self.errorMessageChanged.emit(t)

    def _set_status_text(self, text: str) -> None:
        t = str(text)
        if t == self._status_text:
            return
        self._status_text = t
        self.statusTextChanged.emit(t)
