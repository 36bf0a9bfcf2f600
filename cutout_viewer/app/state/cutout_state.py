from __future__ import annotations

from PySide6.QtCore import Property, QObject, Signal


class CutoutState(QObject):
    """State bound by the QML Cutout UI.

    Design:
    - The band is stored as normalized positions (0..1) along ``axis``.
    - While dragging, ``rangeStart``/``rangeEnd`` follow the raw pointer and may
      be reversed; after commit they are ordered.
    - ``displayX/Y/Width/Height`` describe where the image is drawn inside the
      viewport so QML can place the overlay without redoing the fit math.
    """

    activeChanged = Signal(bool)
    axisChanged = Signal(str)
    rangeChanged = Signal()
    selectingChanged = Signal(bool)
    committedChanged = Signal(bool)
    displayRectChanged = Signal()
    previewUrlChanged = Signal(str)
    previewBusyChanged = Signal(bool)
    previewErrorChanged = Signal(str)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._active = False
        self._axis = "vertical"
        self._start = 0.0
        self._end = 0.0
        self._selecting = False
        self._committed = False
        self._rect = (0.0, 0.0, 0.0, 0.0)
        self._preview_url = ""
        self._preview_busy = False
        self._preview_error = ""

    # ---- read-only properties (mutate via backend) ----
    def _get_active(self) -> bool:
        return bool(self._active)

    active = Property(bool, _get_active, notify=activeChanged)  # type: ignore[arg-type]

    def _get_axis(self) -> str:
        return str(self._axis)

    axis = Property(str, _get_axis, notify=axisChanged)  # type: ignore[arg-type]

    def _get_start(self) -> float:
        return float(self._start)

    rangeStart = Property(float, _get_start, notify=rangeChanged)  # type: ignore[arg-type]

    def _get_end(self) -> float:
        return float(self._end)

    rangeEnd = Property(float, _get_end, notify=rangeChanged)  # type: ignore[arg-type]

    def _get_selecting(self) -> bool:
        return bool(self._selecting)

    selecting = Property(bool, _get_selecting, notify=selectingChanged)  # type: ignore[arg-type]

    def _get_committed(self) -> bool:
        return bool(self._committed)

    committed = Property(bool, _get_committed, notify=committedChanged)  # type: ignore[arg-type]

    def _get_display_x(self) -> float:
        return float(self._rect[0])

    displayX = Property(float, _get_display_x, notify=displayRectChanged)  # type: ignore[arg-type]

    def _get_display_y(self) -> float:
        return float(self._rect[1])

    displayY = Property(float, _get_display_y, notify=displayRectChanged)  # type: ignore[arg-type]

    def _get_display_width(self) -> float:
        return float(self._rect[2])

    displayWidth = Property(float, _get_display_width, notify=displayRectChanged)  # type: ignore[arg-type]

    def _get_display_height(self) -> float:
        return float(self._rect[3])

    displayHeight = Property(float, _get_display_height, notify=displayRectChanged)  # type: ignore[arg-type]

    def _get_preview_url(self) -> str:
        return str(self._preview_url)

    previewUrl = Property(str, _get_preview_url, notify=previewUrlChanged)  # type: ignore[arg-type]

    def _get_preview_busy(self) -> bool:
        return bool(self._preview_busy)

    previewBusy = Property(bool, _get_preview_busy, notify=previewBusyChanged)  # type: ignore[arg-type]

    def _get_preview_error(self) -> str:
        return str(self._preview_error)

    previewError = Property(str, _get_preview_error, notify=previewErrorChanged)  # type: ignore[arg-type]

    # ---- internal mutation helpers (called by backend) ----
    def _set_active(self, value: bool) -> None:
        v = bool(value)
        if v == self._active:
            return
        self._active = v
        self.activeChanged.emit(v)

    def _set_axis(self, axis: str) -> None:
        a = str(axis)
        if a == self._axis:
            return
        self._axis = a
        self.axisChanged.emit(a)

    def _set_range(self, start: float, end: float) -> None:
        s = float(start)
        e = float(end)
        if (s, e) == (self._start, self._end):
            return
        self._start = s
        self._end = e
        self.rangeChanged.emit()

    def _set_selecting(self, value: bool) -> None:
        v = bool(value)
        if v == self._selecting:
            return
        self._selecting = v
        self.selectingChanged.emit(v)

    def _set_committed(self, value: bool) -> None:
        v = bool(value)
        if v == self._committed:
            return
        self._committed = v
        self.committedChanged.emit(v)

    def _set_display_rect(self, x: float, y: float, w: float, h: float) -> None:
        r = (float(x), float(y), float(w), float(h))
        if r == self._rect:
            return
        self._rect = r
        self.displayRectChanged.emit()

    def _set_preview_url(self, url: str) -> None:
        u = str(url)
        if u == self._preview_url:
            return
        self._preview_url = u
        self.previewUrlChanged.emit(u)

    def _set_preview_busy(self, value: bool) -> None:
        v = bool(value)
        if v == self._preview_busy:
            return
        self._preview_busy = v
        self.previewBusyChanged.emit(v)

    def _set_preview_error(self, text: str) -> None:
        t = str(text)
        if t == self._preview_error:
            return
        self._preview_error = t
        self.previewErrorChanged.emit(t)
