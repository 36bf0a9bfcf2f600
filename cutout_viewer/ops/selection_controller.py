"""Drag-based band selection for the cutout tool.

State machine: IDLE -> SELECTING -> COMMITTED -> (next begin) SELECTING.

Pointer positions arrive in viewport coordinates and are mapped onto the
contain-fitted image rect. A drag may only start inside the displayed image;
updates outside it clamp to the nearest edge.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum

from cutout_viewer.image_engine.models import Axis, SelectionRange
from cutout_viewer.logger import get_logger

from .coordinate_mapper import DisplayRect, contain_rect, to_normalized

_logger = get_logger("selection")

DEFAULT_START = 0.2
DEFAULT_END = 0.8


class SelectionState(Enum):
    IDLE = "idle"
    SELECTING = "selecting"
    COMMITTED = "committed"


class SelectionController:
    def __init__(
        self,
        axis: Axis = Axis.VERTICAL,
        on_commit: Callable[[SelectionRange], None] | None = None,
    ) -> None:
        self._axis = axis
        self._on_commit = on_commit
        self._state = SelectionState.IDLE
        self._viewport: tuple[float, float] = (0.0, 0.0)
        self._image_size: tuple[int, int] = (0, 0)
        self._rect = DisplayRect(0.0, 0.0, 0.0, 0.0)
        self._drag_start: float | None = None
        self._drag_end: float | None = None
        self._selection = SelectionRange(DEFAULT_START, DEFAULT_END, axis)

    # ---- read access ----
    @property
    def state(self) -> SelectionState:
        return self._state

    @property
    def axis(self) -> Axis:
        return self._axis

    @property
    def display_rect(self) -> DisplayRect:
        return self._rect

    @property
    def selection(self) -> SelectionRange:
        """Last committed (ordered) range; the default band before any drag."""
        return self._selection

    @property
    def live_range(self) -> tuple[float, float]:
        """Range to draw: the raw drag while selecting, else the committed one."""
        if self._state is SelectionState.SELECTING and self._drag_start is not None and self._drag_end is not None:
            return self._drag_start, self._drag_end
        return self._selection.start, self._selection.end

    # ---- geometry ----
    def set_viewport(self, width: float, height: float) -> None:
        """Viewport resize; keeps the current state."""
        self._viewport = (float(width), float(height))
        self._rect = contain_rect(self._viewport, self._image_size)

    def set_image(self, width: int, height: int) -> None:
        """Switch to a new source image; drops any in-progress or committed range."""
        self._image_size = (int(width), int(height))
        self._rect = contain_rect(self._viewport, self._image_size)
        self._reset()

    def set_axis(self, axis: Axis) -> None:
        if axis is self._axis:
            return
        self._axis = axis
        self._reset()

    def _reset(self) -> None:
        self._state = SelectionState.IDLE
        self._drag_start = None
        self._drag_end = None
        self._selection = SelectionRange(DEFAULT_START, DEFAULT_END, self._axis)

    # ---- pointer events ----
    def begin(self, x: float, y: float) -> bool:
        """Start a drag. Ignored unless idle/committed and inside the image."""
        if self._state is SelectionState.SELECTING:
            _logger.debug("begin ignored: already selecting")
            return False
        if not self._rect.contains(x, y):
            _logger.debug("begin ignored: (%.1f, %.1f) outside image rect %s", x, y, self._rect)
            return False

        pos = to_normalized((x, y), self._rect, self._axis)
        self._drag_start = pos
        self._drag_end = pos
        self._state = SelectionState.SELECTING
        return True

    def update(self, x: float, y: float) -> bool:
        if self._state is not SelectionState.SELECTING:
            return False
        self._drag_end = to_normalized((x, y), self._rect, self._axis)
        return True

    def commit(self) -> SelectionRange | None:
        """Finish the drag, reorder to ``start <= end`` and notify ``on_commit``."""
        if self._state is not SelectionState.SELECTING or self._drag_start is None or self._drag_end is None:
            return None

        self._selection = SelectionRange(self._drag_start, self._drag_end, self._axis).ordered()
        self._drag_start = None
        self._drag_end = None
        self._state = SelectionState.COMMITTED
        _logger.debug("committed %s [%.4f, %.4f]", self._axis.value, self._selection.start, self._selection.end)

        if self._on_commit is not None:
            self._on_commit(self._selection)
        return self._selection

    def cancel(self) -> None:
        """Abort an in-progress drag, keeping the last committed range."""
        if self._state is not SelectionState.SELECTING:
            return
        self._drag_start = None
        self._drag_end = None
        self._state = SelectionState.IDLE
