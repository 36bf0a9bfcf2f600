from __future__ import annotations

import contextlib
import sys
import time
from collections.abc import Callable
from concurrent.futures import Executor
from pathlib import Path
from typing import Any

from PySide6.QtCore import Property, QObject, QTimer, QUrl, Signal, Slot

from cutout_viewer.app.image_provider import SLOT_PREVIEW, SLOT_WORKING, RasterImageProvider
from cutout_viewer.app.state.cutout_state import CutoutState
from cutout_viewer.app.state.viewer_state import ViewerState
from cutout_viewer.image_engine.decoder import decode_bytes
from cutout_viewer.image_engine.directory_session import DirectorySession, is_image_path
from cutout_viewer.image_engine.errors import EncodeError, EntireImageSelected, ImageOpError
from cutout_viewer.image_engine.formats import ImageFormat, encoder_for_extension, format_for_path
from cutout_viewer.image_engine.metrics import metrics
from cutout_viewer.image_engine.models import Axis, RasterImage, SelectionRange
from cutout_viewer.image_engine import transform
from cutout_viewer.logger import get_logger
from cutout_viewer.ops import file_operations as fileops
from cutout_viewer.ops.preview_coordinator import PreviewCoordinator
from cutout_viewer.ops.selection_controller import SelectionController, SelectionState
from cutout_viewer.ops.shortcuts import Action, DoublePressDetector, KeyChord, ShortcutDispatcher
from cutout_viewer.path_utils import abs_path_str
from cutout_viewer.settings_manager import SettingsManager

_logger = get_logger("backend")
_BASE_DIR = Path(getattr(sys, "_MEIPASS", Path(__file__).resolve().parents[1]))


def _compute_cutout_preview(params: tuple[RasterImage, SelectionRange]) -> RasterImage:
    image, selection = params
    return transform.cutout(image, selection)


class Backend(QObject):
    """Single backend object exposed to QML.

    QML -> Python: backend.dispatch(cmd, payload)
    Python -> QML: backend.event(dict), backend.taskEvent(dict)
    QML bindings: backend.viewer / backend.cutout

    Owns the DirectorySession, the working RasterImage, the cutout selection and
    its preview pipeline, and the shortcut dispatcher for this window.
    """

    # QObject already has an .event() handler method, so we must not shadow it.
    # Expose the QML signal name as "event" while keeping a safe Python attribute.
    event_ = Signal(object, name="event")
    taskEvent = Signal(object, name="taskEvent")

    def __init__(
        self,
        settings: SettingsManager | None = None,
        executor: Executor | None = None,
        clock: Callable[[], float] = time.monotonic,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)

        self._settings_mgr = settings or SettingsManager(abs_path_str(_BASE_DIR / "settings.json"))

        self._viewer = ViewerState(self)
        self._cutout = CutoutState(self)
        self.image_provider = RasterImageProvider()

        self._session = DirectorySession()
        self._working: RasterImage | None = None

        self._selection = SelectionController(on_commit=self._on_selection_committed)
        self._preview = PreviewCoordinator(_compute_cutout_preview, executor, self)
        self._preview.preview_ready.connect(self._on_preview_ready)
        self._preview.preview_failed.connect(self._on_preview_failed)

        self._shortcuts = ShortcutDispatcher.with_defaults()
        self._bind_shortcuts()
        self._delete_press = DoublePressDetector(
            KeyChord("delete"), self._settings_mgr.double_press_seconds or 0.4, clock
        )

        self._file_check_timer = QTimer(self)
        self._file_check_timer.setInterval(int(self._settings_mgr.get("file_check_interval_ms")))
        self._file_check_timer.timeout.connect(self.check_current_exists)

        self._sync_cutout_selection()

    # ---- expose state objects to QML ----
    def _get_viewer(self) -> QObject:
        return self._viewer

    viewer = Property(QObject, _get_viewer, constant=True)  # type: ignore[arg-type]

    def _get_cutout(self) -> QObject:
        return self._cutout

    cutout = Property(QObject, _get_cutout, constant=True)  # type: ignore[arg-type]

    # ---- python-side accessors ----
    @property
    def session(self) -> DirectorySession:
        return self._session

    @property
    def working_image(self) -> RasterImage | None:
        return self._working

    @property
    def selection(self) -> SelectionController:
        return self._selection

    @property
    def preview(self) -> PreviewCoordinator:
        return self._preview

    @property
    def shortcuts(self) -> ShortcutDispatcher:
        return self._shortcuts

    @property
    def file_check_timer(self) -> QTimer:
        return self._file_check_timer

    def _bind_shortcuts(self) -> None:
        s = self._shortcuts
        s.bind(Action.NEXT_IMAGE, lambda: self._cmd_navigate(1))
        s.bind(Action.PREVIOUS_IMAGE, lambda: self._cmd_navigate(-1))
        s.bind(Action.CUTOUT_TOOL, self._cmd_open_cutout)
        s.bind(Action.SAVE, lambda: self._cmd_save(None))
        s.bind(Action.DELETE, self._cmd_delete_current)
        s.bind(Action.CLOSE, self._on_close_shortcut)
        s.bind(Action.DONE, self._on_done_shortcut)
        s.bind(Action.SHORTCUT_HELP, self._on_help_shortcut)
        s.bind(Action.UNDO, lambda: self._emit_event("editorCommand", action=Action.UNDO.value))
        s.bind(Action.REDO, lambda: self._emit_event("editorCommand", action=Action.REDO.value))

    # ---- QML command entry ----
    # NOTE: The second argument must be a Qt-friendly variant type.
    # Using `object` here causes runtime failures when QML passes a JS object.
    @Slot(str, "QVariant")  # type: ignore[call-overload]
    def dispatch(self, cmd: str, payload: object | None = None) -> None:  # noqa: PLR0911, PLR0912
        command = str(cmd or "").strip()
        if not command:
            self._emit_event("error", level="error", message="Empty cmd")
            return

        if command == "log":
            self._handle_log_cmd(payload)
            return

        if command == "openImage":
            self._cmd_open_image(str(_get_payload_value(payload, "path", default="")))
            return

        if command == "nextImage":
            self._cmd_navigate(1)
            return

        if command == "previousImage":
            self._cmd_navigate(-1)
            return

        if command == "deleteCurrent":
            self._cmd_delete_current()
            return

        if command == "refreshFolder":
            self._cmd_refresh_folder()
            return

        if command == "keyPressed":
            self._cmd_key_pressed(payload)
            return

        if command == "openCutout":
            self._cmd_open_cutout()
            return

        if command == "closeCutout":
            self._cmd_close_cutout()
            return

        if command == "cutoutSetAxis":
            self._cmd_cutout_set_axis(payload)
            return

        if command == "cutoutSetViewport":
            w = float(_get_payload_value(payload, "width", default=0.0))
            h = float(_get_payload_value(payload, "height", default=0.0))
            self._selection.set_viewport(w, h)
            self._sync_cutout_selection()
            return

        if command == "cutoutBegin":
            x, y = _payload_point(payload)
            if self._selection.begin(x, y):
                self._sync_cutout_selection()
            return

        if command == "cutoutUpdate":
            x, y = _payload_point(payload)
            if self._selection.update(x, y):
                self._sync_cutout_selection()
            return

        if command == "cutoutCommit":
            self._selection.commit()
            self._sync_cutout_selection()
            return

        if command == "cutoutCancel":
            self._selection.cancel()
            self._sync_cutout_selection()
            return

        if command == "applyCutout":
            self._cmd_apply_cutout()
            return

        if command == "resize":
            self._cmd_resize(payload)
            return

        if command == "reduceFileSize":
            self._cmd_reduce_file_size(payload)
            return

        if command == "save":
            self._cmd_save(payload)
            return

        if command == "applyEditedBytes":
            self._cmd_apply_edited_bytes(payload)
            return

        self._emit_event("error", level="warning", message=f"Unknown cmd: {command}")

    # ---- notifications ----
    def _emit_event(self, name: str, **fields: Any) -> None:
        self.event_.emit({"type": "event", "name": name, **fields})

    def _emit_task(self, name: str, state: str, **fields: Any) -> None:
        self.taskEvent.emit({"type": "task", "name": name, "state": state, **fields})

    def _emit_task_error(self, name: str, err: Exception) -> None:
        _logger.warning("%s failed: %s", name, err)
        self._emit_task(name, "error", message=str(err), error=err.__class__.__name__)

    # ---- viewer commands ----
    def _cmd_open_image(self, path: str) -> None:
        p = _to_local_path(path)
        if not p or not is_image_path(p):
            self._emit_task("openImage", "error", message=f"Invalid image path or file not found: {path}")
            return

        self._session = DirectorySession.open(p)
        _logger.info("opened %s (%d images in folder)", p, len(self._session))
        self._settings_mgr.set("last_open_dir", p)
        self._load_current()

    def _cmd_navigate(self, direction: int) -> None:
        if self._session.navigate(direction) is None:
            return
        if self._viewer._get_dirty():
            _logger.debug("navigation discards unsaved edits")
        self._load_current()

    def _cmd_delete_current(self) -> None:
        entry = self._session.current
        if entry is None:
            return
        try:
            fileops.send_to_recycle_bin(entry.path)
        except ImageOpError as e:
            self._emit_task_error("delete", e)
            return

        self._session.delete(entry)
        self._emit_task("delete", "finished", path=entry.path)
        self._load_current()

    def _cmd_refresh_folder(self) -> None:
        self._session.refresh()
        self._load_current()

    @Slot(result=str)
    def lastOpenDir(self) -> str:
        """Folder the open dialog should start in; empty when unknown."""
        return self._settings_mgr.last_open_dir or ""

    @Slot(result=bool)
    def check_current_exists(self) -> bool:
        """Drop the current entry when its file was removed behind our back.

        Returns True when the current file still exists.
        """
        entry = self._session.current
        if entry is None:
            return False
        if fileops.exists(entry.path):
            return True

        _logger.info("current file vanished: %s", entry.path)
        self._session.delete(entry)
        self._emit_event("sourceDeleted", path=entry.path)
        self._load_current()
        return False

    def _load_current(self) -> None:
        """Decode the session's current entry and publish it as the working image."""
        self._preview.invalidate()
        entry = self._session.current
        self._viewer._set_image_count(len(self._session))

        if entry is None:
            self._set_working(None)
            self._viewer._set_current_index(-1)
            self._viewer._set_current_path("")
            self._viewer._set_error_message("")
            self._viewer._set_status_text("")
            self._viewer._set_dirty(False)
            self._file_check_timer.stop()
            self._cmd_close_cutout()
            return

        self._viewer._set_current_index(int(self._session.current_index or 0))
        self._viewer._set_current_path(entry.path)
        try:
            image = decode_bytes(fileops.read_bytes(entry.path))
        except ImageOpError as e:
            _logger.warning("load failed: %s -> %s", entry.path, e)
            self._set_working(None)
            self._viewer._set_error_message(str(e))
            self._update_status_text()
            self._emit_task_error("load", e)
            return

        self._viewer._set_error_message("")
        self._set_working(image)
        self._viewer._set_dirty(False)
        self._update_status_text()
        if not self._file_check_timer.isActive():
            self._file_check_timer.start()

    def _set_working(self, image: RasterImage | None, *, dirty: bool = False) -> None:
        self._working = image
        self._viewer._set_image_url(self.image_provider.publish(SLOT_WORKING, image))
        if image is None:
            self._viewer._set_image_size(0, 0)
            self._selection.set_image(0, 0)
        else:
            self._viewer._set_image_size(image.width, image.height)
            self._selection.set_image(image.width, image.height)
        if dirty:
            self._viewer._set_dirty(True)
        self._clear_preview()
        self._sync_cutout_selection()

    def _update_status_text(self) -> None:
        entry = self._session.current
        if entry is None:
            self._viewer._set_status_text("")
            return

        idx = int(self._session.current_index or 0)
        parts = [f"[{idx + 1}/{len(self._session)}]", entry.name]
        if self._working is not None:
            parts.append(f"{self._working.width}x{self._working.height}")
        parts.append(fileops.format_file_size(fileops.get_file_size(entry.path)))
        self._viewer._set_status_text("  ".join(parts))

    # ---- keyboard ----
    def _cmd_key_pressed(self, payload: object | None) -> None:
        try:
            chord_text = _get_payload_value(payload, "chord", default=None)
            if chord_text:
                chord = KeyChord.parse(str(chord_text))
            else:
                chord = KeyChord(
                    str(_get_payload_value(payload, "key", default="")),
                    ctrl=bool(_get_payload_value(payload, "ctrl", default=False)),
                    shift=bool(_get_payload_value(payload, "shift", default=False)),
                    alt=bool(_get_payload_value(payload, "alt", default=False)),
                )
        except ValueError:
            return

        self.handle_key(chord)

    def handle_key(self, chord: KeyChord) -> bool:
        """Route a key chord; the delete chord needs a confirming second press."""
        if chord == self._delete_press.chord:
            if not self._delete_press.press(chord):
                self._emit_event("confirmDelete", deadline=self._delete_press.deadline)
                return True
            return self._shortcuts.handle(chord)

        self._delete_press.reset()
        return self._shortcuts.handle(chord)

    def _on_close_shortcut(self) -> None:
        if self._cutout._get_active():
            self._cmd_close_cutout()
            return
        self._emit_event("close")

    def _on_done_shortcut(self) -> None:
        if self._cutout._get_active():
            self._cmd_apply_cutout()

    def _on_help_shortcut(self) -> None:
        items = [{"chord": c, "description": d} for c, d in self._shortcuts.describe()]
        self._emit_event("shortcutHelp", shortcuts=items)

    # ---- cutout ----
    def _cmd_open_cutout(self) -> None:
        if self._working is None:
            return
        self._selection.set_image(self._working.width, self._working.height)
        self._clear_preview()
        self._cutout._set_active(True)
        self._sync_cutout_selection()

    def _cmd_close_cutout(self) -> None:
        self._preview.invalidate()
        self._clear_preview()
        self._cutout._set_active(False)

    def _cmd_cutout_set_axis(self, payload: object | None) -> None:
        try:
            axis = Axis.parse(_get_payload_value(payload, "axis", default=""))
        except ValueError as e:
            self._emit_event("error", level="warning", message=str(e))
            return
        if axis is self._selection.axis:
            return
        self._selection.set_axis(axis)
        self._preview.invalidate()
        self._clear_preview()
        self._sync_cutout_selection()

    def _on_selection_committed(self, selection: SelectionRange) -> None:
        if self._working is None:
            return
        if selection.is_entire:
            self._preview.invalidate()
            self._cutout._set_preview_error(str(EntireImageSelected()))
            self._cutout._set_preview_busy(False)
            return
        self._preview.request((self._working, selection))
        self._cutout._set_preview_busy(self._preview.busy)

    @Slot(int, object)
    def _on_preview_ready(self, req_id: int, result: object) -> None:
        # Re-check on the UI thread; an invalidate may have raced the emit.
        if req_id != self._preview.latest_id or not isinstance(result, RasterImage):
            self._cutout._set_preview_busy(self._preview.busy)
            return
        self._cutout._set_preview_url(self.image_provider.publish(SLOT_PREVIEW, result))
        self._cutout._set_preview_error("")
        self._cutout._set_preview_busy(self._preview.busy)

    @Slot(int, str)
    def _on_preview_failed(self, req_id: int, message: str) -> None:
        _logger.warning("preview %d failed: %s", req_id, message)
        # Keep the last good preview.
        self._cutout._set_preview_error(str(message))
        self._cutout._set_preview_busy(self._preview.busy)
        self._emit_task("preview", "error", message=str(message))

    def _clear_preview(self) -> None:
        self.image_provider.publish(SLOT_PREVIEW, None)
        self._cutout._set_preview_url("")
        self._cutout._set_preview_error("")
        self._cutout._set_preview_busy(False)

    def _sync_cutout_selection(self) -> None:
        sel = self._selection
        start, end = sel.live_range
        self._cutout._set_axis(sel.axis.value)
        self._cutout._set_range(start, end)
        self._cutout._set_selecting(sel.state is SelectionState.SELECTING)
        self._cutout._set_committed(sel.state is SelectionState.COMMITTED)
        r = sel.display_rect
        self._cutout._set_display_rect(r.left, r.top, r.width, r.height)

    def _cmd_apply_cutout(self) -> None:
        if self._working is None:
            return
        selection = self._selection.selection
        try:
            if selection.is_entire:
                raise EntireImageSelected()
            image = transform.cutout(self._working, selection)
        except ImageOpError as e:
            self._emit_task_error("cutout", e)
            return

        self._set_working(image, dirty=True)
        self._cutout._set_active(False)
        self._update_status_text()
        self._emit_task("cutout", "finished", width=image.width, height=image.height)

    # ---- edits ----
    def _cmd_resize(self, payload: object | None) -> None:
        if self._working is None:
            return
        default_w, default_h = self._settings_mgr.resize_limits
        try:
            max_w = int(_get_payload_value(payload, "maxWidth", default=default_w))
            max_h = int(_get_payload_value(payload, "maxHeight", default=default_h))
            image = transform.resize(self._working, max_w, max_h)
        except (ImageOpError, ValueError) as e:
            self._emit_task_error("resize", e)
            return

        if image is not self._working:
            self._set_working(image, dirty=True)
            self._update_status_text()
        self._emit_task("resize", "finished", width=image.width, height=image.height)

    def _cmd_reduce_file_size(self, payload: object | None) -> None:
        if self._working is None:
            return
        try:
            quality = int(_get_payload_value(payload, "quality", default=self._settings_mgr.default_quality))
            data = transform.reduce_file_size(self._working, quality)
            image = decode_bytes(data)
        except (ImageOpError, ValueError) as e:
            self._emit_task_error("reduceFileSize", e)
            return

        self._set_working(image, dirty=True)
        self._emit_task("reduceFileSize", "finished", bytes=len(data), size=fileops.format_file_size(len(data)))

    def _cmd_apply_edited_bytes(self, payload: object | None) -> None:
        raw = _get_payload_value(payload, "data", default=payload)
        data = _coerce_bytes(raw)
        if data is None:
            self._emit_task("applyEditedBytes", "error", message="No image data")
            return
        try:
            image = decode_bytes(data)
        except ImageOpError as e:
            self._emit_task_error("applyEditedBytes", e)
            return

        self._set_working(image, dirty=True)
        self._update_status_text()
        self._emit_task("applyEditedBytes", "finished", width=image.width, height=image.height)

    def _cmd_save(self, payload: object | None) -> None:
        entry = self._session.current
        if entry is None or self._working is None:
            self._emit_task("save", "error", message="No image to save")
            return

        overwrite = bool(_get_payload_value(payload, "overwrite", default=False))
        try:
            quality = int(_get_payload_value(payload, "quality", default=self._settings_mgr.default_quality))
            if overwrite:
                # Overwriting keeps the file's own format so the extension stays truthful.
                fmt = encoder_for_extension(entry.suffix)
                if fmt is None:
                    raise EncodeError(f"Cannot overwrite {entry.suffix} files; save as a new file instead")
                target = entry.path
            else:
                raw_fmt = _get_payload_value(payload, "format", default="")
                out = _to_local_path(str(_get_payload_value(payload, "outputPath", default="") or ""))
                fmt = ImageFormat.parse(raw_fmt) if raw_fmt else format_for_path(out or entry.path)
                target = out or fileops.generate_edited_filename(entry.path, fmt.extension)
            data = transform.convert_format(self._working, fmt, quality)
            written = fileops.save_image(data, target)
        except (ImageOpError, ValueError) as e:
            self._emit_task_error("save", e)
            return

        # The save may have created a file; rescan and follow it.
        self._session.refresh(written)
        if not self._session.select(written):
            self._session.select(entry.path)
        self._load_current()
        self._emit_task("save", "finished", outputPath=written, format=fmt.value, bytes=len(data))

    # ---- cmd handlers ----
    def _handle_log_cmd(self, payload: object | None) -> None:
        level = str(_get_payload_value(payload, "level", default="debug")).lower()
        msg = str(_get_payload_value(payload, "message", default=""))
        if not msg:
            return

        if level == "info":
            _logger.info("[QML] %s", msg)
        elif level in {"warn", "warning"}:
            _logger.warning("[QML] %s", msg)
        elif level == "error":
            _logger.error("[QML] %s", msg)
        else:
            _logger.debug("[QML] %s", msg)

    def shutdown(self) -> None:
        _logger.debug(
            "preview stats: applied=%d discarded=%d failed=%d",
            metrics.count("preview.applied"),
            metrics.count("preview.discarded"),
            metrics.count("preview.failed"),
        )
        self._file_check_timer.stop()
        self._preview.shutdown()
        self._shortcuts.teardown()
        self.image_provider.clear()


def _to_local_path(path: str) -> str:
    p = str(path or "")
    if p.startswith("file:"):
        url = QUrl(p)
        if url.isLocalFile():
            p = url.toLocalFile()
    return abs_path_str(p) if p else ""


def _coerce_bytes(value: object) -> bytes | None:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value) or None
    # QByteArray
    if hasattr(value, "data") and callable(value.data):  # type: ignore[attr-defined]
        with contextlib.suppress(TypeError, ValueError):
            return bytes(value.data()) or None  # type: ignore[attr-defined]
    return None


def _payload_point(payload: object | None) -> tuple[float, float]:
    return (
        float(_get_payload_value(payload, "x", default=0.0)),
        float(_get_payload_value(payload, "y", default=0.0)),
    )


def _get_payload_value(payload: object | None, key: str, *, default: Any) -> Any:
    """Extract a value from a QML payload.

    Supports:
    - dict-like payloads (Python dict)
    - None
    - otherwise returns default
    """

    if payload is None:
        return default

    # QML often passes a JS object which arrives as QJSValue/QVariant.
    if payload.__class__.__name__ == "QJSValue" and hasattr(payload, "toVariant"):
        with contextlib.suppress(Exception):
            payload = payload.toVariant()  # type: ignore[assignment, attr-defined]

    if isinstance(payload, dict):
        return payload.get(key, default)

    return default
