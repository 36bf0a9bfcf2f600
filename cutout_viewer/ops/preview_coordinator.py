"""Serialized preview generation.

At most one preview computation runs at a time. Requests that arrive while a
computation is in flight are coalesced: only the newest parameters are kept and
run once the in-flight job finishes. Every request gets an increasing id, and a
finished job is applied only when its id is still the latest one issued, so an
older selection can never overwrite a newer one.
"""

from __future__ import annotations

import functools
import threading
from collections.abc import Callable
from concurrent.futures import CancelledError, Executor, Future, ThreadPoolExecutor
from typing import Any

from PySide6.QtCore import QObject, Signal

from cutout_viewer.image_engine.metrics import metrics
from cutout_viewer.logger import get_logger

_logger = get_logger("preview")


class PreviewCoordinator(QObject):
    """Runs ``compute_fn(params)`` off the UI thread, one job at a time.

    ``preview_ready(request_id, result)`` and ``preview_failed(request_id, message)``
    are emitted from the worker thread; connect QObject slots to have Qt queue
    them onto the receiver's thread.
    """

    preview_ready = Signal(int, object)
    preview_failed = Signal(int, str)

    def __init__(
        self,
        compute_fn: Callable[[Any], Any],
        executor: Executor | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._compute = compute_fn
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="preview")
        self._lock = threading.Lock()
        self._next_id = 1
        self._latest_id = 0
        self._applied_id = 0
        self._in_flight: int | None = None
        self._pending: tuple[int, Any] | None = None

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._in_flight is not None

    @property
    def latest_id(self) -> int:
        with self._lock:
            return self._latest_id

    @property
    def applied_id(self) -> int:
        with self._lock:
            return self._applied_id

    def request(self, params: Any) -> int:
        """Queue a preview for ``params`` and return its request id."""
        with self._lock:
            req_id = self._next_id
            self._next_id += 1
            self._latest_id = req_id
            if self._in_flight is not None:
                if self._pending is not None:
                    metrics.inc("preview.superseded")
                    _logger.debug("request %d supersedes pending %d", req_id, self._pending[0])
                self._pending = (req_id, params)
                return req_id
            self._in_flight = req_id

        metrics.inc("preview.requested")
        self._submit(req_id, params)
        return req_id

    def invalidate(self) -> None:
        """Drop the pending request and make any in-flight result stale."""
        with self._lock:
            self._latest_id = self._next_id
            self._next_id += 1
            self._pending = None
        _logger.debug("previews invalidated (latest=%d)", self._latest_id)

    def _submit(self, req_id: int, params: Any) -> None:
        _logger.debug("submit preview: id=%d", req_id)
        try:
            future = self._executor.submit(self._compute, params)
        except RuntimeError as e:
            # Executor already shut down.
            with self._lock:
                self._in_flight = None
            _logger.warning("preview submit failed: id=%d err=%s", req_id, e)
            self.preview_failed.emit(req_id, str(e))
            return
        future.add_done_callback(functools.partial(self._on_done, req_id))

    def _on_done(self, req_id: int, future: Future) -> None:
        result: Any = None
        error: str | None = None
        try:
            result = future.result()
        except CancelledError:
            error = "cancelled"
        except Exception as e:
            _logger.debug("preview %d failed: %s", req_id, e)
            error = str(e) or e.__class__.__name__

        with self._lock:
            self._in_flight = None
            stale = req_id != self._latest_id
            if not stale and error is None:
                self._applied_id = req_id
            nxt = self._pending
            self._pending = None
            if nxt is not None:
                self._in_flight = nxt[0]

        if stale:
            metrics.inc("preview.discarded")
            _logger.debug("preview %d stale (latest=%d), dropped", req_id, self._latest_id)
        elif error is not None:
            metrics.inc("preview.failed")
            self.preview_failed.emit(req_id, error)
        else:
            metrics.inc("preview.applied")
            self.preview_ready.emit(req_id, result)

        if nxt is not None:
            self._submit(*nxt)

    def shutdown(self) -> None:
        # Anything still running finishes as stale and is never emitted.
        self.invalidate()
        self._executor.shutdown(wait=False, cancel_futures=True)
