from __future__ import annotations

import threading
from collections.abc import Callable
from concurrent.futures import Future
from typing import Any

import pytest

pytest.importorskip("PySide6")

from cutout_viewer.image_engine.metrics import metrics  # noqa: E402
from cutout_viewer.ops.preview_coordinator import PreviewCoordinator  # noqa: E402


class ManualExecutor:
    """Executor whose jobs run only when the test says so."""

    def __init__(self) -> None:
        self.jobs: list[tuple[Future, Callable[..., Any], tuple]] = []
        self.closed = False

    def submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        if self.closed:
            raise RuntimeError("cannot schedule new futures after shutdown")
        fut: Future = Future()
        self.jobs.append((fut, fn, args))
        return fut

    def run_next(self) -> None:
        fut, fn, args = self.jobs.pop(0)
        try:
            fut.set_result(fn(*args))
        except Exception as e:
            fut.set_exception(e)

    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:  # noqa: ARG002
        self.closed = True


def _coordinator(fn: Callable[[Any], Any] = lambda p: f"result-{p}") -> tuple[PreviewCoordinator, ManualExecutor, list, list]:
    ex = ManualExecutor()
    coord = PreviewCoordinator(fn, executor=ex)
    ready: list[tuple[int, Any]] = []
    failed: list[tuple[int, str]] = []
    coord.preview_ready.connect(lambda i, r: ready.append((i, r)))
    coord.preview_failed.connect(lambda i, m: failed.append((i, m)))
    return coord, ex, ready, failed


def test_single_request_is_applied() -> None:
    coord, ex, ready, failed = _coordinator()

    rid = coord.request("a")
    assert coord.busy
    ex.run_next()

    assert ready == [(rid, "result-a")]
    assert failed == []
    assert not coord.busy
    assert coord.applied_id == rid


def test_only_one_job_in_flight() -> None:
    coord, ex, ready, _ = _coordinator()

    coord.request("a")
    coord.request("b")
    coord.request("c")

    assert len(ex.jobs) == 1


def test_newer_request_wins_over_slow_older_one() -> None:
    metrics.reset()
    coord, ex, ready, _ = _coordinator()

    coord.request("t1")
    t2 = coord.request("t2")

    ex.run_next()  # t1 finishes late: stale, dropped; t2 is submitted
    assert ready == []
    assert len(ex.jobs) == 1

    ex.run_next()
    assert ready == [(t2, "result-t2")]
    assert metrics.count("preview.discarded") == 1


def test_pending_requests_are_coalesced_to_latest() -> None:
    metrics.reset()
    seen: list[str] = []

    def compute(p: str) -> str:
        seen.append(p)
        return p

    coord, ex, ready, _ = _coordinator(compute)
    coord.request("a")
    coord.request("b")
    last = coord.request("c")

    ex.run_next()
    ex.run_next()

    assert seen == ["a", "c"]
    assert ready == [(last, "c")]
    assert metrics.count("preview.superseded") == 1


def test_failure_is_reported_and_next_request_still_runs() -> None:
    def compute(p: str) -> str:
        if p == "bad":
            raise ValueError("cannot preview")
        return p

    coord, ex, ready, failed = _coordinator(compute)
    bad = coord.request("bad")
    ex.run_next()

    assert failed == [(bad, "cannot preview")]
    assert not coord.busy

    good = coord.request("good")
    ex.run_next()
    assert ready == [(good, "good")]


def test_invalidate_drops_pending_and_in_flight_results() -> None:
    coord, ex, ready, failed = _coordinator()

    coord.request("a")
    coord.request("b")
    coord.invalidate()

    ex.run_next()

    assert ready == []
    assert failed == []
    assert ex.jobs == []
    assert not coord.busy


def test_submit_after_shutdown_reports_failure() -> None:
    coord, ex, ready, failed = _coordinator()
    coord.shutdown()

    rid = coord.request("a")

    assert ready == []
    assert failed and failed[0][0] == rid
    assert not coord.busy


def test_shutdown_makes_in_flight_result_stale() -> None:
    coord, ex, ready, failed = _coordinator()

    coord.request("a")
    coord.shutdown()
    ex.run_next()

    assert ready == []
    assert failed == []
    assert not coord.busy


def test_thread_pool_delivers_only_the_latest_result(qtbot) -> None:
    release = threading.Event()

    def compute(params: str) -> str:
        if params == "t1":
            release.wait(5)
        return f"result-{params}"

    coord = PreviewCoordinator(compute)
    try:
        with qtbot.waitSignal(coord.preview_ready, timeout=5000) as blocker:
            coord.request("t1")
            t2 = coord.request("t2")
            release.set()

        assert blocker.args == [t2, "result-t2"]
        qtbot.waitUntil(lambda: not coord.busy, timeout=5000)
        assert coord.applied_id == t2
    finally:
        coord.shutdown()
