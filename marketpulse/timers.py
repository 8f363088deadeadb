"""Cancelable delayed-callback schedulers for timer-driven controllers.

Controllers only rely on three calls: ``after(delay_ms, callback)`` returning
an opaque job handle, ``after_cancel(job)`` and ``now()`` in milliseconds.
``after``/``after_cancel`` mirror the Tk event loop so a Tk root can be
wrapped directly; :class:`ManualScheduler` runs on a virtual clock for tests
and replays, and :class:`AsyncioScheduler` sits on a running event loop.

Updates: v0.1 - 2026-10-19 - Lifted the after/after_cancel job pattern out of the refresh controllers.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


class Scheduler(Protocol):
    def after(self, delay_ms: int, callback: Callback) -> Any: ...

    def after_cancel(self, job: Any) -> None: ...

    def now(self) -> float: ...


def _run_callback(job: str, callback: Callback) -> None:
    try:
        callback()
    except Exception:  # pragma: no cover - surfaced through logs only
        logger.exception("Scheduled job %s raised", job)


class ManualScheduler:
    """Virtual-clock scheduler; time only moves when :meth:`advance` is called."""

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now = float(start_ms)
        self._counter = itertools.count(1)
        self._heap: List[Tuple[float, int, str]] = []
        self._jobs: Dict[str, Callback] = {}

    def now(self) -> float:
        return self._now

    def after(self, delay_ms: int, callback: Callback) -> str:
        sequence = next(self._counter)
        job = f"after#{sequence}"
        due = self._now + max(0, int(delay_ms))
        heapq.heappush(self._heap, (due, sequence, job))
        self._jobs[job] = callback
        return job

    def after_cancel(self, job: Any) -> None:
        self._jobs.pop(job, None)

    @property
    def pending(self) -> int:
        return len(self._jobs)

    def advance(self, delta_ms: float) -> int:
        """Move the clock forward, firing due jobs in order. Returns jobs fired."""

        target = self._now + max(0.0, float(delta_ms))
        fired = 0
        while self._heap and self._heap[0][0] <= target:
            due, _sequence, job = heapq.heappop(self._heap)
            callback = self._jobs.pop(job, None)
            if callback is None:
                continue
            self._now = max(self._now, due)
            _run_callback(job, callback)
            fired += 1
        self._now = target
        return fired

    def run_until_idle(self, *, limit_ms: float = 60_000.0) -> int:
        """Fire jobs until none remain or ``limit_ms`` of virtual time passes."""

        deadline = self._now + limit_ms
        fired = 0
        while self._jobs and self._heap and self._heap[0][0] <= deadline:
            fired += self.advance(self._heap[0][0] - self._now)
        return fired


class AsyncioScheduler:
    """Scheduler backed by ``loop.call_later`` on a running asyncio loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop or asyncio.get_running_loop()
        self._handles: Dict[int, asyncio.TimerHandle] = {}
        self._counter = itertools.count(1)

    def now(self) -> float:
        return self._loop.time() * 1000.0

    def after(self, delay_ms: int, callback: Callback) -> int:
        job = next(self._counter)

        def _fire() -> None:
            self._handles.pop(job, None)
            _run_callback(f"after#{job}", callback)

        self._handles[job] = self._loop.call_later(max(0, int(delay_ms)) / 1000.0, _fire)
        return job

    def after_cancel(self, job: Any) -> None:
        handle = self._handles.pop(job, None)
        if handle is not None:
            handle.cancel()

    @property
    def pending(self) -> int:
        return len(self._handles)


class TkScheduler:
    """Adapter for any Tk widget (``after``/``after_cancel`` plus a monotonic clock)."""

    def __init__(self, widget: Any) -> None:
        self._widget = widget

    def now(self) -> float:
        return time.monotonic() * 1000.0

    def after(self, delay_ms: int, callback: Callback) -> Any:
        return self._widget.after(max(0, int(delay_ms)), callback)

    def after_cancel(self, job: Any) -> None:
        try:
            self._widget.after_cancel(job)
        except Exception:  # pragma: no cover - widget already destroyed
            logger.debug("Unable to cancel Tk job %s", job)


__all__ = ["AsyncioScheduler", "ManualScheduler", "Scheduler", "TkScheduler"]
