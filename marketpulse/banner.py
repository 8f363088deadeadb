"""Drop banner queue controller.

A single-active-item presentation state machine for critical alerts:

* ``IDLE`` - nothing shown, backlog empty.
* ``SHOWING`` - one alert displayed, auto-dismiss countdown running.
* ``DISMISSING`` - exit animation (and the stagger before the next alert) in
  flight; input is ignored until it completes.

All timing goes through a :class:`~marketpulse.timers.Scheduler`. Every
pending job is cancelled whenever the current alert changes or the
controller is closed, so a stale timer can never act on a newer alert.

Updates: v0.1 - 2026-10-19 - Replaced the auto refresh countdown jobs with banner display/exit jobs.
Updates: v0.2 - 2026-10-19 - Added pause-on-touch, snap-back resume and tap navigation.
"""

from __future__ import annotations

import logging
from collections import deque
from enum import Enum
from typing import Any, Callable, Deque, Iterable, List, Optional, Set

from .config import (
    BANNER_ANIMATION_MS,
    BANNER_DISPLAY_MS,
    BANNER_STAGGER_MS,
    DISMISS_THRESHOLD_Y,
    DISMISS_VELOCITY,
    SWIPE_SLOP_PX,
    TAP_MAX_DISTANCE_PX,
    TAP_MAX_DURATION_MS,
)
from .models import Alert, BannerSnapshot, BannerState
from .timers import Scheduler

logger = logging.getLogger(__name__)


class GestureOutcome(str, Enum):
    IGNORED = "ignored"
    TAP = "tap"
    DISMISS = "dismiss"
    SNAP_BACK = "snap_back"


class BannerQueueController:
    """Owns the current banner, its FIFO backlog and the dismissed-id set."""

    def __init__(
        self,
        scheduler: Scheduler,
        *,
        on_dismiss: Optional[Callable[[str], None]] = None,
        on_navigate: Optional[Callable[[str], None]] = None,
        on_change: Optional[Callable[[BannerSnapshot], None]] = None,
        display_ms: int = BANNER_DISPLAY_MS,
        animation_ms: int = BANNER_ANIMATION_MS,
        stagger_ms: int = BANNER_STAGGER_MS,
    ) -> None:
        self.scheduler = scheduler
        self.on_dismiss = on_dismiss
        self.on_navigate = on_navigate
        self.on_change = on_change
        self.display_ms = max(1, int(display_ms))
        self.animation_ms = max(0, int(animation_ms))
        self.stagger_ms = max(0, int(stagger_ms))

        self._state = BannerState.IDLE
        self._current: Optional[Alert] = None
        self._pending: Optional[Alert] = None
        self._queue: Deque[Alert] = deque()
        self._dismissed: Set[str] = set()
        self._closed = False

        self._display_job: Any = None
        self._exit_job: Any = None
        self._promote_job: Any = None

        self._remaining_ms = float(self.display_ms)
        self._countdown_started: Optional[float] = None
        self._paused = False
        self._touch_started: Optional[float] = None
        self.is_swiping = False

    # Introspection

    @property
    def state(self) -> BannerState:
        return self._state

    @property
    def current(self) -> Optional[Alert]:
        return self._current

    @property
    def queued(self) -> List[Alert]:
        return list(self._queue)

    @property
    def dismissed_ids(self) -> frozenset[str]:
        return frozenset(self._dismissed)

    @property
    def is_paused(self) -> bool:
        return self._paused

    def snapshot(self) -> BannerSnapshot:
        queued = ([self._pending] if self._pending is not None else []) + list(self._queue)
        return BannerSnapshot(
            state=self._state,
            current=self._current,
            queued_ids=tuple(alert.id for alert in queued),
            dismissed_ids=frozenset(self._dismissed),
        )

    def is_known(self, alert_id: str) -> bool:
        """True when the id is current, queued, awaiting promotion or dismissed."""

        if alert_id in self._dismissed:
            return True
        if self._current is not None and self._current.id == alert_id:
            return True
        if self._pending is not None and self._pending.id == alert_id:
            return True
        return any(alert.id == alert_id for alert in self._queue)

    # Admission

    def offer(self, alerts: Iterable[Alert]) -> int:
        """Admit alerts from the broadcast feed; returns how many were accepted."""

        if self._closed:
            logger.debug("Banner controller closed; ignoring offered alerts.")
            return 0
        accepted = 0
        for alert in alerts:
            if not isinstance(alert, Alert):
                continue
            if self.is_known(alert.id):
                continue
            if self._state is BannerState.IDLE and self._current is None:
                self._show(alert)
            else:
                self._queue.append(alert)
                logger.debug("Queued banner %s (backlog=%s)", alert.id, len(self._queue))
            accepted += 1
        if accepted:
            self._notify()
        return accepted

    # Dismissal

    def dismiss(self) -> bool:
        """Start the exit path for the current alert (timer, swipe or tap)."""

        if self._closed or self._state is not BannerState.SHOWING or self._current is None:
            return False
        self._cancel_display()
        self._paused = False
        self._state = BannerState.DISMISSING
        alert_id = self._current.id
        logger.debug("Dismissing banner %s", alert_id)
        self._exit_job = self.scheduler.after(
            self.animation_ms, lambda: self._finish_dismiss(alert_id)
        )
        self._notify()
        return True

    def discard(self, alert_id: str) -> bool:
        """Record ``alert_id`` as dismissed and drop it wherever it sits.

        Returns True when the alert was on screen, awaiting promotion or queued.
        """

        self._dismissed.add(alert_id)
        if self._current is not None and self._current.id == alert_id:
            return self.dismiss()
        if self._pending is not None and self._pending.id == alert_id:
            self._pending = self._queue.popleft() if self._queue else None
            if self._pending is None and self._promote_job is not None:
                self.scheduler.after_cancel(self._promote_job)
                self._promote_job = None
                self._state = BannerState.IDLE
        elif any(alert.id == alert_id for alert in self._queue):
            self._queue = deque(alert for alert in self._queue if alert.id != alert_id)
        else:
            return False
        self._notify()
        return True

    def press(self) -> bool:
        """Tap on the banner: navigate to the alert and dismiss it."""

        if self._state is not BannerState.SHOWING or self._current is None:
            return False
        if self.is_swiping:
            return False
        alert_id = self._current.id
        if self.on_navigate is not None:
            try:
                self.on_navigate(alert_id)
            except Exception:  # pragma: no cover - caller bug
                logger.exception("Banner navigation callback failed for %s", alert_id)
        return self.dismiss()

    # Gestures

    def touch_start(self) -> None:
        """Finger down: freeze the countdown so it can resume on snap-back."""

        if self._state is not BannerState.SHOWING:
            return
        self._touch_started = self.scheduler.now()
        self.is_swiping = False
        if self._display_job is not None and not self._paused:
            self._remaining_ms = self._time_left()
            self._cancel_display()
            self._paused = True

    def touch_move(self, dy: float) -> None:
        if self._state is not BannerState.SHOWING:
            return
        if abs(dy) > SWIPE_SLOP_PX:
            self.is_swiping = True

    def touch_release(self, dy: float, vy: float = 0.0) -> GestureOutcome:
        """Finger up: tap, dismissal or snap-back depending on travel and speed."""

        if self._state is not BannerState.SHOWING or self._touch_started is None:
            self._touch_started = None
            return GestureOutcome.IGNORED
        duration = self.scheduler.now() - self._touch_started
        self._touch_started = None

        quick_tap = duration < TAP_MAX_DURATION_MS and abs(dy) < TAP_MAX_DISTANCE_PX
        if quick_tap and not self.is_swiping:
            self.press()
            return GestureOutcome.TAP

        self.is_swiping = False
        if dy <= DISMISS_THRESHOLD_Y or vy <= DISMISS_VELOCITY:
            self.dismiss()
            return GestureOutcome.DISMISS

        self._resume()
        return GestureOutcome.SNAP_BACK

    def touch_cancel(self) -> GestureOutcome:
        """Gesture stolen by the system: always snap back."""

        self._touch_started = None
        self.is_swiping = False
        if self._state is not BannerState.SHOWING:
            return GestureOutcome.IGNORED
        self._resume()
        return GestureOutcome.SNAP_BACK

    # Lifecycle

    def close(self) -> None:
        """Unmount: cancel every pending job. Further offers are ignored."""

        self._cancel_all()
        self._closed = True
        logger.debug("Banner controller closed.")

    def reset(self) -> None:
        """Drop all state, including the session's dismissed ids."""

        self._cancel_all()
        self._closed = False
        self._state = BannerState.IDLE
        self._current = None
        self._pending = None
        self._queue.clear()
        self._dismissed.clear()
        self._paused = False
        self._touch_started = None
        self.is_swiping = False
        self._remaining_ms = float(self.display_ms)
        self._notify()

    # Internals

    def _show(self, alert: Alert) -> None:
        self._cancel_display()
        self._current = alert
        self._state = BannerState.SHOWING
        self._paused = False
        self._touch_started = None
        self.is_swiping = False
        self._remaining_ms = float(self.display_ms)
        logger.debug("Showing banner %s", alert.id)
        self._start_countdown()

    def _start_countdown(self) -> None:
        self._cancel_display()
        if self._closed:
            return
        self._countdown_started = self.scheduler.now()
        delay = max(0, int(round(self._remaining_ms)))
        self._display_job = self.scheduler.after(delay, self._on_display_timeout)

    def _on_display_timeout(self) -> None:
        self._display_job = None
        self.dismiss()

    def _time_left(self) -> float:
        if self._countdown_started is None:
            return self._remaining_ms
        elapsed = self.scheduler.now() - self._countdown_started
        return max(0.0, self._remaining_ms - elapsed)

    def _resume(self) -> None:
        if not self._paused:
            return
        self._paused = False
        self._start_countdown()

    def _finish_dismiss(self, alert_id: str) -> None:
        self._exit_job = None
        if self._current is None or self._current.id != alert_id:
            return
        self._dismissed.add(alert_id)
        self._current = None
        if self.on_dismiss is not None:
            try:
                self.on_dismiss(alert_id)
            except Exception:  # pragma: no cover - caller bug
                logger.exception("Banner dismiss callback failed for %s", alert_id)

        if self._queue:
            self._pending = self._queue.popleft()
            self._promote_job = self.scheduler.after(self.stagger_ms, self._promote)
        else:
            self._state = BannerState.IDLE
        self._notify()

    def _promote(self) -> None:
        self._promote_job = None
        alert = self._pending
        self._pending = None
        if alert is None:
            self._state = BannerState.IDLE
            return
        self._show(alert)
        self._notify()

    def _cancel_display(self) -> None:
        if self._display_job is not None:
            self.scheduler.after_cancel(self._display_job)
            self._display_job = None
        self._countdown_started = None

    def _cancel_all(self) -> None:
        self._cancel_display()
        for attr in ("_exit_job", "_promote_job"):
            job = getattr(self, attr)
            if job is not None:
                self.scheduler.after_cancel(job)
                setattr(self, attr, None)

    def _notify(self) -> None:
        if self.on_change is None:
            return
        try:
            self.on_change(self.snapshot())
        except Exception:  # pragma: no cover - caller bug
            logger.exception("Banner change listener failed")


def banner_sentence(alert: Alert) -> str:
    """Compose the one-line banner text for an alert."""

    if not isinstance(alert, Alert):
        return "Loading alert..."
    ticker = alert.tickers[0] if alert.tickers else "Market"
    source = alert.source.strip() or "News"
    impact = alert.impact or "Unrated"

    if alert.type == "earnings":
        if alert.actual_eps is not None and alert.expected_eps:
            verdict = "Beat" if alert.actual_eps > alert.expected_eps else "Miss"
            surprise = abs((alert.actual_eps - alert.expected_eps) / alert.expected_eps) * 100
            return (
                f"{ticker} EPS {alert.actual_eps:.2f} vs {alert.expected_eps:.2f} est "
                f"-> {verdict} {surprise:.0f}% [{source}]"
            )
        return f"{ticker} earnings {alert.sentiment} [{source}]"
    if alert.actual and alert.forecast:
        return (
            f"{alert.type.upper()} {alert.actual} vs {alert.forecast} est "
            f"-> {alert.sentiment}, {impact} Impact [{source}]"
        )
    if alert.type in ("fed", "fomc"):
        return f"Fed decision -> {alert.sentiment}, {impact} Impact [{source}]"
    return f"{alert.type.upper()} {alert.sentiment}, {impact} Impact [{source}]"


__all__ = ["BannerQueueController", "GestureOutcome", "banner_sentence"]
