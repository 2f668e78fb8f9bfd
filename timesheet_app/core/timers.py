"""In-memory timer registry: start/pause/resume/stop with lazily computed elapsed time.

Elapsed time is never ticked in the background. Each timer keeps the seconds
credited so far plus a marker for the start of its open interval; reads add
``now - marker`` for running timers.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime

from .errors import AlreadyPaused, DuplicateTimer, NotPaused, TimerNotFound
from .models import HistoryEntry, Timer

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


def _credited_seconds(since: datetime, now: datetime) -> int:
    """Whole seconds between ``since`` and ``now``; skewed clocks count as zero."""
    return max(0, int((now - since).total_seconds()))


def _open_interval(timer: Timer, now: datetime) -> int:
    if timer.paused:
        return 0
    return _credited_seconds(timer.pause_start or timer.started_at, now)


class TimerRegistry:
    def __init__(self, clock: Clock | None = None):
        self._clock = clock or utc_now
        self._lock = threading.Lock()
        self._timers: list[Timer] = []
        self._next_id = 1
        # Finished timers; contention is low so a separate coarse lock is enough
        self._history_lock = threading.Lock()
        self._history: list[HistoryEntry] = []

    # ------------------ Transitions ------------------
    def start(self, issue_key: str, summary: str) -> Timer:
        now = self._clock()
        with self._lock:
            if any(t.issue_key == issue_key for t in self._timers):
                raise DuplicateTimer(issue_key)
            timer = Timer(id=self._next_id, issue_key=issue_key, summary=summary, started_at=now)
            self._next_id += 1
            self._timers.append(timer)
            snapshot = replace(timer)
        logger.debug("Started timer %s for %s", snapshot.id, issue_key)
        return snapshot

    def pause(self, timer_id: int) -> Timer:
        now = self._clock()
        with self._lock:
            timer = self._find(timer_id)
            if timer.paused:
                raise AlreadyPaused(timer_id)
            timer.elapsed_seconds += _open_interval(timer, now)
            timer.paused = True
            timer.pause_start = now
            snapshot = replace(timer)
        logger.debug("Paused timer %s at %ss", timer_id, snapshot.elapsed_seconds)
        return snapshot

    def resume(self, timer_id: int) -> Timer:
        now = self._clock()
        with self._lock:
            timer = self._find(timer_id)
            if not timer.paused:
                raise NotPaused(timer_id)
            timer.paused = False
            timer.pause_start = now
            snapshot = replace(timer)
        logger.debug("Resumed timer %s", timer_id)
        return snapshot

    def stop(self, timer_id: int) -> Timer:
        """Remove a timer and return it with its final elapsed time credited."""
        now = self._clock()
        with self._lock:
            timer = self._find(timer_id)
            final = replace(timer, elapsed_seconds=timer.elapsed_seconds + _open_interval(timer, now))
            self._timers.remove(timer)
        logger.debug("Stopped timer %s for %s at %ss", timer_id, final.issue_key, final.elapsed_seconds)
        return final

    def set_elapsed(self, timer_id: int, elapsed_seconds: int) -> Timer:
        """Overwrite a timer's accumulated seconds (manual correction).

        A running timer restarts its open interval from now so the corrected
        value is not inflated by time already elapsed.
        """
        if elapsed_seconds < 0:
            raise ValueError(f"elapsed_seconds must be >= 0, got {elapsed_seconds}")
        now = self._clock()
        with self._lock:
            timer = self._find(timer_id)
            timer.elapsed_seconds = int(elapsed_seconds)
            if not timer.paused:
                timer.pause_start = now
            return replace(timer)

    # ------------------ Reads ------------------
    def list(self) -> list[Timer]:
        now = self._clock()
        with self._lock:
            return [replace(t, elapsed_seconds=t.elapsed_seconds + _open_interval(t, now)) for t in self._timers]

    def get(self, timer_id: int) -> Timer:
        now = self._clock()
        with self._lock:
            timer = self._find(timer_id)
            return replace(timer, elapsed_seconds=timer.elapsed_seconds + _open_interval(timer, now))

    # ------------------ History ------------------
    def record_history(self, timer: Timer, logged: bool) -> HistoryEntry:
        entry = HistoryEntry(
            issue_key=timer.issue_key,
            summary=timer.summary,
            elapsed_seconds=timer.elapsed_seconds,
            logged=logged,
            stopped_at=self._clock(),
        )
        with self._history_lock:
            self._history.append(entry)
        return entry

    def history(self) -> list[HistoryEntry]:
        """Finished timers, most recent first."""
        with self._history_lock:
            return list(reversed(self._history))

    # ------------------ Internal Helpers ------------------
    def _find(self, timer_id: int) -> Timer:
        # Caller holds self._lock
        for timer in self._timers:
            if timer.id == timer_id:
                return timer
        raise TimerNotFound(timer_id)
