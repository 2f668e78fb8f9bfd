from datetime import timedelta
from threading import Thread

import pytest

from timesheet_app.core.errors import AlreadyPaused, DuplicateTimer, NotPaused, TimerNotFound
from timesheet_app.core.timers import TimerRegistry


def test_start_assigns_monotonic_ids(clock):
    reg = TimerRegistry(clock)
    a = reg.start("PROJ-1", "First")
    b = reg.start("PROJ-2", "Second")
    assert (a.id, b.id) == (1, 2)
    assert a.started_at == clock.now
    assert a.elapsed_seconds == 0
    assert not a.paused
    assert a.pause_start is None


def test_ids_never_reused_after_stop(clock):
    reg = TimerRegistry(clock)
    first = reg.start("PROJ-1", "First")
    reg.stop(first.id)
    again = reg.start("PROJ-1", "First again")
    assert again.id == 2


def test_duplicate_issue_key_rejected(clock):
    reg = TimerRegistry(clock)
    reg.start("PROJ-1", "First")
    with pytest.raises(DuplicateTimer, match="Timer already running for PROJ-1"):
        reg.start("PROJ-1", "Another")
    assert len(reg.list()) == 1


def test_pause_resume_scenario_excludes_paused_interval(clock):
    reg = TimerRegistry(clock)
    t = reg.start("PROJ-1", "Scenario")
    clock.advance(30)
    reg.pause(t.id)
    clock.advance(500)
    reg.resume(t.id)
    clock.advance(30)
    stopped = reg.stop(t.id)
    assert stopped.elapsed_seconds == 60


def test_list_projects_open_interval_without_committing(clock):
    reg = TimerRegistry(clock)
    t = reg.start("PROJ-1", "Running")
    clock.advance(42)
    assert reg.list()[0].elapsed_seconds == 42
    clock.advance(8)
    assert reg.list()[0].elapsed_seconds == 50
    # pause credits the same interval exactly once
    assert reg.pause(t.id).elapsed_seconds == 50


def test_paused_timer_does_not_grow(clock):
    reg = TimerRegistry(clock)
    t = reg.start("PROJ-1", "Paused")
    clock.advance(10)
    reg.pause(t.id)
    clock.advance(3600)
    assert reg.list()[0].elapsed_seconds == 10
    assert reg.stop(t.id).elapsed_seconds == 10


def test_double_pause_and_double_resume_fail(clock):
    reg = TimerRegistry(clock)
    t = reg.start("PROJ-1", "x")
    with pytest.raises(NotPaused):
        reg.resume(t.id)
    reg.pause(t.id)
    with pytest.raises(AlreadyPaused):
        reg.pause(t.id)
    reg.resume(t.id)
    with pytest.raises(NotPaused):
        reg.resume(t.id)


def test_unknown_timer_operations_fail(clock):
    reg = TimerRegistry(clock)
    for op in (reg.pause, reg.resume, reg.stop, reg.get):
        with pytest.raises(TimerNotFound):
            op(99)


def test_stop_removes_and_second_stop_fails(clock):
    reg = TimerRegistry(clock)
    t = reg.start("PROJ-1", "x")
    reg.stop(t.id)
    assert reg.list() == []
    with pytest.raises(TimerNotFound):
        reg.stop(t.id)


def test_clock_skew_never_decreases_elapsed(clock):
    reg = TimerRegistry(clock)
    t = reg.start("PROJ-1", "x")
    clock.advance(20)
    reg.pause(t.id)
    reg.resume(t.id)
    clock.now = clock.now - timedelta(seconds=300)
    assert reg.list()[0].elapsed_seconds == 20
    assert reg.pause(t.id).elapsed_seconds == 20


def test_sub_second_intervals_truncate(clock):
    reg = TimerRegistry(clock)
    t = reg.start("PROJ-1", "x")
    clock.advance(1.9)
    assert reg.pause(t.id).elapsed_seconds == 1


def test_returned_snapshot_is_detached(clock):
    reg = TimerRegistry(clock)
    t = reg.start("PROJ-1", "x")
    t.elapsed_seconds = 9999
    t.paused = True
    listed = reg.list()[0]
    assert listed.elapsed_seconds == 0
    assert not listed.paused


def test_elapsed_is_sum_of_running_intervals(clock):
    reg = TimerRegistry(clock)
    t = reg.start("PROJ-1", "x")
    running = [5, 17, 3, 40]
    paused = [100, 7, 250]
    previous = 0
    for idx, seconds in enumerate(running):
        clock.advance(seconds)
        current = reg.pause(t.id).elapsed_seconds
        assert current >= previous
        previous = current
        if idx < len(paused):
            clock.advance(paused[idx])
            reg.resume(t.id)
    assert reg.stop(t.id).elapsed_seconds == sum(running)


def test_set_elapsed_restarts_open_interval(clock):
    reg = TimerRegistry(clock)
    t = reg.start("PROJ-1", "x")
    clock.advance(100)
    reg.set_elapsed(t.id, 600)
    clock.advance(30)
    assert reg.get(t.id).elapsed_seconds == 630


def test_set_elapsed_on_paused_timer_keeps_paused(clock):
    reg = TimerRegistry(clock)
    t = reg.start("PROJ-1", "x")
    reg.pause(t.id)
    updated = reg.set_elapsed(t.id, 120)
    assert updated.paused
    clock.advance(50)
    assert reg.get(t.id).elapsed_seconds == 120


def test_set_elapsed_rejects_negative(clock):
    reg = TimerRegistry(clock)
    t = reg.start("PROJ-1", "x")
    with pytest.raises(ValueError):
        reg.set_elapsed(t.id, -1)
    with pytest.raises(TimerNotFound):
        reg.set_elapsed(42, 10)


def test_history_is_most_recent_first(clock):
    reg = TimerRegistry(clock)
    for key in ("PROJ-1", "PROJ-2"):
        t = reg.start(key, key)
        clock.advance(90)
        reg.record_history(reg.stop(t.id), logged=key == "PROJ-2")
    history = reg.history()
    assert [h.issue_key for h in history] == ["PROJ-2", "PROJ-1"]
    assert history[0].logged and not history[1].logged
    assert history[0].elapsed_seconds == 90
    assert history[0].stopped_at == clock.now


def test_concurrent_starts_keep_keys_unique(clock):
    reg = TimerRegistry(clock)
    failures = []

    def worker():
        try:
            reg.start("PROJ-1", "race")
        except DuplicateTimer:
            failures.append(1)

    threads = [Thread(target=worker) for _ in range(16)]
    for th in threads:
        th.start()
    for th in threads:
        th.join()
    assert len(reg.list()) == 1
    assert len(failures) == 15
