import threading
import pytest
from parapix.kernel.system.scheduling import ManualScheduler, Scheduler, TimerScheduler


def test_manual_scheduler_runs_in_due_order():
    clock = ManualScheduler()
    calls = []
    clock.schedule_after(0.5, lambda: calls.append("late"))
    clock.schedule_after(0.1, lambda: calls.append("early"))
    clock.schedule_after(0.1, lambda: calls.append("early-2"))

    assert clock.advance(0.05) == 0
    assert clock.advance(1.0) == 3
    assert calls == ["early", "early-2", "late"]
    assert clock.now == pytest.approx(1.05)


def test_manual_scheduler_cancel():
    clock = ManualScheduler()
    calls = []
    token = clock.schedule_after(0.1, lambda: calls.append(1))
    assert clock.pending == 1
    assert clock.cancel(token) is True
    assert clock.cancel(token) is False
    assert clock.pending == 0
    clock.advance(1.0)
    assert calls == []
    assert clock.cancel(token) is False


def test_manual_scheduler_callbacks_can_reschedule():
    clock = ManualScheduler()
    calls = []

    def tick():
        calls.append(clock.now)
        if len(calls) < 3:
            clock.schedule_after(0.1, tick)

    clock.schedule_after(0.1, tick)
    clock.advance(1.0)
    assert len(calls) == 3


def test_run_pending_only_runs_due():
    clock = ManualScheduler()
    calls = []
    clock.schedule_after(0.0, lambda: calls.append("now"))
    clock.schedule_after(0.2, lambda: calls.append("later"))
    assert clock.run_pending() == 1
    assert calls == ["now"]


def test_schedulers_satisfy_protocol():
    assert isinstance(ManualScheduler(), Scheduler)
    assert isinstance(TimerScheduler(), Scheduler)


def test_timer_scheduler_fires():
    scheduler = TimerScheduler()
    done = threading.Event()
    scheduler.schedule_after(0.01, done.set)
    assert done.wait(2.0)


def test_timer_scheduler_cancel():
    scheduler = TimerScheduler()
    fired = threading.Event()
    token = scheduler.schedule_after(0.2, fired.set)
    assert scheduler.cancel(token) is True
    assert scheduler.cancel(token) is False
    assert not fired.wait(0.4)
