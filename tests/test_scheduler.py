"""Tests for the cooperative scheduler."""

from tamalearn.scheduler import Scheduler


def test_effect_runs_when_due():
    """Test an effect fires once its delay has elapsed, and only once."""
    sched = Scheduler()
    fired = []
    sched.schedule(8.0, lambda: fired.append("wake"))
    assert sched.advance(7.9) == 0
    assert fired == []
    assert sched.advance(0.1) == 1
    assert fired == ["wake"]
    assert sched.advance(100) == 0
    assert sched.pending == 0


def test_cancel_is_idempotent():
    """Test cancelling twice is harmless and the effect never runs."""
    sched = Scheduler()
    fired = []
    handle = sched.schedule(1.0, lambda: fired.append(1))
    assert sched.cancel(handle)
    assert not sched.cancel(handle)
    sched.advance(5)
    assert fired == []
    assert not sched.is_pending(handle)


def test_cancel_after_run():
    """Test cancelling a task that already ran does nothing."""
    sched = Scheduler()
    handle = sched.schedule(0, lambda: None)
    sched.advance(0)
    assert not sched.cancel(handle)


def test_due_order():
    """Test tasks due in one advance run in due order."""
    sched = Scheduler()
    order = []
    sched.schedule(3, lambda: order.append("late"))
    sched.schedule(1, lambda: order.append("early"))
    sched.schedule(2, lambda: order.append("middle"))
    sched.advance(10)
    assert order == ["early", "middle", "late"]


def test_effect_may_schedule_more():
    """Test an effect can queue a follow-up task."""
    sched = Scheduler()
    fired = []

    def first():
        fired.append("first")
        sched.schedule(1, lambda: fired.append("second"))

    sched.schedule(1, first)
    sched.advance(1)
    assert fired == ["first"]
    sched.advance(1)
    assert fired == ["first", "second"]


def test_remaining():
    """Test the time left on a task shrinks as the clock moves."""
    sched = Scheduler()
    handle = sched.schedule(8.0, lambda: None)
    sched.advance(3.0)
    assert sched.remaining(handle) == 5.0
    sched.advance(sched.remaining(handle))
    assert sched.remaining(handle) is None
