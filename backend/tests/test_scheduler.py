import threading

import pytest

from guessmates.services.games.scheduler import BackgroundScheduler, ManualScheduler


def test_manual_call_later_fires_once():
    scheduler = ManualScheduler()
    calls = []
    handle = scheduler.call_later(5, lambda: calls.append(scheduler.now))
    scheduler.advance(4)
    assert calls == []
    scheduler.advance(10)
    assert calls == [5]
    assert handle.finished and not handle.active
    assert scheduler.now == 14


def test_manual_every_until_cancelled():
    scheduler = ManualScheduler()
    ticks = []

    def tick():
        ticks.append(scheduler.now)
        if len(ticks) == 3:
            handle.cancel()

    handle = scheduler.every(1, tick)
    scheduler.advance(10)
    assert ticks == [1, 2, 3]
    assert scheduler.pending() == 0


def test_manual_runs_in_due_order():
    scheduler = ManualScheduler()
    order = []
    scheduler.call_later(2, lambda: order.append('late'))
    scheduler.call_later(1, lambda: order.append('early'))
    scheduler.every(1.5, lambda: order.append('tick'))
    scheduler.advance(3)
    assert order == ['early', 'tick', 'late', 'tick']


def test_cancelled_handle_never_fires():
    scheduler = ManualScheduler()
    calls = []
    scheduler.call_later(1, lambda: calls.append(1)).cancel()
    scheduler.advance(5)
    assert calls == []


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        ManualScheduler().every(0, lambda: None)


class InlineSocketIO:
    """Runs background tasks inline and records sleeps."""

    def __init__(self):
        self.slept = []

    def start_background_task(self, target, *args):
        target(*args)

    def sleep(self, seconds):
        self.slept.append(seconds)


def test_background_scheduler_rechecks_cancel_under_lock():
    sio = InlineSocketIO()
    scheduler = BackgroundScheduler(sio, threading.RLock())
    ticks = []

    def tick():
        ticks.append(len(ticks))
        if len(ticks) == 2:
            scheduler_handle[0].cancel()

    scheduler_handle = []
    original = sio.start_background_task

    def start(target, handle, *args):
        scheduler_handle.append(handle)
        original(target, handle, *args)

    sio.start_background_task = start
    scheduler.every(1, tick, name='t')
    assert ticks == [0, 1]
    assert sio.slept == [1, 1]


def test_background_callback_error_stops_timer():
    sio = InlineSocketIO()
    scheduler = BackgroundScheduler(sio, threading.RLock())

    def boom():
        raise RuntimeError('boom')

    handle = scheduler.every(1, boom)
    assert handle.cancelled
    assert sio.slept == [1]
