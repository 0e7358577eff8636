import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class TimerHandle:
    """Handle for a scheduled callback. Cancelling is final."""

    def __init__(self, name: str = ''):
        self.name = name
        self.cancelled = False
        self.finished = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.finished)

    def __repr__(self):
        state = 'active' if self.active else ('cancelled' if self.cancelled else 'finished')
        return f'<TimerHandle {self.name or "?"} {state}>'


class BackgroundScheduler:
    """Runs timers as Socket.IO background tasks.

    Each callback runs while holding ``lock`` (the server-wide lock that
    serializes every game mutation), and cancellation is re-checked after
    the lock is taken so a handle cancelled by a concurrent handler never
    fires late.
    """

    def __init__(self, socketio, lock):
        self.socketio = socketio
        self.lock = lock

    def call_later(self, delay: float, callback: Callable[[], None], name: str = '') -> TimerHandle:
        handle = TimerHandle(name)
        self.socketio.start_background_task(self._worker, handle, delay, None, callback)
        return handle

    def every(self, interval: float, callback: Callable[[], None], name: str = '') -> TimerHandle:
        if interval <= 0:
            raise ValueError('interval must be positive')
        handle = TimerHandle(name)
        self.socketio.start_background_task(self._worker, handle, interval, interval, callback)
        return handle

    def _worker(self, handle: TimerHandle, delay: float, interval: Optional[float], callback):
        while True:
            self.socketio.sleep(delay)
            with self.lock:
                if handle.cancelled:
                    logger.debug(f"[timer-abort] {handle.name} cancelled")
                    return
                try:
                    callback()
                except Exception:
                    logger.exception(f"[timer-error] {handle.name} callback failed")
                    handle.cancel()
                    return
                if interval is None or handle.cancelled:
                    handle.finished = not handle.cancelled
                    return
            delay = interval


@dataclass
class _Entry:
    due: float
    seq: int
    interval: Optional[float]
    handle: TimerHandle
    callback: Callable[[], None] = field(repr=False)


class ManualScheduler:
    """Deterministic scheduler on a virtual clock, used when TESTING.

    Nothing fires on its own; ``advance(seconds)`` runs every callback that
    falls due, in due-time order.
    """

    def __init__(self):
        self.now = 0.0
        self._entries: List[_Entry] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None], name: str = '') -> TimerHandle:
        return self._add(delay, None, callback, name)

    def every(self, interval: float, callback: Callable[[], None], name: str = '') -> TimerHandle:
        if interval <= 0:
            raise ValueError('interval must be positive')
        return self._add(interval, interval, callback, name)

    def _add(self, delay, interval, callback, name) -> TimerHandle:
        handle = TimerHandle(name)
        self._entries.append(_Entry(self.now + delay, next(self._seq), interval, handle, callback))
        return handle

    def pending(self) -> int:
        return sum(1 for e in self._entries if not e.handle.cancelled)

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            self._entries = [e for e in self._entries if not e.handle.cancelled]
            due = [e for e in self._entries if e.due <= target]
            if not due:
                break
            entry = min(due, key=lambda e: (e.due, e.seq))
            self.now = entry.due
            if entry.interval is None:
                self._entries.remove(entry)
                entry.handle.finished = True
            else:
                entry.due += entry.interval
            entry.callback()
        self.now = target


def make_scheduler(app, socketio, lock):
    """Pick the scheduler for this app: virtual clock in tests, background tasks otherwise."""
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return ManualScheduler()
    return BackgroundScheduler(socketio, lock)
