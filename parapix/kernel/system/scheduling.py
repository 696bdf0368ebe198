"""
Deferred-callback capability shared by the render coalescer, the history
debouncer and the export path.

Two implementations are provided: ``TimerScheduler`` runs callbacks on
``threading.Timer`` threads, ``ManualScheduler`` keeps its own clock and only
fires callbacks when the host loop (or a test) advances it.
"""

import heapq
import itertools
import threading
from typing import Callable, Dict, Hashable, List, Protocol, Tuple, runtime_checkable

from parapix.kernel.system.logging import get_logger

logger = get_logger(__name__)

Callback = Callable[[], None]


@runtime_checkable
class Scheduler(Protocol):
    """
    Interface for anything able to run a callback after a delay.
    """

    def schedule_after(self, delay: float, callback: Callback) -> Hashable: ...

    def cancel(self, token: Hashable) -> bool: ...


class TimerScheduler:
    """
    Wall-clock scheduler backed by daemon ``threading.Timer`` objects.

    Callbacks run on timer threads, so the owner must serialise access to
    any state they touch. EditorSession does not use it by default.
    """

    def __init__(self) -> None:
        self._timers: Dict[int, threading.Timer] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def schedule_after(self, delay: float, callback: Callback) -> Hashable:
        token = next(self._ids)

        def _fire() -> None:
            with self._lock:
                if self._timers.pop(token, None) is None:
                    return
            callback()

        timer = threading.Timer(max(0.0, delay), _fire)
        timer.daemon = True
        with self._lock:
            self._timers[token] = timer
        timer.start()
        return token

    def cancel(self, token: Hashable) -> bool:
        with self._lock:
            timer = self._timers.pop(token, None)  # type: ignore[arg-type]
        if timer is None:
            return False
        timer.cancel()
        return True


class ManualScheduler:
    """
    Cooperative scheduler with an explicit clock.

    Callbacks never run on their own; ``advance`` moves the clock forward and
    runs everything that became due, in due-time order (ties in scheduling
    order). Used as a frame-driven loop and as the fake clock in tests.
    """

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self._queue: List[Tuple[float, int, Callback]] = []
        self._cancelled: set = set()
        self._ids = itertools.count(1)

    def schedule_after(self, delay: float, callback: Callback) -> Hashable:
        token = next(self._ids)
        heapq.heappush(self._queue, (self.now + max(0.0, delay), token, callback))
        return token

    def cancel(self, token: Hashable) -> bool:
        if any(entry[1] == token for entry in self._queue) and token not in self._cancelled:
            self._cancelled.add(token)
            return True
        return False

    @property
    def pending(self) -> int:
        return sum(1 for entry in self._queue if entry[1] not in self._cancelled)

    def advance(self, seconds: float) -> int:
        """
        Moves the clock and runs due callbacks. Returns the number executed.
        """
        target = self.now + max(0.0, seconds)
        executed = 0
        while self._queue and self._queue[0][0] <= target:
            due, token, callback = heapq.heappop(self._queue)
            if token in self._cancelled:
                self._cancelled.discard(token)
                continue
            self.now = due
            callback()
            executed += 1
        self.now = target
        return executed

    def run_pending(self) -> int:
        """
        Runs every callback that is already due without moving the clock.
        """
        return self.advance(0.0)
