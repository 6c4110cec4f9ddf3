"""
Deferred callback scheduling with cancellable handles.
Supports a threading.Timer backend and a manual virtual-clock backend.
"""

import heapq
import itertools
import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple


class ScheduledTask:
    """Handle for one deferred callback"""

    def __init__(self, delay: float, callback: Callable[[], None], name: str = ""):
        self.delay = delay
        self.callback = callback
        self.name = name or getattr(callback, '__name__', 'task')
        self.cancelled = False
        self.done = False
        self._timer: Optional[threading.Timer] = None

    def cancel(self) -> bool:
        """
        Cancel the task if it has not run yet

        Returns:
            True if the task was pending and is now cancelled
        """
        if self.done or self.cancelled:
            return False
        self.cancelled = True
        if self._timer is not None:
            self._timer.cancel()
        return True

    @property
    def pending(self) -> bool:
        return not (self.done or self.cancelled)

    def run(self):
        """Run the callback unless cancelled"""
        if not self.pending:
            return
        self.done = True
        self.callback()

    def __repr__(self):
        state = 'cancelled' if self.cancelled else 'done' if self.done else 'pending'
        return f"<ScheduledTask {self.name} +{self.delay}s {state}>"


class Scheduler(ABC):
    """Abstract base class for scheduler backends"""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None], name: str = "") -> ScheduledTask:
        """Schedule callback to run after delay seconds"""
        pass

    @abstractmethod
    def cancel_all(self):
        """Cancel every pending task"""
        pass

    @abstractmethod
    def get_name(self) -> str:
        """Get backend name"""
        pass


class ThreadingScheduler(Scheduler):
    """
    Scheduler backed by threading.Timer

    Callbacks run on timer threads; callers guard shared state with a lock.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._tasks: List[ScheduledTask] = []
        self._lock = threading.Lock()

    def call_later(self, delay: float, callback: Callable[[], None], name: str = "") -> ScheduledTask:
        task = ScheduledTask(delay, callback, name)
        timer = threading.Timer(delay, self._fire, args=(task,))
        timer.daemon = True
        task._timer = timer

        with self._lock:
            self._tasks = [t for t in self._tasks if t.pending]
            self._tasks.append(task)

        timer.start()
        self.logger.debug(f"Scheduled {task.name} in {delay}s")
        return task

    def _fire(self, task: ScheduledTask):
        try:
            task.run()
        except Exception as e:
            self.logger.error(f"Scheduled task {task.name} failed: {e}", exc_info=True)

    def cancel_all(self):
        with self._lock:
            tasks, self._tasks = self._tasks, []
        cancelled = sum(1 for task in tasks if task.cancel())
        if cancelled:
            self.logger.info(f"Cancelled {cancelled} pending task(s)")

    def get_name(self) -> str:
        return "Threading"


class ManualScheduler(Scheduler):
    """
    Virtual-clock scheduler driven by advance()

    Used by headless hosts with their own event loop and by tests.
    Tasks due at the same instant run in scheduling order.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.now = 0.0
        self._queue: List[Tuple[float, int, ScheduledTask]] = []
        self._counter = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None], name: str = "") -> ScheduledTask:
        task = ScheduledTask(delay, callback, name)
        heapq.heappush(self._queue, (self.now + delay, next(self._counter), task))
        self.logger.debug(f"Scheduled {task.name} at t={self.now + delay:.3f}")
        return task

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward, running every task that falls due

        Tasks scheduled by running callbacks are honoured if they fall
        inside the window.

        Args:
            seconds: Amount of virtual time to advance

        Returns:
            Number of callbacks run
        """
        target = self.now + seconds
        ran = 0

        while self._queue and self._queue[0][0] <= target:
            due, _, task = heapq.heappop(self._queue)
            self.now = due
            if task.pending:
                task.run()
                ran += 1

        self.now = target
        return ran

    def run_all(self) -> int:
        """Advance until no pending task remains"""
        ran = 0
        while any(task.pending for _, _, task in self._queue):
            due = min(d for d, _, task in self._queue if task.pending)
            ran += self.advance(due - self.now)
        return ran

    def pending_count(self) -> int:
        return sum(1 for _, _, task in self._queue if task.pending)

    def cancel_all(self):
        for _, _, task in self._queue:
            task.cancel()
        self._queue.clear()

    def get_name(self) -> str:
        return "Manual"
