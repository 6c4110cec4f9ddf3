"""
Calendar <-> daily view transition coordinator.

Moving between the calendar and the daily view is an animated hand-off:
the phase flips first so both screens can animate, the stack mutation is
committed after a short delay, and the phase settles back to idle once the
inbound animation has finished.

    idle -> enteringDetail -> idle     (open daily view)
    idle -> leavingDetail  -> idle     (back from daily view)

Every run carries its own cancellation token; cancelled steps never touch
state.
"""

import logging
import threading
from enum import Enum
from typing import Callable, ContextManager, List, NamedTuple, Optional

from nutriflow.core.scheduler import ScheduledTask, Scheduler


class TransitionPhase(Enum):
    IDLE = "idle"
    ENTERING_DETAIL = "enteringDetail"
    LEAVING_DETAIL = "leavingDetail"


class TransitionTimings(NamedTuple):
    """Delays in seconds; commit = stack mutation, settle = back to idle"""
    enter_commit_delay: float = 0.3
    enter_settle_delay: float = 0.8
    leave_commit_delay: float = 0.1
    leave_settle_delay: float = 0.6

    @classmethod
    def from_config(cls, config) -> "TransitionTimings":
        defaults = cls()
        return cls(*(
            float(config.get(f'transitions.{field}', getattr(defaults, field)))
            for field in cls._fields
        ))

    def delays_for(self, phase: TransitionPhase):
        if phase is TransitionPhase.ENTERING_DETAIL:
            return self.enter_commit_delay, self.enter_settle_delay
        if phase is TransitionPhase.LEAVING_DETAIL:
            return self.leave_commit_delay, self.leave_settle_delay
        raise ValueError(f"No delays for phase {phase.value}")


class TransitionRun:
    """One idle -> phase -> idle run"""

    def __init__(self, run_id: int, phase: TransitionPhase, commit: Callable[[], None]):
        self.run_id = run_id
        self.phase = phase
        self.commit = commit
        self.committed = False
        self.cancelled = False
        self.finished = False
        self.tasks: List[ScheduledTask] = []

    def cancel(self):
        self.cancelled = True
        for task in self.tasks:
            task.cancel()

    def __repr__(self):
        return f"<TransitionRun #{self.run_id} {self.phase.value} committed={self.committed}>"


class TransitionCoordinator:
    """
    Timed two-phase state machine

    Owns the current phase and at most one in-flight run. Steps run under
    the owning controller's guard so they serialize with its operations.
    """

    def __init__(self, scheduler: Scheduler, timings: Optional[TransitionTimings] = None,
                 guard: Optional[Callable[[], ContextManager]] = None,
                 on_change: Optional[Callable[[], None]] = None):
        """
        Initialize coordinator

        Args:
            scheduler: Backend for deferred steps
            timings: Commit/settle delays
            guard: Factory for the context that scopes each state change.
                Controllers pass their mutation scope so listeners are
                notified after the scope exits and its lock is released.
            on_change: Called inside the guard when a run starts or settles
        """
        self.logger = logging.getLogger(__name__)
        self.scheduler = scheduler
        self.timings = timings or TransitionTimings()
        self._lock = threading.RLock()
        self._guard = guard or self._own_lock
        self._on_change = on_change
        self._phase = TransitionPhase.IDLE
        self._run: Optional[TransitionRun] = None
        self._run_count = 0

    @property
    def phase(self) -> TransitionPhase:
        return self._phase

    @property
    def current_run(self) -> Optional[TransitionRun]:
        return self._run

    def _own_lock(self):
        return self._lock

    def is_idle(self) -> bool:
        return self._phase is TransitionPhase.IDLE

    def start(self, phase: TransitionPhase, commit: Callable[[], None]) -> Optional[TransitionRun]:
        """
        Begin a run if idle

        Args:
            phase: ENTERING_DETAIL or LEAVING_DETAIL
            commit: Stack mutation applied after the commit delay

        Returns:
            The new run, or None if a run is already in flight
        """
        if phase is TransitionPhase.IDLE:
            raise ValueError("Cannot start a transition into the idle phase")

        with self._guard():
            if self._run is not None:
                self.logger.debug(f"Ignoring {phase.value}: {self._run.phase.value} in flight")
                return None

            self._run_count += 1
            run = TransitionRun(self._run_count, phase, commit)
            self._run = run
            self._phase = phase

            commit_delay, _ = self.timings.delays_for(phase)
            run.tasks.append(self.scheduler.call_later(
                commit_delay, lambda: self._commit_step(run), name=f"{phase.value}-commit"
            ))
            self.logger.info(f"Transition #{run.run_id} started: {phase.value}")
            self._notify()
            return run

    def _commit_step(self, run: TransitionRun):
        with self._guard():
            if run.cancelled or run is not self._run:
                return
            run.committed = True
            run.commit()
            _, settle_delay = self.timings.delays_for(run.phase)
            run.tasks.append(self.scheduler.call_later(
                settle_delay, lambda: self._settle_step(run), name=f"{run.phase.value}-settle"
            ))

    def _settle_step(self, run: TransitionRun):
        with self._guard():
            if run.cancelled or run is not self._run:
                return
            run.finished = True
            self._run = None
            self._phase = TransitionPhase.IDLE
            self.logger.info(f"Transition #{run.run_id} settled")
            self._notify()

    def cancel(self) -> Optional[TransitionRun]:
        """
        Cancel the in-flight run and force the phase back to idle

        Returns:
            The cancelled run (caller decides what to do with an
            uncommitted mutation), or None if idle
        """
        with self._guard():
            run = self._run
            if run is None:
                return None
            run.cancel()
            self._run = None
            self._phase = TransitionPhase.IDLE
            self.logger.info(f"Transition #{run.run_id} cancelled ({run.phase.value}, committed={run.committed})")
            return run

    def _notify(self):
        if self._on_change:
            self._on_change()
