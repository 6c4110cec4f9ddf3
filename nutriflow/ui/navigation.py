"""
Navigation state machine for UI screens.

NavigationManager is the single owner of the history stack, the selected
event, the calendar/daily transition phase, the modal/focus gate and the
active calendar date. Screens only signal intent through its operations
(or the ScreenCallbacks bundle) and read NavigationSnapshot values back.
"""

import logging
import threading
from contextlib import contextmanager
from datetime import date
from typing import Any, Callable, Dict, Hashable, List, NamedTuple, Optional, Tuple, Union

from nutriflow.core.scheduler import Scheduler
from nutriflow.ui.gate import GateHandle, ModalFocusGate
from nutriflow.ui.screens import Screen, is_full_width_screen, is_main_screen
from nutriflow.ui.selection import Event, SelectionContext
from nutriflow.ui.transitions import TransitionCoordinator, TransitionPhase, TransitionTimings


class StackFrame(NamedTuple):
    screen: Screen
    event: Optional[Event] = None  # only set for itemDetail frames


class NavigationStack:
    """
    Ordered back-navigation history, oldest first. Never empty.
    """

    def __init__(self, root: Screen = Screen.WELCOME):
        self._frames: List[StackFrame] = [StackFrame(root)]

    @property
    def top(self) -> StackFrame:
        return self._frames[-1]

    def screens(self) -> Tuple[Screen, ...]:
        return tuple(frame.screen for frame in self._frames)

    def push(self, screen: Screen, event: Optional[Event] = None):
        self._frames.append(StackFrame(screen, event))

    def reset(self, screen: Screen):
        """Replace history with the singleton [screen]"""
        self._frames = [StackFrame(screen)]

    def pop(self, fallback: Screen) -> StackFrame:
        """
        Remove the tail

        Args:
            fallback: Root substituted when the pop would empty the stack

        Returns:
            The new tail
        """
        if len(self._frames) > 1:
            self._frames.pop()
        else:
            self.reset(fallback)
        return self.top

    def __len__(self) -> int:
        return len(self._frames)

    def __repr__(self):
        return f"NavigationStack({[s.value for s in self.screens()]})"


class NavigationSnapshot(NamedTuple):
    """Read-only view handed to the rendering layer"""
    screen: Screen
    stack: Tuple[Screen, ...]
    phase: TransitionPhase
    transition_target: Optional[Screen]
    selection: Optional[Event]
    active_date: date
    is_main: bool
    is_full_width: bool
    modal_open: bool
    input_focused: bool
    show_bottom_nav: bool
    blur_background: bool
    show_grid: bool
    grid_size: int

    @property
    def depth(self) -> int:
        return len(self.stack)


class ScreenCallbacks(NamedTuple):
    """Callback contracts given to screen collaborators"""
    on_navigate: Callable[[Any], None]
    on_back: Callable[[], bool]
    on_event_select: Callable[[Any], None]
    on_expand: Callable[..., None]
    on_daily_view_open: Callable[[date], bool]
    on_date_select: Callable[[date], None]
    on_modal_state_change: Callable[[bool], bool]
    on_ai_textbox_focus: Callable[[bool], bool]


class NavigationManager:
    """
    Manage UI navigation and state transitions
    """

    def __init__(self, scheduler: Scheduler, initial_screen: Screen = Screen.WELCOME,
                 active_date: Optional[date] = None, timings: Optional[TransitionTimings] = None):
        """
        Initialize navigation manager

        Args:
            scheduler: Backend for the calendar/daily transition steps
            initial_screen: Starting screen
            active_date: Initially selected calendar date (today if None)
            timings: Transition delays
        """
        self.logger = logging.getLogger(__name__)
        self._lock = threading.RLock()
        self._depth = 0
        self._dirty = False
        self._listeners: List[Callable[[NavigationSnapshot], None]] = []

        initial_screen = Screen.parse(initial_screen)
        if initial_screen is Screen.ITEM_DETAIL:
            raise ValueError("Cannot start on itemDetail without a selected event")

        self.scheduler = scheduler
        self.stack = NavigationStack(initial_screen)
        self.selection = SelectionContext()
        self.gate = ModalFocusGate(on_change=self._notify)
        self.transitions = TransitionCoordinator(
            scheduler, timings, guard=self._mutation, on_change=self._notify
        )
        self.active_date = active_date or date.today()

        self.logger.info(f"Navigation initialized at {self.current_screen.value}")

    # ------------------------------------------------------------------
    # Read side

    @property
    def current_screen(self) -> Screen:
        return self.stack.top.screen

    @property
    def phase(self) -> TransitionPhase:
        return self.transitions.phase

    @property
    def selected_event(self) -> Optional[Event]:
        return self.selection.event

    def snapshot(self) -> NavigationSnapshot:
        with self._lock:
            screen = self.current_screen
            modal_open = self.gate.modal_open
            input_focused = self.gate.input_focused
            full_width = is_full_width_screen(screen)
            main = is_main_screen(screen)
            return NavigationSnapshot(
                screen=screen,
                stack=self.stack.screens(),
                phase=self.phase,
                transition_target=self._transition_target(),
                selection=self.selection.event,
                active_date=self.active_date,
                is_main=main,
                is_full_width=full_width,
                modal_open=modal_open,
                input_focused=input_focused,
                show_bottom_nav=main and not modal_open,
                blur_background=input_focused and screen is Screen.HOME,
                show_grid=not full_width,
                grid_size=24 if screen is Screen.DAILY_VIEW else 20,
            )

    def _transition_target(self) -> Optional[Screen]:
        run = self.transitions.current_run
        if run is None:
            return None
        if run.phase is TransitionPhase.ENTERING_DETAIL:
            return Screen.DAILY_VIEW
        if run.committed:
            return self.current_screen
        screens = self.stack.screens()
        return screens[-2] if len(screens) > 1 else Screen.CALENDAR

    def subscribe(self, listener: Callable[[NavigationSnapshot], None]) -> Callable[[], None]:
        """
        Register a listener called with a snapshot after every state change

        Returns:
            Function that unsubscribes the listener
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def callbacks(self) -> ScreenCallbacks:
        return ScreenCallbacks(
            on_navigate=self.navigate_to,
            on_back=self.go_back,
            on_event_select=self.push_detail,
            on_expand=self.expand,
            on_daily_view_open=self.open_daily_view,
            on_date_select=self.set_active_date,
            on_modal_state_change=self.set_modal_open,
            on_ai_textbox_focus=self.set_input_focus,
        )

    # ------------------------------------------------------------------
    # Stack operations

    def navigate_to(self, screen: Union[Screen, str]):
        """
        Navigate to a screen

        Main tabs replace the history with [screen]; any other screen is
        pushed on top of the current path. The daily view is only reached
        through the forward transition for the active date.

        Args:
            screen: Target screen
        """
        if Screen.parse(screen) is Screen.DAILY_VIEW:
            self.open_daily_view(self.active_date)
            return
        screen = self._checked(screen)
        with self._mutation():
            self._supersede_transition()
            previous = self.current_screen
            if is_main_screen(screen):
                self.stack.reset(screen)
            else:
                self.stack.push(screen)
            self._moved(previous)

    def push_child(self, screen: Union[Screen, str]):
        """
        Push a nested screen (settings sub-screens, support)

        Raises:
            ValueError: screen is a main tab or needs a payload
        """
        screen = self._checked(screen)
        if is_main_screen(screen):
            raise ValueError(f"Main screen {screen.value} cannot be nested; use navigate_to")
        with self._mutation():
            self._supersede_transition()
            previous = self.current_screen
            self.stack.push(screen)
            self._moved(previous)

    def reset_to(self, screen: Union[Screen, str]):
        """Replace the history with [screen] (onboarding and auth steps)"""
        screen = self._checked(screen)
        with self._mutation():
            self._supersede_transition()
            previous = self.current_screen
            self.stack.reset(screen)
            self._moved(previous)

    def push_detail(self, event: Union[Event, Dict[str, Any]]):
        """
        Open the detail screen for an event

        Selection and screen switch happen together, and the path that led
        here is kept so back returns to it.

        Args:
            event: Event or plain dict accepted by Event.from_dict
        """
        if not isinstance(event, Event):
            event = Event.from_dict(event)
        with self._mutation():
            self._supersede_transition()
            previous = self.current_screen
            self.stack.push(Screen.ITEM_DETAIL, event)
            self._moved(previous)

    def expand(self, from_screen: Optional[Union[Screen, str]] = None):
        """Open the full-day list for the active date"""
        if from_screen is not None:
            from_screen = Screen.parse(from_screen)
            self.logger.debug(f"Expand requested from {from_screen.value}")
        self.push_child(Screen.FULL_DAY)

    def go_back(self) -> bool:
        """
        Navigate to previous screen

        Leaving the daily view runs the backward transition instead of an
        immediate pop. An emptied stack falls back to [home].

        Returns:
            True if a navigation happened or was started, False if ignored
        """
        with self._mutation():
            if not self.transitions.is_idle():
                self.logger.debug(f"Back ignored during {self.phase.value}")
                return False

            if self.current_screen is Screen.DAILY_VIEW:
                return self.transitions.start(TransitionPhase.LEAVING_DETAIL, self._commit_leave) is not None

            previous = self.current_screen
            self.stack.pop(fallback=Screen.HOME)
            self._moved(previous)
            return True

    # ------------------------------------------------------------------
    # Calendar <-> daily view

    def open_daily_view(self, day: date) -> bool:
        """
        Zoom from the calendar into the daily view for day

        While the forward transition is already running only the target
        date is updated, so repeated taps end on the last date picked.

        Returns:
            True if a transition was started
        """
        with self._mutation():
            phase = self.phase
            if phase is TransitionPhase.ENTERING_DETAIL:
                self.logger.debug(f"Daily view already opening; target date now {day}")
                self._set_date(day)
                return False
            if phase is TransitionPhase.LEAVING_DETAIL:
                self.logger.debug("Daily view open ignored while leaving daily view")
                return False

            self._set_date(day)
            if self.current_screen is Screen.DAILY_VIEW:
                return False

            self._release_input_focus()
            return self.transitions.start(TransitionPhase.ENTERING_DETAIL, self._commit_enter) is not None

    def _commit_enter(self):
        with self._mutation():
            previous = self.current_screen
            self.stack.push(Screen.DAILY_VIEW)
            self._moved(previous)

    def _commit_leave(self):
        with self._mutation():
            previous = self.current_screen
            self.stack.pop(fallback=Screen.CALENDAR)
            self._moved(previous)

    def _supersede_transition(self):
        """
        Cancel an in-flight transition before another navigation

        An uncommitted leave still owes its pop; an uncommitted enter is
        dropped.
        """
        run = self.transitions.cancel()
        if run is None:
            return
        self._touch()
        if run.phase is TransitionPhase.LEAVING_DETAIL and not run.committed:
            run.commit()

    def set_active_date(self, day: date):
        with self._mutation():
            self._set_date(day)

    def _set_date(self, day: date):
        if day != self.active_date:
            self.active_date = day
            self._touch()

    # ------------------------------------------------------------------
    # Modal / focus gate

    def acquire_modal(self, owner: Hashable) -> GateHandle:
        """Grant the modal slot to an overlay (GateBusyError if taken)"""
        return self.gate.acquire_modal(owner)

    def set_modal_open(self, is_open: bool, owner: Optional[Hashable] = None) -> bool:
        """
        Flag-style modal signal from a screen hosting an overlay

        Args:
            is_open: Whether the overlay is showing
            owner: Overlay owner; defaults to the current screen, so the
                modal is released if that screen is left

        Returns:
            True if the gate changed
        """
        with self._mutation():
            if owner is None:
                owner = self.current_screen
            if is_open:
                if self.gate.modal.owner == owner:
                    return False
                self.gate.acquire_modal(owner)
                return True

            if self.gate.modal.release_owner(owner):
                return True
            if self.gate.modal_open:
                self.logger.warning(f"Modal close from {owner!r} ignored; held by {self.gate.modal.owner!r}")
            return False

    def set_input_focus(self, focused: bool) -> bool:
        """
        Focus signal from the home screen's assistant textbox

        Returns:
            True if the gate changed
        """
        with self._mutation():
            if not focused:
                return self.gate.focus.release_owner(Screen.HOME)

            if self.current_screen is not Screen.HOME:
                self.logger.debug(f"Focus ignored on {self.current_screen.value}")
                return False
            if self.gate.focus.owner == Screen.HOME:
                return False
            self.gate.acquire_focus(Screen.HOME)
            return True

    def _release_input_focus(self):
        self.gate.focus.force_release()

    # ------------------------------------------------------------------
    # Internals

    def shutdown(self):
        """Cancel any pending transition step"""
        with self._mutation():
            if self.transitions.cancel() is not None:
                self._touch()

    def _checked(self, screen: Union[Screen, str]) -> Screen:
        screen = Screen.parse(screen)
        if screen is Screen.ITEM_DETAIL:
            raise ValueError("itemDetail needs an event; use push_detail")
        if screen is Screen.DAILY_VIEW:
            raise ValueError("dailyView is entered by transition; use open_daily_view")
        return screen

    def _moved(self, previous: Screen):
        """
        Apply side effects of the active screen changing from previous

        Keeps the selection in step with the tail frame and releases gate
        handles owned by the screen that was left.
        """
        current = self.current_screen
        top = self.stack.top

        if current is Screen.ITEM_DETAIL:
            self.selection.select(top.event)
        else:
            self.selection.clear()

        if current is not previous:
            self.gate.release_owned_by(previous)
            if previous is Screen.HOME:
                self._release_input_focus()

        self.logger.info(f"Navigated from {previous.value} to {current.value} (depth {len(self.stack)})")
        self._touch()

    def _touch(self):
        self._dirty = True

    @contextmanager
    def _mutation(self):
        with self._lock:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            if self._depth or not self._dirty:
                return
            self._dirty = False
        self._publish()

    def _notify(self):
        with self._lock:
            if self._depth:
                self._dirty = True
                return
        self._publish()

    def _publish(self):
        with self._lock:
            snapshot = self.snapshot()
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(snapshot)
            except Exception as e:
                self.logger.error(f"Navigation listener failed: {e}", exc_info=True)
