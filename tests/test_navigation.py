"""
Unit tests for the navigation controller: stack semantics, selection,
gate side effects and listener notifications
"""

import random
import sys
from datetime import date
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from nutriflow.core.scheduler import ManualScheduler
from nutriflow.ui.navigation import NavigationManager, NavigationStack
from nutriflow.ui.screens import Screen
from nutriflow.ui.selection import Event
from nutriflow.ui.transitions import TransitionPhase


JUNE_4 = date(2020, 6, 4)


def make_nav(initial=Screen.WELCOME):
    scheduler = ManualScheduler()
    return NavigationManager(scheduler, initial, active_date=JUNE_4), scheduler


def make_event(event_id="evt-1", title="Oatmeal & berries"):
    return Event(id=event_id, title=title, subtitle="Breakfast", time="07:30", type="meal")


def test_initial_state():
    nav, _ = make_nav()

    assert nav.stack.screens() == (Screen.WELCOME,)
    assert nav.current_screen is Screen.WELCOME
    assert nav.phase is TransitionPhase.IDLE
    assert nav.selected_event is None
    assert nav.active_date == JUNE_4


def test_stack_pop_substitutes_fallback():
    stack = NavigationStack(Screen.CALENDAR)
    stack.push(Screen.FULL_DAY)

    assert stack.pop(fallback=Screen.HOME).screen is Screen.CALENDAR
    assert stack.pop(fallback=Screen.HOME).screen is Screen.HOME
    assert len(stack) == 1


def test_main_tab_resets_history():
    nav, _ = make_nav(Screen.PROFILE)
    nav.push_child(Screen.APP_PREFERENCES)
    nav.push_child(Screen.NOTIFICATIONS_SETTINGS)
    assert len(nav.stack) == 3

    for tab in (Screen.HOME, Screen.CALENDAR, Screen.INSIGHTS, Screen.PROFILE):
        nav.navigate_to(tab)
        assert nav.stack.screens() == (tab,), f"Stack not reset for {tab.value}"


def test_non_main_navigation_pushes():
    nav, _ = make_nav(Screen.PROFILE)
    nav.navigate_to("support")

    assert nav.stack.screens() == (Screen.PROFILE, Screen.SUPPORT)


def test_detail_scenario():
    nav, _ = make_nav()
    event = make_event()

    nav.navigate_to(Screen.HOME)
    nav.push_detail(event)
    assert nav.stack.screens() == (Screen.HOME, Screen.ITEM_DETAIL)
    assert nav.selected_event == event

    assert nav.go_back()
    assert nav.stack.screens() == (Screen.HOME,)
    assert nav.selected_event is None


def test_back_returns_to_origin_of_detail():
    nav, _ = make_nav(Screen.CALENDAR)
    nav.expand(Screen.CALENDAR)
    nav.push_detail(make_event())

    nav.go_back()
    assert nav.current_screen is Screen.FULL_DAY
    nav.go_back()
    assert nav.current_screen is Screen.CALENDAR


def test_back_on_singleton_falls_back_to_home():
    nav, _ = make_nav()

    nav.go_back()
    assert nav.stack.screens() == (Screen.HOME,)

    nav.go_back()
    assert nav.stack.screens() == (Screen.HOME,), "Back on fallback root should be a no-op"


def test_main_tab_clears_selection():
    nav, _ = make_nav(Screen.HOME)
    nav.push_detail(make_event())

    nav.navigate_to(Screen.INSIGHTS)
    assert nav.selected_event is None
    assert nav.stack.screens() == (Screen.INSIGHTS,)


def test_returning_to_detail_restores_its_event():
    nav, _ = make_nav(Screen.HOME)
    first = make_event("evt-1")
    nav.push_detail(first)
    nav.push_child(Screen.SUPPORT)
    assert nav.selected_event is None

    nav.go_back()
    assert nav.current_screen is Screen.ITEM_DETAIL
    assert nav.selected_event == first


def test_push_detail_accepts_dict():
    nav, _ = make_nav(Screen.CALENDAR)
    nav.push_detail({
        'id': 'w-9',
        'title': 'Tempo run',
        'subtitle': 'Workout',
        'time': '18:00',
        'type': 'workout',
        'intensity': 'HIGH',
        'workoutDetails': {'distance': 8.0, 'pace': '4:50', 'workoutType': 'run'},
    })

    event = nav.selected_event
    assert event.id == 'w-9'
    assert event.workout_details.workout_type == 'run'


def test_invalid_targets_rejected():
    nav, _ = make_nav(Screen.HOME)

    with pytest.raises(ValueError):
        nav.navigate_to("settings")
    with pytest.raises(ValueError):
        nav.navigate_to(Screen.ITEM_DETAIL)
    with pytest.raises(ValueError):
        nav.push_child(Screen.CALENDAR)
    with pytest.raises(ValueError):
        nav.push_detail({'id': '1', 'title': 't', 'subtitle': 's', 'time': 'now', 'type': 'nap'})

    assert nav.stack.screens() == (Screen.HOME,), "Rejected calls must not change the stack"


def test_leaving_home_clears_focus():
    nav, _ = make_nav(Screen.HOME)

    assert nav.set_input_focus(True)
    assert nav.snapshot().blur_background

    nav.navigate_to(Screen.CALENDAR)
    assert not nav.gate.input_focused
    assert not nav.snapshot().blur_background


def test_focus_only_on_home():
    nav, _ = make_nav(Screen.CALENDAR)

    assert not nav.set_input_focus(True)
    assert not nav.gate.input_focused


def test_modal_hides_bottom_nav_and_is_released_on_leave():
    nav, _ = make_nav(Screen.INSIGHTS)
    assert nav.snapshot().show_bottom_nav

    assert nav.set_modal_open(True)
    assert not nav.set_modal_open(True), "Same owner reopening is a no-op"
    assert not nav.snapshot().show_bottom_nav

    nav.navigate_to(Screen.PROFILE)
    snapshot = nav.snapshot()
    assert not snapshot.modal_open, "Modal owned by insights should close when leaving it"
    assert snapshot.show_bottom_nav


def test_modal_close_by_non_owner_ignored():
    nav, _ = make_nav(Screen.INSIGHTS)
    nav.set_modal_open(True)

    assert not nav.set_modal_open(False, owner="someone-else")
    assert nav.gate.modal_open
    assert nav.set_modal_open(False)
    assert not nav.gate.modal_open


def test_snapshot_classification():
    nav, _ = make_nav(Screen.CALENDAR)
    snapshot = nav.snapshot()
    assert snapshot.is_main and snapshot.is_full_width and not snapshot.show_grid

    nav.expand()
    snapshot = nav.snapshot()
    assert not snapshot.is_main
    assert not snapshot.is_full_width
    assert snapshot.show_grid
    assert snapshot.grid_size == 20
    assert not snapshot.show_bottom_nav
    assert snapshot.depth == 2


def test_listener_called_once_per_operation():
    nav, _ = make_nav()
    seen = []
    unsubscribe = nav.subscribe(seen.append)

    nav.navigate_to(Screen.HOME)
    nav.push_detail(make_event())
    nav.go_back()
    assert [s.screen for s in seen] == [Screen.HOME, Screen.ITEM_DETAIL, Screen.HOME]

    unsubscribe()
    nav.navigate_to(Screen.CALENDAR)
    assert len(seen) == 3


def test_listener_failure_is_contained():
    nav, _ = make_nav()
    seen = []

    def broken(snapshot):
        raise RuntimeError("boom")

    nav.subscribe(broken)
    nav.subscribe(seen.append)
    nav.navigate_to(Screen.HOME)

    assert nav.current_screen is Screen.HOME
    assert len(seen) == 1


def test_callbacks_bundle():
    nav, scheduler = make_nav(Screen.CALENDAR)
    callbacks = nav.callbacks()

    callbacks.on_date_select(date(2020, 6, 10))
    assert nav.active_date == date(2020, 6, 10)

    callbacks.on_event_select(make_event())
    assert nav.current_screen is Screen.ITEM_DETAIL

    callbacks.on_back()
    callbacks.on_expand(Screen.CALENDAR)
    assert nav.current_screen is Screen.FULL_DAY

    callbacks.on_navigate("home")
    assert callbacks.on_ai_textbox_focus(True)

    callbacks.on_daily_view_open(date(2020, 6, 11))
    scheduler.run_all()
    assert nav.current_screen is Screen.DAILY_VIEW
    assert not nav.gate.input_focused


def test_random_walk_keeps_invariants():
    """Stack never empties and selection tracks itemDetail"""
    nav, scheduler = make_nav()
    rng = random.Random(1234)
    children = [Screen.SUPPORT, Screen.FULL_DAY, Screen.PROFILE_SETTINGS, Screen.LOGIN]
    tabs = [Screen.HOME, Screen.CALENDAR, Screen.INSIGHTS, Screen.PROFILE]

    for step in range(500):
        action = rng.randrange(6)
        if action == 0:
            nav.navigate_to(rng.choice(tabs))
        elif action == 1:
            nav.push_child(rng.choice(children))
        elif action == 2:
            nav.push_detail(make_event(f"evt-{step}"))
        elif action == 3:
            nav.go_back()
        elif action == 4:
            nav.open_daily_view(date(2020, 6, 1 + step % 28))
        else:
            scheduler.advance(rng.choice([0.05, 0.3, 1.0]))

        assert len(nav.stack) >= 1
        if nav.phase is TransitionPhase.IDLE:
            assert (nav.selected_event is not None) == (nav.current_screen is Screen.ITEM_DETAIL)

    scheduler.run_all()
    assert nav.phase is TransitionPhase.IDLE
    assert (nav.selected_event is not None) == (nav.current_screen is Screen.ITEM_DETAIL)
