"""
Unit tests for onboarding, auth and settings step handlers
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from nutriflow.core.scheduler import ManualScheduler
from nutriflow.ui.flows import AppFlows
from nutriflow.ui.gate import GateBusyError
from nutriflow.ui.navigation import NavigationManager
from nutriflow.ui.screens import Screen


def make_flows(initial=Screen.WELCOME):
    scheduler = ManualScheduler()
    nav = NavigationManager(scheduler, initial)
    return AppFlows(nav), nav, scheduler


def test_onboarding_replaces_history_each_step():
    flows, nav, _ = make_flows()

    flows.get_started()
    assert nav.stack.screens() == (Screen.FEATURES_OVERVIEW,)
    flows.features_continue()
    assert nav.stack.screens() == (Screen.PERSONALIZATION_PREVIEW,)
    flows.personalization_continue()
    assert nav.stack.screens() == (Screen.PRE_SIGNUP,)
    flows.create_account()
    assert nav.stack.screens() == (Screen.ACCOUNT_CREATION,)


def test_account_creation_and_verification():
    flows, nav, _ = make_flows(Screen.ACCOUNT_CREATION)

    with pytest.raises(ValueError):
        flows.account_created("not-an-email")
    assert nav.current_screen is Screen.ACCOUNT_CREATION

    flows.account_created("runner@example.com")
    assert flows.user_email == "runner@example.com"
    assert nav.stack.screens() == (Screen.EMAIL_VERIFICATION,)

    flows.change_email()
    assert nav.current_screen is Screen.ACCOUNT_CREATION


def test_profile_setup_steps_are_pushed():
    flows, nav, _ = make_flows(Screen.EMAIL_VERIFICATION)

    flows.verification_success()
    assert nav.stack.screens() == (Screen.PROFILE_SETUP_1,)

    flows.profile_setup_continue(2)
    flows.profile_setup_continue(3)
    assert nav.stack.screens() == (Screen.PROFILE_SETUP_1, Screen.PROFILE_SETUP_2, Screen.PROFILE_SETUP_3)

    nav.go_back()
    assert nav.current_screen is Screen.PROFILE_SETUP_2

    flows.profile_setup_continue(3)
    flows.profile_setup_continue(4)
    flows.profile_setup_continue(5)
    assert nav.stack.screens() == (Screen.HOME,)


def test_skip_goes_home():
    flows, nav, _ = make_flows(Screen.PROFILE_SETUP_2)

    flows.skip_to_home()
    assert nav.stack.screens() == (Screen.HOME,)


def test_login_paths():
    flows, nav, _ = make_flows()

    flows.sign_in()
    assert nav.stack.screens() == (Screen.LOGIN,)
    flows.forgot_password()
    assert nav.stack.screens() == (Screen.FORGOT_PASSWORD,)
    flows.sign_in()
    flows.login_success()
    assert nav.stack.screens() == (Screen.HOME,)


def test_social_login_completes_after_delay():
    flows, nav, scheduler = make_flows(Screen.LOGIN)

    task = flows.social_login('google')
    assert flows.social_login('apple') is task, "Second attempt while pending is ignored"
    assert nav.current_screen is Screen.LOGIN

    scheduler.advance(1.0)
    assert nav.current_screen is Screen.HOME

    with pytest.raises(ValueError):
        flows.social_login('myspace')


def test_social_login_can_be_cancelled():
    flows, nav, scheduler = make_flows(Screen.LOGIN)

    flows.social_login('apple').cancel()
    scheduler.run_all()
    assert nav.current_screen is Screen.LOGIN


def test_settings_navigation():
    flows, nav, _ = make_flows(Screen.PROFILE)

    flows.open_app_preferences()
    assert flows.open_preference('integrations')
    assert nav.stack.screens() == (Screen.PROFILE, Screen.APP_PREFERENCES, Screen.INTEGRATIONS_SETTINGS)

    assert not flows.open_preference('language')
    assert nav.current_screen is Screen.INTEGRATIONS_SETTINGS

    nav.go_back()
    nav.go_back()
    flows.open_profile_settings()
    nav.go_back()
    flows.open_support()
    assert nav.stack.screens() == (Screen.PROFILE, Screen.SUPPORT)


def test_workout_planning_modal():
    flows, nav, _ = make_flows(Screen.HOME)

    flows.open_workout_planning()
    assert flows.workout_planning_open
    assert not nav.snapshot().show_bottom_nav

    with pytest.raises(GateBusyError):
        nav.navigate_to(Screen.INSIGHTS)
        nav.set_modal_open(True)

    flows.close_workout_planning()
    assert not flows.workout_planning_open
    assert nav.snapshot().show_bottom_nav


def test_flows_exported_from_ui_package():
    import nutriflow.ui as ui

    assert ui.AppFlows is AppFlows
    assert 'AppFlows' in ui.__all__
