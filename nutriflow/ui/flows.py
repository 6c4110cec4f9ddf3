"""
Onboarding, authentication and settings step handlers.
Each handler turns a screen's "step finished" signal into a navigation call.
"""

import logging
from typing import Dict, Optional

from nutriflow.core.scheduler import ScheduledTask
from nutriflow.ui.gate import GateHandle
from nutriflow.ui.navigation import NavigationManager
from nutriflow.ui.screens import Screen, profile_setup_screen


# App preference rows that open a dedicated settings screen
PREFERENCE_SCREENS: Dict[str, Screen] = {
    'appearance': Screen.APPEARANCE_SETTINGS,
    'securityPrivacy': Screen.SECURITY_PRIVACY_SETTINGS,
    'notifications': Screen.NOTIFICATIONS_SETTINGS,
    'integrations': Screen.INTEGRATIONS_SETTINGS,
}

SOCIAL_PROVIDERS = ('google', 'apple')

WORKOUT_PLANNING_OWNER = 'workoutPlanning'


class AppFlows:
    """
    Step handlers for the linear onboarding/auth flow and settings menus

    Onboarding and auth screens are not nested: every step replaces the
    history. Settings screens are pushed so back returns to the menu.
    """

    def __init__(self, navigation: NavigationManager, social_login_delay: float = 1.0):
        """
        Initialize flows

        Args:
            navigation: Controller to drive
            social_login_delay: Simulated provider round trip in seconds
        """
        self.logger = logging.getLogger(__name__)
        self.navigation = navigation
        self.social_login_delay = social_login_delay
        self.user_email: Optional[str] = None
        self._workout_modal: Optional[GateHandle] = None
        self._pending_login: Optional[ScheduledTask] = None

    # Onboarding
    def get_started(self):
        self.navigation.reset_to(Screen.FEATURES_OVERVIEW)

    def features_continue(self):
        self.navigation.reset_to(Screen.PERSONALIZATION_PREVIEW)

    def personalization_continue(self):
        self.navigation.reset_to(Screen.PRE_SIGNUP)

    # Authentication
    def sign_in(self):
        """Welcome, pre-signup, account creation and forgot password all lead here"""
        self.navigation.reset_to(Screen.LOGIN)

    def create_account(self):
        self.navigation.reset_to(Screen.ACCOUNT_CREATION)

    def account_created(self, email: str):
        """
        Store the address to verify and show the verification screen

        Args:
            email: Address the account was created with
        """
        if not email or '@' not in email:
            raise ValueError(f"Invalid email: {email!r}")
        self.user_email = email
        self.logger.info("Account created, awaiting email verification")
        self.navigation.reset_to(Screen.EMAIL_VERIFICATION)

    def change_email(self):
        self.navigation.reset_to(Screen.ACCOUNT_CREATION)

    def forgot_password(self):
        self.navigation.reset_to(Screen.FORGOT_PASSWORD)

    def login_success(self):
        self._pending_login = None
        self.navigation.navigate_to(Screen.HOME)

    def social_login(self, provider: str) -> ScheduledTask:
        """
        Start a social sign-in; lands on home after the provider round trip

        Returns:
            Scheduled task, cancellable while the round trip is pending
        """
        if provider not in SOCIAL_PROVIDERS:
            raise ValueError(f"Unsupported login provider: {provider!r}")
        if self._pending_login is not None and self._pending_login.pending:
            self.logger.debug(f"Social login already pending; ignoring {provider}")
            return self._pending_login

        self.logger.info(f"{provider} login attempted")
        self._pending_login = self.navigation.scheduler.call_later(
            self.social_login_delay, self.login_success, name=f"{provider}-login"
        )
        return self._pending_login

    def verification_success(self):
        self.navigation.reset_to(profile_setup_screen(1))

    def skip_to_home(self):
        """Skipping verification or profile setup goes straight to home"""
        self.navigation.navigate_to(Screen.HOME)

    def profile_setup_continue(self, next_step: int):
        """
        Advance profile setup

        Args:
            next_step: 1-based step to show; past the last step finishes setup
        """
        screen = profile_setup_screen(next_step)
        if screen is None:
            self.logger.info("Profile setup complete")
            self.navigation.navigate_to(Screen.HOME)
        else:
            self.navigation.push_child(screen)

    # Settings
    def open_profile_settings(self):
        self.navigation.push_child(Screen.PROFILE_SETTINGS)

    def open_app_preferences(self):
        self.navigation.push_child(Screen.APP_PREFERENCES)

    def open_support(self):
        self.navigation.push_child(Screen.SUPPORT)

    def open_preference(self, preference: str) -> bool:
        """
        Open an app preference sub-screen

        Returns:
            False if the preference has no screen of its own
        """
        screen = PREFERENCE_SCREENS.get(preference)
        if screen is None:
            self.logger.warning(f"No screen for preference: {preference}")
            return False
        self.navigation.push_child(screen)
        return True

    # Workout planning overlay
    def open_workout_planning(self) -> GateHandle:
        """Show the workout planning modal; hides the bottom navigation"""
        if self._workout_modal is None or self._workout_modal.released:
            self._workout_modal = self.navigation.acquire_modal(WORKOUT_PLANNING_OWNER)
        return self._workout_modal

    def close_workout_planning(self):
        if self._workout_modal is not None:
            self._workout_modal.release()
            self._workout_modal = None

    @property
    def workout_planning_open(self) -> bool:
        return self._workout_modal is not None and not self._workout_modal.released
