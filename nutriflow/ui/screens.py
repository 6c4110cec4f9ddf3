"""
Screen catalog: the closed set of navigable screens and their
static layout classifications.
"""

from enum import Enum
from typing import Optional


class Screen(Enum):
    """Available screens in the application"""
    # Onboarding
    WELCOME = "welcome"
    FEATURES_OVERVIEW = "featuresOverview"
    PERSONALIZATION_PREVIEW = "personalizationPreview"
    PRE_SIGNUP = "preSignup"

    # Authentication
    ACCOUNT_CREATION = "accountCreation"
    LOGIN = "login"
    FORGOT_PASSWORD = "forgotPassword"
    EMAIL_VERIFICATION = "emailVerification"
    PROFILE_SETUP_1 = "profileSetup1"
    PROFILE_SETUP_2 = "profileSetup2"
    PROFILE_SETUP_3 = "profileSetup3"
    PROFILE_SETUP_4 = "profileSetup4"

    # Main tabs
    HOME = "home"
    CALENDAR = "calendar"
    INSIGHTS = "insights"
    PROFILE = "profile"

    # Settings
    PROFILE_SETTINGS = "profileSettings"
    APP_PREFERENCES = "appPreferences"
    APPEARANCE_SETTINGS = "appearanceSettings"
    SECURITY_PRIVACY_SETTINGS = "securityPrivacySettings"
    NOTIFICATIONS_SETTINGS = "notificationsSettings"
    INTEGRATIONS_SETTINGS = "integrationsSettings"
    SUPPORT = "support"

    # Calendar and detail
    FULL_DAY = "fullDay"
    ITEM_DETAIL = "itemDetail"
    DAILY_VIEW = "dailyView"

    @classmethod
    def parse(cls, value) -> "Screen":
        """
        Convert an identifier from a collaborator into a Screen

        Raises:
            ValueError: identifier is not part of the catalog
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown screen: {value!r}") from None


PROFILE_SETUP_STEPS = (
    Screen.PROFILE_SETUP_1,
    Screen.PROFILE_SETUP_2,
    Screen.PROFILE_SETUP_3,
    Screen.PROFILE_SETUP_4,
)

# Bottom navigation destinations; selecting one resets history
MAIN_SCREENS = frozenset({
    Screen.HOME,
    Screen.CALENDAR,
    Screen.INSIGHTS,
    Screen.PROFILE,
})

# Kept as its own list: not derived from MAIN_SCREENS. fullDay is in neither.
FULL_WIDTH_SCREENS = frozenset({
    Screen.WELCOME,
    Screen.FEATURES_OVERVIEW,
    Screen.PERSONALIZATION_PREVIEW,
    Screen.PRE_SIGNUP,
    Screen.ACCOUNT_CREATION,
    Screen.LOGIN,
    Screen.FORGOT_PASSWORD,
    Screen.EMAIL_VERIFICATION,
    *PROFILE_SETUP_STEPS,
    Screen.HOME,
    Screen.CALENDAR,
    Screen.INSIGHTS,
    Screen.PROFILE,
    Screen.ITEM_DETAIL,
    Screen.PROFILE_SETTINGS,
    Screen.APP_PREFERENCES,
    Screen.APPEARANCE_SETTINGS,
    Screen.SECURITY_PRIVACY_SETTINGS,
    Screen.NOTIFICATIONS_SETTINGS,
    Screen.INTEGRATIONS_SETTINGS,
    Screen.SUPPORT,
    Screen.DAILY_VIEW,
})


def is_main_screen(screen: Screen) -> bool:
    """True if screen is a bottom navigation tab"""
    return screen in MAIN_SCREENS


def is_full_width_screen(screen: Screen) -> bool:
    """True if screen renders edge to edge instead of in the constrained column"""
    return screen in FULL_WIDTH_SCREENS


def profile_setup_screen(step: int) -> Optional[Screen]:
    """
    Map a 1-based profile setup step to its screen

    Returns:
        Screen for the step, or None once setup is past the last step
    """
    if step < 1:
        raise ValueError(f"Invalid profile setup step: {step}")
    if step > len(PROFILE_SETUP_STEPS):
        return None
    return PROFILE_SETUP_STEPS[step - 1]


def profile_setup_step(screen: Screen) -> Optional[int]:
    """Inverse of profile_setup_screen; None for non-setup screens"""
    if screen in PROFILE_SETUP_STEPS:
        return PROFILE_SETUP_STEPS.index(screen) + 1
    return None
