"""
UI navigation package

Provides the screen catalog, the navigation controller and its helpers:
- NavigationManager: history stack, selection, gate and transitions
- TransitionCoordinator: calendar <-> daily view choreography
- AppFlows: onboarding, auth and settings step handlers
"""

from .screens import Screen, is_main_screen, is_full_width_screen
from .navigation import NavigationManager, NavigationSnapshot, ScreenCallbacks
from .transitions import TransitionPhase, TransitionTimings
from .selection import Event, WorkoutDetails
from .gate import GateBusyError, GateHandle
from .flows import AppFlows

__all__ = [
    'Screen', 'is_main_screen', 'is_full_width_screen',
    'NavigationManager', 'NavigationSnapshot', 'ScreenCallbacks',
    'TransitionPhase', 'TransitionTimings',
    'Event', 'WorkoutDetails',
    'GateBusyError', 'GateHandle',
    'AppFlows',
]
