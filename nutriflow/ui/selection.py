"""
Selected event shown by the item detail screen.
"""

import logging
from typing import Any, Dict, NamedTuple, Optional


EVENT_TYPES = ('coffee', 'workout', 'meal', 'swim', 'fueling')
INTENSITIES = ('LOW', 'MEDIUM', 'HIGH')


class WorkoutDetails(NamedTuple):
    distance: Optional[float] = None
    pace: Optional[str] = None
    speed: Optional[float] = None
    workout_type: Optional[str] = None
    location: Optional[str] = None
    custom_type: Optional[str] = None
    focus: Optional[str] = None
    exercise_count: Optional[int] = None


class Event(NamedTuple):
    """Calendar entry that can be opened in the detail screen"""
    id: str
    title: str
    subtitle: str
    time: str
    type: str  # one of EVENT_TYPES
    description: Optional[str] = None
    duration: Optional[int] = None  # minutes
    intensity: Optional[str] = None  # one of INTENSITIES
    workout_id: Optional[str] = None  # workout this fueling entry belongs to
    workout_details: Optional[WorkoutDetails] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Event":
        """
        Build an Event from a collaborator's plain dict

        Accepts both snake_case and the camelCase keys used by screen
        payloads (workoutId, workoutDetails, workoutType, ...).

        Raises:
            ValueError: unknown type or intensity, or missing required keys
        """
        missing = [key for key in ('id', 'title', 'subtitle', 'time', 'type') if key not in data]
        if missing:
            raise ValueError(f"Event missing keys: {', '.join(missing)}")

        if data['type'] not in EVENT_TYPES:
            raise ValueError(f"Unknown event type: {data['type']!r}")

        intensity = data.get('intensity')
        if intensity is not None and intensity not in INTENSITIES:
            raise ValueError(f"Unknown intensity: {intensity!r}")

        raw_details = data.get('workout_details', data.get('workoutDetails'))
        details = None
        if raw_details:
            details = WorkoutDetails(
                distance=raw_details.get('distance'),
                pace=raw_details.get('pace'),
                speed=raw_details.get('speed'),
                workout_type=raw_details.get('workout_type', raw_details.get('workoutType')),
                location=raw_details.get('location'),
                custom_type=raw_details.get('custom_type', raw_details.get('customType')),
                focus=raw_details.get('focus'),
                exercise_count=raw_details.get('exercise_count', raw_details.get('exerciseCount')),
            )

        return cls(
            id=str(data['id']),
            title=data['title'],
            subtitle=data['subtitle'],
            time=data['time'],
            type=data['type'],
            description=data.get('description'),
            duration=data.get('duration'),
            intensity=intensity,
            workout_id=data.get('workout_id', data.get('workoutId')),
            workout_details=details,
        )


class SelectionContext:
    """
    Holds the one event currently backing the detail screen.
    Only the navigation controller mutates it.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._event: Optional[Event] = None

    @property
    def event(self) -> Optional[Event]:
        return self._event

    def select(self, event: Event):
        self._event = event
        self.logger.debug(f"Selected event {event.id} ({event.title})")

    def clear(self):
        if self._event is not None:
            self.logger.debug(f"Cleared selection {self._event.id}")
        self._event = None

    def __bool__(self) -> bool:
        return self._event is not None
