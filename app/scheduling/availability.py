"""Provider weekly availability windows."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, time
from typing import Any

from app.core.exceptions import ValidationException
from app.scheduling.slots import day_of_week

NO_AVAILABILITY_MESSAGE = (
    "Provider has not set their availability yet. Please choose another provider."
)
OUTSIDE_AVAILABILITY_MESSAGE = (
    "Appointment time is outside provider availability. Please choose a different time."
)


@dataclass(frozen=True)
class AvailabilityWindow:
    """A recurring weekly block of bookable time on one day of the week."""

    day_of_week: int
    start_time: time
    end_time: time
    is_active: bool = True

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "AvailabilityWindow":
        """Build a window from a ``provider_availability`` row mapping."""
        return cls(
            day_of_week=row["day_of_week"],
            start_time=row["start_time"],
            end_time=row["end_time"],
            is_active=row["is_active"],
        )

    def covers(self, instant: datetime) -> bool:
        """Whether ``instant`` falls inside this window; the end is exclusive."""
        clock = instant.time().replace(second=0, microsecond=0)
        return (
            self.is_active
            and self.day_of_week == day_of_week(instant)
            and self.start_time <= clock < self.end_time
        )


def has_enabled_windows(windows: Iterable[AvailabilityWindow]) -> bool:
    """Whether any window is enabled."""
    return any(window.is_active for window in windows)


def is_within_availability(windows: Iterable[AvailabilityWindow], instant: datetime) -> bool:
    """Whether some enabled window covers ``instant``."""
    return any(window.covers(instant) for window in windows)


def windows_for_day(
    windows: Iterable[AvailabilityWindow],
    weekday: int,
) -> list[AvailabilityWindow]:
    """Enabled windows on ``weekday`` (Sunday = 0) in declared order."""
    return [w for w in windows if w.is_active and w.day_of_week == weekday]


def check_availability(windows: list[AvailabilityWindow], instant: datetime) -> None:
    """
    Raise unless ``instant`` is bookable under ``windows``.

    A provider without any enabled window is reported separately from an
    instant that simply falls outside the configured hours.

    Raises:
        ValidationException: If no window is enabled or none covers the instant
    """
    if not has_enabled_windows(windows):
        raise ValidationException(NO_AVAILABILITY_MESSAGE)

    if not is_within_availability(windows, instant):
        raise ValidationException(OUTSIDE_AVAILABILITY_MESSAGE)
