"""Time slot arithmetic shared by the scheduling engine and slot enumerator."""

from datetime import date, datetime, time, timedelta

CANCELLATION_WINDOW = timedelta(hours=24)
MIN_LEAD_TIME = timedelta(minutes=30)
SLOT_INTERVAL_MINUTES = 30
MIN_DURATION_MINUTES = 15
MAX_DURATION_MINUTES = 120
DEFAULT_DURATION_MINUTES = 30


def add_duration(start: datetime, minutes: int) -> datetime:
    """Return the instant ``minutes`` after ``start``."""
    return start + timedelta(minutes=minutes)


def overlaps(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime,
) -> bool:
    """
    Test two half-open intervals for overlap.

    Identical intervals overlap. Back-to-back intervals, where one ends
    exactly when the other starts, do not.
    """
    return (
        (b_start <= a_start < b_end)
        or (b_start < a_end <= b_end)
        or (a_start <= b_start and a_end >= b_end)
    )


def within_cancellation_window(start: datetime, now: datetime) -> bool:
    """True when ``start`` is strictly more than 24 hours after ``now``."""
    return start > now + CANCELLATION_WINDOW


def day_of_week(instant: datetime | date) -> int:
    """Day of week with Sunday as 0 and Saturday as 6."""
    return (instant.weekday() + 1) % 7


def format_hhmm(value: datetime | time) -> str:
    """Render the time of day as ``HH:MM``."""
    return value.strftime("%H:%M")


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """First and last representable instants of a calendar day."""
    return datetime.combine(day, time.min), datetime.combine(day, time.max)
