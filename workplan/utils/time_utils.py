"""
Clock-time and duration helpers.

Scheduling arithmetic runs on integer minutes-of-day; hours and "HH:MM"
strings only exist at the model boundary.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

UTC = timezone.utc

MINUTES_PER_DAY = 24 * 60
HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$|^24:00$"


def now_utc() -> datetime:
    """Get current UTC datetime (timezone-aware)."""
    return datetime.now(UTC)


def parse_time_to_minutes(value: str) -> int:
    """
    Parse an "HH:MM" string into minutes after midnight.

    "24:00" is accepted as the end of the day.

    Raises:
        ValueError: If the string is not a valid clock time
    """
    parts = value.split(":")
    if len(parts) != 2:
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    hours = int(parts[0])
    minutes = int(parts[1])
    if hours == 24 and minutes == 0:
        return MINUTES_PER_DAY
    if hours < 0 or hours > 23 or minutes < 0 or minutes > 59:
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    return hours * 60 + minutes


def format_minutes(minutes: int) -> str:
    """Format minutes after midnight as "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def hours_to_minutes(hours: float) -> int:
    """Convert an hour amount to whole minutes."""
    return int(round(hours * 60))


def minutes_to_hours(minutes: int) -> float:
    """Convert whole minutes to hours."""
    return minutes / 60


def overlap_minutes(start: int, end: int, other_start: int, other_end: int) -> int:
    """Length of the intersection of two half-open minute ranges."""
    return max(0, min(end, other_end) - max(start, other_start))


@dataclass(frozen=True)
class TimeInterval:
    start_minutes: int
    end_minutes: int

    @property
    def minutes(self) -> int:
        return self.end_minutes - self.start_minutes


def subtract_intervals(base: list[TimeInterval], remove: list[TimeInterval]) -> list[TimeInterval]:
    """Remove every range in `remove` from `base`, keeping non-empty pieces."""
    if not remove:
        return base
    intervals = base
    for block in remove:
        next_intervals: list[TimeInterval] = []
        for interval in intervals:
            if block.end_minutes <= interval.start_minutes or block.start_minutes >= interval.end_minutes:
                next_intervals.append(interval)
                continue
            if block.start_minutes > interval.start_minutes:
                next_intervals.append(
                    TimeInterval(interval.start_minutes, min(block.start_minutes, interval.end_minutes))
                )
            if block.end_minutes < interval.end_minutes:
                next_intervals.append(
                    TimeInterval(max(block.end_minutes, interval.start_minutes), interval.end_minutes)
                )
        intervals = next_intervals
    return [interval for interval in intervals if interval.end_minutes > interval.start_minutes]
