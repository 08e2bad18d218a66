"""Time slot generation and wall-clock helpers.

Clock values are ``HH:MM`` strings in the home timezone, which is also how the
record store keeps them. ``24:00`` is allowed as an end of day.
"""

import re
from dataclasses import dataclass, replace
from datetime import date

CLOCK_PATTERN = re.compile(r'^(\d{1,2}):(\d{2})$')
MINUTES_PER_DAY = 24 * 60
WEEKDAY_NAMES = ('Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday')


@dataclass(frozen=True)
class TimeSlot:
    start: str
    end: str
    available: bool = True

    @property
    def start_minutes(self) -> int:
        return to_minutes(self.start)

    @property
    def end_minutes(self) -> int:
        return to_minutes(self.end)

    def overlaps(self, start: str, end: str) -> bool:
        return self.start_minutes < to_minutes(end) and to_minutes(start) < self.end_minutes

    def with_availability(self, available: bool) -> 'TimeSlot':
        return replace(self, available=available)


def to_minutes(clock: str) -> int:
    match = CLOCK_PATTERN.match(clock.strip()) if isinstance(clock, str) else None
    if not match:
        raise ValueError('Invalid time format. Use HH:MM')

    hours, minutes = int(match.group(1)), int(match.group(2))
    total = hours * 60 + minutes
    if minutes >= 60 or total > MINUTES_PER_DAY:
        raise ValueError('Invalid time format. Use HH:MM')

    return total


def from_minutes(total_minutes: int) -> str:
    return f'{total_minutes // 60:02d}:{total_minutes % 60:02d}'


def normalize_clock(clock: str) -> str:
    return from_minutes(to_minutes(clock))


def generate_time_slots(duration_minutes: int = 60, start_hour: int = 9, end_hour: int = 17) -> list[TimeSlot]:
    """Split ``[start_hour:00, end_hour:00)`` into back-to-back slots.

    A trailing period shorter than ``duration_minutes`` is dropped.
    """
    if duration_minutes <= 0:
        raise ValueError('Slot duration must be positive.')
    if not 0 <= start_hour < end_hour <= 24:
        raise ValueError('Start hour must be before end hour, both within 0-24.')

    slots: list[TimeSlot] = []
    current = start_hour * 60
    day_end = end_hour * 60

    while current + duration_minutes <= day_end:
        slots.append(TimeSlot(start=from_minutes(current), end=from_minutes(current + duration_minutes)))
        current += duration_minutes

    return slots


def weekday_name(day: date) -> str:
    return WEEKDAY_NAMES[day.weekday()]


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def is_past(day: date, today: date) -> bool:
    return day < today


def format_time_for_display(clock: str) -> str:
    total = to_minutes(clock) % MINUTES_PER_DAY
    hours, minutes = divmod(total, 60)
    period = 'PM' if hours >= 12 else 'AM'
    return f'{hours % 12 or 12}:{minutes:02d} {period}'


def format_date_for_display(day: date) -> str:
    return f'{weekday_name(day)}, {day.strftime("%B")} {day.day}, {day.year}'
