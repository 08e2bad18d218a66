"""Wall-clock conversion between the home timezone and a client's timezone.

Offsets are taken from the rules in force on the booking date, not today, so a
slot booked across a daylight saving change still renders correctly.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from thyme_api.core import config
from thyme_api.scheduling.slots import from_minutes, to_minutes

logger = logging.getLogger(__name__)

SUPPORTED_TIMEZONES = [
    ('America/New_York', 'Eastern Time (EST/EDT)'),
    ('America/Chicago', 'Central Time (CST/CDT)'),
    ('America/Denver', 'Mountain Time (MST/MDT)'),
    ('America/Phoenix', 'Mountain Time - Arizona (MST)'),
    ('America/Los_Angeles', 'Pacific Time (PST/PDT)'),
    ('America/Anchorage', 'Alaska Time (AKST/AKDT)'),
    ('Pacific/Honolulu', 'Hawaii Time (HST)'),
]

TIMEZONE_ALIASES = {
    'America/Toronto': 'America/New_York',
    'America/Montreal': 'America/New_York',
    'America/Detroit': 'America/New_York',
    'America/Indiana/Indianapolis': 'America/New_York',
    'America/Kentucky/Louisville': 'America/New_York',
    'America/Winnipeg': 'America/Chicago',
    'America/Mexico_City': 'America/Chicago',
    'America/Edmonton': 'America/Denver',
    'America/Vancouver': 'America/Los_Angeles',
    'America/Tijuana': 'America/Los_Angeles',
}


def _get_zone(name: str | None) -> ZoneInfo | None:
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return None


def _wall_clock_datetime(day: date, clock: str, zone: ZoneInfo) -> datetime:
    # Aware arithmetic is wall-clock arithmetic, so 24:00 lands on the next midnight.
    return datetime(day.year, day.month, day.day, tzinfo=zone) + timedelta(minutes=to_minutes(clock))


def convert_wall_clock(day: date, clock: str, from_tz: str, to_tz: str) -> str:
    """Return the ``HH:MM`` shown in ``to_tz`` for ``clock`` on ``day`` in ``from_tz``.

    Unknown zones are logged and the input clock is returned unchanged.
    """
    source = _get_zone(from_tz)
    target = _get_zone(to_tz)
    if source is None or target is None:
        logger.warning('Unsupported timezone conversion %s -> %s; returning %s unchanged', from_tz, to_tz, clock)
        return clock

    converted = _wall_clock_datetime(day, clock, source).astimezone(target)
    return from_minutes(converted.hour * 60 + converted.minute)


def convert_from_home(day: date, clock: str, target_tz: str) -> str:
    return convert_wall_clock(day, clock, config.HOME_TIMEZONE, target_tz)


def convert_to_home(day: date, clock: str, source_tz: str) -> str:
    return convert_wall_clock(day, clock, source_tz, config.HOME_TIMEZONE)


def home_datetime_to_utc(day: date, clock: str) -> datetime:
    return _wall_clock_datetime(day, clock, ZoneInfo(config.HOME_TIMEZONE)).astimezone(timezone.utc)


def today_in_home_timezone() -> date:
    return datetime.now(ZoneInfo(config.HOME_TIMEZONE)).date()


def normalize_timezone(name: str) -> str:
    return TIMEZONE_ALIASES.get(name, name)


def get_supported_timezones() -> list[dict[str, str]]:
    return [{'value': value, 'label': label} for value, label in SUPPORTED_TIMEZONES]


def get_timezone_friendly_name(name: str) -> str:
    return dict(SUPPORTED_TIMEZONES).get(name, name)


def get_timezone_abbreviation(name: str, day: date) -> str:
    zone = _get_zone(name)
    if zone is None:
        logger.warning('Unknown timezone %s; no abbreviation available', name)
        return name
    return datetime(day.year, day.month, day.day, 12, tzinfo=zone).tzname() or name
