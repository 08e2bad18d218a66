from datetime import date, datetime, timezone

import pytest

from thyme_api.scheduling.slots import generate_time_slots
from thyme_api.scheduling.timezones import (
    convert_from_home,
    convert_to_home,
    convert_wall_clock,
    get_supported_timezones,
    get_timezone_abbreviation,
    get_timezone_friendly_name,
    home_datetime_to_utc,
    normalize_timezone,
)


@pytest.mark.parametrize('target', ['America/New_York', 'America/Phoenix', 'America/Los_Angeles', 'Pacific/Honolulu'])
@pytest.mark.parametrize('day', [date(2031, 3, 3), date(2031, 3, 10), date(2031, 7, 14), date(2031, 11, 3)])
def test_conversion_round_trips_through_home_timezone(target: str, day: date) -> None:
    for slot in generate_time_slots():
        assert convert_to_home(day, convert_from_home(day, slot.start, target), target) == slot.start


def test_conversion_to_new_york_is_two_hours_ahead() -> None:
    assert convert_from_home(date(2031, 3, 3), '09:00', 'America/New_York') == '11:00'
    assert convert_from_home(date(2031, 7, 14), '16:00', 'America/New_York') == '18:00'


def test_conversion_uses_offset_in_force_on_the_booking_date() -> None:
    # Phoenix does not observe daylight saving; Denver springs forward on 2031-03-09.
    assert convert_from_home(date(2031, 3, 3), '09:00', 'America/Phoenix') == '09:00'
    assert convert_from_home(date(2031, 3, 10), '09:00', 'America/Phoenix') == '08:00'


def test_conversion_with_unknown_timezone_returns_input(caplog: pytest.LogCaptureFixture) -> None:
    assert convert_wall_clock(date(2031, 3, 3), '09:00', 'America/Denver', 'Mars/Olympus_Mons') == '09:00'
    assert convert_to_home(date(2031, 3, 3), '10:30', 'Not/AZone') == '10:30'
    assert 'Unsupported timezone conversion' in caplog.text


def test_home_datetime_to_utc_follows_daylight_saving() -> None:
    assert home_datetime_to_utc(date(2031, 3, 3), '09:00') == datetime(2031, 3, 3, 16, 0, tzinfo=timezone.utc)
    assert home_datetime_to_utc(date(2031, 3, 10), '09:00') == datetime(2031, 3, 10, 15, 0, tzinfo=timezone.utc)



def test_normalize_timezone_maps_aliases_and_keeps_others() -> None:
    assert normalize_timezone('America/Toronto') == 'America/New_York'
    assert normalize_timezone('America/Chicago') == 'America/Chicago'
    assert normalize_timezone('Europe/London') == 'Europe/London'


def test_supported_timezones_include_home_timezone() -> None:
    values = [option['value'] for option in get_supported_timezones()]

    assert 'America/Denver' in values
    assert len(values) == len(set(values))


def test_timezone_friendly_name_falls_back_to_identifier() -> None:
    assert get_timezone_friendly_name('America/Phoenix') == 'Mountain Time - Arizona (MST)'
    assert get_timezone_friendly_name('Europe/Paris') == 'Europe/Paris'


def test_timezone_abbreviation_depends_on_date() -> None:
    assert get_timezone_abbreviation('America/Denver', date(2031, 3, 3)) == 'MST'
    assert get_timezone_abbreviation('America/Denver', date(2031, 7, 14)) == 'MDT'
    assert get_timezone_abbreviation('Nowhere/Special', date(2031, 7, 14)) == 'Nowhere/Special'
