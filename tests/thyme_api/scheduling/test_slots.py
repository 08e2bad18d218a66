from datetime import date

import pytest

from thyme_api.scheduling.slots import (
    TimeSlot,
    format_date_for_display,
    format_time_for_display,
    generate_time_slots,
    is_past,
    is_weekend,
    normalize_clock,
    to_minutes,
    weekday_name,
)


def test_generate_time_slots_defaults_cover_business_day() -> None:
    slots = generate_time_slots()

    assert [slot.start for slot in slots] == ['09:00', '10:00', '11:00', '12:00', '13:00', '14:00', '15:00', '16:00']
    assert slots[-1] == TimeSlot(start='16:00', end='17:00')


@pytest.mark.parametrize(
    ('duration', 'start_hour', 'end_hour'),
    [(60, 9, 17), (30, 9, 17), (45, 9, 17), (90, 8, 18), (25, 0, 24), (60, 13, 14)],
)
def test_generate_time_slots_are_contiguous_and_within_range(duration: int, start_hour: int, end_hour: int) -> None:
    slots = generate_time_slots(duration, start_hour, end_hour)

    assert slots[0].start_minutes == start_hour * 60
    assert slots[-1].end_minutes <= end_hour * 60
    assert all(slot.end_minutes - slot.start_minutes == duration for slot in slots)
    assert all(current.end == following.start for current, following in zip(slots, slots[1:]))


def test_generate_time_slots_drops_trailing_partial_period() -> None:
    slots = generate_time_slots(45, 9, 11)

    assert [(slot.start, slot.end) for slot in slots] == [('09:00', '09:45'), ('09:45', '10:30')]


@pytest.mark.parametrize(('duration', 'start_hour', 'end_hour'), [(0, 9, 17), (60, 17, 9), (60, 9, 25)])
def test_generate_time_slots_rejects_bad_arguments(duration: int, start_hour: int, end_hour: int) -> None:
    with pytest.raises(ValueError):
        generate_time_slots(duration, start_hour, end_hour)


def test_generate_time_slots_returns_empty_when_duration_exceeds_range() -> None:
    assert generate_time_slots(120, 9, 10) == []


@pytest.mark.parametrize('clock', ['9', '09:60', '25:00', 'noon', ''])
def test_to_minutes_rejects_malformed_clock(clock: str) -> None:
    with pytest.raises(ValueError, match='Invalid time format. Use HH:MM'):
        to_minutes(clock)


def test_normalize_clock_pads_hours() -> None:
    assert normalize_clock('9:30') == '09:30'
    assert normalize_clock('24:00') == '24:00'


def test_time_slot_overlaps_is_half_open() -> None:
    slot = TimeSlot(start='12:00', end='13:00')

    assert slot.overlaps('12:30', '14:00')
    assert slot.overlaps('11:00', '12:01')
    assert not slot.overlaps('13:00', '14:00')
    assert not slot.overlaps('11:00', '12:00')


@pytest.mark.parametrize(
    ('day', 'expected'),
    [
        (date(2031, 3, 1), True),
        (date(2031, 3, 2), True),
        (date(2031, 3, 3), False),
        (date(2031, 3, 7), False),
        (date(2031, 2, 28), False),
    ],
)
def test_is_weekend(day: date, expected: bool) -> None:
    assert is_weekend(day) is expected


def test_weekday_name_uses_english_day_names() -> None:
    assert weekday_name(date(2031, 3, 3)) == 'Monday'
    assert weekday_name(date(2031, 11, 2)) == 'Sunday'


def test_is_past_compares_calendar_days() -> None:
    today = date(2031, 3, 10)

    assert is_past(date(2031, 3, 9), today)
    assert not is_past(today, today)
    assert not is_past(date(2031, 3, 11), today)


@pytest.mark.parametrize(
    ('clock', 'expected'),
    [('09:00', '9:00 AM'), ('12:00', '12:00 PM'), ('14:30', '2:30 PM'), ('00:15', '12:15 AM')],
)
def test_format_time_for_display(clock: str, expected: str) -> None:
    assert format_time_for_display(clock) == expected


def test_format_date_for_display() -> None:
    assert format_date_for_display(date(2031, 3, 3)) == 'Monday, March 3, 2031'
