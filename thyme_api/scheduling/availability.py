"""Availability resolution for the booking calendar.

A slot is open for an advisor on a date when the advisor's weekly template
marks it available, no day-off row for that date covers it, and no appointment
starts at it. Without an advisor filter a slot is open when any advisor is free.
"""

import logging
from calendar import monthrange
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta

from thyme_api.core import config
from thyme_api.core.errors import BookingValidationError
from thyme_api.models.appointment import Appointment
from thyme_api.models.availability import AdvisorDayOff, AdvisorWeeklyAvailability
from thyme_api.scheduling.slots import (
    WEEKDAY_NAMES,
    TimeSlot,
    generate_time_slots,
    is_past,
    is_weekend,
    weekday_name,
)
from thyme_api.scheduling.timezones import today_in_home_timezone

logger = logging.getLogger(__name__)


def configured_slots() -> list[TimeSlot]:
    return generate_time_slots(config.SLOT_DURATION_MINUTES, config.BUSINESS_START_HOUR, config.BUSINESS_END_HOUR)


def resolve_advisors(advisor: str | None = None) -> list[str]:
    if advisor is None:
        return list(config.ADVISORS)
    if advisor not in config.ADVISORS:
        raise BookingValidationError('Invalid consultant')
    return [advisor]


def advisor_free_slots(
    slots: Sequence[TimeSlot],
    advisors: Iterable[str],
    weekly_rows: Iterable[AdvisorWeeklyAvailability],
    days_off: Iterable[AdvisorDayOff],
    appointments: Iterable[Appointment],
) -> dict[str, set[str]]:
    """Return the open slot starts per advisor for a single date.

    ``days_off`` and ``appointments`` must already be narrowed to that date.
    Appointments without an advisor block the slot for everyone.
    """
    weekly_rows = list(weekly_rows)
    days_off = list(days_off)
    booked_by_advisor: dict[str, set[str]] = {}
    unassigned_bookings: set[str] = set()
    for appointment in appointments:
        if appointment.advisor:
            booked_by_advisor.setdefault(appointment.advisor, set()).add(appointment.time_slot_start)
        else:
            unassigned_bookings.add(appointment.time_slot_start)

    free: dict[str, set[str]] = {}
    for advisor in advisors:
        offered = {row.time_slot for row in weekly_rows if row.advisor == advisor and row.is_available}
        withdrawn = {row.time_slot for row in weekly_rows if row.advisor == advisor and not row.is_available}
        advisor_days_off = [day_off for day_off in days_off if day_off.applies_to(advisor)]

        if any(day_off.is_full_day for day_off in advisor_days_off):
            free[advisor] = set()
            continue

        booked = booked_by_advisor.get(advisor, set()) | unassigned_bookings
        free[advisor] = {
            slot.start
            for slot in slots
            if slot.start in offered
            and slot.start not in withdrawn
            and slot.start not in booked
            and not any(slot.overlaps(day_off.start_time, day_off.end_time) for day_off in advisor_days_off)
        }

    return free


def compute_slot_availability(
    slots: Sequence[TimeSlot],
    advisors: Iterable[str],
    weekly_rows: Iterable[AdvisorWeeklyAvailability],
    days_off: Iterable[AdvisorDayOff],
    appointments: Iterable[Appointment],
) -> list[TimeSlot]:
    free = advisor_free_slots(slots, advisors, weekly_rows, days_off, appointments)
    open_starts = set().union(*free.values()) if free else set()
    return [slot.with_availability(slot.start in open_starts) for slot in slots]


def get_advisor_slots(store, slot_date: date, advisor: str | None = None) -> dict[str, set[str]]:
    advisors = resolve_advisors(advisor)
    weekly_rows = store.list_weekly_availability(weekday_name(slot_date), advisor)
    days_off = store.list_days_off(slot_date, slot_date)
    appointments = store.list_appointments(slot_date, slot_date)
    return advisor_free_slots(configured_slots(), advisors, weekly_rows, days_off, appointments)


def get_available_slots(store, slot_date: date, advisor: str | None = None) -> list[TimeSlot]:
    advisors = resolve_advisors(advisor)
    weekly_rows = store.list_weekly_availability(weekday_name(slot_date), advisor)
    # Unfiltered reads so that unassigned bookings and closures still apply.
    days_off = store.list_days_off(slot_date, slot_date)
    appointments = store.list_appointments(slot_date, slot_date)
    return compute_slot_availability(configured_slots(), advisors, weekly_rows, days_off, appointments)


def get_fully_booked_dates(
    store,
    year: int,
    month: int,
    advisor: str | None = None,
    today: date | None = None,
) -> list[str]:
    """Return the weekdays of the month, from today on, with no open slot left."""
    today = today or today_in_home_timezone()
    first_day = date(year, month, 1)
    candidates = [
        first_day + timedelta(days=offset)
        for offset in range(monthrange(year, month)[1])
    ]
    candidates = [day for day in candidates if not is_weekend(day) and not is_past(day, today)]
    if not candidates:
        return []

    advisors = resolve_advisors(advisor)
    slots = configured_slots()
    days_off = store.list_days_off(candidates[0], candidates[-1])
    appointments = store.list_appointments(candidates[0], candidates[-1])
    weekly_by_day: dict[str, list[AdvisorWeeklyAvailability]] = {}

    fully_booked: list[str] = []
    for day in candidates:
        day_name = weekday_name(day)
        if day_name not in weekly_by_day:
            weekly_by_day[day_name] = store.list_weekly_availability(day_name, advisor)

        resolved = compute_slot_availability(
            slots,
            advisors,
            weekly_by_day[day_name],
            [day_off for day_off in days_off if day_off.day == day],
            [appointment for appointment in appointments if appointment.appointment_date == day],
        )
        if not any(slot.available for slot in resolved):
            fully_booked.append(day.isoformat())

    logger.debug('Fully booked dates for %04d-%02d (%s): %s', year, month, advisor or 'any advisor', fully_booked)
    return fully_booked


def has_any_advisor_availability(store, day_of_week: str, advisor: str | None = None) -> bool:
    advisors = set(resolve_advisors(advisor))
    return any(
        row.is_available and row.advisor in advisors
        for row in store.list_weekly_availability(day_of_week, advisor)
    )


def get_available_days(store, advisor: str | None = None) -> list[str]:
    resolve_advisors(advisor)
    with ThreadPoolExecutor(max_workers=max(1, config.STORE_MAX_WORKERS)) as executor:
        checks = list(executor.map(lambda day: has_any_advisor_availability(store, day, advisor), WEEKDAY_NAMES))
    return [day for day, available in zip(WEEKDAY_NAMES, checks) if available]
