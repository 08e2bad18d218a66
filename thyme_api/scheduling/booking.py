import logging
from dataclasses import dataclass, replace
from datetime import date

from thyme_api.core import config
from thyme_api.core.errors import BookingConflictError, BookingValidationError, StoreError
from thyme_api.models.appointment import Appointment
from thyme_api.models.client import INTAKE_FIELDS, Client
from thyme_api.scheduling.availability import configured_slots, get_advisor_slots
from thyme_api.scheduling.slots import is_past, normalize_clock
from thyme_api.scheduling.timezones import today_in_home_timezone

logger = logging.getLogger(__name__)

ANY_ADVISOR = 'any'
SLOT_TAKEN_MESSAGE = 'This time slot is no longer available. Please choose another time.'


@dataclass(frozen=True)
class BookingResult:
    appointment: Appointment
    client_id: str | None = None


def is_any_advisor(value: str) -> bool:
    return value.strip().lower() == ANY_ADVISOR


def validate_slot(appointment: Appointment, today: date) -> tuple[str, str]:
    if is_past(appointment.appointment_date, today):
        raise BookingValidationError('Appointments must be scheduled in the future.')

    start = normalize_clock(appointment.time_slot_start)
    end = normalize_clock(appointment.time_slot_end)
    if not any(slot.start == start and slot.end == end for slot in configured_slots()):
        raise BookingValidationError('Invalid time slot')

    return start, end


def create_appointment(store, appointment: Appointment, today: date | None = None) -> Appointment:
    """Persist ``appointment`` after checking the slot is still open.

    The check and the insert are separate store calls, so two requests racing
    for one slot can both succeed.
    """
    today = today or today_in_home_timezone()
    start, end = validate_slot(appointment, today)

    requested = appointment.advisor.strip()
    if is_any_advisor(requested):
        candidates = list(config.ADVISORS)
    elif requested in config.ADVISORS:
        candidates = [requested]
    else:
        raise BookingValidationError('Invalid consultant')

    free = get_advisor_slots(store, appointment.appointment_date, None if len(candidates) > 1 else candidates[0])
    advisor = next((candidate for candidate in candidates if start in free.get(candidate, set())), None)
    if advisor is None:
        raise BookingConflictError(SLOT_TAKEN_MESSAGE)

    saved = store.create_appointment(
        replace(appointment, advisor=advisor, time_slot_start=start, time_slot_end=end)
    )
    logger.info(
        'Booked %s %s-%s with %s (record %s)',
        saved.appointment_date.isoformat(),
        saved.time_slot_start,
        saved.time_slot_end,
        saved.advisor,
        saved.id,
    )
    return saved


def upsert_client(store, profile: Client) -> Client:
    """Create the client, or update the one with the same email.

    Blank intake fields on an update keep whatever the client gave before.
    """
    existing = store.find_client_by_email(profile.email)
    if existing is None:
        return store.create_client(profile)

    links = tuple(dict.fromkeys(existing.booked_record_ids + profile.booked_record_ids))
    kept = {field: getattr(existing, field) for field in INTAKE_FIELDS if not getattr(profile, field)}
    return store.update_client(replace(profile, id=existing.id, booked_record_ids=links, **kept))


def book_appointment(
    store,
    appointment: Appointment,
    profile: Client | None = None,
    today: date | None = None,
) -> BookingResult:
    saved = create_appointment(store, appointment, today=today)
    if profile is None:
        return BookingResult(appointment=saved)

    try:
        client = upsert_client(store, replace(profile, booked_record_ids=(saved.id,)))
    except StoreError:
        logger.exception('Booking %s saved but the client profile for %s could not be written', saved.id, profile.email)
        return BookingResult(appointment=saved)

    return BookingResult(appointment=saved, client_id=client.id)
