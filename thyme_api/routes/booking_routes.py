import logging
import time as clock
from datetime import date
from threading import Lock

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from pydantic.alias_generators import to_camel

from thyme_api.core import config
from thyme_api.core.errors import BookingConflictError, BookingValidationError, StoreError
from thyme_api.core.validation import (
    CamelModel,
    RecordCreatedResponse,
    parse_iso_date,
    require_text,
    validate_email,
)
from thyme_api.models.appointment import Appointment
from thyme_api.models.client import Client
from thyme_api.repository import RecordStore, get_record_store
from thyme_api.scheduling.availability import get_available_days, get_available_slots, get_fully_booked_dates
from thyme_api.scheduling.booking import book_appointment, is_any_advisor, upsert_client
from thyme_api.scheduling.slots import normalize_clock
from thyme_api.scheduling.timezones import (
    convert_from_home,
    get_supported_timezones,
    normalize_timezone,
    today_in_home_timezone,
)

router = APIRouter(tags=['booking'])

logger = logging.getLogger(__name__)

BOOKED_DATES_CACHE_MAX_ENTRIES = 128

_booked_dates_cache: dict[tuple, tuple[float, list[str]]] = {}
_booked_dates_lock = Lock()


class TimeSlotResponse(CamelModel):
    start: str
    end: str
    available: bool
    local_start: str | None = None
    local_end: str | None = None


class AvailableDaysResponse(CamelModel):
    available_days: list[str]


class CreateBookingRequest(CamelModel):
    first_name: str
    last_name: str
    email: str
    booking_type: str
    service_type: str
    consultant: str
    date_booked: date
    time_slot_start: str
    time_slot_end: str
    user_timezone: str
    user_local_time: str
    phone: str | None = None
    health_goals: str | None = None
    dietary_restrictions: str | None = None
    current_medications: str | None = None
    health_conditions: str | None = None
    preferred_contact_method: str | None = None
    best_time_to_contact: str | None = None
    consent: bool = False

    @field_validator(
        'first_name',
        'last_name',
        'email',
        'booking_type',
        'service_type',
        'consultant',
        'user_timezone',
        'user_local_time',
        mode='before',
    )
    @classmethod
    def validate_required_text(cls, value, info):
        return require_text(value, to_camel(info.field_name))

    @field_validator('email')
    @classmethod
    def validate_email_address(cls, value: str) -> str:
        return validate_email(value)

    @field_validator('date_booked', mode='before')
    @classmethod
    def validate_date_booked(cls, value) -> date:
        if isinstance(value, date):
            return value
        return parse_iso_date(require_text(value, 'dateBooked'))

    @field_validator('time_slot_start', 'time_slot_end', mode='before')
    @classmethod
    def validate_time_slot(cls, value, info) -> str:
        return normalize_clock(require_text(value, to_camel(info.field_name)))

    def to_appointment(self) -> Appointment:
        return Appointment(
            advisor=self.consultant,
            appointment_date=self.date_booked,
            time_slot_start=self.time_slot_start,
            time_slot_end=self.time_slot_end,
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            booking_type=self.booking_type,
            service_type=self.service_type,
            user_timezone=self.user_timezone,
            user_local_time=self.user_local_time,
        )

    def to_client_profile(self) -> Client | None:
        if not self.consent:
            return None
        return Client(
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            consent=True,
            phone=self.phone or '',
            health_goals=self.health_goals or '',
            dietary_restrictions=self.dietary_restrictions or '',
            current_medications=self.current_medications or '',
            health_conditions=self.health_conditions or '',
            preferred_contact_method=self.preferred_contact_method or '',
            best_time_to_contact=self.best_time_to_contact or '',
        )


class BookingResponse(CamelModel):
    id: str
    success: bool = True
    date_and_time: str
    consultant: str
    client_id: str | None = None


class CreateClientRequest(CamelModel):
    first_name: str
    last_name: str
    email: str
    consent: bool
    phone: str | None = None
    health_goals: str | None = None
    dietary_restrictions: str | None = None
    current_medications: str | None = None
    health_conditions: str | None = None
    preferred_contact_method: str | None = None
    best_time_to_contact: str | None = None
    booked_record_id: str | None = None

    @field_validator('first_name', 'last_name', 'email', mode='before')
    @classmethod
    def validate_required_text(cls, value, info):
        return require_text(value, to_camel(info.field_name))

    @field_validator('email')
    @classmethod
    def validate_email_address(cls, value: str) -> str:
        return validate_email(value)

    @field_validator('consent', mode='before')
    @classmethod
    def validate_consent(cls, value) -> bool:
        if value is None:
            raise ValueError('Missing required field: consent')
        if value is not True:
            raise ValueError('You must consent to proceed')
        return value

    def to_client(self) -> Client:
        return Client(
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            consent=self.consent,
            phone=self.phone or '',
            health_goals=self.health_goals or '',
            dietary_restrictions=self.dietary_restrictions or '',
            current_medications=self.current_medications or '',
            health_conditions=self.health_conditions or '',
            preferred_contact_method=self.preferred_contact_method or '',
            best_time_to_contact=self.best_time_to_contact or '',
            booked_record_ids=(self.booked_record_id,) if self.booked_record_id else (),
        )


class TimezoneOptionResponse(BaseModel):
    value: str
    label: str


def clear_booked_dates_cache() -> None:
    with _booked_dates_lock:
        _booked_dates_cache.clear()


def cache_booked_dates(cache_key: tuple, fully_booked: list[str]) -> None:
    """Store a result, dropping expired entries and then the oldest ones beyond the size limit."""
    now = clock.monotonic()
    with _booked_dates_lock:
        expired = [
            key for key, (stored_at, _) in _booked_dates_cache.items()
            if now - stored_at >= config.BOOKED_DATES_CACHE_SECONDS
        ]
        for key in expired:
            del _booked_dates_cache[key]

        _booked_dates_cache.pop(cache_key, None)
        while len(_booked_dates_cache) >= BOOKED_DATES_CACHE_MAX_ENTRIES:
            del _booked_dates_cache[next(iter(_booked_dates_cache))]
        _booked_dates_cache[cache_key] = (now, fully_booked)


def normalize_consultant(consultant: str | None) -> str | None:
    if consultant is None or not consultant.strip() or is_any_advisor(consultant):
        return None

    normalized = consultant.strip()
    if normalized not in config.ADVISORS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Invalid consultant')
    return normalized


@router.get('/availability', response_model=list[TimeSlotResponse], response_model_exclude_none=True)
def list_availability(
    date: str = Query(...),
    consultant: str | None = Query(default=None),
    timezone: str | None = Query(default=None),
    store: RecordStore = Depends(get_record_store),
):
    try:
        slot_date = parse_iso_date(date)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    advisor = normalize_consultant(consultant)

    try:
        slots = get_available_slots(store, slot_date, advisor)
    except StoreError as exc:
        logger.exception('Failed to fetch availability for %s', slot_date)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail='Failed to fetch availability. Please try again.',
        ) from exc

    target_timezone = normalize_timezone(timezone) if timezone else None
    return [
        TimeSlotResponse(
            start=slot.start,
            end=slot.end,
            available=slot.available,
            local_start=convert_from_home(slot_date, slot.start, target_timezone) if target_timezone else None,
            local_end=convert_from_home(slot_date, slot.end, target_timezone) if target_timezone else None,
        )
        for slot in slots
    ]


@router.get('/available-days', response_model=AvailableDaysResponse)
def list_available_days(
    consultant: str | None = Query(default=None),
    store: RecordStore = Depends(get_record_store),
):
    advisor = normalize_consultant(consultant)

    try:
        return AvailableDaysResponse(available_days=get_available_days(store, advisor))
    except StoreError as exc:
        logger.exception('Failed to fetch available days for %s', advisor or 'any advisor')
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail='Failed to fetch available days',
        ) from exc


@router.get('/booked-dates', response_model=list[str])
def list_booked_dates(
    year: str = Query(...),
    month: str = Query(...),
    consultant: str | None = Query(default=None),
    store: RecordStore = Depends(get_record_store),
):
    try:
        year, month = int(year), int(month)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Invalid year or month') from exc
    if month < 1 or month > 12 or year < 1 or year > 9999:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Invalid year or month')

    advisor = normalize_consultant(consultant)
    today = today_in_home_timezone()
    cache_key = (year, month, advisor, today)

    with _booked_dates_lock:
        cached = _booked_dates_cache.get(cache_key)
    if cached and clock.monotonic() - cached[0] < config.BOOKED_DATES_CACHE_SECONDS:
        return cached[1]

    try:
        fully_booked = get_fully_booked_dates(store, year, month, advisor, today=today)
    except StoreError as exc:
        logger.exception('Failed to fetch booked dates for %04d-%02d', year, month)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail='Failed to fetch booked dates. Please try again.',
        ) from exc

    cache_booked_dates(cache_key, fully_booked)
    return fully_booked


@router.post('/bookings', response_model=BookingResponse)
def create_booking(data: CreateBookingRequest, store: RecordStore = Depends(get_record_store)):
    try:
        result = book_appointment(store, data.to_appointment(), profile=data.to_client_profile())
    except BookingValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except BookingConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except StoreError as exc:
        logger.exception('Failed to create booking for %s on %s', data.email, data.date_booked)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail='Failed to create booking. Please try again.',
        ) from exc

    clear_booked_dates_cache()
    appointment = result.appointment
    return BookingResponse(
        id=appointment.id,
        date_and_time=appointment.starts_at_utc.isoformat().replace('+00:00', 'Z'),
        consultant=appointment.advisor,
        client_id=result.client_id,
    )


@router.post('/clients', response_model=RecordCreatedResponse)
def create_or_update_client(data: CreateClientRequest, store: RecordStore = Depends(get_record_store)):
    try:
        client = upsert_client(store, data.to_client())
    except StoreError as exc:
        logger.exception('Failed to write client record for %s', data.email)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail='Failed to create client record. Please try again.',
        ) from exc

    return RecordCreatedResponse(id=client.id)


@router.get('/timezones', response_model=list[TimezoneOptionResponse])
def list_timezones():
    return get_supported_timezones()
