"""Typed access to the record store.

``AirtableRecordStore`` turns Airtable field bags into the entities in
``thyme_api.models``; ``InMemoryRecordStore`` offers the same surface without a
network and backs ``RECORD_STORE=memory`` and the tests.
"""

import itertools
import logging
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone
from threading import Lock
from typing import Protocol, TypeVar

from thyme_api.airtable import AirtableClient, get_airtable_client, quote_formula_value
from thyme_api.core import config
from thyme_api.core.errors import StoreError
from thyme_api.models.appointment import BOOKED_TABLE, Appointment
from thyme_api.models.availability import (
    DAYS_OFF_TABLE,
    WEEKLY_AVAILABILITY_TABLE,
    AdvisorDayOff,
    AdvisorWeeklyAvailability,
)
from thyme_api.models.client import CLIENTS_TABLE, Client
from thyme_api.models.content import (
    COMING_SOON_TABLE,
    CONTACT_TABLE,
    FAQ_CLICKS_TABLE,
    FAQS_TABLE,
    NEWSLETTER_TABLE,
    TESTIMONIALS_TABLE,
    FAQ,
    ComingSoonFeature,
    ContactSubmission,
    NewsletterSignup,
    Testimonial,
)
from thyme_api.scheduling.slots import WEEKDAY_NAMES, generate_time_slots
from thyme_api.scheduling.timezones import home_datetime_to_utc

logger = logging.getLogger(__name__)

T = TypeVar('T')


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


class RecordStore(Protocol):
    def list_weekly_availability(self, day_of_week: str, advisor: str | None = None) -> list[AdvisorWeeklyAvailability]:
        ...

    def list_days_off(self, start: date, end: date, advisor: str | None = None) -> list[AdvisorDayOff]:
        ...

    def list_appointments(self, start: date, end: date, advisor: str | None = None) -> list[Appointment]:
        ...

    def create_appointment(self, appointment: Appointment) -> Appointment:
        ...

    def find_client_by_email(self, email: str) -> Client | None:
        ...

    def create_client(self, client: Client) -> Client:
        ...

    def update_client(self, client: Client) -> Client:
        ...

    def create_contact(self, submission: ContactSubmission) -> str:
        ...

    def create_newsletter_signup(self, signup: NewsletterSignup) -> str:
        ...

    def list_approved_testimonials(self) -> list[Testimonial]:
        ...

    def create_testimonial(self, testimonial: Testimonial) -> str:
        ...

    def list_faqs(self) -> list[FAQ]:
        ...

    def record_faq_click(self, faq_id: str) -> None:
        ...

    def list_coming_soon_features(self) -> list[ComingSoonFeature]:
        ...


def _map_records(records: Iterable[dict], mapper: Callable[[dict], T], table: str) -> list[T]:
    mapped: list[T] = []
    for record in records:
        try:
            mapped.append(mapper(record))
        except (ValueError, TypeError) as exc:
            logger.warning('Skipping malformed %s record %s: %s', table, record.get('id'), exc)
    return mapped


def _in_range(day: date, start: date, end: date) -> bool:
    return start <= day <= end


class AirtableRecordStore:
    def __init__(self, client_factory: Callable[[], AirtableClient] = get_airtable_client) -> None:
        self._client_factory = client_factory

    @property
    def client(self) -> AirtableClient:
        return self._client_factory()

    def list_weekly_availability(self, day_of_week: str, advisor: str | None = None) -> list[AdvisorWeeklyAvailability]:
        conditions = [f'{{DayOfWeek}} = {quote_formula_value(day_of_week)}']
        if advisor:
            conditions.append(f'{{Consultant}} = {quote_formula_value(advisor)}')

        records = self.client.list_records(
            WEEKLY_AVAILABILITY_TABLE,
            formula=f'AND({", ".join(conditions)})',
            sort=[('TimeSlot', 'asc')],
        )
        rows = _map_records(records, AdvisorWeeklyAvailability.from_record, WEEKLY_AVAILABILITY_TABLE)
        return [row for row in rows if row.day_of_week == day_of_week and (advisor is None or row.advisor == advisor)]

    def list_days_off(self, start: date, end: date, advisor: str | None = None) -> list[AdvisorDayOff]:
        conditions = [
            f"IS_AFTER({{Date}}, '{(start - timedelta(days=1)).isoformat()}')",
            f"IS_BEFORE({{Date}}, '{(end + timedelta(days=1)).isoformat()}')",
        ]
        if advisor:
            conditions.append(f'OR({{Consultant}} = {quote_formula_value(advisor)}, {{Consultant}} = BLANK())')

        records = self.client.list_records(DAYS_OFF_TABLE, formula=f'AND({", ".join(conditions)})')
        rows = _map_records(records, AdvisorDayOff.from_record, DAYS_OFF_TABLE)
        return [
            row for row in rows
            if _in_range(row.day, start, end) and (advisor is None or row.applies_to(advisor))
        ]

    def list_appointments(self, start: date, end: date, advisor: str | None = None) -> list[Appointment]:
        window_start = home_datetime_to_utc(start, '00:00') - timedelta(minutes=1)
        window_end = home_datetime_to_utc(end, '24:00')
        conditions = [
            f"IS_AFTER({{dateAndTime}}, '{window_start.isoformat()}')",
            f"IS_BEFORE({{dateAndTime}}, '{window_end.isoformat()}')",
        ]
        if advisor:
            conditions.append(f'{{Consultant}} = {quote_formula_value(advisor)}')

        records = self.client.list_records(BOOKED_TABLE, formula=f'AND({", ".join(conditions)})')
        rows = _map_records(records, Appointment.from_record, BOOKED_TABLE)
        return [
            row for row in rows
            if _in_range(row.appointment_date, start, end) and (advisor is None or row.advisor == advisor)
        ]

    def create_appointment(self, appointment: Appointment) -> Appointment:
        record = self.client.create_record(BOOKED_TABLE, appointment.to_fields())
        return replace(appointment, id=record['id'])

    def find_client_by_email(self, email: str) -> Client | None:
        records = self.client.list_records(
            CLIENTS_TABLE,
            formula=f'LOWER({{Email}}) = LOWER({quote_formula_value(email.strip())})',
        )
        clients = _map_records(records, Client.from_record, CLIENTS_TABLE)
        return clients[0] if clients else None

    def create_client(self, client: Client) -> Client:
        record = self.client.create_record(CLIENTS_TABLE, client.to_fields())
        return replace(client, id=record['id'])

    def update_client(self, client: Client) -> Client:
        if not client.id:
            raise ValueError('Cannot update a client without a record id.')
        self.client.update_record(CLIENTS_TABLE, client.id, client.to_fields())
        return client

    def create_contact(self, submission: ContactSubmission) -> str:
        return self.client.create_record(CONTACT_TABLE, submission.to_fields(utc_timestamp()))['id']

    def create_newsletter_signup(self, signup: NewsletterSignup) -> str:
        return self.client.create_record(NEWSLETTER_TABLE, signup.to_fields(utc_timestamp()))['id']

    def list_approved_testimonials(self) -> list[Testimonial]:
        records = self.client.list_records(
            TESTIMONIALS_TABLE,
            formula='{Approved} = TRUE()',
            sort=[('DateCreated', 'desc')],
        )
        return _map_records(records, Testimonial.from_record, TESTIMONIALS_TABLE)

    def create_testimonial(self, testimonial: Testimonial) -> str:
        return self.client.create_record(TESTIMONIALS_TABLE, testimonial.to_fields(utc_timestamp()))['id']

    def list_faqs(self) -> list[FAQ]:
        records = self.client.list_records(FAQS_TABLE, sort=[('Order', 'asc')])
        return _map_records(records, FAQ.from_record, FAQS_TABLE)

    def record_faq_click(self, faq_id: str) -> None:
        self.client.create_record(FAQ_CLICKS_TABLE, {'FAQId': [faq_id], 'ClickedAt': utc_timestamp()})

        # Read-modify-write; concurrent clicks can lose an increment.
        record = self.client.find_record(FAQS_TABLE, faq_id)
        current_count = int((record.get('fields') or {}).get('ClickCount') or 0)
        self.client.update_record(FAQS_TABLE, faq_id, {'ClickCount': current_count + 1})

    def list_coming_soon_features(self) -> list[ComingSoonFeature]:
        records = self.client.list_records(
            COMING_SOON_TABLE,
            formula='{IsVisible} = TRUE()',
            sort=[('DisplayOrder', 'asc')],
        )
        return _map_records(records, ComingSoonFeature.from_record, COMING_SOON_TABLE)


class InMemoryRecordStore:
    def __init__(self) -> None:
        self.weekly_availability: list[AdvisorWeeklyAvailability] = []
        self.days_off: list[AdvisorDayOff] = []
        self.appointments: list[Appointment] = []
        self.clients: list[Client] = []
        self.contacts: list[ContactSubmission] = []
        self.newsletter_signups: list[NewsletterSignup] = []
        self.testimonials: list[Testimonial] = []
        self.faqs: list[FAQ] = []
        self.faq_clicks: list[str] = []
        self.coming_soon_features: list[ComingSoonFeature] = []
        self._ids = itertools.count(1)
        self._lock = Lock()

    @classmethod
    def with_weekly_template(
        cls,
        advisors: Iterable[str],
        days: Iterable[str] = WEEKDAY_NAMES[:5],
        slot_starts: Iterable[str] | None = None,
    ) -> 'InMemoryRecordStore':
        store = cls()
        if slot_starts is None:
            slot_starts = [
                slot.start
                for slot in generate_time_slots(
                    config.SLOT_DURATION_MINUTES,
                    config.BUSINESS_START_HOUR,
                    config.BUSINESS_END_HOUR,
                )
            ]
        slot_starts = list(slot_starts)
        days = list(days)
        for advisor in advisors:
            for day in days:
                for start in slot_starts:
                    store.weekly_availability.append(
                        AdvisorWeeklyAvailability(advisor=advisor, day_of_week=day, time_slot=start, is_available=True)
                    )
        return store

    def _next_id(self) -> str:
        with self._lock:
            return f'rec{next(self._ids):06d}'

    def list_weekly_availability(self, day_of_week: str, advisor: str | None = None) -> list[AdvisorWeeklyAvailability]:
        return [
            row for row in self.weekly_availability
            if row.day_of_week == day_of_week and (advisor is None or row.advisor == advisor)
        ]

    def list_days_off(self, start: date, end: date, advisor: str | None = None) -> list[AdvisorDayOff]:
        return [
            row for row in self.days_off
            if _in_range(row.day, start, end) and (advisor is None or row.applies_to(advisor))
        ]

    def list_appointments(self, start: date, end: date, advisor: str | None = None) -> list[Appointment]:
        return [
            row for row in self.appointments
            if _in_range(row.appointment_date, start, end) and (advisor is None or row.advisor == advisor)
        ]

    def create_appointment(self, appointment: Appointment) -> Appointment:
        saved = replace(appointment, id=self._next_id())
        self.appointments.append(saved)
        return saved

    def find_client_by_email(self, email: str) -> Client | None:
        normalized = email.strip().lower()
        return next((client for client in self.clients if client.email.lower() == normalized), None)

    def create_client(self, client: Client) -> Client:
        saved = replace(client, id=self._next_id())
        self.clients.append(saved)
        return saved

    def update_client(self, client: Client) -> Client:
        for index, existing in enumerate(self.clients):
            if existing.id == client.id:
                self.clients[index] = client
                return client
        raise StoreError(f'Client {client.id} not found.', status_code=404)

    def create_contact(self, submission: ContactSubmission) -> str:
        self.contacts.append(submission)
        return self._next_id()

    def create_newsletter_signup(self, signup: NewsletterSignup) -> str:
        self.newsletter_signups.append(signup)
        return self._next_id()

    def list_approved_testimonials(self) -> list[Testimonial]:
        approved = [testimonial for testimonial in self.testimonials if testimonial.approved]
        return sorted(approved, key=lambda testimonial: testimonial.created_at, reverse=True)

    def create_testimonial(self, testimonial: Testimonial) -> str:
        saved = replace(testimonial, id=self._next_id(), created_at=utc_timestamp())
        self.testimonials.append(saved)
        return saved.id

    def list_faqs(self) -> list[FAQ]:
        return sorted(self.faqs, key=lambda faq: faq.order)

    def record_faq_click(self, faq_id: str) -> None:
        for index, faq in enumerate(self.faqs):
            if faq.id == faq_id:
                self.faq_clicks.append(faq_id)
                self.faqs[index] = replace(faq, click_count=faq.click_count + 1)
                return
        raise StoreError(f'FAQ {faq_id} not found.', status_code=404)

    def list_coming_soon_features(self) -> list[ComingSoonFeature]:
        visible = [feature for feature in self.coming_soon_features if feature.is_visible]
        return sorted(visible, key=lambda feature: feature.display_order)


_memory_store: InMemoryRecordStore | None = None
_memory_store_lock = Lock()


def get_record_store() -> RecordStore:
    global _memory_store

    if config.RECORD_STORE != 'memory':
        return AirtableRecordStore()

    with _memory_store_lock:
        if _memory_store is None:
            _memory_store = InMemoryRecordStore.with_weekly_template(config.ADVISORS)
            logger.info('Using in-memory record store seeded with a weekday template for %s', config.ADVISORS)
    return _memory_store
