"""Appointment model definitions."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from thyme_api.scheduling.slots import from_minutes, normalize_clock
from thyme_api.scheduling.timezones import home_datetime_to_utc

BOOKED_TABLE = 'Booked'
# Rows without DateBooked were written as home wall clock at a fixed UTC-7.
LEGACY_HOME_OFFSET = timezone(timedelta(hours=-7))


def _parse_utc(value: str) -> datetime:
    return datetime.fromisoformat(value.replace('Z', '+00:00'))


@dataclass(frozen=True)
class Appointment:
    """A booked consultation, stored in home-timezone wall-clock terms."""

    advisor: str
    appointment_date: date
    time_slot_start: str
    time_slot_end: str
    first_name: str = ''
    last_name: str = ''
    email: str = ''
    booking_type: str = ''
    service_type: str = ''
    user_timezone: str = ''
    user_local_time: str = ''
    id: str | None = None

    @property
    def starts_at_utc(self) -> datetime:
        return home_datetime_to_utc(self.appointment_date, self.time_slot_start)

    @classmethod
    def from_record(cls, record: dict) -> 'Appointment':
        fields = record.get('fields') or {}

        date_booked = fields.get('DateBooked')
        slot_start = fields.get('TimeSlotStart')
        if date_booked and slot_start:
            appointment_date = date.fromisoformat(date_booked[:10])
            slot_start = normalize_clock(slot_start)
        elif fields.get('dateAndTime'):
            local = _parse_utc(fields['dateAndTime']).astimezone(LEGACY_HOME_OFFSET)
            appointment_date = local.date()
            slot_start = from_minutes(local.hour * 60 + local.minute)
        else:
            raise ValueError('Booked record has neither DateBooked/TimeSlotStart nor dateAndTime.')

        slot_end = fields.get('TimeSlotEnd')
        return cls(
            advisor=(fields.get('Consultant') or '').strip(),
            appointment_date=appointment_date,
            time_slot_start=slot_start,
            time_slot_end=normalize_clock(slot_end) if slot_end else '',
            first_name=fields.get('FirstName') or '',
            last_name=fields.get('LastName') or '',
            email=fields.get('Email') or '',
            booking_type=fields.get('BookingType') or '',
            service_type=fields.get('ServiceType') or '',
            user_timezone=fields.get('UserTimezone') or '',
            user_local_time=fields.get('UserLocalTime') or '',
            id=record.get('id'),
        )

    def to_fields(self) -> dict:
        return {
            'dateAndTime': self.starts_at_utc.isoformat().replace('+00:00', 'Z'),
            'DateBooked': self.appointment_date.isoformat(),
            'TimeSlotStart': self.time_slot_start,
            'TimeSlotEnd': self.time_slot_end,
            'Consultant': self.advisor,
            'FirstName': self.first_name,
            'LastName': self.last_name,
            'Email': self.email,
            'BookingType': self.booking_type,
            'ServiceType': self.service_type,
            'UserTimezone': self.user_timezone,
            'UserLocalTime': self.user_local_time,
        }
