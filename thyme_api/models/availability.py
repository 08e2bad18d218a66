"""Advisor availability model definitions."""

from dataclasses import dataclass
from datetime import date

from thyme_api.scheduling.slots import WEEKDAY_NAMES, normalize_clock

WEEKLY_AVAILABILITY_TABLE = 'Advisor Availability'
DAYS_OFF_TABLE = 'Advisor Days Off'


def _required_text(fields: dict, name: str) -> str:
    value = fields.get(name)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f'Record is missing {name}.')
    return value.strip()


@dataclass(frozen=True)
class AdvisorWeeklyAvailability:
    """One recurring template block for an advisor on a weekday."""

    advisor: str
    day_of_week: str
    time_slot: str
    is_available: bool = False
    notes: str = ''
    id: str | None = None

    @classmethod
    def from_record(cls, record: dict) -> 'AdvisorWeeklyAvailability':
        fields = record.get('fields') or {}
        day_of_week = _required_text(fields, 'DayOfWeek').capitalize()
        if day_of_week not in WEEKDAY_NAMES:
            raise ValueError(f'Unknown DayOfWeek {day_of_week!r}.')

        return cls(
            advisor=_required_text(fields, 'Consultant'),
            day_of_week=day_of_week,
            time_slot=normalize_clock(_required_text(fields, 'TimeSlot')),
            # Airtable omits unchecked checkboxes.
            is_available=fields.get('IsAvailable') is True,
            notes=fields.get('Notes') or '',
            id=record.get('id'),
        )

    def to_fields(self) -> dict:
        return {
            'Consultant': self.advisor,
            'DayOfWeek': self.day_of_week,
            'TimeSlot': self.time_slot,
            'IsAvailable': self.is_available,
            'Notes': self.notes,
        }


@dataclass(frozen=True)
class AdvisorDayOff:
    """A dated exception to an advisor's weekly template.

    ``advisor`` is ``None`` when the row applies to every advisor. A row without
    a usable time range counts as a full day off.
    """

    day: date
    advisor: str | None = None
    all_day: bool = True
    start_time: str | None = None
    end_time: str | None = None
    reason: str = ''
    id: str | None = None

    @property
    def is_full_day(self) -> bool:
        return self.all_day or not self.start_time or not self.end_time

    def applies_to(self, advisor: str) -> bool:
        return self.advisor is None or self.advisor == advisor

    @classmethod
    def from_record(cls, record: dict) -> 'AdvisorDayOff':
        fields = record.get('fields') or {}
        day = date.fromisoformat(_required_text(fields, 'Date')[:10])

        start_time = fields.get('StartTime') or None
        end_time = fields.get('EndTime') or None
        if start_time and end_time:
            start_time = normalize_clock(start_time)
            end_time = normalize_clock(end_time)
            if start_time >= end_time:
                raise ValueError('Day off StartTime must be before EndTime.')

        advisor = fields.get('Consultant')
        return cls(
            day=day,
            advisor=advisor.strip() if isinstance(advisor, str) and advisor.strip() else None,
            all_day=fields.get('AllDay') is True,
            start_time=start_time,
            end_time=end_time,
            reason=fields.get('Reason') or '',
            id=record.get('id'),
        )

    def to_fields(self) -> dict:
        fields = {
            'Date': self.day.isoformat(),
            'AllDay': self.all_day,
            'Reason': self.reason,
        }
        if self.advisor:
            fields['Consultant'] = self.advisor
        if self.start_time and self.end_time:
            fields['StartTime'] = self.start_time
            fields['EndTime'] = self.end_time
        return fields
