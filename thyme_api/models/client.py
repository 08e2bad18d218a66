"""Client model definitions."""

from dataclasses import dataclass

CLIENTS_TABLE = 'Clients'

_TEXT_FIELDS = (
    ('phone', 'Phone'),
    ('health_goals', 'HealthGoals'),
    ('dietary_restrictions', 'DietaryRestrictions'),
    ('current_medications', 'CurrentMedications'),
    ('health_conditions', 'HealthConditions'),
    ('preferred_contact_method', 'PreferredContactMethod'),
    ('best_time_to_contact', 'BestTimeToContact'),
)
INTAKE_FIELDS = tuple(attribute for attribute, _ in _TEXT_FIELDS)


@dataclass(frozen=True)
class Client:
    """Contact and health-intake details, keyed by email."""

    first_name: str
    last_name: str
    email: str
    consent: bool = False
    phone: str = ''
    health_goals: str = ''
    dietary_restrictions: str = ''
    current_medications: str = ''
    health_conditions: str = ''
    preferred_contact_method: str = ''
    best_time_to_contact: str = ''
    booked_record_ids: tuple[str, ...] = ()
    id: str | None = None

    @classmethod
    def from_record(cls, record: dict) -> 'Client':
        fields = record.get('fields') or {}
        email = fields.get('Email')
        if not email:
            raise ValueError('Client record is missing Email.')

        return cls(
            first_name=fields.get('FirstName') or '',
            last_name=fields.get('LastName') or '',
            email=email,
            consent=fields.get('Consent') is True,
            booked_record_ids=tuple(fields.get('BookedRecord') or ()),
            id=record.get('id'),
            **{attribute: fields.get(field) or '' for attribute, field in _TEXT_FIELDS},
        )

    def to_fields(self) -> dict:
        fields = {
            'FirstName': self.first_name,
            'LastName': self.last_name,
            'Email': self.email,
            'Consent': self.consent,
        }
        for attribute, field in _TEXT_FIELDS:
            if getattr(self, attribute):
                fields[field] = getattr(self, attribute)
        if self.booked_record_ids:
            fields['BookedRecord'] = list(self.booked_record_ids)
        return fields
