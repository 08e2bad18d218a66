import re
from datetime import date

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')


class CamelModel(BaseModel):
    """Request and response bodies use camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RecordCreatedResponse(CamelModel):
    id: str
    success: bool = True


def require_text(value, field: str) -> str:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError(f'Missing required field: {field}')
    if not isinstance(value, str):
        raise ValueError(f'Invalid value for field: {field}')
    return value.strip()


def validate_email(value: str) -> str:
    normalized = value.strip()
    if not EMAIL_PATTERN.match(normalized):
        raise ValueError('Invalid email address')
    return normalized


def parse_iso_date(value: str) -> date:
    if not isinstance(value, str) or not DATE_PATTERN.match(value.strip()):
        raise ValueError('Invalid date format. Use YYYY-MM-DD')
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise ValueError('Invalid date format. Use YYYY-MM-DD') from exc


def describe_validation_errors(errors: list[dict]) -> str:
    """Turn the first pydantic/FastAPI validation error into a single client message."""
    if not errors:
        return 'Invalid request'

    error = errors[0]
    location = [str(part) for part in error.get('loc', ()) if part not in ('body', 'query')]
    field = location[-1] if location else 'body'

    if error.get('type') == 'missing':
        return f'Missing required field: {field}'
    if error.get('type') == 'value_error':
        message = str(error.get('msg', ''))
        return message.removeprefix('Value error, ') or f'Invalid value for field: {field}'
    return f'Invalid value for field: {field}'
