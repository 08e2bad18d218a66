from collections.abc import Iterator

import pytest

from thyme_api.core import config
from thyme_api.repository import InMemoryRecordStore
from thyme_api.routes.booking_routes import clear_booked_dates_cache

ADVISORS = ['Heidi Lynn', 'Illiana']


@pytest.fixture(autouse=True)
def pinned_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setattr(config, 'ADVISORS', list(ADVISORS))
    monkeypatch.setattr(config, 'HOME_TIMEZONE', 'America/Denver')
    monkeypatch.setattr(config, 'SLOT_DURATION_MINUTES', 60)
    monkeypatch.setattr(config, 'BUSINESS_START_HOUR', 9)
    monkeypatch.setattr(config, 'BUSINESS_END_HOUR', 17)
    monkeypatch.setattr(config, 'APP_ENV', 'test')
    monkeypatch.setattr(config, 'RECORD_STORE', 'memory')
    clear_booked_dates_cache()
    yield
    clear_booked_dates_cache()


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore.with_weekly_template(ADVISORS)
