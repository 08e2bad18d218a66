import json
from datetime import date

import httpx
import pytest

from thyme_api.client.booking_client import BookingApiClient
from thyme_api.core.errors import BookingApiError
from thyme_api.scheduling.slots import TimeSlot


def make_client(handler, sleeps: list[float] | None = None) -> BookingApiClient:
    http_client = httpx.Client(base_url='http://booking.test', transport=httpx.MockTransport(handler))
    recorded = sleeps if sleeps is not None else []
    return BookingApiClient('http://booking.test', http_client=http_client, sleep=recorded.append)


def test_fetch_availability_passes_filters() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{'start': '09:00', 'end': '10:00', 'available': True, 'localStart': '11:00'}])

    slots = make_client(handler).fetch_availability(date(2031, 3, 3), consultant='Illiana', timezone='America/New_York')

    assert slots == [TimeSlot(start='09:00', end='10:00', available=True)]
    assert seen[0].url.path == '/api/availability'
    assert dict(seen[0].url.params) == {'date': '2031-03-03', 'consultant': 'Illiana', 'timezone': 'America/New_York'}


def test_reads_retry_twice_then_fall_back_to_empty_result() -> None:
    attempts: list[int] = []
    sleeps: list[float] = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(1)
        return httpx.Response(500, json={'error': 'Failed to fetch booked dates. Please try again.'})

    result = make_client(handler, sleeps).fetch_booked_dates(2031, 3)

    assert result == []
    assert len(attempts) == 3
    assert sleeps == [1.0, 1.0]


def test_read_succeeds_after_transient_failure() -> None:
    responses = iter(
        [
            httpx.Response(503),
            httpx.Response(200, json=['2031-03-04']),
        ]
    )
    sleeps: list[float] = []

    result = make_client(lambda request: next(responses), sleeps).fetch_booked_dates(2031, 3, consultant='Heidi Lynn')

    assert result == ['2031-03-04']
    assert sleeps == [1.0]


def test_fetch_available_days_falls_back_on_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError('connection refused', request=request)

    assert make_client(handler).fetch_available_days() == []


def test_fetch_available_days_unwraps_payload() -> None:
    client = make_client(lambda request: httpx.Response(200, json={'availableDays': ['Monday', 'Friday']}))

    assert client.fetch_available_days('Illiana') == ['Monday', 'Friday']


def test_submit_booking_is_not_retried() -> None:
    attempts: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(1)
        return httpx.Response(409, json={'error': 'This time slot is no longer available. Please choose another time.'})

    with pytest.raises(BookingApiError) as exception_info:
        make_client(handler).submit_booking({'consultant': 'any'})

    assert exception_info.value.status_code == 409
    assert str(exception_info.value) == 'This time slot is no longer available. Please choose another time.'
    assert len(attempts) == 1


def test_complete_booking_links_client_to_booking() -> None:
    bodies: dict[str, dict] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        bodies[request.url.path] = json.loads(request.content)
        if request.url.path == '/api/bookings':
            return httpx.Response(200, json={'id': 'recBooking', 'success': True})
        return httpx.Response(200, json={'id': 'recClient', 'success': True})

    completed = make_client(handler).complete_booking({'firstName': 'Ada'}, {'email': 'ada@example.com', 'consent': True})

    assert completed.booking['id'] == 'recBooking'
    assert completed.client_id == 'recClient'
    assert bodies['/api/clients']['bookedRecordId'] == 'recBooking'


def test_complete_booking_survives_client_failure(caplog: pytest.LogCaptureFixture) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == '/api/bookings':
            return httpx.Response(200, json={'id': 'recBooking', 'success': True})
        return httpx.Response(500, json={'error': 'Failed to create client record. Please try again.'})

    completed = make_client(handler).complete_booking({'firstName': 'Ada'}, {'email': 'ada@example.com', 'consent': True})

    assert completed.booking['id'] == 'recBooking'
    assert completed.client_id is None
    assert 'client profile was rejected' in caplog.text


def test_complete_booking_without_profile_skips_client_call() -> None:
    paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        return httpx.Response(200, json={'id': 'recBooking', 'success': True})

    completed = make_client(handler).complete_booking({'firstName': 'Ada'})

    assert completed.client_id is None
    assert paths == ['/api/bookings']
