"""HTTP client for the booking API as the booking wizard uses it.

Reads are retried a couple of times and then degrade to an empty result so the
calendar still renders. Writes go out once; a retried booking could land twice.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date

import httpx

from thyme_api.core.errors import BookingApiError
from thyme_api.scheduling.slots import TimeSlot

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 2
DEFAULT_RETRY_DELAY_SECONDS = 1.0


@dataclass(frozen=True)
class CompletedBooking:
    booking: dict
    client_id: str | None = None


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get('error'):
        return str(body['error'])
    return f'Request failed with status {response.status_code}'


class BookingApiClient:
    def __init__(
        self,
        base_url: str,
        http_client: httpx.Client | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._http = http_client or httpx.Client(base_url=base_url.rstrip('/'), timeout=10)
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._sleep = sleep

    def close(self) -> None:
        self._http.close()

    def _get_with_retry(self, path: str, params: dict, fallback):
        attempts = self.max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                response = self._http.get(path, params=params)
                response.raise_for_status()
                return response.json()
            except (httpx.HTTPError, ValueError) as exc:
                if attempt == attempts:
                    logger.warning('GET %s failed after %d attempts: %s', path, attempts, exc)
                    return fallback
                logger.info('GET %s failed (attempt %d of %d), retrying', path, attempt, attempts)
                self._sleep(self.retry_delay)

    def _post(self, path: str, payload: dict) -> dict:
        try:
            response = self._http.post(path, json=payload)
        except httpx.HTTPError as exc:
            raise BookingApiError(f'Could not reach the booking service: {exc}') from exc

        if response.is_error:
            raise BookingApiError(_error_message(response), status_code=response.status_code)
        return response.json()

    def fetch_availability(
        self,
        day: date,
        consultant: str | None = None,
        timezone: str | None = None,
    ) -> list[TimeSlot]:
        params = {'date': day.isoformat()}
        if consultant:
            params['consultant'] = consultant
        if timezone:
            params['timezone'] = timezone

        slots = self._get_with_retry('/api/availability', params, fallback=[])
        return [TimeSlot(start=slot['start'], end=slot['end'], available=bool(slot['available'])) for slot in slots]

    def fetch_booked_dates(self, year: int, month: int, consultant: str | None = None) -> list[str]:
        params = {'year': year, 'month': month}
        if consultant:
            params['consultant'] = consultant
        return self._get_with_retry('/api/booked-dates', params, fallback=[])

    def fetch_available_days(self, consultant: str | None = None) -> list[str]:
        params = {'consultant': consultant} if consultant else {}
        body = self._get_with_retry('/api/available-days', params, fallback={})
        return body.get('availableDays', [])

    def submit_booking(self, booking: dict) -> dict:
        return self._post('/api/bookings', booking)

    def submit_client(self, profile: dict) -> dict:
        return self._post('/api/clients', profile)

    def complete_booking(self, booking: dict, profile: dict | None = None) -> CompletedBooking:
        """Submit the booking, then the client profile if one was collected.

        Only the booking decides the outcome. A rejected profile is logged.
        """
        saved = self.submit_booking(booking)
        if profile is None:
            return CompletedBooking(booking=saved)

        try:
            client = self.submit_client({**profile, 'bookedRecordId': saved.get('id')})
        except BookingApiError:
            logger.warning('Booking %s saved but the client profile was rejected', saved.get('id'), exc_info=True)
            return CompletedBooking(booking=saved)

        return CompletedBooking(booking=saved, client_id=client.get('id'))
