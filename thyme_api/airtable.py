import logging
from threading import Lock
from urllib.parse import quote

import httpx

from thyme_api.core import config
from thyme_api.core.errors import StoreConfigurationError, StoreError

logger = logging.getLogger(__name__)

_client_lock = Lock()
_client: 'AirtableClient | None' = None


def quote_formula_value(value: str) -> str:
    escaped = value.replace('\\', '\\\\').replace("'", "\\'")
    return f"'{escaped}'"


class AirtableClient:
    def __init__(
        self,
        api_key: str,
        base_id: str,
        api_url: str = 'https://api.airtable.com/v0',
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._http = httpx.Client(
            base_url=f'{api_url.rstrip("/")}/{base_id}',
            headers={'Authorization': f'Bearer {api_key}'},
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def _request(self, method: str, table: str, record_id: str | None = None, **kwargs) -> dict:
        path = f'/{quote(table, safe="")}'
        if record_id:
            path += f'/{quote(record_id, safe="")}'

        try:
            response = self._http.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise StoreError(f'Airtable request to {table} failed: {exc}') from exc

        if response.status_code == 429:
            raise StoreError(f'Airtable rate limit reached for {table}.', status_code=429)
        if response.is_error:
            logger.warning('Airtable %s %s returned %s: %s', method, table, response.status_code, response.text)
            raise StoreError(
                f'Airtable {method} {table} returned {response.status_code}.',
                status_code=response.status_code,
            )

        return response.json()

    def list_records(
        self,
        table: str,
        formula: str | None = None,
        fields: list[str] | None = None,
        sort: list[tuple[str, str]] | None = None,
    ) -> list[dict]:
        params: list[tuple[str, str]] = []
        if formula:
            params.append(('filterByFormula', formula))
        for field in fields or []:
            params.append(('fields[]', field))
        for index, (field, direction) in enumerate(sort or []):
            params.append((f'sort[{index}][field]', field))
            params.append((f'sort[{index}][direction]', direction))

        records: list[dict] = []
        offset: str | None = None
        while True:
            page_params = params + ([('offset', offset)] if offset else [])
            payload = self._request('GET', table, params=page_params)
            records.extend(payload.get('records', []))
            offset = payload.get('offset')
            if not offset:
                return records

    def find_record(self, table: str, record_id: str) -> dict:
        return self._request('GET', table, record_id)

    def create_record(self, table: str, fields: dict) -> dict:
        payload = self._request('POST', table, json={'records': [{'fields': fields}], 'typecast': True})
        return payload['records'][0]

    def update_record(self, table: str, record_id: str, fields: dict) -> dict:
        return self._request('PATCH', table, record_id, json={'fields': fields, 'typecast': True})


def get_airtable_client() -> AirtableClient:
    global _client

    if _client is not None:
        return _client

    with _client_lock:
        if _client is not None:
            return _client

        if not config.AIRTABLE_API_KEY or not config.AIRTABLE_BASE_ID:
            raise StoreConfigurationError('Missing Airtable configuration. Set AIRTABLE_API_KEY and AIRTABLE_BASE_ID.')

        _client = AirtableClient(
            api_key=config.AIRTABLE_API_KEY,
            base_id=config.AIRTABLE_BASE_ID,
            api_url=config.AIRTABLE_API_URL,
            timeout=config.AIRTABLE_TIMEOUT_SECONDS,
        )
        logger.info('Airtable client initialized for base %s', config.AIRTABLE_BASE_ID)

    return _client


def reset_airtable_client() -> None:
    global _client

    with _client_lock:
        if _client is not None:
            _client.close()
        _client = None
