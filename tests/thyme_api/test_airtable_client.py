import json
from collections.abc import Iterator

import httpx
import pytest

from thyme_api import airtable
from thyme_api.airtable import AirtableClient, get_airtable_client, quote_formula_value, reset_airtable_client
from thyme_api.core import config
from thyme_api.core.errors import StoreConfigurationError, StoreError


def make_client(handler) -> AirtableClient:
    return AirtableClient(api_key='key123', base_id='appBase', transport=httpx.MockTransport(handler))


@pytest.fixture
def fresh_client_singleton() -> Iterator[None]:
    reset_airtable_client()
    yield
    reset_airtable_client()


def test_list_records_follows_offset_pagination() -> None:
    seen_requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen_requests.append(request)
        if request.url.params.get('offset') == 'page2':
            return httpx.Response(200, json={'records': [{'id': 'rec3', 'fields': {}}]})
        return httpx.Response(200, json={'records': [{'id': 'rec1'}, {'id': 'rec2'}], 'offset': 'page2'})

    records = make_client(handler).list_records('Advisor Availability', formula="{DayOfWeek} = 'Monday'")

    assert [record['id'] for record in records] == ['rec1', 'rec2', 'rec3']
    assert len(seen_requests) == 2
    assert seen_requests[0].url.path == '/v0/appBase/Advisor Availability'
    assert seen_requests[1].url.params.get('filterByFormula') == "{DayOfWeek} = 'Monday'"
    assert seen_requests[0].headers['Authorization'] == 'Bearer key123'


def test_list_records_encodes_fields_and_sort() -> None:
    captured: dict[str, httpx.Request] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured['request'] = request
        return httpx.Response(200, json={'records': []})

    make_client(handler).list_records('FAQs', fields=['Question', 'Answer'], sort=[('Order', 'asc')])

    params = captured['request'].url.params
    assert params.get_list('fields[]') == ['Question', 'Answer']
    assert params.get('sort[0][field]') == 'Order'
    assert params.get('sort[0][direction]') == 'asc'


def test_create_record_posts_single_record_with_typecast() -> None:
    captured: dict[str, dict] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured['body'] = json.loads(request.content)
        return httpx.Response(200, json={'records': [{'id': 'recNew', 'fields': {'Email': 'a@b.co'}}]})

    record = make_client(handler).create_record('Clients', {'Email': 'a@b.co'})

    assert record['id'] == 'recNew'
    assert captured['body'] == {'records': [{'fields': {'Email': 'a@b.co'}}], 'typecast': True}


def test_update_record_patches_record_path() -> None:
    captured: dict[str, httpx.Request] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured['request'] = request
        return httpx.Response(200, json={'id': 'recFAQ', 'fields': {'ClickCount': 4}})

    make_client(handler).update_record('FAQs', 'recFAQ', {'ClickCount': 4})

    assert captured['request'].method == 'PATCH'
    assert captured['request'].url.path == '/v0/appBase/FAQs/recFAQ'


@pytest.mark.parametrize('status_code', [401, 404, 422, 500, 503])
def test_error_status_raises_store_error(status_code: int) -> None:
    client = make_client(lambda request: httpx.Response(status_code, json={'error': 'nope'}))

    with pytest.raises(StoreError) as exception_info:
        client.list_records('Booked')

    assert exception_info.value.status_code == status_code


def test_rate_limit_raises_store_error_with_status() -> None:
    client = make_client(lambda request: httpx.Response(429, json={'errors': []}))

    with pytest.raises(StoreError, match='rate limit') as exception_info:
        client.find_record('FAQs', 'rec1')

    assert exception_info.value.status_code == 429


def test_transport_failure_raises_store_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError('connection refused', request=request)

    with pytest.raises(StoreError) as exception_info:
        make_client(handler).list_records('Booked')

    assert exception_info.value.status_code is None


def test_quote_formula_value_escapes_quotes() -> None:
    assert quote_formula_value("O'Brien") == "'O\\'Brien'"


def test_get_airtable_client_requires_credentials(
    monkeypatch: pytest.MonkeyPatch,
    fresh_client_singleton: None,
) -> None:
    monkeypatch.setattr(config, 'AIRTABLE_API_KEY', '')
    monkeypatch.setattr(config, 'AIRTABLE_BASE_ID', 'appBase')

    with pytest.raises(StoreConfigurationError, match='Missing Airtable configuration'):
        get_airtable_client()


def test_get_airtable_client_is_created_once(monkeypatch: pytest.MonkeyPatch, fresh_client_singleton: None) -> None:
    monkeypatch.setattr(config, 'AIRTABLE_API_KEY', 'key123')
    monkeypatch.setattr(config, 'AIRTABLE_BASE_ID', 'appBase')

    first = get_airtable_client()

    assert get_airtable_client() is first
    assert airtable._client is first
