from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from ingestion.client import CatalogClient
from ingestion.normalize import CatalogPayloadError, normalize_catalog
from sportx.services import CatalogFetchError, SportService

DATA_DIR = Path(__file__).parent / "data"


def _client(handler) -> CatalogClient:
    return CatalogClient(
        base_url="https://catalog.sportx.test",
        transport=httpx.MockTransport(handler),
    )


def test_normalize_catalog_accepts_envelopes_and_lists(catalog_payload):
    """Verify that events are found in the supported payload shapes."""
    events = catalog_payload["events"]
    for payload in (catalog_payload, {"data": events}, {"result": events}, events):
        assert [event.id for event in normalize_catalog(payload)] == [3340789, 3340790, 3340791]


@pytest.mark.parametrize("payload", [None, "events", {"events": "nope"}, {"items": []}])
def test_normalize_catalog_rejects_unknown_shapes(payload):
    """Verify that payloads without an events list are rejected."""
    with pytest.raises(CatalogPayloadError):
        normalize_catalog(payload)


def test_normalize_catalog_rejects_whole_payload_on_invalid_event(catalog_payload):
    """Verify that one invalid event rejects the catalog instead of loading part of it."""
    events = [*catalog_payload["events"], {"id": "x"}]
    with pytest.raises(CatalogPayloadError, match="Invalid catalog payload"):
        normalize_catalog(events)


def test_client_fetches_events_over_http(catalog_payload):
    """Verify that the client GETs the events endpoint and validates the payload."""
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=catalog_payload)

    with _client(handler) as client:
        events = client.fetch_events()

    assert len(events) == 3
    assert requests[0].method == "GET"
    assert str(requests[0].url) == "https://catalog.sportx.test/events"


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"error": "boom"}),
        httpx.Response(200, text="<html>maintenance</html>"),
        httpx.Response(200, json={"events": [{"id": 1}]}),
    ],
)
def test_client_wraps_failures(response):
    """Verify that HTTP, decoding and validation failures raise CatalogFetchError."""
    with _client(lambda request: response) as client:
        with pytest.raises(CatalogFetchError):
            client.fetch_events()


def test_client_wraps_transport_errors():
    """Verify that connection failures raise CatalogFetchError."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with _client(handler) as client:
        with pytest.raises(CatalogFetchError, match="Catalog request failed"):
            client.fetch_events()


def test_client_reads_local_catalog_file():
    """Verify that the bundled JSON catalog can be used without an API."""
    client = CatalogClient(path=DATA_DIR / "catalog.json")
    assert [event.id for event in client.fetch_events()][:2] == [3340789, 3340790]


def test_client_missing_or_corrupt_file(tmp_path):
    """Verify that unreadable catalog files raise CatalogFetchError."""
    with pytest.raises(CatalogFetchError):
        CatalogClient(path=tmp_path / "missing.json").fetch_events()

    corrupt = tmp_path / "corrupt.json"
    corrupt.write_text("{", encoding="utf-8")
    with pytest.raises(CatalogFetchError):
        CatalogClient(path=corrupt).fetch_events()


def test_client_requires_a_source():
    """Verify that a client without URL or file is a configuration error."""
    with pytest.raises(ValueError):
        CatalogClient()


def test_client_from_settings_prefers_api(test_settings):
    """Verify that a configured base URL is used over the local file."""
    settings = test_settings.model_copy(
        update={"catalog_base_url": "https://catalog.sportx.test", "catalog_events_path": "/v1/events"}
    )
    client = CatalogClient.from_settings(settings)
    try:
        assert client.client is not None
        assert client.events_path == "/v1/events"
    finally:
        client.close()

    local = CatalogClient.from_settings(test_settings)
    assert local.client is None
    assert local.path == DATA_DIR / "catalog.json"


def test_sport_service_survives_http_failure(catalog_payload):
    """Verify that a failing API leaves the sport catalog in its previous state."""
    responses = [httpx.Response(200, json=catalog_payload), httpx.Response(503)]

    with _client(lambda request: responses.pop(0)) as client:
        service = SportService(client)
        assert service.load() is True
        assert service.load() is False

    assert len(service.events) == 2
