from __future__ import annotations

import json

import pytest
import requests
import responses

from transaction_hub_sdk import load_config
from transaction_hub_sdk.acceptance_validation import ClientValidationError
from transaction_hub_sdk.clients.transactions_client import TransactionsClient
from transaction_hub_sdk.exceptions import (
    ServerError,
    TransactionActionForbiddenError,
    TransactionStateError,
    TransportError,
)
from transaction_hub_sdk.http_client import HttpClient
from transaction_hub_sdk.idempotency import IdempotencyKeys, acceptance_idempotency_keys
from transaction_hub_sdk.models_transactions import AcceptanceRequest, PartyType, ReceivedItem, TransactionLine
from transaction_hub_sdk.tracing import TraceContext

BASE = "https://api.example.com"


def _client(monkeypatch, **env: str) -> HttpClient:
    monkeypatch.setenv("TXHUB_API_BASE_URL", BASE)
    monkeypatch.setenv("TXHUB_RETRY_BACKOFF_SECONDS", "0")
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return HttpClient(load_config(), trace=TraceContext())


def _tx_body(status: str = "ACCEPTED") -> dict:
    return {
        "id": "t1",
        "batch_number": 7,
        "status": status,
        "items": [{"id": "l1", "item_name": "Filter", "expected_quantity": 2}],
    }


def _request() -> AcceptanceRequest:
    return AcceptanceRequest(
        transaction_id="t1",
        accepted_by="jdoe",
        received_items=[ReceivedItem(line_id="l1", received_quantity=2)],
    )


@responses.activate
def test_list_for_party_uses_party_segment(monkeypatch) -> None:
    responses.add(responses.GET, f"{BASE}/api/v1/transactions/equipment/eq-9", json={"rows": [_tx_body("PENDING")]})
    client = TransactionsClient(http=_client(monkeypatch), access_token="token", site_id="site-1")

    rows = client.list_for_party(PartyType.EQUIPMENT, "eq-9")

    assert rows[0].id == "t1"
    assert rows[0].items[0].expected_quantity == 2
    sent = responses.calls[0].request
    assert sent.headers["Authorization"] == "Bearer token"
    assert sent.headers["X-Site-ID"] == "site-1"
    assert "X-Trace-ID" in sent.headers


@responses.activate
def test_accept_sends_idempotency_key(monkeypatch) -> None:
    keys = IdempotencyKeys(transaction_id="t1", idempotency_key="idem-fixed")

    def callback(request):
        payload = json.loads(request.body)
        assert payload["accepted_by"] == "jdoe"
        assert payload["received_items"] == [{"line_id": "l1", "received_quantity": 2, "not_received": False}]
        assert "resolution_report" not in payload
        assert request.headers["Idempotency-Key"] == "idem-fixed"
        return (200, {}, json.dumps(_tx_body()))

    responses.add_callback(responses.POST, f"{BASE}/api/v1/transactions/t1/accept", callback=callback)
    client = TransactionsClient(http=_client(monkeypatch), access_token="token")

    result = client.accept_transaction(_request(), keys=keys)

    assert result.status == "ACCEPTED"


@responses.activate
def test_accept_validates_before_sending(monkeypatch) -> None:
    client = TransactionsClient(http=_client(monkeypatch), access_token="token")
    lines = [TransactionLine(id="l1", expected_quantity=2), TransactionLine(id="l2", expected_quantity=1)]
    with pytest.raises(ClientValidationError):
        client.accept_transaction(_request(), lines=lines)
    assert len(responses.calls) == 0


@responses.activate
def test_accept_defaults_to_stable_key(monkeypatch) -> None:
    responses.add(responses.POST, f"{BASE}/api/v1/transactions/t1/accept", json=_tx_body())
    client = TransactionsClient(http=_client(monkeypatch))
    client.accept_transaction(_request())
    expected = acceptance_idempotency_keys("t1").idempotency_key
    assert responses.calls[0].request.headers["Idempotency-Key"] == expected


@responses.activate
def test_accept_conflict_maps_to_state_error(monkeypatch) -> None:
    responses.add(
        responses.POST,
        f"{BASE}/api/v1/transactions/t1/accept",
        json={"code": "CONFLICT", "message": "Transaction is not pending", "trace_id": "trace-c"},
        status=409,
    )
    client = TransactionsClient(http=_client(monkeypatch), access_token="token")
    with pytest.raises(TransactionStateError) as excinfo:
        client.accept_transaction(_request())
    assert excinfo.value.trace_id == "trace-c"


@responses.activate
def test_accept_forbidden_maps_to_action_error(monkeypatch) -> None:
    responses.add(
        responses.POST,
        f"{BASE}/api/v1/transactions/t1/accept",
        json={"code": "FORBIDDEN", "message": "Not the receiver"},
        status=403,
    )
    client = TransactionsClient(http=_client(monkeypatch), access_token="token")
    with pytest.raises(TransactionActionForbiddenError):
        client.accept_transaction(_request())


@responses.activate
def test_accept_is_not_retried_on_server_error(monkeypatch) -> None:
    responses.add(responses.POST, f"{BASE}/api/v1/transactions/t1/accept", json={"message": "down"}, status=503)
    client = TransactionsClient(http=_client(monkeypatch, TXHUB_RETRIES="2"), access_token="token")
    with pytest.raises(ServerError):
        client.accept_transaction(_request())
    assert len(responses.calls) == 1


@responses.activate
def test_get_is_retried_on_server_error(monkeypatch) -> None:
    responses.add(responses.GET, f"{BASE}/api/v1/transactions/t1", json={"message": "down"}, status=503)
    responses.add(responses.GET, f"{BASE}/api/v1/transactions/t1", json=_tx_body("PENDING"))
    http = _client(monkeypatch, TXHUB_RETRIES="2")
    client = TransactionsClient(http=http, access_token="token")

    transaction = client.get_transaction("t1")

    assert transaction.status == "PENDING"
    assert len(responses.calls) == 2
    assert http.last_operation is not None
    assert http.last_operation.result == "success"


@responses.activate
def test_transport_failure_raises_transport_error(monkeypatch) -> None:
    responses.add(
        responses.GET,
        f"{BASE}/api/v1/transactions/t1",
        body=requests.exceptions.ConnectionError("boom"),
    )
    client = TransactionsClient(http=_client(monkeypatch, TXHUB_RETRIES="0"), access_token="token")
    with pytest.raises(TransportError) as excinfo:
        client.get_transaction("t1")
    assert excinfo.value.status_code == 0
