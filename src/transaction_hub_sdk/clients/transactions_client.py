from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from ..acceptance_validation import validate_acceptance_payload
from ..exceptions import ApiError, ConflictError, ForbiddenError, TransactionActionForbiddenError, TransactionStateError
from ..idempotency import IdempotencyKeys, acceptance_idempotency_keys, idempotency_headers
from ..models_transactions import AcceptanceRequest, PartyType, Transaction, TransactionLine
from .base import BaseClient

_PARTY_SEGMENTS = {
    PartyType.WAREHOUSE.value: "warehouse",
    PartyType.EQUIPMENT.value: "equipment",
}


@dataclass
class TransactionsClient(BaseClient):
    def list_for_party(self, party_type: PartyType | str, party_id: str) -> list[Transaction]:
        segment = _PARTY_SEGMENTS.get(PartyType(party_type).value)
        rows = self._get_rows(f"/api/v1/transactions/{segment}/{party_id}", what="transactions")
        return [Transaction.model_validate(row) for row in rows]

    def get_transaction(self, transaction_id: str) -> Transaction:
        try:
            payload = self._request("GET", f"/api/v1/transactions/{transaction_id}")
        except ApiError as exc:
            _raise_transaction_error(exc)
        if not isinstance(payload, dict):
            raise ValueError("Expected transaction response to be a JSON object")
        return Transaction.model_validate(payload)

    def accept_transaction(
        self,
        payload: AcceptanceRequest | Mapping[str, Any],
        *,
        lines: Sequence[TransactionLine] | None = None,
        keys: IdempotencyKeys | None = None,
    ) -> Transaction:
        request_payload = validate_acceptance_payload(payload, lines)
        resolved = keys or acceptance_idempotency_keys(request_payload.transaction_id)
        try:
            data = self._request(
                "POST",
                f"/api/v1/transactions/{request_payload.transaction_id}/accept",
                json_body=request_payload.model_dump(mode="json", exclude_none=True),
                headers=idempotency_headers(resolved),
            )
        except ApiError as exc:
            _raise_transaction_error(exc)
        if not isinstance(data, dict):
            raise ValueError("Expected accept transaction response to be a JSON object")
        return Transaction.model_validate(data)


def _raise_transaction_error(exc: ApiError) -> None:
    if isinstance(exc, (TransactionStateError, TransactionActionForbiddenError)):
        raise exc
    if isinstance(exc, ConflictError):
        raise TransactionStateError(**exc.__dict__) from exc
    if isinstance(exc, ForbiddenError):
        raise TransactionActionForbiddenError(**exc.__dict__) from exc
    raise exc
