from __future__ import annotations

import uuid
from dataclasses import dataclass

# Fixed namespace so the same transaction batch always maps to the same key.
_ACCEPTANCE_NAMESPACE = uuid.UUID("6f1c9a52-3d0e-4c1b-9f57-2a8e7d4b1c03")


@dataclass(frozen=True)
class IdempotencyKeys:
    transaction_id: str
    idempotency_key: str


def acceptance_idempotency_keys(transaction_id: str, batch_number: int | str | None = None) -> IdempotencyKeys:
    """Stable keys for accepting one transaction batch, safe to reuse on retry."""
    seed = f"accept:{transaction_id}:{batch_number if batch_number is not None else ''}"
    return IdempotencyKeys(
        transaction_id=transaction_id,
        idempotency_key=str(uuid.uuid5(_ACCEPTANCE_NAMESPACE, seed)),
    )


def idempotency_headers(keys: IdempotencyKeys) -> dict[str, str]:
    return {"Idempotency-Key": keys.idempotency_key}
