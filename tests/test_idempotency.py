from __future__ import annotations

from transaction_hub_sdk.idempotency import acceptance_idempotency_keys, idempotency_headers


def test_acceptance_keys_are_stable_per_batch() -> None:
    first = acceptance_idempotency_keys("t1", 7)
    assert first == acceptance_idempotency_keys("t1", 7)
    assert first.idempotency_key != acceptance_idempotency_keys("t1", 8).idempotency_key
    assert first.idempotency_key != acceptance_idempotency_keys("t2", 7).idempotency_key


def test_idempotency_headers() -> None:
    keys = acceptance_idempotency_keys("t1")
    assert idempotency_headers(keys) == {"Idempotency-Key": keys.idempotency_key}
