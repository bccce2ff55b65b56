from __future__ import annotations

from transaction_hub_sdk.models_transactions import Transaction
from transaction_hub_sdk.transaction_state import acceptance_action_availability, categorize_transactions


def _tx(tx_id: str, status: str, sender: str, receiver: str, sent_first: str | None = None) -> Transaction:
    return Transaction(id=tx_id, status=status, sender_id=sender, receiver_id=receiver, sent_first=sent_first or sender)


def test_incoming_pending_transaction_requires_action() -> None:
    availability = acceptance_action_availability(_tx("t1", "PENDING", "wh-1", "eq-9"), "eq-9")
    assert availability.is_incoming is True
    assert availability.requires_action is True
    assert availability.can_accept is True


def test_sender_side_sees_pending_without_action() -> None:
    availability = acceptance_action_availability(_tx("t1", "PENDING", "wh-1", "eq-9"), "wh-1")
    assert availability.is_pending is True
    assert availability.requires_action is False
    assert availability.can_accept is False


def test_open_processor_or_missing_permission_blocks_accept() -> None:
    tx = _tx("t1", "PENDING", "wh-1", "eq-9")
    assert acceptance_action_availability(tx, "eq-9", open_processors={"t1"}).can_accept is False
    assert acceptance_action_availability(tx, "eq-9", can_manage=False).can_accept is False


def test_categorize_splits_inbox() -> None:
    rows = [
        _tx("in", "PENDING", "wh-1", "eq-9"),
        _tx("out", "PENDING", "eq-9", "wh-2"),
        _tx("done", "ACCEPTED", "wh-1", "eq-9"),
        _tx("partial", "partially_accepted", "wh-1", "eq-9"),
        _tx("draft", "DRAFT", "wh-1", "eq-9"),
    ]
    buckets = categorize_transactions(rows, "eq-9")
    assert [tx.id for tx in buckets.incoming] == ["in"]
    assert [tx.id for tx in buckets.pending] == ["out"]
    assert [tx.id for tx in buckets.history] == ["done", "partial"]
