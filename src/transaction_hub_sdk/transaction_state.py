from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .models_transactions import Transaction, TransactionStatus

HISTORY_STATUSES = {
    TransactionStatus.ACCEPTED.value,
    TransactionStatus.REJECTED.value,
    TransactionStatus.PARTIALLY_ACCEPTED.value,
    TransactionStatus.RESOLVED.value,
}


@dataclass(frozen=True)
class AcceptanceActionAvailability:
    is_incoming: bool
    is_pending: bool
    requires_action: bool
    can_accept: bool


@dataclass
class TransactionBuckets:
    incoming: list[Transaction] = field(default_factory=list)
    pending: list[Transaction] = field(default_factory=list)
    history: list[Transaction] = field(default_factory=list)


def acceptance_action_availability(
    transaction: Transaction,
    party_id: str,
    *,
    can_manage: bool = True,
    open_processors: set[str] | None = None,
) -> AcceptanceActionAvailability:
    """Which side of a transfer ``party_id`` is on and whether it may accept now.

    ``sent_first`` names the party that initiated the transfer; the other party is
    the one expected to act on it.
    """
    status_value = (transaction.status or "").upper()
    is_incoming = transaction.receiver_id == party_id and transaction.sent_first != party_id
    is_pending = transaction.sender_id == party_id and transaction.sent_first == party_id
    requires_action = status_value == TransactionStatus.PENDING.value and is_incoming
    already_open = transaction.id in (open_processors or set())
    return AcceptanceActionAvailability(
        is_incoming=is_incoming,
        is_pending=is_pending,
        requires_action=requires_action,
        can_accept=can_manage and requires_action and not already_open,
    )


def categorize_transactions(transactions: Iterable[Transaction], party_id: str) -> TransactionBuckets:
    buckets = TransactionBuckets()
    for transaction in transactions:
        status_value = (transaction.status or "").upper()
        availability = acceptance_action_availability(transaction, party_id)
        if status_value == TransactionStatus.PENDING.value:
            if availability.is_incoming:
                buckets.incoming.append(transaction)
            elif availability.is_pending:
                buckets.pending.append(transaction)
        elif status_value in HISTORY_STATUSES:
            buckets.history.append(transaction)
    return buckets
