from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping, Sequence

from .acceptance_validation import ValidationIssue
from .models_transactions import ReceivedItem, TransactionLine


@dataclass(frozen=True)
class ReceiptEntry:
    line_id: str
    received_quantity: int
    not_received: bool = False

    @property
    def effective_quantity(self) -> int:
        return 0 if self.not_received else self.received_quantity

    def with_quantity(self, quantity: int) -> "ReceiptEntry":
        return replace(self, received_quantity=quantity)

    def mark_not_received(self, flag: bool, restore_quantity: int) -> "ReceiptEntry":
        if flag:
            return replace(self, not_received=True, received_quantity=0)
        return replace(self, not_received=False, received_quantity=restore_quantity)

    def to_received_item(self) -> ReceivedItem:
        return ReceivedItem(
            line_id=self.line_id,
            received_quantity=self.effective_quantity,
            not_received=self.not_received,
        )


@dataclass(frozen=True)
class LineDelta:
    difference: int
    has_discrepancy: bool


@dataclass(frozen=True)
class LedgerAggregate:
    any_discrepancy: bool
    discrepant_line_ids: tuple[str, ...] = ()


def coerce_quantity(raw: Any, row_index: int | None = None) -> tuple[int, ValidationIssue | None]:
    """Normalize user input to a non-negative int; invalid input becomes 0 plus an issue."""
    if isinstance(raw, bool):
        return 0, ValidationIssue(row_index, "received_quantity", "quantity must be a whole number")
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return 0, None
    try:
        if isinstance(raw, float):
            if not raw.is_integer():
                raise ValueError(raw)
            value = int(raw)
        else:
            value = int(str(raw).strip())
    except (TypeError, ValueError):
        return 0, ValidationIssue(row_index, "received_quantity", "quantity must be a whole number")
    if value < 0:
        return 0, ValidationIssue(row_index, "received_quantity", "quantity cannot be negative")
    return value, None


def default_entries(lines: Sequence[TransactionLine]) -> dict[str, ReceiptEntry]:
    return {
        line.id: ReceiptEntry(line_id=line.id, received_quantity=line.expected_quantity)
        for line in lines
    }


def compute_delta(line: TransactionLine, entry: ReceiptEntry) -> LineDelta:
    difference = entry.effective_quantity - line.expected_quantity
    has_discrepancy = entry.not_received or entry.received_quantity != line.expected_quantity
    return LineDelta(difference=difference, has_discrepancy=has_discrepancy)


def compute_aggregate(lines: Sequence[TransactionLine], entries: Mapping[str, ReceiptEntry]) -> LedgerAggregate:
    discrepant: list[str] = []
    for line in lines:
        entry = entries.get(line.id)
        if entry is None:
            # A line nobody touched still carries the optimistic default.
            continue
        if compute_delta(line, entry).has_discrepancy:
            discrepant.append(line.id)
    return LedgerAggregate(any_discrepancy=bool(discrepant), discrepant_line_ids=tuple(discrepant))
