from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from fractions import Fraction
from typing import Iterable, Mapping, Sequence

from .models_transactions import DiscrepancySummary, TransactionLine
from .quantity_ledger import ReceiptEntry

DEFAULT_SEVERITY_THRESHOLD = Fraction(1, 10)


class DiscrepancyKind(str, Enum):
    OVER = "OVER"
    UNDER = "UNDER"


class DiscrepancySeverity(str, Enum):
    LOW = "LOW"
    HIGH = "HIGH"


@dataclass(frozen=True)
class Discrepancy:
    line_id: str
    expected_quantity: int
    received_quantity: int
    difference: int
    kind: DiscrepancyKind
    severity: DiscrepancySeverity
    item_name: str | None = None

    @property
    def label(self) -> str:
        if self.kind is DiscrepancyKind.OVER:
            return f"Over-received: +{self.difference}"
        return f"Under-received: -{abs(self.difference)}"


def severity_for(difference: int, expected_quantity: int, threshold: Fraction = DEFAULT_SEVERITY_THRESHOLD) -> DiscrepancySeverity:
    if expected_quantity == 0:
        return DiscrepancySeverity.HIGH if difference != 0 else DiscrepancySeverity.LOW
    if Fraction(abs(difference), expected_quantity) > threshold:
        return DiscrepancySeverity.HIGH
    return DiscrepancySeverity.LOW


def classify(
    line: TransactionLine,
    entry: ReceiptEntry,
    *,
    threshold: Fraction = DEFAULT_SEVERITY_THRESHOLD,
) -> Discrepancy | None:
    received = entry.effective_quantity
    difference = received - line.expected_quantity
    if difference == 0 and not entry.not_received:
        return None
    return Discrepancy(
        line_id=line.id,
        expected_quantity=line.expected_quantity,
        received_quantity=received,
        difference=difference,
        kind=DiscrepancyKind.OVER if difference > 0 else DiscrepancyKind.UNDER,
        severity=severity_for(difference, line.expected_quantity, threshold),
        item_name=line.item_name,
    )


def classify_all(
    lines: Sequence[TransactionLine],
    entries: Mapping[str, ReceiptEntry],
    *,
    threshold: Fraction = DEFAULT_SEVERITY_THRESHOLD,
) -> list[Discrepancy]:
    found: list[Discrepancy] = []
    for line in lines:
        entry = entries.get(line.id)
        if entry is None:
            continue
        discrepancy = classify(line, entry, threshold=threshold)
        if discrepancy is not None:
            found.append(discrepancy)
    return found


def summarize(discrepancies: Iterable[Discrepancy]) -> DiscrepancySummary:
    items = list(discrepancies)
    over = sum(1 for item in items if item.kind is DiscrepancyKind.OVER)
    return DiscrepancySummary(total=len(items), over_count=over, under_count=len(items) - over)
