from __future__ import annotations

import pytest

from transaction_hub_sdk.models_transactions import TransactionLine
from transaction_hub_sdk.quantity_ledger import (
    ReceiptEntry,
    coerce_quantity,
    compute_aggregate,
    compute_delta,
    default_entries,
)


def _lines() -> list[TransactionLine]:
    return [
        TransactionLine(id="l1", item_name="Filter", expected_quantity=10),
        TransactionLine(id="l2", item_name="Gasket", expected_quantity=4),
    ]


def test_default_entries_assume_full_receipt() -> None:
    entries = default_entries(_lines())
    assert entries["l1"] == ReceiptEntry(line_id="l1", received_quantity=10)
    assert entries["l2"].not_received is False
    assert compute_aggregate(_lines(), entries).any_discrepancy is False


def test_delta_is_received_minus_expected() -> None:
    line = _lines()[0]
    assert compute_delta(line, ReceiptEntry("l1", 12)).difference == 2
    assert compute_delta(line, ReceiptEntry("l1", 7)).difference == -3
    assert compute_delta(line, ReceiptEntry("l1", 10)).has_discrepancy is False


def test_not_received_overrides_quantity() -> None:
    line = _lines()[0]
    entry = ReceiptEntry("l1", 10).mark_not_received(True, line.expected_quantity)
    assert entry.received_quantity == 0
    delta = compute_delta(line, entry)
    assert delta.difference == -10
    assert delta.has_discrepancy is True


def test_not_received_on_zero_expected_line_still_flags() -> None:
    line = TransactionLine(id="z", expected_quantity=0)
    delta = compute_delta(line, ReceiptEntry("z", 0, not_received=True))
    assert delta.difference == 0
    assert delta.has_discrepancy is True


def test_unmarking_not_received_restores_expected() -> None:
    entry = ReceiptEntry("l1", 0, not_received=True).mark_not_received(False, 10)
    assert entry == ReceiptEntry("l1", 10)


def test_aggregate_lists_discrepant_lines_and_skips_untouched() -> None:
    entries = {"l2": ReceiptEntry("l2", 3)}
    aggregate = compute_aggregate(_lines(), entries)
    assert aggregate.any_discrepancy is True
    assert aggregate.discrepant_line_ids == ("l2",)


def test_to_received_item_reports_effective_quantity() -> None:
    item = ReceiptEntry("l1", 5, not_received=True).to_received_item()
    assert item.received_quantity == 0
    assert item.not_received is True


@pytest.mark.parametrize(
    ("raw", "expected", "has_issue"),
    [
        ("7", 7, False),
        (" 3 ", 3, False),
        (4.0, 4, False),
        ("", 0, False),
        (None, 0, False),
        ("abc", 0, True),
        (2.5, 0, True),
        ("-1", 0, True),
        (True, 0, True),
    ],
)
def test_coerce_quantity(raw, expected: int, has_issue: bool) -> None:
    value, issue = coerce_quantity(raw, row_index=2)
    assert value == expected
    assert (issue is not None) is has_issue
    if issue is not None:
        assert issue.row_index == 2
        assert issue.field == "received_quantity"
