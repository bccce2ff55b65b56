from __future__ import annotations

import pytest

from transaction_hub_sdk.acceptance_validation import ClientValidationError, validate_acceptance_payload
from transaction_hub_sdk.models_transactions import TransactionLine

LINES = [
    TransactionLine(id="l1", expected_quantity=10),
    TransactionLine(id="l2", expected_quantity=4),
]


def _payload(**overrides):
    payload = {
        "transaction_id": "t1",
        "accepted_by": "jdoe",
        "received_items": [
            {"line_id": "l1", "received_quantity": 10},
            {"line_id": "l2", "received_quantity": 0, "not_received": True},
        ],
    }
    payload.update(overrides)
    return payload


def test_valid_payload_passes() -> None:
    request = validate_acceptance_payload(_payload(), LINES)
    assert request.received_items[1].not_received is True


def test_accepted_by_required() -> None:
    with pytest.raises(ClientValidationError) as excinfo:
        validate_acceptance_payload(_payload(accepted_by="  "))
    assert excinfo.value.issues[0].field == "accepted_by"


def test_negative_quantity_rejected_by_model() -> None:
    items = [{"line_id": "l1", "received_quantity": -1}]
    with pytest.raises(ClientValidationError) as excinfo:
        validate_acceptance_payload(_payload(received_items=items))
    assert "received_quantity" in excinfo.value.issues[0].field


def test_duplicate_line_rejected() -> None:
    items = [{"line_id": "l1", "received_quantity": 1}, {"line_id": "l1", "received_quantity": 2}]
    with pytest.raises(ClientValidationError) as excinfo:
        validate_acceptance_payload(_payload(received_items=items))
    assert excinfo.value.issues[0].row_index == 1


def test_not_received_must_carry_zero() -> None:
    items = [{"line_id": "l1", "received_quantity": 3, "not_received": True}]
    with pytest.raises(ClientValidationError, match="quantity 0"):
        validate_acceptance_payload(_payload(received_items=items))


def test_every_line_must_be_reported() -> None:
    items = [{"line_id": "l1", "received_quantity": 10}]
    with pytest.raises(ClientValidationError, match="missing line ids: l2"):
        validate_acceptance_payload(_payload(received_items=items), LINES)


def test_unknown_line_rejected() -> None:
    items = _payload()["received_items"] + [{"line_id": "zz", "received_quantity": 1}]
    with pytest.raises(ClientValidationError, match="unknown line ids: zz"):
        validate_acceptance_payload(_payload(received_items=items), LINES)


def test_resolution_report_must_reference_received_lines() -> None:
    report = {
        "items": [
            {
                "line_id": "other",
                "expected_quantity": 1,
                "received_quantity": 0,
                "difference": -1,
                "kind": "UNDER",
                "severity": "HIGH",
                "action": "RECORD_SHORTAGE",
            }
        ]
    }
    with pytest.raises(ClientValidationError) as excinfo:
        validate_acceptance_payload(_payload(resolution_report=report))
    assert excinfo.value.issues[0].field == "resolution_report"
