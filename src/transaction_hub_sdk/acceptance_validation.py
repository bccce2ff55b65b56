from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence, TypeVar

from pydantic import ValidationError as PydanticValidationError

from .models_transactions import AcceptanceRequest, TransactionLine

T = TypeVar("T")


@dataclass(frozen=True)
class ValidationIssue:
    row_index: int | None
    field: str
    reason: str


class ClientValidationError(ValueError):
    def __init__(self, issues: list[ValidationIssue]) -> None:
        self.issues = issues
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if not self.issues:
            return "Validation failed"
        issue = self.issues[0]
        location = f"row {issue.row_index}" if issue.row_index is not None else "payload"
        return f"{location} {issue.field}: {issue.reason}"


def validate_acceptance_payload(
    payload: AcceptanceRequest | Mapping[str, Any],
    lines: Sequence[TransactionLine] | None = None,
) -> AcceptanceRequest:
    """Check an acceptance request before it leaves the client.

    When ``lines`` is given every transaction line must be reported exactly once.
    """
    data = _coerce_model(payload, AcceptanceRequest, None)
    if not data.accepted_by.strip():
        _raise_issue(None, "accepted_by", "accepted_by is required")
    seen: set[str] = set()
    for idx, item in enumerate(data.received_items):
        if item.line_id in seen:
            _raise_issue(idx, "line_id", "line reported more than once")
        seen.add(item.line_id)
        if item.not_received and item.received_quantity != 0:
            _raise_issue(idx, "received_quantity", "not received lines must carry quantity 0")
    if lines is not None:
        expected_ids = {line.id for line in lines}
        unknown = sorted(seen - expected_ids)
        if unknown:
            _raise_issue(None, "received_items", f"unknown line ids: {', '.join(unknown)}")
        missing = sorted(expected_ids - seen)
        if missing:
            _raise_issue(None, "received_items", f"missing line ids: {', '.join(missing)}")
    if data.resolution_report is not None:
        reported = {item.line_id for item in data.resolution_report.items}
        if not reported <= seen:
            _raise_issue(None, "resolution_report", "resolution references lines not in received_items")
    return data


def _coerce_model(value: T | Mapping[str, Any], model_type: type[T], row_index: int | None) -> T:
    if isinstance(value, model_type):
        return value
    try:
        return model_type.model_validate(value)
    except PydanticValidationError as exc:
        issue = exc.errors()[0] if exc.errors() else {"loc": ("payload",), "msg": "Invalid payload"}
        field = ".".join(str(part) for part in issue.get("loc", ("payload",)))
        _raise_issue(row_index, field, issue.get("msg", "Invalid payload"))
        raise


def _raise_issue(row_index: int | None, field: str, reason: str) -> None:
    raise ClientValidationError([ValidationIssue(row_index=row_index, field=field, reason=reason)])
