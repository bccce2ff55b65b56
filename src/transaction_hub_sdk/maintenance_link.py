from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable, Sequence

from .acceptance_validation import ValidationIssue
from .models_transactions import (
    MaintenanceLinkMode,
    MaintenanceRecord,
    PurposeAssignment,
    TransactionLine,
    TransactionPurpose,
)

ACTIVE_MAINTENANCE_STATUSES = {"IN_PROGRESS", "PENDING"}
RECENT_COMPLETED_WINDOW = timedelta(days=7)


def is_link_satisfied(assignment: PurposeAssignment) -> bool:
    mode = assignment.maintenance_link_mode
    if mode is MaintenanceLinkMode.NONE:
        return True
    if mode is MaintenanceLinkMode.EXISTING:
        return bool((assignment.maintenance_id or "").strip())
    if mode is MaintenanceLinkMode.CREATE:
        return assignment.new_maintenance_draft is not None
    return False


def is_purpose_complete(assignment: PurposeAssignment) -> bool:
    if assignment.purpose is TransactionPurpose.CONSUMABLE:
        return True
    if assignment.purpose is TransactionPurpose.MAINTENANCE:
        return is_link_satisfied(assignment)
    return False


def purpose_issues(assignment: PurposeAssignment) -> list[ValidationIssue]:
    if assignment.purpose is TransactionPurpose.CONSUMABLE:
        return []
    if assignment.purpose is not TransactionPurpose.MAINTENANCE:
        return [ValidationIssue(None, "purpose", "choose CONSUMABLE or MAINTENANCE")]
    if is_link_satisfied(assignment):
        return []
    if assignment.maintenance_link_mode is MaintenanceLinkMode.EXISTING:
        return [ValidationIssue(None, "maintenance_id", "select a maintenance record")]
    return [ValidationIssue(None, "new_maintenance_draft", "fill in the new maintenance record")]


def change_link_mode(assignment: PurposeAssignment, mode: MaintenanceLinkMode | str) -> PurposeAssignment:
    """Switch mode and clear whatever belonged to the other modes."""
    target = mode if isinstance(mode, MaintenanceLinkMode) else MaintenanceLinkMode(str(mode).strip().upper())
    updates: dict[str, object] = {"maintenance_link_mode": target}
    if target is not MaintenanceLinkMode.EXISTING:
        updates["maintenance_id"] = None
    if target is not MaintenanceLinkMode.CREATE:
        updates["new_maintenance_draft"] = None
    return assignment.model_copy(update=updates)


def filter_candidate_records(
    records: Iterable[MaintenanceRecord],
    search_term: str | None = None,
    *,
    now: datetime | None = None,
) -> list[MaintenanceRecord]:
    reference = now or datetime.now(timezone.utc)
    needle = (search_term or "").strip().lower()
    selected: list[MaintenanceRecord] = []
    for record in records:
        if not _is_active_or_recent(record, reference):
            continue
        if needle and not _matches(record, needle):
            continue
        selected.append(record)
    return selected


def suggest_maintenance_description(lines: Sequence[TransactionLine], limit: int = 3) -> str:
    if not lines:
        return ""
    names = [line.item_name for line in lines if line.item_name][:limit]
    description = f"Maintenance using: {', '.join(names)}"
    if len(lines) > limit:
        description += f" and {len(lines) - limit} more items"
    return description


def _is_active_or_recent(record: MaintenanceRecord, reference: datetime) -> bool:
    status = (record.status or "").upper()
    if status in ACTIVE_MAINTENANCE_STATUSES:
        return True
    if status != "COMPLETED" or record.maintenance_date is None:
        return False
    stamp = record.maintenance_date
    if not isinstance(stamp, datetime):
        stamp = datetime.combine(stamp, datetime.min.time())
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=timezone.utc)
    return reference - stamp <= RECENT_COMPLETED_WINDOW


def _matches(record: MaintenanceRecord, needle: str) -> bool:
    haystack = (record.description, record.maintenance_type_name, record.technician_name)
    return any(needle in value.lower() for value in haystack if value)
