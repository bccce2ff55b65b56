from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TransactionStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    PARTIALLY_ACCEPTED = "PARTIALLY_ACCEPTED"
    RESOLVED = "RESOLVED"


class TransactionPurpose(str, Enum):
    GENERAL = "GENERAL"
    CONSUMABLE = "CONSUMABLE"
    MAINTENANCE = "MAINTENANCE"


class PartyType(str, Enum):
    WAREHOUSE = "WAREHOUSE"
    EQUIPMENT = "EQUIPMENT"


class MaintenanceLinkMode(str, Enum):
    NONE = "NONE"
    EXISTING = "EXISTING"
    CREATE = "CREATE"


class Identity(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str
    user_id: str | None = None
    display_name: str | None = None


class TransactionLine(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    id: str
    item_type_id: str | None = None
    item_name: str | None = None
    unit: str | None = None
    expected_quantity: int = Field(ge=0)


class Transaction(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    batch_number: int | str | None = None
    purpose: str | None = None
    status: str = TransactionStatus.PENDING.value
    items: list[TransactionLine] = Field(default_factory=list)
    sender_id: str | None = None
    sender_type: str | None = None
    sender_name: str | None = None
    receiver_id: str | None = None
    receiver_type: str | None = None
    receiver_name: str | None = None
    sent_first: str | None = None
    transaction_date: datetime | date | str | None = None
    description: str | None = None


class ReceivedItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    line_id: str
    received_quantity: int = Field(ge=0)
    not_received: bool = False


class PurposeAssignment(BaseModel):
    model_config = ConfigDict(extra="allow")

    purpose: TransactionPurpose = TransactionPurpose.CONSUMABLE
    maintenance_link_mode: MaintenanceLinkMode = MaintenanceLinkMode.NONE
    maintenance_id: str | None = None
    new_maintenance_draft: dict[str, Any] | None = None


class DiscrepancySummary(BaseModel):
    total: int = 0
    over_count: int = 0
    under_count: int = 0


class ResolutionReportItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    line_id: str
    item_name: str | None = None
    expected_quantity: int
    received_quantity: int
    difference: int
    kind: str
    severity: str
    action: str
    comment: str = ""


class ResolutionReport(BaseModel):
    items: list[ResolutionReportItem] = Field(default_factory=list)
    summary: DiscrepancySummary = Field(default_factory=DiscrepancySummary)


class AcceptanceRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    transaction_id: str
    accepted_by: str
    received_items: list[ReceivedItem]
    comment: str = ""
    resolution_report: ResolutionReport | None = None
    purpose_assignment: PurposeAssignment | None = None


class MaintenanceRecord(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    equipment_id: str | None = None
    description: str | None = None
    status: str | None = None
    maintenance_date: datetime | date | None = None
    maintenance_type_name: str | None = None
    technician_name: str | None = None


class MaintenanceSearchQuery(BaseModel):
    equipment_id: str
    candidate_line_item_ids: list[str] = Field(default_factory=list)
