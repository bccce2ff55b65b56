from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from transaction_hub_app.services.acceptance_service import AcceptanceService, HubServiceError
from transaction_hub_app.telemetry import TelemetryLogger, build_event
from transaction_hub_app.ui.acceptance.acceptance_processor_view import AcceptanceProcessorView
from transaction_hub_app.ui.shared.notification_center import NotificationCenter
from transaction_hub_sdk.models_transactions import Identity, PartyType, Transaction
from transaction_hub_sdk.transaction_state import TransactionBuckets, acceptance_action_availability


@dataclass
class TransactionHubView:
    """Inbox for one warehouse or equipment unit.

    At most one processor is open per transaction at a time.
    """

    service: AcceptanceService
    party_type: PartyType
    party_id: str
    actor: Identity
    can_manage: bool = True
    notifications: NotificationCenter = field(default_factory=NotificationCenter)
    telemetry: TelemetryLogger | None = None
    buckets: TransactionBuckets = field(default_factory=TransactionBuckets)
    processors: dict[str, AcceptanceProcessorView] = field(default_factory=dict)
    error_message: str | None = None
    trace_id: str | None = None

    def refresh(self) -> dict[str, Any]:
        try:
            self.buckets = self.service.load_inbox(self.party_type, self.party_id)
        except HubServiceError as exc:
            self.error_message = exc.message
            self.trace_id = exc.trace_id
            return {"ok": False, "error": exc.message, "trace_id": exc.trace_id}
        self.error_message = None
        return {"ok": True, **self.render()}

    def render(self) -> dict[str, Any]:
        return {
            "incoming": [self._row(item) for item in self.buckets.incoming],
            "pending": [self._row(item) for item in self.buckets.pending],
            "history": [self._row(item) for item in self.buckets.history],
            "open": sorted(self.processors),
        }

    def open_processor(self, transaction_id: str) -> dict[str, Any]:
        transaction = self._find(transaction_id)
        if transaction is None:
            return {"ok": False, "error": "Transaction not found in inbox"}
        availability = acceptance_action_availability(
            transaction,
            self.party_id,
            can_manage=self.can_manage,
            open_processors=set(self.processors),
        )
        if transaction_id in self.processors:
            return {"ok": False, "error": "Transaction is already being processed"}
        if not availability.can_accept:
            return {"ok": False, "error": "Transaction does not require action from this location"}
        workflow = self.service.open_workflow(transaction, self.actor)
        self.processors[transaction_id] = AcceptanceProcessorView(
            service=self.service,
            workflow=workflow,
            notifications=self.notifications,
            telemetry=self.telemetry,
            on_complete=self._on_complete,
            on_close=self.close_processor,
        )
        if self.telemetry is not None:
            self.telemetry.emit(
                build_event(category="navigation", name="acceptance_open", module="transaction_hub", action="open")
            )
        return {"ok": True, "transaction_id": transaction_id}

    def processor(self, transaction_id: str) -> AcceptanceProcessorView | None:
        return self.processors.get(transaction_id)

    def close_processor(self, transaction_id: str) -> None:
        self.processors.pop(transaction_id, None)

    def _on_complete(self, processed: Transaction) -> None:
        self.buckets.incoming = [item for item in self.buckets.incoming if item.id != processed.id]
        self.buckets.history.insert(0, processed)

    def _find(self, transaction_id: str) -> Transaction | None:
        for item in (*self.buckets.incoming, *self.buckets.pending, *self.buckets.history):
            if item.id == transaction_id:
                return item
        return None

    def _row(self, transaction: Transaction) -> dict[str, Any]:
        availability = acceptance_action_availability(
            transaction,
            self.party_id,
            can_manage=self.can_manage,
            open_processors=set(self.processors),
        )
        return {
            "id": transaction.id,
            "batch_number": transaction.batch_number,
            "status": transaction.status,
            "sender_name": transaction.sender_name,
            "receiver_name": transaction.receiver_name,
            "line_count": len(transaction.items),
            "requires_action": availability.requires_action,
            "can_accept": availability.can_accept,
        }
