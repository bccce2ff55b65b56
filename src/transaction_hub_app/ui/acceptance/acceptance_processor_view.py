from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Callable

from transaction_hub_app.services.acceptance_service import AcceptanceService, HubServiceError
from transaction_hub_app.telemetry import TelemetryLogger, build_event
from transaction_hub_app.ui.shared.error_presenter import ErrorPresenter
from transaction_hub_app.ui.shared.notification_center import NotificationCenter
from transaction_hub_sdk.acceptance_validation import ValidationIssue
from transaction_hub_sdk.acceptance_workflow import AcceptanceWorkflow, TransitionResult
from transaction_hub_sdk.exceptions import AcceptanceSubmissionError
from transaction_hub_sdk.maintenance_link import suggest_maintenance_description
from transaction_hub_sdk.models_transactions import MaintenanceLinkMode, MaintenanceRecord, Transaction

_MODULE = "acceptance_processor"


@dataclass
class AcceptanceProcessorView:
    service: AcceptanceService
    workflow: AcceptanceWorkflow
    notifications: NotificationCenter = field(default_factory=NotificationCenter)
    presenter: ErrorPresenter = field(default_factory=ErrorPresenter)
    telemetry: TelemetryLogger | None = None
    on_complete: Callable[[Transaction], None] | None = None
    on_close: Callable[[str], None] | None = None
    candidates: list[MaintenanceRecord] = field(default_factory=list)
    error_message: str | None = None
    trace_id: str | None = None

    @property
    def transaction_id(self) -> str:
        return self.workflow.transaction.id

    def render(self) -> dict[str, Any]:
        wf = self.workflow
        visited = wf.state.visited_steps
        steps = []
        for step in wf.visible_steps():
            if step.id == wf.state.current_step_id:
                status = "active"
            elif step.id in visited:
                status = "completed"
            else:
                status = "pending"
            steps.append({"id": int(step.id), "title": step.title, "description": step.description, "status": status})
        discrepancies = {item.line_id: item for item in wf.discrepancies}
        rows = []
        for line in wf.lines:
            entry = wf.entries[line.id]
            found = discrepancies.get(line.id)
            issue = wf.field_errors.get(line.id)
            rows.append(
                {
                    "line_id": line.id,
                    "item_name": line.item_name,
                    "expected_quantity": line.expected_quantity,
                    "received_quantity": entry.effective_quantity,
                    "not_received": entry.not_received,
                    "discrepancy": found.label if found else None,
                    "severity": found.severity.value if found else None,
                    "error": issue.reason if issue else None,
                }
            )
        options = wf.resolution_options()
        resolutions = [
            {
                "line_id": item.line_id,
                "item_name": item.item_name,
                "label": item.label,
                "severity": item.severity.value,
                "options": [
                    {"action": option.action.value, "label": option.label, "description": option.description}
                    for option in options.get(item.line_id, [])
                ],
                "selected": wf.decisions[item.line_id].action.value if item.line_id in wf.decisions else None,
            }
            for item in wf.discrepancies
        ]
        return {
            "transaction_id": self.transaction_id,
            "batch_number": wf.transaction.batch_number,
            "current_step": int(wf.state.current_step_id),
            "steps": steps,
            "rows": rows,
            "resolutions": resolutions,
            "summary": wf.summary.model_dump(),
            "assignment": wf.assignment.model_dump(mode="json") if wf.needs_purpose_assignment else None,
            "candidates": [record.model_dump(mode="json", exclude_none=True) for record in self.candidates],
            "can_next": wf.can_go_next(),
            "can_previous": wf.can_go_previous(),
            "next_label": "Complete Transaction" if wf.is_last_step() else "Next",
            "is_submitting": wf.is_submitting,
            "error": wf.error_message or self.error_message,
            "trace_id": wf.trace_id or self.trace_id,
        }

    def next(self) -> dict[str, Any]:
        from_step = int(self.workflow.state.current_step_id)
        at_last_step = self.workflow.is_last_step()
        result = self.workflow.next()
        if result.submitted:
            return self._completed(result)
        if at_last_step and result.error and result.error == self.workflow.error_message:
            return self._submission_failed(result)
        self._emit_navigation("next", from_step, result)
        return self._transition_payload(result)

    def previous(self) -> dict[str, Any]:
        from_step = int(self.workflow.state.current_step_id)
        result = self.workflow.previous()
        self._emit_navigation("previous", from_step, result)
        return self._transition_payload(result)

    def edit_quantity(self, line_id: str, raw: Any) -> dict[str, Any]:
        return self._edit_payload(self.workflow.set_received_quantity(line_id, raw))

    def toggle_not_received(self, line_id: str, flag: bool) -> dict[str, Any]:
        return self._edit_payload(self.workflow.set_not_received(line_id, flag))

    def choose_purpose(self, purpose: str) -> dict[str, Any]:
        return self._edit_payload(self.workflow.select_purpose(purpose))

    def choose_link_mode(self, mode: str) -> dict[str, Any]:
        issue = self.workflow.select_link_mode(mode)
        if issue is None and self.workflow.assignment.maintenance_link_mode is MaintenanceLinkMode.CREATE:
            self.workflow.set_maintenance_draft(
                {"description": suggest_maintenance_description(self.workflow.lines)}
            )
        return self._edit_payload(issue)

    def update_maintenance_draft(self, **fields: Any) -> dict[str, Any]:
        draft = dict(self.workflow.assignment.new_maintenance_draft or {})
        draft.update(fields)
        return self._edit_payload(self.workflow.set_maintenance_draft(draft))

    def load_maintenance_candidates(self, search_term: str | None = None) -> dict[str, Any]:
        query = self.workflow.maintenance_search_query()
        if query is None:
            self.candidates = []
            return {"ok": True, "candidates": []}
        try:
            self.candidates = self.service.search_maintenance(query, search_term)
        except HubServiceError as exc:
            self.error_message = exc.message
            self.trace_id = exc.trace_id
            self._emit("api_call_result", "maintenance_search", action="load", success=False, trace_id=exc.trace_id)
            return {"ok": False, "error": exc.message, "trace_id": exc.trace_id}
        self.error_message = None
        self._emit("api_call_result", "maintenance_search", action="load", success=True)
        return {"ok": True, "candidates": [record.id for record in self.candidates]}

    def select_maintenance(self, maintenance_id: str | None) -> dict[str, Any]:
        return self._edit_payload(self.workflow.select_maintenance(maintenance_id))

    def choose_resolution(self, line_id: str, action: str, comment: str | None = None) -> dict[str, Any]:
        return self._edit_payload(self.workflow.select_resolution(line_id, action, comment))

    def set_comment(self, comment: str) -> dict[str, Any]:
        return self._edit_payload(self.workflow.set_comment(comment))

    def cancel(self) -> dict[str, Any]:
        if not self.workflow.cancel():
            return {"ok": False, "error": "Cannot cancel while the transaction is being processed"}
        self._emit("navigation", "acceptance_cancel", action="cancel")
        if self.on_close:
            self.on_close(self.transaction_id)
        return {"ok": True, "cancelled": True}

    def _completed(self, result: TransitionResult) -> dict[str, Any]:
        processed = self.workflow.result
        self.notifications.success("Transaction accepted", f"Batch {self.workflow.transaction.batch_number} processed")
        self._emit("api_call_result", "acceptance_submit", action="submit", success=True, step_id=result.step_id)
        if self.on_complete and processed is not None:
            self.on_complete(processed)
        if self.on_close:
            self.on_close(self.transaction_id)
        return {"ok": True, "submitted": True, "status": processed.status if processed else None}

    def _submission_failed(self, result: TransitionResult) -> dict[str, Any]:
        wf = self.workflow
        failure = wf.submission_error or AcceptanceSubmissionError(
            message=wf.error_message or "", details=wf.error_details, trace_id=wf.trace_id
        )
        presented = self.presenter.present_submission(
            failure,
            action="accept_transaction",
        )
        self.notifications.error(
            "Failed to process transaction",
            wf.error_message or presented.user_message,
            details={"trace_id": wf.trace_id, "category": presented.category},
        )
        self._emit(
            "error",
            "acceptance_submit",
            action="submit",
            success=False,
            step_id=result.step_id,
            trace_id=wf.trace_id,
            error_code=presented.code,
        )
        return {
            "ok": False,
            "error": wf.error_message,
            "details": wf.error_details,
            "trace_id": wf.trace_id,
            "category": presented.category,
            "can_retry": presented.safe_to_retry,
        }

    def _transition_payload(self, result: TransitionResult) -> dict[str, Any]:
        payload: dict[str, Any] = {"ok": result.ok, "step": result.step_id}
        if result.error:
            payload["error"] = result.error
        if result.issues:
            payload["issues"] = [asdict(issue) for issue in result.issues]
        return payload

    def _edit_payload(self, issue: ValidationIssue | None) -> dict[str, Any]:
        if issue is None:
            return {"ok": True, "step": int(self.workflow.state.current_step_id)}
        self._emit("validation", "acceptance_edit_rejected", action=issue.field)
        return {"ok": False, "error": issue.reason, "field": issue.field, "row_index": issue.row_index}

    def _emit_navigation(self, action: str, from_step: int, result: TransitionResult) -> None:
        self._emit(
            "navigation",
            "acceptance_step",
            action=action,
            success=result.ok,
            step_id=result.step_id,
            context={"from_step": from_step},
        )

    def _emit(self, category: str, name: str, **kwargs: Any) -> None:
        if self.telemetry is None:
            return
        self.telemetry.emit(build_event(category=category, name=name, module=_MODULE, **kwargs))
