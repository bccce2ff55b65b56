from __future__ import annotations

from fakes import FakeSession, make_transaction
from transaction_hub_app.services.acceptance_service import AcceptanceService
from transaction_hub_app.telemetry import TelemetryLogger
from transaction_hub_app.ui.acceptance.acceptance_processor_view import AcceptanceProcessorView
from transaction_hub_sdk.exceptions import NotFoundError, ServerError
from transaction_hub_sdk.models_transactions import MaintenanceRecord


def _view(session: FakeSession, *, purpose: str | None = "CONSUMABLE", telemetry=None, **kwargs) -> AcceptanceProcessorView:
    service = AcceptanceService(session)
    workflow = service.open_workflow(make_transaction(purpose=purpose))
    return AcceptanceProcessorView(service=service, workflow=workflow, telemetry=telemetry, **kwargs)


def test_render_reports_steps_rows_and_labels() -> None:
    view = _view(FakeSession())
    view.next()
    view.edit_quantity("l1", "12")

    state = view.render()

    assert [step["status"] for step in state["steps"]] == ["completed", "active", "pending", "pending"]
    assert state["rows"][0]["discrepancy"] == "Over-received: +2"
    assert state["rows"][0]["severity"] == "HIGH"
    assert state["resolutions"][0]["selected"] == "ACCEPT_EXCESS"
    assert [option["label"] for option in state["resolutions"][0]["options"]] == [
        "Accept Excess",
        "Return Excess",
        "Investigate",
    ]
    assert state["summary"] == {"total": 1, "over_count": 1, "under_count": 0}
    assert state["next_label"] == "Next"
    assert state["assignment"] is None


def test_successful_completion_notifies_and_closes() -> None:
    completed = []
    closed = []
    view = _view(FakeSession(), on_complete=completed.append, on_close=closed.append)
    view.next()
    view.next()
    assert view.render()["next_label"] == "Complete Transaction"

    result = view.next()

    assert result == {"ok": True, "submitted": True, "status": "ACCEPTED"}
    assert completed[0].id == "t1"
    assert closed == ["t1"]
    assert view.notifications.render()["messages"][0]["level"] == "success"


def test_failed_submission_stays_on_final_review(tmp_path) -> None:
    session = FakeSession()
    session.transactions.fail_accept = [
        ServerError(code="HTTP_ERROR", message="Service unavailable", details=None, trace_id="trace-x", status_code=503)
    ]
    telemetry = TelemetryLogger(app_name="transaction_hub", enabled=True, log_file=tmp_path / "t.jsonl")
    closed = []
    view = _view(session, telemetry=telemetry, on_close=closed.append)
    view.next()
    view.next()

    result = view.next()

    assert result["ok"] is False
    assert result["error"] == "Service unavailable"
    assert result["category"] == "server"
    assert result["can_retry"] is True
    assert result["trace_id"] == "trace-x"
    assert view.render()["current_step"] == 5
    assert closed == []
    assert view.notifications.messages[-1]["level"] == "error"
    assert '"category": "error"' in (tmp_path / "t.jsonl").read_text()

    retry = view.next()
    assert retry["submitted"] is True
    keys = [call["keys"] for call in session.transactions.accept_calls]
    assert keys[0] == keys[1]


def test_incomplete_step_returns_issues() -> None:
    view = _view(FakeSession(), purpose="GENERAL")
    view.next()
    assert view.choose_purpose("MAINTENANCE")["ok"] is True
    assert view.choose_link_mode("EXISTING")["ok"] is True

    result = view.next()

    assert result["ok"] is False
    assert result["issues"][0]["field"] == "maintenance_id"
    assert view.select_maintenance("m-1")["ok"] is True
    assert view.next()["step"] == 3


def test_create_mode_prefills_description() -> None:
    view = _view(FakeSession(), purpose="GENERAL")
    view.choose_purpose("MAINTENANCE")
    view.choose_link_mode("CREATE")
    assert view.workflow.assignment.new_maintenance_draft == {"description": "Maintenance using: Filter, Gasket"}
    view.update_maintenance_draft(technician_name="Sam")
    assert view.workflow.assignment.new_maintenance_draft["technician_name"] == "Sam"


def test_edit_rejections_are_reported() -> None:
    view = _view(FakeSession())
    view.toggle_not_received("l2", True)
    result = view.edit_quantity("l2", "3")
    assert result["ok"] is False
    assert result["field"] == "received_quantity"
    assert result["row_index"] == 1
    assert view.choose_resolution("l2", "ACCEPT_EXCESS")["ok"] is False
    assert view.choose_resolution("l2", "REQUEST_REMAINING", "send rest")["ok"] is True


def test_load_maintenance_candidates() -> None:
    session = FakeSession()
    session.maintenance.records = [MaintenanceRecord(id="m-1", status="PENDING", description="Oil change")]
    view = _view(session)
    assert view.load_maintenance_candidates() == {"ok": True, "candidates": ["m-1"]}
    assert session.maintenance.queries[0].equipment_id == "eq-9"

    session.maintenance.fail = NotFoundError(
        code="NOT_FOUND", message="Equipment not found", details=None, trace_id="trace-m", status_code=404
    )
    failed = view.load_maintenance_candidates()
    assert failed["ok"] is False
    assert failed["trace_id"] == "trace-m"


def test_cancel_closes_processor() -> None:
    closed = []
    view = _view(FakeSession(), on_close=closed.append)
    assert view.cancel() == {"ok": True, "cancelled": True}
    assert closed == ["t1"]
    assert view.next()["ok"] is False
