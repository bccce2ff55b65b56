from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from fractions import Fraction
from typing import Any, Callable, Mapping

from .acceptance_validation import ValidationIssue
from .discrepancy import DEFAULT_SEVERITY_THRESHOLD, Discrepancy, classify_all, summarize
from .exceptions import AcceptanceSubmissionError, DiscrepancyStateError
from .idempotency import IdempotencyKeys, acceptance_idempotency_keys
from .maintenance_link import change_link_mode, is_purpose_complete, purpose_issues
from .models_transactions import (
    AcceptanceRequest,
    DiscrepancySummary,
    Identity,
    MaintenanceLinkMode,
    MaintenanceSearchQuery,
    PartyType,
    PurposeAssignment,
    Transaction,
    TransactionLine,
    TransactionPurpose,
)
from .quantity_ledger import LedgerAggregate, ReceiptEntry, coerce_quantity, compute_aggregate, default_entries
from .resolution_planner import (
    ResolutionAction,
    ResolutionDecision,
    ResolutionOption,
    allowed_actions,
    build_resolution_report,
    is_action_allowed,
    is_plan_complete,
    missing_decisions,
    reconcile_decisions,
)

logger = logging.getLogger(__name__)

Submitter = Callable[[AcceptanceRequest, IdempotencyKeys], Transaction]


class StepId(IntEnum):
    REVIEW = 1
    ASSIGN_PURPOSE = 2
    VERIFY_QUANTITIES = 3
    RESOLVE_DISCREPANCIES = 4
    FINAL_REVIEW = 5


@dataclass(frozen=True)
class StepDefinition:
    id: StepId
    title: str
    description: str
    is_visible: Callable[["AcceptanceWorkflow"], bool]
    can_advance: Callable[["AcceptanceWorkflow"], bool]


def _always(_: "AcceptanceWorkflow") -> bool:
    return True


STEPS: tuple[StepDefinition, ...] = (
    StepDefinition(
        StepId.REVIEW,
        "Review Transaction",
        "Verify transaction details and items",
        is_visible=_always,
        can_advance=_always,
    ),
    StepDefinition(
        StepId.ASSIGN_PURPOSE,
        "Assign Purpose",
        "Specify transaction purpose and maintenance linking",
        is_visible=lambda wf: wf.needs_purpose_assignment,
        can_advance=lambda wf: is_purpose_complete(wf.assignment),
    ),
    StepDefinition(
        StepId.VERIFY_QUANTITIES,
        "Verify Quantities",
        "Confirm received quantities for each item",
        is_visible=_always,
        can_advance=_always,
    ),
    StepDefinition(
        StepId.RESOLVE_DISCREPANCIES,
        "Resolve Discrepancies",
        "Handle any quantity discrepancies",
        is_visible=lambda wf: wf.aggregate.any_discrepancy,
        can_advance=lambda wf: is_plan_complete(wf.discrepancies, wf.decisions),
    ),
    StepDefinition(
        StepId.FINAL_REVIEW,
        "Final Review",
        "Review all changes before completion",
        is_visible=_always,
        can_advance=_always,
    ),
)


@dataclass
class WorkflowState:
    current_step_id: int = StepId.REVIEW
    visited_steps: set[int] = field(default_factory=lambda: {int(StepId.REVIEW)})
    is_complete: bool = False


@dataclass(frozen=True)
class TransitionResult:
    ok: bool
    step_id: int
    submitted: bool = False
    error: str | None = None
    issues: tuple[ValidationIssue, ...] = ()


@dataclass
class AcceptanceWorkflow:
    """Step machine for accepting one pending transaction.

    Receipt entries, resolution decisions and the purpose assignment are owned by
    this instance for the length of one acceptance session. Discrepancies and step
    visibility are re-derived from the entries after every edit.
    """

    transaction: Transaction
    actor: Identity
    submitter: Submitter
    severity_threshold: Fraction = DEFAULT_SEVERITY_THRESHOLD
    steps: tuple[StepDefinition, ...] = STEPS
    comment: str = ""
    state: WorkflowState = field(default_factory=WorkflowState)
    entries: dict[str, ReceiptEntry] = field(init=False)
    decisions: dict[str, ResolutionDecision] = field(init=False, default_factory=dict)
    assignment: PurposeAssignment = field(init=False)
    field_errors: dict[str, ValidationIssue] = field(init=False, default_factory=dict)
    idempotency: IdempotencyKeys = field(init=False)
    is_submitting: bool = False
    is_cancelled: bool = False
    error_message: str | None = None
    error_details: str | None = None
    trace_id: str | None = None
    submission_error: AcceptanceSubmissionError | None = None
    result: Transaction | None = None

    def __post_init__(self) -> None:
        self.entries = default_entries(self.transaction.items)
        self.assignment = PurposeAssignment(purpose=self._initial_purpose())
        self.idempotency = acceptance_idempotency_keys(self.transaction.id, self.transaction.batch_number)
        self._recompute()

    # derived state

    @property
    def lines(self) -> list[TransactionLine]:
        return self.transaction.items

    @property
    def needs_purpose_assignment(self) -> bool:
        purpose = (self.transaction.purpose or "").strip().upper()
        return not purpose or purpose == TransactionPurpose.GENERAL.value

    @property
    def aggregate(self) -> LedgerAggregate:
        return compute_aggregate(self.lines, self.entries)

    @property
    def discrepancies(self) -> list[Discrepancy]:
        return classify_all(self.lines, self.entries, threshold=self.severity_threshold)

    @property
    def summary(self) -> DiscrepancySummary:
        return summarize(self.discrepancies)

    @property
    def is_finished(self) -> bool:
        return self.state.is_complete or self.is_cancelled

    def visible_steps(self) -> list[StepDefinition]:
        return [step for step in self.steps if step.is_visible(self)]

    def current_step(self) -> StepDefinition:
        for step in self.steps:
            if step.id == self.state.current_step_id:
                return step
        raise LookupError(f"unknown step {self.state.current_step_id}")

    def is_last_step(self) -> bool:
        return self._target_after(self.state.current_step_id) is None

    def can_go_next(self) -> bool:
        if self.is_submitting or self.is_finished:
            return False
        return self.current_step().can_advance(self)

    def can_go_previous(self) -> bool:
        if self.is_submitting or self.is_finished:
            return False
        return self._target_before(self.state.current_step_id) is not None

    def step_issues(self) -> list[ValidationIssue]:
        step_id = self.state.current_step_id
        if step_id == StepId.ASSIGN_PURPOSE:
            return purpose_issues(self.assignment)
        if step_id == StepId.RESOLVE_DISCREPANCIES:
            return [
                ValidationIssue(self._row_index(line_id), "action", "choose a resolution action")
                for line_id in missing_decisions(self.discrepancies, self.decisions)
            ]
        return []

    def resolution_options(self) -> dict[str, list[ResolutionOption]]:
        return {discrepancy.line_id: allowed_actions(discrepancy) for discrepancy in self.discrepancies}

    # navigation

    def next(self) -> TransitionResult:
        blocked = self._navigation_block()
        if blocked:
            return blocked
        if not self.current_step().can_advance(self):
            issues = tuple(self.step_issues())
            return TransitionResult(False, self.state.current_step_id, error="Step is incomplete", issues=issues)
        target = self._target_after(self.state.current_step_id)
        if target is None:
            return self.submit()
        self._enter(target)
        return TransitionResult(True, target)

    def previous(self) -> TransitionResult:
        blocked = self._navigation_block()
        if blocked:
            return blocked
        target = self._target_before(self.state.current_step_id)
        if target is None:
            return TransitionResult(False, self.state.current_step_id, error="Already at the first step")
        self._enter(target)
        return TransitionResult(True, target)

    def cancel(self) -> bool:
        if self.is_submitting or self.state.is_complete:
            return False
        self.is_cancelled = True
        self.error_message = None
        logger.info("acceptance_cancelled", extra={"transaction_id": self.transaction.id})
        return True

    # receiver edits

    def set_received_quantity(self, line_id: str, raw: Any) -> ValidationIssue | None:
        blocked = self._edit_block(line_id, "received_quantity")
        if blocked:
            return blocked
        entry = self.entries[line_id]
        if entry.not_received:
            issue = ValidationIssue(self._row_index(line_id), "received_quantity", "line is marked as not received")
            self.field_errors[line_id] = issue
            return issue
        quantity, issue = coerce_quantity(raw, self._row_index(line_id))
        self.entries[line_id] = entry.with_quantity(quantity)
        if issue:
            self.field_errors[line_id] = issue
        else:
            self.field_errors.pop(line_id, None)
        self._recompute()
        return issue

    def set_not_received(self, line_id: str, flag: bool) -> ValidationIssue | None:
        blocked = self._edit_block(line_id, "not_received")
        if blocked:
            return blocked
        line = self._line(line_id)
        self.entries[line_id] = self.entries[line_id].mark_not_received(bool(flag), line.expected_quantity)
        self.field_errors.pop(line_id, None)
        self._recompute()
        return None

    def select_purpose(self, purpose: TransactionPurpose | str) -> ValidationIssue | None:
        locked = self._lock_block("purpose")
        if locked:
            return locked
        try:
            chosen = purpose if isinstance(purpose, TransactionPurpose) else TransactionPurpose(str(purpose).strip().upper())
        except ValueError:
            return ValidationIssue(None, "purpose", f"unsupported purpose {purpose!r}")
        if chosen is TransactionPurpose.GENERAL:
            return ValidationIssue(None, "purpose", "choose CONSUMABLE or MAINTENANCE")
        updates: dict[str, Any] = {"purpose": chosen}
        if chosen is TransactionPurpose.CONSUMABLE:
            updates.update(maintenance_link_mode=MaintenanceLinkMode.NONE, maintenance_id=None, new_maintenance_draft=None)
        self.assignment = self.assignment.model_copy(update=updates)
        return None

    def select_link_mode(self, mode: MaintenanceLinkMode | str) -> ValidationIssue | None:
        locked = self._lock_block("maintenance_link_mode")
        if locked:
            return locked
        if self.assignment.purpose is not TransactionPurpose.MAINTENANCE:
            return ValidationIssue(None, "maintenance_link_mode", "maintenance linking requires MAINTENANCE purpose")
        try:
            self.assignment = change_link_mode(self.assignment, mode)
        except ValueError:
            return ValidationIssue(None, "maintenance_link_mode", f"unsupported link mode {mode!r}")
        return None

    def select_maintenance(self, maintenance_id: str | None) -> ValidationIssue | None:
        locked = self._lock_block("maintenance_id")
        if locked:
            return locked
        if self.assignment.maintenance_link_mode is not MaintenanceLinkMode.EXISTING:
            return ValidationIssue(None, "maintenance_id", "switch to EXISTING before selecting a record")
        self.assignment = self.assignment.model_copy(update={"maintenance_id": maintenance_id or None})
        return None

    def set_maintenance_draft(self, draft: Mapping[str, Any] | None) -> ValidationIssue | None:
        locked = self._lock_block("new_maintenance_draft")
        if locked:
            return locked
        if self.assignment.maintenance_link_mode is not MaintenanceLinkMode.CREATE:
            return ValidationIssue(None, "new_maintenance_draft", "switch to CREATE before drafting a record")
        self.assignment = self.assignment.model_copy(
            update={"new_maintenance_draft": dict(draft) if draft is not None else None}
        )
        return None

    def select_resolution(
        self,
        line_id: str,
        action: ResolutionAction | str,
        comment: str | None = None,
    ) -> ValidationIssue | None:
        locked = self._lock_block("action", line_id)
        if locked:
            return locked
        try:
            discrepancy = self._discrepancy(line_id)
        except DiscrepancyStateError as exc:
            logger.warning("resolution_for_unknown_line", extra={"line_id": exc.line_id})
            return ValidationIssue(None, "line_id", str(exc))
        if not is_action_allowed(discrepancy, action):
            return ValidationIssue(self._row_index(line_id), "action", f"{action!r} is not allowed for this discrepancy")
        current = self.decisions.get(line_id)
        self.decisions[line_id] = ResolutionDecision(
            line_id=line_id,
            action=ResolutionAction(action),
            comment=comment if comment is not None else (current.comment if current else ""),
        )
        return None

    def set_resolution_comment(self, line_id: str, comment: str) -> ValidationIssue | None:
        locked = self._lock_block("comment", line_id)
        if locked:
            return locked
        current = self.decisions.get(line_id)
        if current is None:
            logger.warning("resolution_for_unknown_line", extra={"line_id": line_id})
            return ValidationIssue(None, "line_id", str(DiscrepancyStateError(line_id)))
        self.decisions[line_id] = ResolutionDecision(line_id=line_id, action=current.action, comment=comment or "")
        return None

    def set_comment(self, comment: str) -> ValidationIssue | None:
        locked = self._lock_block("comment")
        if locked:
            return locked
        self.comment = comment or ""
        return None

    # collaborators

    def maintenance_search_query(self) -> MaintenanceSearchQuery | None:
        receiver_type = (self.transaction.receiver_type or "").upper()
        if receiver_type != PartyType.EQUIPMENT.value or not self.transaction.receiver_id:
            return None
        return MaintenanceSearchQuery(
            equipment_id=self.transaction.receiver_id,
            candidate_line_item_ids=[line.id for line in self.lines],
        )

    def build_request(self) -> AcceptanceRequest:
        discrepancies = self.discrepancies
        return AcceptanceRequest(
            transaction_id=self.transaction.id,
            accepted_by=self.actor.username,
            received_items=[self.entries[line.id].to_received_item() for line in self.lines],
            comment=self.comment,
            resolution_report=build_resolution_report(discrepancies, self.decisions) if discrepancies else None,
            purpose_assignment=self.assignment if self.needs_purpose_assignment else None,
        )

    def submit(self) -> TransitionResult:
        step_id = self.state.current_step_id
        if self.is_submitting:
            return TransitionResult(False, step_id, error="Submission already in progress")
        if self.is_finished:
            return TransitionResult(False, step_id, error="Acceptance session is closed")
        if step_id != StepId.FINAL_REVIEW:
            return TransitionResult(False, step_id, error="Submission is only possible from the final review")
        for step in self.visible_steps():
            if not step.can_advance(self):
                return TransitionResult(False, step_id, error=f"{step.title} is incomplete")

        self.error_message = None
        self.error_details = None
        self.submission_error = None
        self.is_submitting = True
        try:
            request = self.build_request()
            logger.info(
                "acceptance_submit_attempt",
                extra={"transaction_id": self.transaction.id, "discrepancies": len(self.discrepancies)},
            )
            result = self.submitter(request, self.idempotency)
        except AcceptanceSubmissionError as exc:
            self.submission_error = exc
            self.error_message = exc.message
            self.error_details = exc.details
            self.trace_id = exc.trace_id
            logger.warning(
                "acceptance_submit_failure",
                extra={"transaction_id": self.transaction.id, "trace_id": exc.trace_id},
            )
            return TransitionResult(False, step_id, error=exc.message)
        finally:
            self.is_submitting = False

        self.result = result
        self.state.is_complete = True
        logger.info("acceptance_submit_success", extra={"transaction_id": self.transaction.id})
        return TransitionResult(True, step_id, submitted=True)

    # internals

    def _initial_purpose(self) -> TransactionPurpose:
        try:
            purpose = TransactionPurpose((self.transaction.purpose or "").strip().upper())
        except ValueError:
            return TransactionPurpose.CONSUMABLE
        return TransactionPurpose.CONSUMABLE if purpose is TransactionPurpose.GENERAL else purpose

    def _recompute(self) -> None:
        self.decisions = reconcile_decisions(self.discrepancies, self.decisions)
        visible_ids = {step.id for step in self.visible_steps()}
        if self.state.current_step_id in visible_ids:
            return
        # Fall back to the nearest visible predecessor; Review is always visible.
        fallback = self._target_before(self.state.current_step_id) or StepId.REVIEW
        logger.info(
            "acceptance_step_hidden",
            extra={"from_step": int(self.state.current_step_id), "to_step": int(fallback)},
        )
        self._enter(fallback)

    def _enter(self, step_id: int) -> None:
        self.state.current_step_id = int(step_id)
        self.state.visited_steps.add(int(step_id))

    def _target_after(self, step_id: int) -> int | None:
        candidates = [step.id for step in self.visible_steps() if step.id > step_id]
        return int(min(candidates)) if candidates else None

    def _target_before(self, step_id: int) -> int | None:
        candidates = [step.id for step in self.visible_steps() if step.id < step_id]
        return int(max(candidates)) if candidates else None

    def _navigation_block(self) -> TransitionResult | None:
        step_id = self.state.current_step_id
        if self.is_submitting:
            return TransitionResult(False, step_id, error="Submission already in progress")
        if self.is_finished:
            return TransitionResult(False, step_id, error="Acceptance session is closed")
        return None

    def _lock_block(self, field_name: str, line_id: str | None = None) -> ValidationIssue | None:
        if self.is_submitting or self.is_finished:
            row = self._row_index(line_id) if line_id is not None else None
            return ValidationIssue(row, field_name, "acceptance session is locked")
        return None

    def _edit_block(self, line_id: str, field_name: str) -> ValidationIssue | None:
        locked = self._lock_block(field_name, line_id)
        if locked:
            return locked
        if line_id not in self.entries:
            return ValidationIssue(None, "line_id", f"unknown line {line_id}")
        return None

    def _line(self, line_id: str) -> TransactionLine:
        for line in self.lines:
            if line.id == line_id:
                return line
        raise KeyError(line_id)

    def _row_index(self, line_id: str) -> int | None:
        for idx, line in enumerate(self.lines):
            if line.id == line_id:
                return idx
        return None

    def _discrepancy(self, line_id: str) -> Discrepancy:
        for discrepancy in self.discrepancies:
            if discrepancy.line_id == line_id:
                return discrepancy
        raise DiscrepancyStateError(line_id)
