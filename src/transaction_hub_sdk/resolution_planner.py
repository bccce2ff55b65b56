from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Mapping, Sequence

from .discrepancy import Discrepancy, DiscrepancyKind, summarize
from .exceptions import DiscrepancyStateError
from .models_transactions import ResolutionReport, ResolutionReportItem

logger = logging.getLogger(__name__)


class ResolutionAction(str, Enum):
    ACCEPT_EXCESS = "ACCEPT_EXCESS"
    RETURN_EXCESS = "RETURN_EXCESS"
    INVESTIGATE_EXCESS = "INVESTIGATE_EXCESS"
    RECORD_SHORTAGE = "RECORD_SHORTAGE"
    REQUEST_REMAINING = "REQUEST_REMAINING"
    CANCEL_SHORTAGE = "CANCEL_SHORTAGE"


@dataclass(frozen=True)
class ResolutionOption:
    action: ResolutionAction
    label: str
    description: str


@dataclass(frozen=True)
class ResolutionDecision:
    line_id: str
    action: ResolutionAction | None
    comment: str = ""


_OPTIONS: dict[DiscrepancyKind, tuple[ResolutionOption, ...]] = {
    DiscrepancyKind.OVER: (
        ResolutionOption(ResolutionAction.ACCEPT_EXCESS, "Accept Excess", "Add extra items to inventory"),
        ResolutionOption(ResolutionAction.RETURN_EXCESS, "Return Excess", "Return extra items to sender"),
        ResolutionOption(ResolutionAction.INVESTIGATE_EXCESS, "Investigate", "Mark for investigation"),
    ),
    DiscrepancyKind.UNDER: (
        ResolutionOption(
            ResolutionAction.RECORD_SHORTAGE,
            "Record Shortage",
            "Accept partial quantity and record shortage",
        ),
        ResolutionOption(
            ResolutionAction.REQUEST_REMAINING,
            "Request Remaining",
            "Request remaining items from sender",
        ),
        ResolutionOption(
            ResolutionAction.CANCEL_SHORTAGE,
            "Cancel Transaction",
            "Cancel transaction due to shortage",
        ),
    ),
}


def allowed_actions(discrepancy: Discrepancy) -> list[ResolutionOption]:
    return list(_OPTIONS[discrepancy.kind])


def default_action(discrepancy: Discrepancy) -> ResolutionAction:
    return _OPTIONS[discrepancy.kind][0].action


def is_action_allowed(discrepancy: Discrepancy, action: ResolutionAction | str | None) -> bool:
    if not action:
        return False
    try:
        candidate = ResolutionAction(action)
    except ValueError:
        return False
    return any(option.action is candidate for option in _OPTIONS[discrepancy.kind])


def is_plan_complete(
    discrepancies: Sequence[Discrepancy],
    decisions: Mapping[str, ResolutionDecision],
) -> bool:
    for discrepancy in discrepancies:
        decision = decisions.get(discrepancy.line_id)
        if decision is None or not is_action_allowed(discrepancy, decision.action):
            return False
    return True


def missing_decisions(
    discrepancies: Sequence[Discrepancy],
    decisions: Mapping[str, ResolutionDecision],
) -> list[str]:
    return [
        discrepancy.line_id
        for discrepancy in discrepancies
        if not is_action_allowed(discrepancy, getattr(decisions.get(discrepancy.line_id), "action", None))
    ]


def reconcile_decisions(
    discrepancies: Sequence[Discrepancy],
    decisions: Mapping[str, ResolutionDecision],
) -> dict[str, ResolutionDecision]:
    """Align decisions with the current discrepancy set.

    New discrepancies get their kind's default action, decisions whose discrepancy
    vanished are dropped, and an action the discrepancy no longer allows (its kind
    flipped) is reset to the new default while keeping the comment.
    """
    active = {discrepancy.line_id: discrepancy for discrepancy in discrepancies}
    for line_id in decisions:
        if line_id not in active:
            _drop_orphan(DiscrepancyStateError(line_id))
    reconciled: dict[str, ResolutionDecision] = {}
    for line_id, discrepancy in active.items():
        current = decisions.get(line_id)
        if current is None:
            reconciled[line_id] = ResolutionDecision(line_id=line_id, action=default_action(discrepancy))
        elif not is_action_allowed(discrepancy, current.action):
            reconciled[line_id] = replace(current, action=default_action(discrepancy))
        else:
            reconciled[line_id] = current
    return reconciled


def build_resolution_report(
    discrepancies: Sequence[Discrepancy],
    decisions: Mapping[str, ResolutionDecision],
) -> ResolutionReport:
    items: list[ResolutionReportItem] = []
    for discrepancy in discrepancies:
        decision = decisions.get(discrepancy.line_id)
        if decision is None or decision.action is None:
            raise DiscrepancyStateError(discrepancy.line_id)
        items.append(
            ResolutionReportItem(
                line_id=discrepancy.line_id,
                item_name=discrepancy.item_name,
                expected_quantity=discrepancy.expected_quantity,
                received_quantity=discrepancy.received_quantity,
                difference=discrepancy.difference,
                kind=discrepancy.kind.value,
                severity=discrepancy.severity.value,
                action=ResolutionAction(decision.action).value,
                comment=decision.comment or "",
            )
        )
    return ResolutionReport(items=items, summary=summarize(discrepancies))


def _drop_orphan(error: DiscrepancyStateError) -> None:
    logger.warning("resolution_orphan_dropped", extra={"line_id": error.line_id})
