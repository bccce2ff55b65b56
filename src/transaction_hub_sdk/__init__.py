from .acceptance_validation import ClientValidationError, ValidationIssue, validate_acceptance_payload
from .acceptance_workflow import AcceptanceWorkflow, StepDefinition, StepId, TransitionResult, WorkflowState
from .config import ClientConfig, ConfigError, load_config
from .discrepancy import Discrepancy, DiscrepancyKind, DiscrepancySeverity, classify, classify_all, summarize
from .error_mapper import map_error, to_submission_error
from .exceptions import (
    AcceptanceSubmissionError,
    ApiError,
    DiscrepancyStateError,
    ForbiddenError,
    NotFoundError,
    TransactionStateError,
    UnauthorizedError,
    ValidationError,
)
from .http_client import HttpClient
from .idempotency import IdempotencyKeys, acceptance_idempotency_keys
from .maintenance_link import filter_candidate_records, is_link_satisfied, suggest_maintenance_description
from .models_transactions import (
    AcceptanceRequest,
    Identity,
    MaintenanceLinkMode,
    MaintenanceRecord,
    MaintenanceSearchQuery,
    PartyType,
    PurposeAssignment,
    ReceivedItem,
    ResolutionReport,
    Transaction,
    TransactionLine,
    TransactionPurpose,
    TransactionStatus,
)
from .quantity_ledger import ReceiptEntry, coerce_quantity, compute_aggregate, compute_delta
from .resolution_planner import (
    ResolutionAction,
    ResolutionDecision,
    ResolutionOption,
    allowed_actions,
    build_resolution_report,
    is_plan_complete,
)
from .session import ApiSession
from .tracing import TraceContext
from .transaction_state import AcceptanceActionAvailability, acceptance_action_availability, categorize_transactions

__all__ = [
    "AcceptanceActionAvailability",
    "AcceptanceRequest",
    "AcceptanceSubmissionError",
    "AcceptanceWorkflow",
    "ApiError",
    "ApiSession",
    "ClientConfig",
    "ClientValidationError",
    "ConfigError",
    "Discrepancy",
    "DiscrepancyKind",
    "DiscrepancySeverity",
    "DiscrepancyStateError",
    "ForbiddenError",
    "HttpClient",
    "IdempotencyKeys",
    "Identity",
    "MaintenanceLinkMode",
    "MaintenanceRecord",
    "MaintenanceSearchQuery",
    "NotFoundError",
    "PartyType",
    "PurposeAssignment",
    "ReceiptEntry",
    "ReceivedItem",
    "ResolutionAction",
    "ResolutionDecision",
    "ResolutionOption",
    "ResolutionReport",
    "StepDefinition",
    "StepId",
    "TraceContext",
    "Transaction",
    "TransactionLine",
    "TransactionPurpose",
    "TransactionStateError",
    "TransactionStatus",
    "TransitionResult",
    "UnauthorizedError",
    "ValidationError",
    "ValidationIssue",
    "WorkflowState",
    "acceptance_action_availability",
    "acceptance_idempotency_keys",
    "allowed_actions",
    "build_resolution_report",
    "categorize_transactions",
    "classify",
    "classify_all",
    "coerce_quantity",
    "compute_aggregate",
    "compute_delta",
    "filter_candidate_records",
    "is_link_satisfied",
    "is_plan_complete",
    "load_config",
    "map_error",
    "suggest_maintenance_description",
    "summarize",
    "to_submission_error",
    "validate_acceptance_payload",
]
