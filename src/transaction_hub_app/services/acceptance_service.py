from __future__ import annotations

import logging
from dataclasses import dataclass
from fractions import Fraction
from functools import partial
from typing import Sequence

from pydantic import ValidationError as PydanticValidationError

from transaction_hub_sdk import ApiSession
from transaction_hub_sdk.acceptance_validation import ClientValidationError
from transaction_hub_sdk.acceptance_workflow import AcceptanceWorkflow
from transaction_hub_sdk.error_mapper import to_submission_error
from transaction_hub_sdk.exceptions import AcceptanceSubmissionError, ApiError
from transaction_hub_sdk.idempotency import IdempotencyKeys
from transaction_hub_sdk.maintenance_link import filter_candidate_records
from transaction_hub_sdk.models_transactions import (
    AcceptanceRequest,
    Identity,
    MaintenanceRecord,
    MaintenanceSearchQuery,
    PartyType,
    Transaction,
    TransactionLine,
)
from transaction_hub_sdk.transaction_state import TransactionBuckets, categorize_transactions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HubServiceError(RuntimeError):
    message: str
    details: str | None = None
    trace_id: str | None = None

    def __str__(self) -> str:
        return self.message


class AcceptanceService:
    def __init__(self, session: ApiSession) -> None:
        self.session = session

    def load_inbox(self, party_type: PartyType | str, party_id: str) -> TransactionBuckets:
        logger.info("inbox_fetch_attempt", extra={"party_id": party_id})
        try:
            rows = self.session.transactions_client().list_for_party(party_type, party_id)
        except ApiError as exc:
            failure = to_submission_error(exc)
            logger.warning("inbox_fetch_failure", extra={"party_id": party_id, "trace_id": exc.trace_id})
            raise HubServiceError(message=failure.message, details=failure.details, trace_id=failure.trace_id) from exc
        buckets = categorize_transactions(rows, party_id)
        logger.info(
            "inbox_fetch_success",
            extra={"incoming": len(buckets.incoming), "pending": len(buckets.pending), "history": len(buckets.history)},
        )
        return buckets

    def open_workflow(
        self,
        transaction: Transaction,
        actor: Identity | None = None,
        *,
        severity_threshold: Fraction | None = None,
    ) -> AcceptanceWorkflow:
        acting = actor or self.session.actor
        if acting is None:
            raise ValueError("An acting identity is required to accept transactions")
        return AcceptanceWorkflow(
            transaction=transaction,
            actor=acting,
            submitter=partial(self.submit_acceptance, lines=transaction.items),
            severity_threshold=severity_threshold or self.session.config.severity_threshold,
        )

    def submit_acceptance(
        self,
        request: AcceptanceRequest,
        keys: IdempotencyKeys,
        *,
        lines: Sequence[TransactionLine] | None = None,
    ) -> Transaction:
        try:
            return self.session.transactions_client().accept_transaction(request, lines=lines, keys=keys)
        except ClientValidationError as exc:
            raise AcceptanceSubmissionError(message=str(exc), details="client validation") from exc
        except ApiError as exc:
            raise to_submission_error(exc) from exc
        except (PydanticValidationError, ValueError) as exc:
            logger.warning("acceptance_response_invalid", extra={"transaction_id": request.transaction_id})
            raise AcceptanceSubmissionError(
                message="Unexpected response from the transaction service",
                details=str(exc),
                code="INVALID_RESPONSE",
            ) from exc

    def search_maintenance(
        self,
        query: MaintenanceSearchQuery,
        search_term: str | None = None,
    ) -> list[MaintenanceRecord]:
        logger.info("maintenance_search_attempt", extra={"equipment_id": query.equipment_id})
        try:
            records = self.session.maintenance_client().search_candidates(query)
        except ApiError as exc:
            failure = to_submission_error(exc)
            raise HubServiceError(
                message="Failed to load maintenance records",
                details=failure.details,
                trace_id=failure.trace_id,
            ) from exc
        return filter_candidate_records(records, search_term)
