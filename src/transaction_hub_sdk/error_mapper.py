from __future__ import annotations

from typing import Mapping

from .exceptions import (
    AcceptanceSubmissionError,
    ApiError,
    AuthError,
    ConflictError,
    NotFoundError,
    PermissionError,
    RateLimitError,
    ServerError,
    TransactionActionForbiddenError,
    TransactionStateError,
    TransportError,
    ValidationError,
)

_STATUS_ERRORS: dict[int, type[ApiError]] = {
    400: ValidationError,
    401: AuthError,
    403: PermissionError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
    429: RateLimitError,
}

# Backend codes that narrow a generic status error to a transaction-specific one.
_CODE_ERRORS: dict[str, type[ApiError]] = {
    "TRANSACTION_NOT_PENDING": TransactionStateError,
    "TRANSACTION_ALREADY_PROCESSED": TransactionStateError,
    "NOT_TRANSACTION_RECEIVER": TransactionActionForbiddenError,
}


def map_error(status_code: int, payload: Mapping[str, object] | None, trace_id: str | None) -> ApiError:
    payload = payload or {}
    code = str(payload.get("code") or "HTTP_ERROR")
    message = str(payload.get("message") or "Request failed")
    payload_trace_id = payload.get("trace_id")
    resolved_trace_id = str(payload_trace_id) if payload_trace_id is not None else trace_id
    mapped = _CODE_ERRORS.get(code) or _STATUS_ERRORS.get(status_code)
    if mapped is None:
        mapped = ServerError if status_code >= 500 else ApiError
    return mapped(
        code=code,
        message=message,
        details=payload.get("details"),
        trace_id=resolved_trace_id,
        status_code=status_code,
        raw_payload=dict(payload),
    )


def to_submission_error(exc: ApiError) -> AcceptanceSubmissionError:
    """Collapse a transport failure into the message shown on the final review step."""
    if isinstance(exc, TransportError):
        return AcceptanceSubmissionError(
            message="Could not reach the transaction service. Please retry.",
            details=f"{exc.code}: {exc.message}",
            trace_id=exc.trace_id,
            code=exc.code,
        )
    primary = exc.message.strip() or "Failed to process transaction"
    details = f"{exc.code} (HTTP {exc.status_code})"
    if exc.details:
        details = f"{details}: {exc.details}"
    return AcceptanceSubmissionError(
        message=primary,
        details=details,
        trace_id=exc.trace_id,
        code=exc.code,
        status_code=exc.status_code,
    )
