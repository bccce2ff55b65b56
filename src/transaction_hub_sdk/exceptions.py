from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ApiError(Exception):
    code: str
    message: str
    details: object | None
    trace_id: str | None
    status_code: int
    raw_payload: object | None = None

    def __str__(self) -> str:
        trace = f" trace_id={self.trace_id}" if self.trace_id else ""
        return f"[{self.status_code}] {self.code}: {self.message}{trace}"


class UnauthorizedError(ApiError):
    pass


class ForbiddenError(ApiError):
    pass


class NotFoundError(ApiError):
    pass


class ValidationError(ApiError):
    pass


class AuthError(UnauthorizedError):
    """Authentication failed or session is invalid."""


class PermissionError(ForbiddenError):
    """Authorization denied for the acting party."""


class ConflictError(ApiError):
    """409 or conflict-style errors."""


class RateLimitError(ApiError):
    """429 throttling error."""


class ServerError(ApiError):
    """5xx server-side failures."""


class TransportError(ApiError):
    """Network/transport failure before an HTTP response was returned."""


class TransactionStateError(ValidationError):
    """The transaction is no longer in a state that accepts the action."""


class TransactionActionForbiddenError(ForbiddenError):
    pass


class DiscrepancyStateError(LookupError):
    """A resolution decision references a line with no active discrepancy."""

    def __init__(self, line_id: str) -> None:
        self.line_id = line_id
        super().__init__(f"no active discrepancy for line {line_id}")


@dataclass(frozen=True)
class AcceptanceSubmissionError(RuntimeError):
    message: str
    details: str | None = None
    trace_id: str | None = None
    code: str | None = None
    status_code: int | None = None

    def __str__(self) -> str:
        return self.message
