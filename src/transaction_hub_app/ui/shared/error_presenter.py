from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from transaction_hub_sdk.exceptions import AcceptanceSubmissionError

_STATUS_CATEGORIES = {
    400: "validation",
    401: "permission_denied",
    403: "permission_denied",
    404: "not_found",
    409: "conflict",
    422: "validation",
}

_CODE_CATEGORIES = {
    "TRANSACTION_NOT_PENDING": "conflict",
    "TRANSACTION_ALREADY_PROCESSED": "conflict",
    "NOT_TRANSACTION_RECEIVER": "permission_denied",
    "TRANSPORT_ERROR": "transport",
    "INVALID_RESPONSE": "server",
}

_MESSAGE_HINTS = (
    ("validation", ("invalid", "required", "quantity", "validation")),
    ("permission_denied", ("permission", "forbidden", "denied")),
    ("conflict", ("already", "not pending", "conflict")),
    ("not_found", ("not found",)),
    ("transport", ("timeout", "network", "could not reach", "connection")),
    ("server", ("unavailable", "internal error", "server")),
)


@dataclass(frozen=True)
class PresentedError:
    category: str
    user_message: str
    safe_to_retry: bool
    code: str
    details: dict[str, Any]


class ErrorPresenter:
    """Turns acceptance failures into the banner shown on the final review step."""

    _CATEGORY_MESSAGES = {
        "validation": "Please review the received quantities and try again.",
        "permission_denied": "You are not allowed to accept this transaction.",
        "conflict": "This transaction is no longer pending.",
        "not_found": "The transaction was not found.",
        "transport": "Temporary connectivity issue. Please retry.",
        "server": "Service error. Try again shortly or contact support.",
        "unknown": "Unexpected error. Please try again.",
    }

    def present(
        self,
        *,
        message: str,
        details: Any = None,
        trace_id: str | None = None,
        action: str,
        code: str | None = None,
        status_code: int | None = None,
        allow_retry: bool = False,
    ) -> PresentedError:
        parsed_code, parsed_status = self._parse_details(details)
        status = status_code if status_code is not None else parsed_status
        normalized_code = (code or parsed_code or "UNKNOWN").upper()
        category = self._categorize(message, normalized_code, status)
        return PresentedError(
            category=category,
            user_message=self._CATEGORY_MESSAGES[category],
            safe_to_retry=allow_retry and category in {"transport", "server"},
            code=normalized_code,
            details={
                "code": normalized_code,
                "status_code": status,
                "trace_id": trace_id,
                "action": action,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "raw_details": details,
            },
        )

    def present_submission(self, error: AcceptanceSubmissionError, *, action: str) -> PresentedError:
        # The session reuses its idempotency key, so a resubmit after a transient failure is safe.
        return self.present(
            message=error.message,
            details=error.details,
            trace_id=error.trace_id,
            action=action,
            code=error.code,
            status_code=error.status_code,
            allow_retry=True,
        )

    @staticmethod
    def _parse_details(details: Any) -> tuple[str | None, int | None]:
        if isinstance(details, dict):
            raw = details.get("code")
            status = details.get("status_code")
            return (str(raw) if raw else None), (int(status) if status else None)
        return None, None

    @staticmethod
    def _categorize(message: str, code: str, status: int | None) -> str:
        if code in _CODE_CATEGORIES:
            return _CODE_CATEGORIES[code]
        if status is not None:
            if status >= 500:
                return "server"
            if status in _STATUS_CATEGORIES:
                return _STATUS_CATEGORIES[status]
        text = f"{message} {code}".lower()
        for category, hints in _MESSAGE_HINTS:
            if any(hint in text for hint in hints):
                return category
        return "unknown"
