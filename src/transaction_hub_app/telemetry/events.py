from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class TelemetryCategory(str, Enum):
    NAVIGATION = "navigation"
    API_CALL_RESULT = "api_call_result"
    ERROR = "error"
    VALIDATION = "validation"


TELEMETRY_CATEGORIES = frozenset(category.value for category in TelemetryCategory)

# Receiver identity and free text typed by the receiver stay out of telemetry.
_BLOCKED_CONTEXT_KEYS = frozenset(
    {"username", "display_name", "accepted_by", "email", "token", "authorization", "comment", "description"}
)


@dataclass(frozen=True)
class TelemetryEvent:
    category: str
    name: str
    module: str
    action: str
    timestamp_utc: str
    trace_id: str | None = None
    step_id: int | None = None
    success: bool | None = None
    error_code: str | None = None
    context: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


def build_event(
    *,
    category: TelemetryCategory | str,
    name: str,
    module: str,
    action: str,
    trace_id: str | None = None,
    step_id: int | None = None,
    success: bool | None = None,
    error_code: str | None = None,
    context: dict[str, Any] | None = None,
    now: datetime | None = None,
) -> TelemetryEvent:
    try:
        resolved = TelemetryCategory(category)
    except ValueError:
        raise ValueError(f"Unsupported telemetry category: {category}") from None
    blocked = sorted(key for key in (context or {}) if key.lower() in _BLOCKED_CONTEXT_KEYS)
    if blocked:
        raise ValueError(f"Personal or free-text keys are forbidden in telemetry context: {blocked}")
    return TelemetryEvent(
        category=resolved.value,
        name=name,
        module=module,
        action=action,
        timestamp_utc=(now or datetime.now(timezone.utc)).isoformat(),
        trace_id=trace_id,
        step_id=int(step_id) if step_id is not None else None,
        success=success,
        error_code=error_code,
        context=dict(context) if context else None,
    )
