from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class Notification:
    level: str
    title: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class NotificationCenter:
    """Toast queue owned by the transaction hub screen."""

    messages: list[dict[str, Any]] = field(default_factory=list)
    limit: int = 20

    def push(self, *, level: str, title: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
        payload = asdict(Notification(level=level, title=title, message=message, details=dict(details or {})))
        self.messages.append(payload)
        del self.messages[: -self.limit]
        return payload

    def success(self, title: str, message: str) -> dict[str, Any]:
        return self.push(level="success", title=title, message=message)

    def error(self, title: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
        return self.push(level="error", title=title, message=message, details=details)

    def clear(self) -> None:
        self.messages.clear()

    def render(self) -> dict[str, Any]:
        return {"count": len(self.messages), "messages": list(self.messages)}
