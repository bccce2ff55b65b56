from __future__ import annotations

import uuid
from dataclasses import dataclass

TRACE_HEADER = "X-Trace-ID"


@dataclass
class TraceContext:
    """Trace id shared by the requests of one acceptance session.

    The server may answer with its own id, which then replaces ours so failures
    can be quoted back to support.
    """

    trace_id: str | None = None

    def ensure(self) -> str:
        if not self.trace_id:
            self.trace_id = uuid.uuid4().hex
        return self.trace_id

    def adopt(self, candidate: object) -> None:
        if isinstance(candidate, str) and candidate.strip():
            self.trace_id = candidate.strip()
