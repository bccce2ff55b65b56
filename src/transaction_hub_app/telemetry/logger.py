from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import TextIO

from .events import TelemetryEvent

_TRUTHY = {"1", "true", "yes", "on"}


def telemetry_enabled_from_env() -> bool:
    return os.getenv("TXHUB_TELEMETRY_ENABLED", "0").strip().lower() in _TRUTHY


def default_log_file(app_name: str) -> Path:
    return Path("artifacts") / "telemetry" / f"{app_name}.jsonl"


class TelemetryLogger:
    """Appends telemetry events as JSON lines, one file per app."""

    def __init__(
        self,
        *,
        app_name: str,
        enabled: bool | None = None,
        log_file: str | Path | None = None,
        stdout_sink: bool = False,
        stdout_stream: TextIO | None = None,
    ) -> None:
        self.app_name = app_name
        self.enabled = telemetry_enabled_from_env() if enabled is None else enabled
        self.log_file = Path(log_file) if log_file else default_log_file(app_name)
        self.stdout_sink = stdout_sink
        self.stdout_stream = stdout_stream
        self.emitted = 0

    def emit(self, event: TelemetryEvent) -> bool:
        if not self.enabled:
            return False
        line = self.serialize(event)
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        with self.log_file.open("a", encoding="utf-8") as fp:
            fp.write(line + "\n")
        if self.stdout_sink:
            stream = self.stdout_stream or sys.stdout
            stream.write(line + "\n")
            stream.flush()
        self.emitted += 1
        return True

    def serialize(self, event: TelemetryEvent) -> str:
        return json.dumps({**event.to_dict(), "app_name": self.app_name}, sort_keys=True)
