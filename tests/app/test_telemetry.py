from __future__ import annotations

import io
import json

import pytest

from transaction_hub_app.telemetry.events import build_event
from transaction_hub_app.telemetry.logger import TelemetryLogger


def test_build_event_validates_category() -> None:
    with pytest.raises(ValueError):
        build_event(category="auth", name="n", module="acceptance_processor", action="a")


def test_build_event_blocks_personal_context_keys() -> None:
    with pytest.raises(ValueError):
        build_event(
            category="validation",
            name="acceptance_edit_rejected",
            module="acceptance_processor",
            action="comment",
            context={"Comment": "left on the dock"},
        )


def test_logger_writes_local_file_and_stdout(tmp_path) -> None:
    stream = io.StringIO()
    logger = TelemetryLogger(
        app_name="transaction_hub",
        enabled=True,
        log_file=tmp_path / "telemetry.jsonl",
        stdout_sink=True,
        stdout_stream=stream,
    )
    event = build_event(category="navigation", name="acceptance_step", module="acceptance_processor", action="next", step_id=3)

    assert logger.emit(event) is True

    written = (tmp_path / "telemetry.jsonl").read_text().strip().splitlines()
    assert len(written) == 1
    payload = json.loads(written[0])
    assert payload["category"] == "navigation"
    assert payload["step_id"] == 3
    assert payload["app_name"] == "transaction_hub"
    assert "trace_id" not in payload
    assert "acceptance_step" in stream.getvalue()


def test_logger_respects_env_toggle(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TXHUB_TELEMETRY_ENABLED", "0")
    logger = TelemetryLogger(app_name="transaction_hub", log_file=tmp_path / "telemetry.jsonl")
    event = build_event(category="error", name="acceptance_submit", module="acceptance_processor", action="submit")

    assert logger.emit(event) is False
    assert not (tmp_path / "telemetry.jsonl").exists()
