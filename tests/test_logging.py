from __future__ import annotations

import json
from pathlib import Path

import pytest
from dscbuild.logging import (
    component_logger,
    log_context,
    log_event,
    reset_log_callback,
    set_log_callback,
)


def test_log_event_appends_json_line_with_bound_context(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    log_path = tmp_path / "logs" / "build.jsonl"
    monkeypatch.setenv("DSCBUILD_LOG_PATH", str(log_path))

    with log_context(configuration="release", architecture="none"):
        _ = log_event(component="build", event="project.complete", project="dsc", ok=True)
    _ = log_event(event="after")

    lines = [json.loads(line) for line in log_path.read_text().splitlines()]
    assert lines[0]["component"] == "build"
    assert lines[0]["configuration"] == "release"
    assert lines[0]["project"] == "dsc"
    assert "configuration" not in lines[1]
    assert lines[1]["component"] == "dscbuild"


def test_component_logger_drops_none_fields_and_calls_callback(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.delenv("DSCBUILD_LOG_PATH", raising=False)
    seen: list[dict[str, object]] = []
    token = set_log_callback(seen.append)
    try:
        emit = component_logger("stage")
        record = emit("stage.ready", path=Path("/tmp/bin/debug"), reason=None)
    finally:
        reset_log_callback(token)

    assert seen == [record]
    assert record["component"] == "stage"
    assert "reason" not in record
