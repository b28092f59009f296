from __future__ import annotations

from dscbuild.display import outcome_table
from dscbuild.models import BuildOutcome
from rich.console import Console


def render(outcome: BuildOutcome) -> str:
    console = Console(record=True, width=80)
    console.print(outcome_table(outcome, "Build results"))
    return console.export_text()


def test_outcome_table_shows_result_and_time_per_project() -> None:
    outcome = BuildOutcome()
    outcome.record("dsc", ok=True, duration_ms=1300)
    outcome.record("osinfo", ok=False, duration_ms=80)

    lines = render(outcome).splitlines()

    dsc_row = next(line for line in lines if "dsc" in line)
    osinfo_row = next(line for line in lines if "osinfo" in line)
    assert "ok" in dsc_row and "1.3s" in dsc_row
    assert "failed" in osinfo_row and "0.1s" in osinfo_row
    assert outcome.failures == ["osinfo"]
