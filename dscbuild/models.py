from __future__ import annotations

from pydantic import BaseModel, Field


class BuildOutcome(BaseModel):
    """Aggregate result of one phase.

    ``failed`` is the only thing that decides the exit signal; the lists are
    the trail behind it.
    """

    failed: bool = False
    attempted: list[str] = Field(default_factory=list)
    failures: list[str] = Field(default_factory=list)
    copied: list[str] = Field(default_factory=list)
    durations_ms: dict[str, int] = Field(default_factory=dict)

    def record(self, project: str, *, ok: bool, duration_ms: int = 0) -> None:
        self.attempted.append(project)
        self.durations_ms[project] = duration_ms
        if not ok:
            self.failed = True
            self.failures.append(project)
