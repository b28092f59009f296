"""Build and lint loop over the workspace projects.

Every project is attempted, in listed order, whatever happened to the ones
before it. A failing tool exit marks the run failed but never stops the
loop. After each project its executable and resource manifests are copied
into the staged output on a best-effort basis.
"""

from __future__ import annotations

from collections.abc import Collection, Sequence
from pathlib import Path

from .config import BuildConfiguration, Platform
from .constants import CARGO_MANIFEST, RESOURCE_MANIFEST_PATTERNS
from .display import note, project_status
from .logging import component_logger
from .models import BuildOutcome
from .staging import OutputStager
from .utils import (
    CommandResult,
    CommandRunner,
    copy_matching,
    try_copy,
    working_directory,
)

emit_project_log = component_logger("build")


def executable_name(project: str, platform: Platform) -> str:
    return f"{project}.exe" if platform == "windows" else project


def build_command(
    project: str,
    configuration: BuildConfiguration,
    pedantic: Collection[str],
) -> list[str]:
    flags = configuration.cargo_flags
    if not configuration.clippy:
        return ["cargo", "build", *flags]
    lints = ["-Dwarnings"]
    if project in pedantic:
        lints.append("-Dclippy::pedantic")
    return ["cargo", "clippy", *flags, "--", *lints]


class BuildOrchestrator:
    def __init__(
        self,
        root: str | Path,
        runner: CommandRunner,
        platform: Platform,
        staged_path: str | Path,
    ):
        self.root = Path(root).resolve()
        self.runner = runner
        self.platform = platform
        self.staged_path = Path(staged_path)

    def run(
        self,
        projects: Sequence[str],
        configuration: BuildConfiguration,
        pedantic: Collection[str],
    ) -> BuildOutcome:
        outcome = BuildOutcome()
        for project in projects:
            project_status("Building", project)
            result = self.build_project(project, configuration, pedantic, outcome)
            outcome.record(project, ok=result.ok, duration_ms=result.duration_ms)
            emit_project_log(
                "project.complete",
                level="info" if result.ok else "error",
                project=project,
                ok=result.ok,
                exit_code=result.exit_code,
                duration_ms=result.duration_ms,
                error=result.error,
            )
        return outcome

    def build_project(
        self,
        project: str,
        configuration: BuildConfiguration,
        pedantic: Collection[str],
        outcome: BuildOutcome,
    ) -> CommandResult:
        project_dir = self.root / project
        if not project_dir.is_dir():
            return CommandResult(
                exit_code=1,
                error=f"project directory not found: {project_dir}",
            )

        with working_directory(project_dir):
            result = CommandResult(exit_code=0)
            if (project_dir / CARGO_MANIFEST).is_file():
                command = build_command(project, configuration, pedantic)
                if configuration.clippy:
                    suffix = " with pedantic" if project in pedantic else ""
                    note(f"Running clippy{suffix} for {project}")
                result = self.runner.run(command, cwd=project_dir)
            else:
                emit_project_log("project.skip", project=project, reason="no Cargo.toml")

            self.stage_artifacts(project, project_dir, configuration, outcome)
        return result

    def stage_artifacts(
        self,
        project: str,
        project_dir: Path,
        configuration: BuildConfiguration,
        outcome: BuildOutcome,
    ) -> None:
        binary = (
            project_dir
            / OutputStager.cargo_output_path(configuration)
            / executable_name(project, self.platform)
        )
        if try_copy(binary, self.staged_path / binary.name):
            outcome.copied.append(binary.name)

        for copied in copy_matching(project_dir, RESOURCE_MANIFEST_PATTERNS, self.staged_path):
            outcome.copied.append(copied.name)
