"""Post-build test phase.

Runs ``cargo test`` in every project that has a Cargo manifest, then the
Pester harness over the whole workspace. Unlike the build loop, a failing
test phase raises ``TestPhaseError`` rather than only setting an exit code.
"""

from __future__ import annotations

from collections.abc import MutableMapping, Sequence
from pathlib import Path

from .config import Platform
from .constants import (
    CARGO_MANIFEST,
    DSC_MODULE,
    DSC_MODULE_VERSION,
    LEGACY_MODULE_MARKER,
    MODULE_PATH_VARIABLE,
    PESTER_MODULE,
    PESTER_REPOSITORY,
    POWERSHELL_COMMAND,
)
from .display import note, project_status
from .logging import component_logger
from .models import BuildOutcome
from .path_env import ProcessEnvironment
from .utils import CommandResult, CommandRunner, working_directory

emit_test_log = component_logger("test")


class TestPhaseError(RuntimeError):
    __test__ = False


def filter_module_path(entries: Sequence[str], platform: Platform) -> list[str]:
    """Drop Windows PowerShell's built-in module dirs on Windows.

    Those dirs ship an older Pester and PSDesiredStateConfiguration that
    shadow the versions installed for the test run.
    """
    if platform != "windows":
        return list(entries)
    return [entry for entry in entries if LEGACY_MODULE_MARKER not in entry]


def powershell(script: str) -> list[str]:
    return [POWERSHELL_COMMAND, "-NoProfile", "-NonInteractive", "-Command", script]


def failure_message(label: str, result: CommandResult) -> str:
    detail = f": {result.error}" if result.error else ""
    return f"{label} failed (exit {result.exit_code}){detail}"


def dsc_module_install_script() -> str:
    return (
        f"$m = Get-Module -ListAvailable -Name {DSC_MODULE} | "
        f"Where-Object {{ $_.Version -eq '{DSC_MODULE_VERSION}' }}; "
        f"if (-not $m) {{ Install-Module {DSC_MODULE} "
        f"-RequiredVersion {DSC_MODULE_VERSION} -Force }}"
    )


def ps_quote(value: str) -> str:
    """Single-quoted PowerShell literal; embedded quotes are doubled."""
    return "'" + value.replace("'", "''") + "'"


def pester_install_script(install_dir: str | None) -> str:
    # Without a known dir, let PowerShell pick the first entry of its own module path
    target = (
        ps_quote(install_dir)
        if install_dir
        else "($env:PSModulePath -split [IO.Path]::PathSeparator)[0]"
    )
    save = (
        f"Find-Module -Name '{PESTER_MODULE}' -Repository '{PESTER_REPOSITORY}' | "
        f"Save-Module -Path {target}"
    )
    return (
        f"if (-not (Get-Module -ListAvailable -Name {PESTER_MODULE})) {{ {save} }}"
    )


def pester_run_script(module_path: Sequence[str] | None, separator: str) -> str:
    """One pwsh session that narrows the module path, vendors Pester, runs it.

    A child pwsh rebuilds ``PSModulePath`` from its own defaults, so the
    narrowed value only holds if it is assigned inside the same session that
    imports Pester.
    """
    if module_path is None:
        return "Invoke-Pester -ErrorAction Stop"
    steps = []
    if module_path:
        steps.append(f"$env:PSModulePath = {ps_quote(separator.join(module_path))}")
    steps.append(pester_install_script(module_path[0] if module_path else None))
    steps.append("Invoke-Pester -ErrorAction Stop")
    return "; ".join(steps)


class TestRunner:
    __test__ = False

    def __init__(
        self,
        root: str | Path,
        runner: CommandRunner,
        platform: Platform,
        *,
        environ: MutableMapping[str, str] | None = None,
    ):
        self.root = Path(root).resolve()
        self.runner = runner
        self.platform = platform
        self.module_path = ProcessEnvironment(
            MODULE_PATH_VARIABLE,
            environ=environ,
            separator=";" if platform == "windows" else ":",
        )

    def run(self, projects: Sequence[str]) -> BuildOutcome:
        self.install_modules()
        outcome = self.run_project_tests(projects)
        if outcome.failed:
            emit_test_log(
                "test.failed",
                level="error",
                failures=outcome.failures,
            )
            raise TestPhaseError("Test failed")

        module_path = self.isolate_module_path() if self.platform == "windows" else None
        self.run_pester(module_path)
        return outcome

    def install_modules(self) -> None:
        if self.platform == "windows":
            note(f"Installing {DSC_MODULE} {DSC_MODULE_VERSION}")
            self.check(powershell(dsc_module_install_script()), "module install")
        self.install_pester()

    def install_pester(self) -> None:
        entries = self.module_path.list()
        target = entries[0] if entries else None
        emit_test_log("test.pester.install", target=target)
        self.check(powershell(pester_install_script(target)), "Pester install")

    def run_project_tests(self, projects: Sequence[str]) -> BuildOutcome:
        outcome = BuildOutcome()
        for project in projects:
            project_dir = self.root / project
            if not (project_dir / CARGO_MANIFEST).is_file():
                continue
            project_status("Testing", project)
            with working_directory(project_dir):
                result = self.runner.run(["cargo", "test"], cwd=project_dir)
            outcome.record(project, ok=result.ok, duration_ms=result.duration_ms)
            emit_test_log(
                "test.project.complete",
                level="info" if result.ok else "error",
                project=project,
                exit_code=result.exit_code,
                duration_ms=result.duration_ms,
                error=result.error,
            )
        return outcome

    def isolate_module_path(self) -> list[str]:
        filtered = filter_module_path(self.module_path.list(), self.platform)
        self.module_path.write(filtered)
        note(f"Updated {MODULE_PATH_VARIABLE} is: {self.module_path.separator.join(filtered)}")
        return filtered

    def run_pester(self, module_path: Sequence[str] | None = None) -> None:
        script = pester_run_script(module_path, self.module_path.separator)
        with working_directory(self.root):
            result = self.runner.run(powershell(script), cwd=self.root)
        if not result.ok:
            raise TestPhaseError(failure_message("Invoke-Pester", result))

    def check(self, command: list[str], label: str) -> None:
        result = self.runner.run(command, cwd=self.root)
        if not result.ok:
            raise TestPhaseError(failure_message(label, result))
