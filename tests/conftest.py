from __future__ import annotations

import dataclasses
import os
from collections.abc import Sequence
from pathlib import Path

import pytest
from dscbuild.constants import DEFAULT_PROJECTS, WINDOWS_PROJECTS
from dscbuild.utils import CommandResult


@dataclasses.dataclass(frozen=True, slots=True)
class RecordedCall:
    command: tuple[str, ...] | str
    cwd: Path

    @property
    def text(self) -> str:
        if isinstance(self.command, str):
            return self.command
        return " ".join(self.command)


class RecordingRunner:
    """CommandRunner fake.

    Records every command with the process cwd at call time. Commands run in
    a directory named in ``fail_in`` (or containing a ``fail_matching``
    substring) exit 1. ``cargo build`` writes a fake executable where cargo
    would, unless the project is listed in ``no_binary``. Every call reports
    ``duration_ms``.
    """

    def __init__(
        self,
        *,
        fail_in: Sequence[str] = (),
        fail_matching: Sequence[str] = (),
        no_binary: Sequence[str] = (),
        executable_suffix: str = "",
        duration_ms: int = 0,
    ):
        self.calls: list[RecordedCall] = []
        self.fail_in = set(fail_in)
        self.fail_matching = list(fail_matching)
        self.no_binary = set(no_binary)
        self.executable_suffix = executable_suffix
        self.duration_ms = duration_ms

    def run(
        self,
        command: Sequence[str] | str,
        *,
        cwd: Path | None = None,
    ) -> CommandResult:
        actual_cwd = Path(os.getcwd())
        recorded = RecordedCall(
            command if isinstance(command, str) else tuple(command),
            actual_cwd,
        )
        self.calls.append(recorded)

        failed = actual_cwd.name in self.fail_in or any(
            needle in recorded.text for needle in self.fail_matching
        )
        if not isinstance(command, str) and list(command[:2]) == ["cargo", "build"]:
            self.write_binary(list(command), actual_cwd)
        return CommandResult(exit_code=1 if failed else 0, duration_ms=self.duration_ms)

    def write_binary(self, command: list[str], project_dir: Path) -> None:
        if project_dir.name in self.no_binary:
            return
        mode = "release" if "-r" in command else "debug"
        output = project_dir / "target"
        if "--target" in command:
            output = output / command[command.index("--target") + 1]
        output = output / mode
        output.mkdir(parents=True, exist_ok=True)
        _ = (output / f"{project_dir.name}{self.executable_suffix}").write_text("binary")

    def commands_in(self, project: str) -> list[RecordedCall]:
        return [call for call in self.calls if call.cwd.name == project]


def make_workspace(root: Path, projects: Sequence[str]) -> Path:
    for project in projects:
        project_dir = root / project
        project_dir.mkdir(parents=True, exist_ok=True)
        _ = (project_dir / "Cargo.toml").write_text(f'[package]\nname = "{project}"\n')
    return root


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    root = tmp_path / "dsc"
    make_workspace(root, [*DEFAULT_PROJECTS, *WINDOWS_PROJECTS])
    monkeypatch.chdir(tmp_path)
    return root.resolve()
