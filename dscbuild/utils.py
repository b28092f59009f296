from __future__ import annotations

import dataclasses
import os
import shutil
import subprocess
import time
from collections.abc import Callable, Iterable, Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Protocol, runtime_checkable

from .logging import component_logger

emit_command_log = component_logger("command")
emit_copy_log = component_logger("copy")

# Shell convention for "command not found"
LAUNCH_FAILURE_EXIT_CODE = 127


@dataclasses.dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of one synchronous tool invocation.

    ``error`` is only set when the tool could not be started at all.
    """

    exit_code: int
    duration_ms: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


@runtime_checkable
class CommandRunner(Protocol):
    """Runs an external tool and waits for it to exit."""

    def run(
        self,
        command: Sequence[str] | str,
        *,
        cwd: Path | None = None,
    ) -> CommandResult:
        """Run ``command``; a plain string is handed to the shell."""
        ...


class SubprocessRunner:
    """CommandRunner backed by ``subprocess.run``.

    Output streams straight to the console. There is no timeout: a hung tool
    hangs the run. A tool that cannot be launched (missing executable, bad
    cwd) comes back as a failed result instead of raising.
    """

    def run(
        self,
        command: Sequence[str] | str,
        *,
        cwd: Path | None = None,
    ) -> CommandResult:
        shell = isinstance(command, str)
        display = command if isinstance(command, str) else " ".join(command)
        effective_cwd = str(cwd) if cwd is not None else os.getcwd()
        started = time.monotonic()
        emit_command_log("command.start", message=display, cwd=effective_cwd)

        error: str | None = None
        try:
            completed = subprocess.run(
                command if shell else list(command),
                shell=shell,
                cwd=effective_cwd,
            )
            exit_code = completed.returncode
        except OSError as launch_error:
            error = str(launch_error)
            exit_code = LAUNCH_FAILURE_EXIT_CODE

        duration_ms = int((time.monotonic() - started) * 1000)
        emit_command_log(
            "command.complete",
            level="error" if exit_code != 0 else "info",
            message=display,
            cwd=effective_cwd,
            exit_code=exit_code,
            duration_ms=duration_ms,
            error=error,
        )
        return CommandResult(
            exit_code=exit_code,
            duration_ms=duration_ms,
            error=error,
        )


@contextmanager
def working_directory(path: str | Path) -> Iterator[Path]:
    """chdir into ``path`` and restore the previous directory on exit."""
    previous = os.getcwd()
    target = Path(path).resolve()
    os.chdir(target)
    try:
        yield target
    finally:
        os.chdir(previous)


def with_working_directory[T](path: str | Path, action: Callable[[], T]) -> T:
    with working_directory(path):
        return action()


def try_copy(source: str | Path, destination: str | Path) -> bool:
    """Copy a file, returning False instead of raising on any OSError."""
    try:
        _ = shutil.copy2(source, destination)
    except OSError as error:
        emit_copy_log(
            "copy.skipped",
            level="debug",
            source=str(source),
            destination=str(destination),
            error=str(error),
        )
        return False
    return True


def copy_matching(
    source_dir: str | Path,
    patterns: Iterable[str],
    destination: str | Path,
) -> list[Path]:
    """Copy every file in ``source_dir`` matching ``patterns``, overwriting.

    Missing matches are not an error. Returns the copied destination paths.
    """
    source = Path(source_dir)
    target = Path(destination)
    copied: list[Path] = []
    for pattern in patterns:
        for candidate in sorted(source.glob(pattern)):
            if not candidate.is_file():
                continue
            if try_copy(candidate, target / candidate.name):
                copied.append(target / candidate.name)
    return copied
