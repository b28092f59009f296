from __future__ import annotations

from pathlib import Path

from dscbuild.config import BuildConfiguration
from dscbuild.path_env import (
    EnvironmentState,
    InMemoryEnvironment,
    PathEnvironmentManager,
    ProcessEnvironment,
)

ROOT = Path("/work/dsc/bin")
DEBUG = str(ROOT / "debug")
RELEASE = str(ROOT / "release")


def test_reconcile_appends_missing_staged_path() -> None:
    state = InMemoryEnvironment(["/usr/bin", "/bin"])

    PathEnvironmentManager(state).reconcile(ROOT / "debug", BuildConfiguration())

    assert state.list() == ["/usr/bin", "/bin", DEBUG]


def test_reconcile_release_removes_debug_sibling() -> None:
    state = InMemoryEnvironment(["/usr/bin", DEBUG, "/bin", DEBUG])

    PathEnvironmentManager(state).reconcile(ROOT / "release", BuildConfiguration(release=True))

    assert DEBUG not in state.list()
    assert state.list() == ["/usr/bin", "/bin", RELEASE]


def test_reconcile_debug_removes_release_sibling() -> None:
    state = InMemoryEnvironment([RELEASE, "/usr/bin"])

    PathEnvironmentManager(state).reconcile(ROOT / "debug", BuildConfiguration())

    assert state.list() == ["/usr/bin", DEBUG]


def test_reconcile_is_idempotent() -> None:
    state = InMemoryEnvironment(["/usr/bin", RELEASE])
    manager = PathEnvironmentManager(state)
    configuration = BuildConfiguration()

    manager.reconcile(ROOT / "debug", configuration)
    once = state.list()
    manager.reconcile(ROOT / "debug", configuration)

    assert state.list() == once
    assert once.count(DEBUG) == 1


def test_reconcile_keeps_existing_position_of_staged_path() -> None:
    state = InMemoryEnvironment([DEBUG, "/usr/bin"])

    PathEnvironmentManager(state).reconcile(ROOT / "debug", BuildConfiguration())

    assert state.list() == [DEBUG, "/usr/bin"]


def test_process_environment_reads_and_writes_variable() -> None:
    environ = {"PATH": f"/usr/bin:{RELEASE}"}
    state = ProcessEnvironment("PATH", environ=environ, separator=":")
    assert isinstance(state, EnvironmentState)

    PathEnvironmentManager(state).reconcile(ROOT / "debug", BuildConfiguration())

    assert environ["PATH"] == f"/usr/bin:{DEBUG}"


def test_process_environment_handles_unset_variable() -> None:
    environ: dict[str, str] = {}
    state = ProcessEnvironment("PATH", environ=environ, separator=";")

    assert state.list() == []
    state.append("C:\\dsc\\bin\\debug")
    assert environ["PATH"] == "C:\\dsc\\bin\\debug"
    assert state.contains("C:\\dsc\\bin\\debug")
