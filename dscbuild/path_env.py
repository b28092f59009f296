"""Executable search path reconciliation.

The orchestrator never touches ``os.environ`` directly for the search path.
It goes through ``EnvironmentState`` so tests (and dry runs) can use
``InMemoryEnvironment``.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, MutableMapping
from pathlib import Path
from typing import Protocol, runtime_checkable

from .config import BuildConfiguration
from .constants import PATH_VARIABLE
from .display import console
from .logging import component_logger

emit_path_log = component_logger("path")


@runtime_checkable
class EnvironmentState(Protocol):
    """An ordered list of search path entries."""

    def list(self) -> list[str]:
        ...

    def contains(self, path: str) -> bool:
        ...

    def append(self, path: str) -> None:
        ...

    def remove(self, path: str) -> None:
        """Drop every exact occurrence of ``path``."""
        ...


class InMemoryEnvironment:
    def __init__(self, entries: Iterable[str] = ()):
        self.entries = list(entries)

    def list(self) -> list[str]:
        return list(self.entries)

    def contains(self, path: str) -> bool:
        return path in self.entries

    def append(self, path: str) -> None:
        self.entries.append(path)

    def remove(self, path: str) -> None:
        self.entries = [entry for entry in self.entries if entry != path]


class ProcessEnvironment:
    """EnvironmentState over one separator-joined environment variable."""

    def __init__(
        self,
        variable: str = PATH_VARIABLE,
        environ: MutableMapping[str, str] | None = None,
        separator: str = os.pathsep,
    ):
        self.variable = variable
        self.environ = environ if environ is not None else os.environ
        self.separator = separator

    def list(self) -> list[str]:
        raw = self.environ.get(self.variable, "")
        if not raw:
            return []
        return raw.split(self.separator)

    def write(self, entries: list[str]) -> None:
        self.environ[self.variable] = self.separator.join(entries)

    def contains(self, path: str) -> bool:
        return path in self.list()

    def append(self, path: str) -> None:
        self.write([*self.list(), path])

    def remove(self, path: str) -> None:
        entries = self.list()
        kept = [entry for entry in entries if entry != path]
        if len(kept) != len(entries):
            self.write(kept)


class PathEnvironmentManager:
    def __init__(self, state: EnvironmentState):
        self.state = state

    def reconcile(self, staged_path: str | Path, configuration: BuildConfiguration) -> None:
        """Make ``staged_path`` discoverable and drop the other configuration's dir.

        Afterwards at most one of bin/debug and bin/release is on the path,
        and it is the one just built. Calling twice is the same as once.
        """
        staged = str(staged_path)
        sibling = str(Path(staged_path).parent / configuration.sibling_configuration_name)

        if self.state.contains(sibling):
            emit_path_log("path.remove_sibling", path=sibling)
            self.state.remove(sibling)

        if self.state.contains(staged):
            emit_path_log("path.present", path=staged)
            return

        console.print(f"[yellow]Adding {staged} to PATH[/yellow]")
        emit_path_log("path.append", path=staged)
        self.state.append(staged)
