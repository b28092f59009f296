"""Build configuration, host platform and the workspace project set.

``BuildConfiguration`` is parsed once from the command line and drives every
path and flag computed later. The project set is a pure function of the
platform tag and the (optional) ``build.toml`` manifest at the workspace
root, so none of it depends on the real OS at import or call time.
"""

from __future__ import annotations

import sys
import tomllib
from pathlib import Path
from typing import Literal, cast

from pydantic import BaseModel, ConfigDict, Field

from .constants import (
    DEFAULT_PROJECTS,
    PEDANTIC_CLEAN_PROJECTS,
    WINDOWS_PROJECTS,
    WORKSPACE_MANIFEST,
)

Platform = Literal["windows", "linux", "macos"]
Architecture = Literal[
    "none",
    "aarch64-pc-windows-msvc",
    "x86_64-pc-windows-msvc",
]
type ProjectSet = tuple[str, ...]


class BuildConfiguration(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    release: bool = False
    architecture: Architecture = "none"
    clippy: bool = False
    test: bool = False

    @property
    def configuration_name(self) -> str:
        return "release" if self.release else "debug"

    @property
    def sibling_configuration_name(self) -> str:
        return "debug" if self.release else "release"

    @property
    def cross_target(self) -> str | None:
        return None if self.architecture == "none" else self.architecture

    @property
    def cargo_flags(self) -> list[str]:
        flags: list[str] = []
        if self.release:
            flags.append("-r")
        if self.cross_target is not None:
            flags.extend(["--target", self.cross_target])
        return flags


class WorkspaceManifest(BaseModel):
    """Project lists for a workspace; defaults mirror the repository layout."""

    model_config = ConfigDict(frozen=True)

    always: tuple[str, ...] = DEFAULT_PROJECTS
    windows: tuple[str, ...] = WINDOWS_PROJECTS
    pedantic: frozenset[str] = Field(default=PEDANTIC_CLEAN_PROJECTS)


def detect_platform(raw: str | None = None) -> Platform:
    value = raw if raw is not None else sys.platform
    if value.startswith("win") or value == "cygwin":
        return "windows"
    if value == "darwin":
        return "macos"
    return "linux"


def string_list(table: dict[str, object], key: str) -> list[str] | None:
    value = table.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        raise ValueError(f"[projects].{key} must be a list of project names")
    items = cast(list[object], value)
    names: list[str] = []
    for item in items:
        if not isinstance(item, str) or not item.strip():
            raise ValueError(
                f"[projects].{key} entries must be non-empty strings, got {item!r}"
            )
        names.append(item.strip())
    return names


def load_workspace_manifest(root: str | Path) -> WorkspaceManifest:
    manifest_path = Path(root) / WORKSPACE_MANIFEST
    if not manifest_path.is_file():
        return WorkspaceManifest()

    raw = cast(
        dict[str, object],
        tomllib.loads(manifest_path.read_text(encoding="utf-8")),
    )
    projects_value = raw.get("projects", {})
    if not isinstance(projects_value, dict):
        raise ValueError(f"[projects] in {manifest_path} must be a table")
    projects_table = cast(dict[str, object], projects_value)

    overrides: dict[str, object] = {}
    always = string_list(projects_table, "always")
    if always is not None:
        overrides["always"] = tuple(always)
    windows = string_list(projects_table, "windows")
    if windows is not None:
        overrides["windows"] = tuple(windows)
    pedantic = string_list(projects_table, "pedantic")
    if pedantic is not None:
        overrides["pedantic"] = frozenset(pedantic)
    return WorkspaceManifest(**overrides)


def resolve_projects(
    platform: Platform,
    manifest: WorkspaceManifest | None = None,
) -> ProjectSet:
    """Always-built projects, then the Windows-only ones on Windows."""
    resolved = manifest or WorkspaceManifest()
    if platform == "windows":
        return resolved.always + resolved.windows
    return resolved.always

