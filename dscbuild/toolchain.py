from __future__ import annotations

import os
import shutil
import tempfile
from collections.abc import Callable
from pathlib import Path

import httpx

from .config import Platform
from .constants import (
    RUSTUP_SHELL_INSTALL,
    RUSTUP_WINDOWS_INSTALLER_URL,
    TOOLCHAIN_COMMAND,
)
from .display import note
from .logging import component_logger
from .path_env import EnvironmentState
from .utils import CommandRunner

emit_toolchain_log = component_logger("toolchain")

type Which = Callable[[str], str | None]
type Downloader = Callable[[str, Path], None]


def download_file(url: str, destination: Path) -> None:
    with httpx.stream("GET", url, follow_redirects=True, timeout=60.0) as response:
        _ = response.raise_for_status()
        with destination.open("wb") as handle:
            for chunk in response.iter_bytes():
                _ = handle.write(chunk)


def cargo_bin_dir() -> Path:
    cargo_home = os.environ.get("CARGO_HOME")
    if cargo_home:
        return Path(cargo_home) / "bin"
    return Path.home() / ".cargo" / "bin"


class ToolchainProvisioner:
    """Makes sure ``cargo`` is resolvable, installing rustup when it is not.

    Install failures are not caught: nothing after this step works without a
    toolchain.
    """

    def __init__(
        self,
        runner: CommandRunner,
        platform: Platform,
        path_state: EnvironmentState,
        *,
        which: Which = shutil.which,
        download: Downloader = download_file,
    ):
        self.runner = runner
        self.platform = platform
        self.path_state = path_state
        self.which = which
        self.download = download

    def ensure(self) -> bool:
        """Returns True when an install was performed."""
        found = self.which(TOOLCHAIN_COMMAND)
        if found:
            emit_toolchain_log("toolchain.found", path=found)
            return False

        note("Rust not found, installing...")
        emit_toolchain_log("toolchain.install.start", platform=self.platform)
        if self.platform == "windows":
            self.install_windows()
        else:
            self.install_posix()

        bin_dir = str(cargo_bin_dir())
        if not self.path_state.contains(bin_dir):
            self.path_state.append(bin_dir)
        emit_toolchain_log("toolchain.install.complete", cargo_bin=bin_dir)
        return True

    def install_posix(self) -> None:
        result = self.runner.run(RUSTUP_SHELL_INSTALL)
        if not result.ok:
            raise RuntimeError(f"rustup install failed (exit {result.exit_code})")

    def install_windows(self) -> None:
        installer = Path(tempfile.gettempdir()) / "rustup-init.exe"
        try:
            self.download(RUSTUP_WINDOWS_INSTALLER_URL, installer)
            note("Use the default settings to ensure build works")
            result = self.runner.run([str(installer), "-y"])
            if not result.ok:
                raise RuntimeError(
                    f"rustup-init.exe failed (exit {result.exit_code})"
                )
        finally:
            installer.unlink(missing_ok=True)
