from __future__ import annotations

import shutil
from pathlib import Path

from .config import BuildConfiguration
from .logging import component_logger

emit_stage_log = component_logger("stage")


class OutputStager:
    """Owns ``<root>/bin/<debug|release>`` for the duration of one run."""

    def __init__(self, root: str | Path):
        self.root = Path(root).resolve()

    def output_path(self, configuration: BuildConfiguration) -> Path:
        return self.root / "bin" / configuration.configuration_name

    def stage(self, configuration: BuildConfiguration) -> Path:
        """Delete and recreate the output directory; returns it empty.

        A failed delete (files still locked by a running binary) raises.
        """
        target = self.output_path(configuration)
        if target.exists():
            emit_stage_log("stage.clear", path=str(target))
            shutil.rmtree(target)
        target.mkdir(parents=True)
        emit_stage_log("stage.ready", path=str(target))
        return target

    @staticmethod
    def cargo_output_path(configuration: BuildConfiguration) -> Path:
        """Where cargo leaves binaries, relative to a project directory."""
        if configuration.cross_target is not None:
            return Path("target") / configuration.cross_target / configuration.configuration_name
        return Path("target") / configuration.configuration_name
