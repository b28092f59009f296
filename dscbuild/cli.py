from __future__ import annotations

import argparse
import os
import shutil
import sys
from collections.abc import MutableMapping, Sequence
from pathlib import Path

from dotenv import load_dotenv

from .config import (
    BuildConfiguration,
    Platform,
    detect_platform,
    load_workspace_manifest,
    resolve_projects,
)
from .constants import ARCHITECTURES, BACKTRACE_VARIABLE
from .display import console, failure, outcome_table, staged_summary
from .logging import component_logger, log_context
from .orchestrator import BuildOrchestrator
from .path_env import EnvironmentState, PathEnvironmentManager, ProcessEnvironment
from .staging import OutputStager
from .testing import TestPhaseError, TestRunner
from .toolchain import ToolchainProvisioner, Which
from .utils import CommandRunner, SubprocessRunner

emit_run_log = component_logger("run")


class BuildArgs(argparse.Namespace):
    release: bool = False
    architecture: str = "none"
    clippy: bool = False
    test: bool = False
    root: str = "."


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dsc-build",
        description="Build, lint and test the DSC workspace projects.",
    )
    _ = parser.add_argument("-Release", "--release", dest="release", action="store_true")
    _ = parser.add_argument(
        "-architecture",
        "--architecture",
        dest="architecture",
        choices=ARCHITECTURES,
        default="none",
        help="Cross-compilation target (default: none)",
    )
    _ = parser.add_argument("-Clippy", "--clippy", dest="clippy", action="store_true")
    _ = parser.add_argument("-Test", "--test", dest="test", action="store_true")
    _ = parser.add_argument(
        "--root",
        default=".",
        help="Workspace root containing the project folders (default: .)",
    )
    return parser


def parse_args(argv: Sequence[str] | None = None) -> tuple[BuildConfiguration, Path]:
    args = build_parser().parse_args(argv, namespace=BuildArgs())
    configuration = BuildConfiguration.model_validate(
        {
            "release": args.release,
            "architecture": args.architecture,
            "clippy": args.clippy,
            "test": args.test,
        }
    )
    return configuration, Path(args.root).resolve()


def run_build(
    root: Path,
    configuration: BuildConfiguration,
    *,
    platform: Platform,
    runner: CommandRunner,
    path_state: EnvironmentState,
    environ: MutableMapping[str, str] | None = None,
    which: Which = shutil.which,
) -> int:
    """Run provisioning, the build loop, PATH reconcile and tests.

    Returns the process exit code for the build phase. A failed test phase
    raises TestPhaseError instead.
    """
    process_environ = environ if environ is not None else os.environ
    with log_context(
        configuration=configuration.configuration_name,
        architecture=configuration.architecture,
    ):
        emit_run_log("run.start", root=str(root), platform=platform)
        _ = ToolchainProvisioner(runner, platform, path_state, which=which).ensure()

        stager = OutputStager(root)
        staged = stager.stage(configuration)

        manifest = load_workspace_manifest(root)
        projects = resolve_projects(platform, manifest)
        outcome = BuildOrchestrator(root, runner, platform, staged).run(
            projects,
            configuration,
            manifest.pedantic,
        )
        emit_run_log(
            "run.build.complete",
            level="error" if outcome.failed else "info",
            failed=outcome.failed,
            failures=outcome.failures,
            copied=outcome.copied,
        )

        if outcome.failed:
            console.print(outcome_table(outcome, "Build results"))
            failure("Build failed")
            return 1

        staged_summary(staged, root)
        PathEnvironmentManager(path_state).reconcile(staged, configuration)

        if configuration.test:
            tested = TestRunner(root, runner, platform, environ=process_environ).run(projects)
            emit_run_log("run.test.complete", tested=tested.attempted)

        process_environ[BACKTRACE_VARIABLE] = "1"
        emit_run_log("run.complete")
        return 0


def main(argv: Sequence[str] | None = None) -> None:
    env_file = Path.cwd() / ".env"
    if env_file.exists():
        _ = load_dotenv(env_file)
    else:
        _ = load_dotenv()
    configuration, root = parse_args(argv)

    try:
        exit_code = run_build(
            root,
            configuration,
            platform=detect_platform(),
            runner=SubprocessRunner(),
            path_state=ProcessEnvironment(),
        )
    except TestPhaseError as error:
        failure(str(error))
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
