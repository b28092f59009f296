from .config import BuildConfiguration, detect_platform, resolve_projects
from .models import BuildOutcome
from .orchestrator import BuildOrchestrator
from .path_env import (
    EnvironmentState,
    InMemoryEnvironment,
    PathEnvironmentManager,
    ProcessEnvironment,
)
from .staging import OutputStager
from .testing import TestPhaseError, TestRunner
from .toolchain import ToolchainProvisioner
from .utils import try_copy, with_working_directory, working_directory

__all__ = [
    "BuildConfiguration",
    "BuildOrchestrator",
    "BuildOutcome",
    "EnvironmentState",
    "InMemoryEnvironment",
    "OutputStager",
    "PathEnvironmentManager",
    "ProcessEnvironment",
    "TestPhaseError",
    "TestRunner",
    "ToolchainProvisioner",
    "detect_platform",
    "resolve_projects",
    "try_copy",
    "with_working_directory",
    "working_directory",
]
