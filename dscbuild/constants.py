from __future__ import annotations

DEFAULT_PROJECTS = (
    "dsc_lib",
    "dsc",
    "osinfo",
    "process",
    "test_group_resource",
    "y2j",
)
WINDOWS_PROJECTS = (
    "pal",
    "ntreg",
    "ntstatuserror",
    "ntuserinfo",
    "registry",
    "powershellgroup",
)
PEDANTIC_CLEAN_PROJECTS = frozenset(
    {
        "dsc_lib",
        "dsc",
        "osinfo",
        "process",
        "y2j",
        "pal",
        "ntstatuserror",
        "ntuserinfo",
        "test_group_resource",
        "sshdconfig",
    }
)

ARCHITECTURES = (
    "none",
    "aarch64-pc-windows-msvc",
    "x86_64-pc-windows-msvc",
)

CARGO_MANIFEST = "Cargo.toml"
WORKSPACE_MANIFEST = "build.toml"
RESOURCE_MANIFEST_PATTERNS = (
    "*.resource.json",
    "*.resource.ps1",
    "*.command.json",
)

TOOLCHAIN_COMMAND = "cargo"
RUSTUP_SHELL_INSTALL = "curl https://sh.rustup.rs -sSf | sh -s -- -y"
RUSTUP_WINDOWS_INSTALLER_URL = (
    "https://static.rust-lang.org/rustup/dist/i686-pc-windows-gnu/rustup-init.exe"
)

POWERSHELL_COMMAND = "pwsh"
PESTER_MODULE = "Pester"
PESTER_REPOSITORY = "PSGallery"
DSC_MODULE = "PSDesiredStateConfiguration"
DSC_MODULE_VERSION = "2.0.7"
LEGACY_MODULE_MARKER = "WindowsPowerShell"

PATH_VARIABLE = "PATH"
MODULE_PATH_VARIABLE = "PSModulePath"
BACKTRACE_VARIABLE = "RUST_BACKTRACE"
LOG_PATH_VARIABLE = "DSCBUILD_LOG_PATH"
