#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Launcher Configuration

Every environment variable the launcher recognizes is read exactly once, at
startup, into a validated LauncherSettings model. Nothing else in the package
looks at os.environ for these names.

Recognized variables:
    BUDDY_CUDA           "1" opts in to CUDA and enables GPU probing
    CUDA_PATH            defined (any value) enables CUDA; no probing
    CUDA_COMPUTE_CAP     explicit architecture override, used verbatim
    BUDDY_PROJECT_ROOT   directory holding the crate (default: cwd)
    BUDDY_BUILD_TOOL     build tool executable (default: cargo)
    BUDDY_PROBE_BACKEND  "smi" (default) or "nvml"
    BUDDY_LOG_LEVEL      launcher log level (default: INFO)
"""

import logging
import os
import platform
from pathlib import Path
from typing import Literal, Mapping, Optional

from pydantic import BaseModel, Field, field_validator


# ============================================================================
# CONFIGURATION CONSTANTS
# ============================================================================

# Environment variables consulted
OPT_IN_ENV = "BUDDY_CUDA"
TOOLKIT_PATH_ENV = "CUDA_PATH"
ARCH_OVERRIDE_ENV = "CUDA_COMPUTE_CAP"
PROJECT_ROOT_ENV = "BUDDY_PROJECT_ROOT"
BUILD_TOOL_ENV = "BUDDY_BUILD_TOOL"
PROBE_BACKEND_ENV = "BUDDY_PROBE_BACKEND"
LOG_LEVEL_ENV = "BUDDY_LOG_LEVEL"

OPT_IN_VALUE = "1"

# Environment variable exported to the build subprocess tree.
# The crate's CUDA kernel build step reads it to pick the nvcc target.
ARCH_EXPORT_ENV = "CUDA_COMPUTE_CAP"

# Build tool invocation
DEFAULT_BUILD_TOOL = "cargo"
RELEASE_PROFILE_ARGS = ("build", "--release")
ACCELERATION_FEATURE_TOKEN = "--features=cuda"

# Artifact location, relative to the project root
ARTIFACT_NAME = "buddy"
ARTIFACT_DIR = Path("target") / "release"

# Exit statuses owned by the launcher.
# ARTIFACT_MISSING_EXIT_CODE is returned by no other launcher path, and cargo
# itself only exits 0, 1 or 101.
ARTIFACT_MISSING_EXIT_CODE = 3
NOT_EXECUTABLE_EXIT_CODE = 126
COMMAND_NOT_FOUND_EXIT_CODE = 127
INTERRUPTED_EXIT_CODE = 130
CONFIG_ERROR_EXIT_CODE = 2

# GPU query utility
SMI_COMMAND = ("nvidia-smi", "--query-gpu=compute_cap", "--format=csv")
PROBE_TIMEOUT_SECONDS = 15

ProbeBackend = Literal["smi", "nvml"]


def artifact_filename(system: Optional[str] = None) -> str:
    """Executable file name for the current (or given) platform."""
    system = system or platform.system()
    return f"{ARTIFACT_NAME}.exe" if system == "Windows" else ARTIFACT_NAME


class LauncherSettings(BaseModel):
    """Typed view of the launcher's environment, populated once at startup."""
    opt_in: bool = Field(False, description=f"{OPT_IN_ENV} == '1'")
    toolkit_path_present: bool = Field(False, description=f"{TOOLKIT_PATH_ENV} is defined")
    explicit_arch: Optional[str] = Field(None, description=f"Verbatim value of {ARCH_OVERRIDE_ENV}")
    project_root: Path = Field(default_factory=Path.cwd, description="Directory containing the crate")
    build_tool: str = Field(DEFAULT_BUILD_TOOL, description="Build tool executable")
    probe_backend: ProbeBackend = Field("smi", description="How the GPU compute capability is queried")
    log_level: str = Field("INFO", description="Launcher log level name")

    class Config:
        frozen = True

    @field_validator("explicit_arch")
    @classmethod
    def _empty_override_is_unset(cls, value: Optional[str]) -> Optional[str]:
        # An exported-but-empty override must not pin an empty architecture
        return value if value else None

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        value = value.strip().upper() or "INFO"
        if not isinstance(logging.getLevelName(value), int):
            raise ValueError(f"unknown log level {value!r}")
        return value

    @property
    def artifact_path(self) -> Path:
        """Fixed location of the built executable."""
        return self.project_root / ARTIFACT_DIR / artifact_filename()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LauncherSettings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            LauncherSettings: Validated, immutable settings

        Example:
            >>> settings = LauncherSettings.from_env({"BUDDY_CUDA": "1"})
            >>> settings.opt_in, settings.toolkit_path_present
            (True, False)
        """
        env = os.environ if environ is None else environ

        values = {
            "opt_in": env.get(OPT_IN_ENV) == OPT_IN_VALUE,
            "toolkit_path_present": TOOLKIT_PATH_ENV in env,
            "explicit_arch": env.get(ARCH_OVERRIDE_ENV),
        }
        if env.get(PROJECT_ROOT_ENV):
            values["project_root"] = Path(env[PROJECT_ROOT_ENV])
        if env.get(BUILD_TOOL_ENV):
            values["build_tool"] = env[BUILD_TOOL_ENV]
        if env.get(PROBE_BACKEND_ENV):
            values["probe_backend"] = env[PROBE_BACKEND_ENV].strip().lower()
        if env.get(LOG_LEVEL_ENV):
            values["log_level"] = env[LOG_LEVEL_ENV]

        return cls(**values)
