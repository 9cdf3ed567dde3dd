"""
buddykit - Hardware-aware build launcher for the buddy speech binary.

Submodules:
    - buddykit.hardware: GPU compute capability probing
    - buddykit.build: Feature selection and build invocation
    - buddykit.launcher: Build, verify and forward pipeline
"""

# Import submodules for namespace access (bk.hardware.probe())
from . import hardware
from . import build

# Top-level convenience exports (most common operations)
from .hardware import probe
from .build import select, format_command
from .config import LauncherSettings
from .launcher import plan_build, run, main
from .schema import BuildConfiguration, CapabilitySignal, ExecutableArtifact, InvocationRequest
from .exceptions import ArtifactMissingError, ProbeUnavailableError

__version__ = "0.1.0"

__all__ = [
    # Submodules
    "hardware",
    "build",

    # Primary API
    "probe",
    "select",
    "format_command",
    "plan_build",
    "run",
    "main",
    "LauncherSettings",

    # Schemas
    "BuildConfiguration",
    "CapabilitySignal",
    "ExecutableArtifact",
    "InvocationRequest",

    # Exceptions
    "ArtifactMissingError",
    "ProbeUnavailableError",
]
