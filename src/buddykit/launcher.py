#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Buddy Launcher

Builds the buddy binary for this machine's hardware, then runs it with the
launcher's own command-line arguments and exits with its status.

Pipeline (each step exits early on failure):
    1. build   - probe the GPU, select features, run the release build
    2. verify  - the executable must exist at target/release/buddy
    3. forward - run it with argv unchanged and pass its status through

Exit statuses:
    <artifact status>  the build succeeded and the binary ran
    <build status>     the build tool failed (passed through unchanged)
    2                  invalid configuration or project root
    3                  the build succeeded but produced no executable
    126                the executable exists but could not be started
    127                the build tool is not on PATH
    128 + N            the build tool or the binary was killed by signal N
    130                interrupted before the build tool or binary started
"""

import logging
import sys
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

from pydantic import ValidationError

from .build import build, select_from_settings
from .config import (
    ARTIFACT_MISSING_EXIT_CODE,
    CONFIG_ERROR_EXIT_CODE,
    INTERRUPTED_EXIT_CODE,
    NOT_EXECUTABLE_EXIT_CODE,
    LauncherSettings,
)
from .exceptions import ArtifactMissingError
from .hardware import CapabilityDetector, detector_for, probe
from .schema import BuildConfiguration, CapabilitySignal, ExecutableArtifact, InvocationRequest
from .utils import run_foreground

# Module logger
logger = logging.getLogger(__name__)

LOG_FORMAT = "buddy-launch: %(levelname)s %(message)s"


def plan_build(settings: LauncherSettings, detector: Optional[CapabilityDetector] = None) -> BuildConfiguration:
    """
    Probe the GPU if the decision needs it, then select the build configuration.

    The probe runs only for opted-in builds without an explicit architecture;
    in every other case its answer would be ignored.

    Args:
        settings: Launcher settings read from the environment
        detector: Capability detector (defaults to the configured backend)

    Returns:
        BuildConfiguration: Frozen configuration for the build step
    """
    signal = CapabilitySignal()
    if settings.opt_in and not settings.explicit_arch:
        signal = probe(detector or detector_for(settings.probe_backend))
    return select_from_settings(settings, signal)


def verify_artifact(path: Union[str, Path]) -> ExecutableArtifact:
    """
    Check that the built executable exists at its fixed location.

    Raises:
        ArtifactMissingError: If nothing is there
    """
    artifact = ExecutableArtifact.check(Path(path))
    if not artifact.exists:
        raise ArtifactMissingError(artifact.path)
    return artifact


def forward(
    artifact: ExecutableArtifact,
    request: InvocationRequest,
    runner: Callable[..., int] = run_foreground,
) -> int:
    """
    Run the artifact with the forwarded arguments and return its exit status.

    The artifact receives interrupts itself; the launcher waits and reports
    whatever status it ends with. A child terminated by signal N is reported
    as 128 + N, as shells do. An artifact that cannot be started (not
    executable, bad interpreter line) returns 126.
    """
    try:
        status = runner([str(artifact.path), *request.argv])
    except OSError as e:
        logger.error(f"Could not start {artifact.path}: {e}")
        return NOT_EXECUTABLE_EXIT_CODE
    return _shell_status(status)


def _shell_status(status: int) -> int:
    if status < 0:
        return 128 - status
    return status


def run(
    artifact_path: Optional[Union[str, Path]] = None,
    argv: Optional[Sequence[str]] = None,
    settings: Optional[LauncherSettings] = None,
    detector: Optional[CapabilityDetector] = None,
) -> int:
    """
    Build, verify and forward. Returns the status the launcher should exit with.

    Args:
        artifact_path: Executable location (defaults to settings.artifact_path)
        argv: Arguments to forward (defaults to sys.argv[1:])
        settings: Launcher settings (defaults to LauncherSettings.from_env())
        detector: Capability detector override, mainly for tests

    Returns:
        int: Artifact status, build status, or ARTIFACT_MISSING_EXIT_CODE
        (which no other launcher path returns)
    """
    settings = settings or LauncherSettings.from_env()
    request = InvocationRequest(argv=tuple(sys.argv[1:] if argv is None else argv))

    config = plan_build(settings, detector)
    status = build(config, settings.project_root, build_tool=settings.build_tool)
    if status != 0:
        logger.error(f"Build failed with exit status {status}")
        return _shell_status(status)

    try:
        artifact = verify_artifact(artifact_path or settings.artifact_path)
    except ArtifactMissingError as e:
        logger.error(str(e))
        return ARTIFACT_MISSING_EXIT_CODE

    logger.debug(f"Launching {artifact.path} with {len(request.argv)} argument(s)")
    return forward(artifact, request)


def main() -> None:
    """Console entry point. Every argument is forwarded to the built binary."""
    try:
        settings = LauncherSettings.from_env()
    except ValidationError as e:
        logging.basicConfig(format=LOG_FORMAT, stream=sys.stderr)
        logger.error(f"Invalid launcher environment: {e}")
        sys.exit(CONFIG_ERROR_EXIT_CODE)

    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT, stream=sys.stderr)

    try:
        status = run(argv=sys.argv[1:], settings=settings)
    except KeyboardInterrupt:
        status = INTERRUPTED_EXIT_CODE
    sys.exit(status)


if __name__ == "__main__":
    main()
