#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Build Invoker

Runs the release build of the downstream crate with the selected features.

The CUDA architecture is not a cargo argument: it reaches the nested nvcc
compilation through the CUDA_COMPUTE_CAP environment variable, which is set
on the build subprocess only (the launcher's own environment is left alone).
"""

import logging
import os
import shlex
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Union

from ..config import (
    ARCH_EXPORT_ENV,
    COMMAND_NOT_FOUND_EXIT_CODE,
    CONFIG_ERROR_EXIT_CODE,
    DEFAULT_BUILD_TOOL,
    NOT_EXECUTABLE_EXIT_CODE,
    RELEASE_PROFILE_ARGS,
)
from ..schema import BuildConfiguration
from ..utils import run_foreground

# Module logger
logger = logging.getLogger(__name__)

# (args, env=...) -> exit status, like run_foreground
Runner = Callable[..., int]


@contextmanager
def working_directory(path: Union[str, Path]) -> Iterator[Path]:
    """
    Change the process working directory for the duration of a block.

    The previous directory is restored on every exit path, including
    exceptions raised inside the block.
    """
    previous = Path.cwd()
    os.chdir(path)
    try:
        yield Path(path)
    finally:
        os.chdir(previous)


def build_command(config: BuildConfiguration, build_tool: str = DEFAULT_BUILD_TOOL) -> List[str]:
    """
    Argument vector for the release build.

    Returns:
        List[str]: e.g. ["cargo", "build", "--release", "--features=cuda"]
    """
    return [build_tool, *RELEASE_PROFILE_ARGS, *config.feature_flags]


def build_environment(config: BuildConfiguration, base: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """
    Environment for the build subprocess.

    Args:
        config: Selected build configuration
        base: Environment to start from (defaults to os.environ)

    Returns:
        Dict[str, str]: A copy of base, with the architecture exported if set
    """
    env = dict(os.environ if base is None else base)
    if config.architecture_id:
        env[ARCH_EXPORT_ENV] = config.architecture_id
    return env


def format_command(config: BuildConfiguration, build_tool: str = DEFAULT_BUILD_TOOL) -> str:
    """
    Shell form of the build, for logs and for users who want to run it by hand.

    Example:
        >>> config = BuildConfiguration(acceleration_enabled=True, architecture_id="75",
        ...                             feature_flags=("--features=cuda",))
        >>> print(format_command(config))
        CUDA_COMPUTE_CAP=75 cargo build --release --features=cuda
    """
    command = " ".join(shlex.quote(arg) for arg in build_command(config, build_tool))
    if config.architecture_id:
        return f"{ARCH_EXPORT_ENV}={shlex.quote(config.architecture_id)} {command}"
    return command


def build(
    config: BuildConfiguration,
    working_dir: Union[str, Path],
    build_tool: str = DEFAULT_BUILD_TOOL,
    runner: Runner = run_foreground,
) -> int:
    """
    Build the crate in working_dir and return the build tool's exit status.

    The status is returned unchanged; a failed build is not retried. If the
    build tool cannot be started, 127 (not found) or 126 (not executable) is
    returned as a shell would. A project root that is not a directory
    returns 2 without running anything.

    Args:
        config: Selected build configuration
        working_dir: Crate root to build from
        build_tool: Build tool executable
        runner: Process runner (run_foreground by default)

    Returns:
        int: Exit status of the build tool
    """
    command = build_command(config, build_tool)
    env = build_environment(config)

    if not Path(working_dir).is_dir():
        logger.error(f"Project root {working_dir} is not a directory; check BUDDY_PROJECT_ROOT")
        return CONFIG_ERROR_EXIT_CODE

    logger.info(f"Building in {working_dir}: {format_command(config, build_tool)}")
    with working_directory(working_dir):
        try:
            return runner(command, env=env)
        except FileNotFoundError:
            logger.error(f"Build tool {build_tool!r} not found on PATH")
            return COMMAND_NOT_FOUND_EXIT_CODE
        except OSError as e:
            logger.error(f"Build tool {build_tool!r} could not be started: {e}")
            return NOT_EXECUTABLE_EXIT_CODE
