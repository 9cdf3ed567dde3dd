#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Build Feature Selector

Decides, from environment signals and the probed GPU capability, whether the
downstream binary is built with CUDA and which architecture it targets.

Decision policy:
    1. CUDA is enabled if the user opted in (BUDDY_CUDA=1) OR a CUDA toolkit
       path is defined. Either signal alone is enough.
    2. An explicit architecture override always wins over probing.
    3. Otherwise, only opted-in builds consult the probed compute capability.
       Toolkit-path-only builds are expected to pin the architecture
       themselves and are not probed.
    4. CUDA with no architecture is a warning, not an error: the build tool
       falls back to its default targeting.

Nothing here spawns processes. Probing happens before select() is called.
"""

import logging
import re
from typing import Optional

from ..config import ACCELERATION_FEATURE_TOKEN, LauncherSettings
from ..schema import BuildConfiguration, CapabilitySignal

# Module logger
logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[.,_\-\s]")


def normalize_architecture(raw: Optional[str]) -> Optional[str]:
    """
    Turn a compute capability version into a compact architecture identifier.

    Separator characters are removed and nothing else is touched, so the
    operation is idempotent.

    Args:
        raw: Capability string such as "7.5" or "86"

    Returns:
        Architecture identifier ("75", "86"), or None if nothing is left

    Example:
        >>> normalize_architecture("8.6")
        '86'
        >>> normalize_architecture("86")
        '86'
    """
    if raw is None:
        return None
    compact = _SEPARATORS.sub("", raw)
    return compact or None


def select(
    opt_in: bool,
    toolkit_path_present: bool,
    signal: CapabilitySignal,
    explicit_arch: Optional[str] = None,
) -> BuildConfiguration:
    """
    Select the build configuration for the downstream binary.

    Args:
        opt_in: The user explicitly asked for CUDA
        toolkit_path_present: A CUDA toolkit installation path is defined
        signal: Result of the GPU capability probe (may be empty)
        explicit_arch: Architecture override, used verbatim when given

    Returns:
        BuildConfiguration: Frozen configuration for the build step

    Example:
        >>> config = select(True, False, CapabilitySignal(raw_compute_capability="7.5"))
        >>> config.architecture_id, config.feature_flags
        ('75', ('--features=cuda',))
    """
    acceleration_enabled = opt_in or toolkit_path_present
    if not acceleration_enabled:
        return BuildConfiguration()

    architecture_id = None
    if explicit_arch:
        architecture_id = explicit_arch
        logger.info(f"Using explicit CUDA architecture {architecture_id}")
    elif opt_in:
        architecture_id = normalize_architecture(signal.raw_compute_capability)
        if architecture_id:
            logger.info(f"Targeting detected CUDA architecture {architecture_id}")

    if architecture_id is None:
        logger.warning(
            "CUDA enabled but no GPU architecture could be determined; "
            "building with the toolchain's default targets. "
            "Set CUDA_COMPUTE_CAP (e.g. 86) to pin one."
        )

    return BuildConfiguration(
        acceleration_enabled=True,
        architecture_id=architecture_id,
        feature_flags=(ACCELERATION_FEATURE_TOKEN,),
    )


def select_from_settings(settings: LauncherSettings, signal: CapabilitySignal) -> BuildConfiguration:
    """Run select() with the inputs read from launcher settings."""
    return select(
        opt_in=settings.opt_in,
        toolkit_path_present=settings.toolkit_path_present,
        signal=signal,
        explicit_arch=settings.explicit_arch,
    )
