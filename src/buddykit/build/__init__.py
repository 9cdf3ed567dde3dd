"""
Build configuration and invocation for the downstream binary.

Selects CUDA features and architecture, then runs the release build.
"""

from .feature_selector import (
    normalize_architecture,
    select,
    select_from_settings,
)
from .build_invoker import (
    build,
    build_command,
    build_environment,
    format_command,
    working_directory,
)

__all__ = [
    "normalize_architecture",
    "select",
    "select_from_settings",
    "build",
    "build_command",
    "build_environment",
    "format_command",
    "working_directory",
]
