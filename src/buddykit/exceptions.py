"""
Custom exceptions for the buddy launcher.
"""

from pathlib import Path
from typing import Union


class ProbeUnavailableError(RuntimeError):
    """Raised by a capability detector when the GPU query cannot produce an answer."""

    def __init__(self, message: str, detector: str = None):
        """
        Initialize ProbeUnavailableError.

        Args:
            message: What went wrong while querying the GPU
            detector: Optional detector name for better error messages
        """
        self.detector = detector
        full_message = f"GPU capability probe unavailable: {message}"
        if detector:
            full_message += f" (detector: {detector})"
        super().__init__(full_message)


class ArtifactMissingError(FileNotFoundError):
    """Raised when the build reported success but the executable is not where it should be."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(
            f"Build succeeded but no executable was found at {self.path}. "
            f"Check that the crate still produces this binary name and target directory."
        )
