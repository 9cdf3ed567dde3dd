"""
GPU capability detection.

Provides the compute capability probe consumed by build feature selection.
"""

from .capability_probe import (
    CapabilityDetector,
    SmiCapabilityDetector,
    NvmlCapabilityDetector,
    detector_for,
    parse_compute_capability,
    probe,
)

__all__ = [
    "probe",
    "detector_for",
    "parse_compute_capability",

    # Detectors
    "CapabilityDetector",
    "SmiCapabilityDetector",
    "NvmlCapabilityDetector",
]
