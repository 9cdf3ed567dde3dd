#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
GPU Compute Capability Probe

Finds out whether an NVIDIA GPU is usable on this machine and, if so, which
compute capability it reports. The answer drives the CUDA architecture the
downstream binary is compiled for.

Two detectors are available:
- SmiCapabilityDetector (default): runs `nvidia-smi` once and takes the first
  numeric-looking line of its CSV output.
- NvmlCapabilityDetector: asks NVML directly through pynvml, without spawning
  a process.

A missing utility, a driver error or a timeout all mean the same thing to the
caller: no GPU signal. probe() therefore never raises for them.
"""

import logging
import re
import subprocess
from typing import Optional, Sequence

from ..config import PROBE_TIMEOUT_SECONDS, SMI_COMMAND
from ..exceptions import ProbeUnavailableError
from ..schema import CapabilitySignal

# Module logger
logger = logging.getLogger(__name__)

# "7.5", "8.6", "12.0", or a bare "9"
_CAPABILITY_LINE = re.compile(r"^\d+(?:\.\d+)?$")


def _load_pynvml():
    """Import pynvml, or return None when the bindings or the NVML library are missing."""
    try:
        import pynvml
    except (ImportError, OSError):
        return None
    return pynvml


def parse_compute_capability(output: str) -> Optional[str]:
    """
    Return the first well-formed compute capability line in GPU query output.

    Header rows, blank lines and anything else that is not a plain number are
    skipped; only the first match is kept (the first GPU on multi-GPU hosts).

    Args:
        output: Raw stdout of the GPU query

    Returns:
        The capability string (e.g., "8.6"), or None if no line matched

    Example:
        >>> parse_compute_capability("compute_cap\\n8.6\\n7.5\\n")
        '8.6'
    """
    for line in output.splitlines():
        candidate = line.strip()
        if _CAPABILITY_LINE.match(candidate):
            return candidate
    return None


class CapabilityDetector:
    """Narrow interface over whatever reports the GPU's compute capability."""

    name = "detector"

    def detect(self) -> Optional[str]:
        """
        Return the raw compute capability string, or None if the query ran but
        reported nothing usable.

        Raises:
            ProbeUnavailableError: If the query could not run at all
        """
        raise NotImplementedError


class SmiCapabilityDetector(CapabilityDetector):
    """Queries `nvidia-smi --query-gpu=compute_cap --format=csv`."""

    name = "nvidia-smi"

    def __init__(self, command: Sequence[str] = SMI_COMMAND, timeout: float = PROBE_TIMEOUT_SECONDS):
        self.command = list(command)
        self.timeout = timeout

    def detect(self) -> Optional[str]:
        try:
            completed = subprocess.run(
                self.command,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=True,
            )
        except FileNotFoundError:
            raise ProbeUnavailableError(f"{self.command[0]} not found on PATH", detector=self.name)
        except subprocess.CalledProcessError as e:
            raise ProbeUnavailableError(f"exited with status {e.returncode}", detector=self.name)
        except subprocess.TimeoutExpired:
            raise ProbeUnavailableError(f"no answer within {self.timeout}s", detector=self.name)
        except OSError as e:
            raise ProbeUnavailableError(str(e), detector=self.name)

        return parse_compute_capability(completed.stdout)


class NvmlCapabilityDetector(CapabilityDetector):
    """Reads the first device's CUDA compute capability through NVML."""

    name = "nvml"

    def detect(self) -> Optional[str]:
        pynvml = _load_pynvml()
        if not pynvml:
            raise ProbeUnavailableError("pynvml is not importable", detector=self.name)

        try:
            pynvml.nvmlInit()
        except pynvml.NVMLError as e:
            raise ProbeUnavailableError(f"NVML init failed: {e}", detector=self.name)

        try:
            if pynvml.nvmlDeviceGetCount() == 0:
                return None
            handle = pynvml.nvmlDeviceGetHandleByIndex(0)
            major, minor = pynvml.nvmlDeviceGetCudaComputeCapability(handle)
            return f"{major}.{minor}"
        except pynvml.NVMLError as e:
            raise ProbeUnavailableError(f"NVML query failed: {e}", detector=self.name)
        finally:
            pynvml.nvmlShutdown()


_DETECTORS = {
    "smi": SmiCapabilityDetector,
    "nvml": NvmlCapabilityDetector,
}


def detector_for(backend: str) -> CapabilityDetector:
    """
    Build the detector for a configured probe backend.

    Args:
        backend: "smi" or "nvml"

    Returns:
        CapabilityDetector: A fresh detector instance

    Raises:
        ValueError: If the backend name is not recognized
    """
    try:
        return _DETECTORS[backend]()
    except KeyError:
        raise ValueError(f"Unknown probe backend {backend!r}; expected one of {sorted(_DETECTORS)}")


def probe(detector: Optional[CapabilityDetector] = None) -> CapabilitySignal:
    """
    Probe the GPU's compute capability once.

    An unavailable probe is the normal "no GPU" answer and yields an empty
    signal. There are no retries.

    Args:
        detector: Detector to use (defaults to SmiCapabilityDetector)

    Returns:
        CapabilitySignal: raw_compute_capability set if a GPU answered

    Example:
        >>> from buddykit.hardware import probe
        >>> signal = probe()
        >>> print(signal.raw_compute_capability)
        8.6
    """
    detector = detector or SmiCapabilityDetector()

    try:
        raw = detector.detect()
    except ProbeUnavailableError as e:
        logger.debug(str(e))
        return CapabilitySignal()

    if raw:
        logger.info(f"NVIDIA GPU detected via {detector.name}: compute capability {raw}")
    else:
        logger.debug(f"{detector.name} ran but reported no compute capability")
    return CapabilitySignal(raw_compute_capability=raw)
